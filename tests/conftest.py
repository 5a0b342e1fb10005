"""
Pytest fixtures for the budget dashboard tests.

Provides in-memory stand-ins for the vendor services so the live dashboard
can be driven end to end without network access:

    FakeDoc / FakeWatch / FakeCollection / FakeFirestore
        the slice of the document database client the subscriber uses
    FakeBootstrapper
        hands out a fixed Session, or raises AuthenticationError
    GatedBootstrapper
        holds sign_in until the test sets its gate

and helpers that build LiveDashboard instances already in a given state.
"""

import sys
import threading
import time
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api import backend  # noqa: E402
from realtime.auth import Session  # noqa: E402
from realtime.dashboard import LiveDashboard, _Backend  # noqa: E402
from realtime.errors import AuthenticationError  # noqa: E402
from realtime.records import BudgetLineItem  # noqa: E402
from utils.config import AppConfig, FirebaseConfig  # noqa: E402

FIREBASE_BLOB = {
    "apiKey": "test-api-key",
    "authDomain": "budget-test.firebaseapp.com",
    "projectId": "budget-test",
    "appId": "1:123:web:abc",
}

SAMPLE_DOCS = [
    ("d1", {"DESC_RAMO": "A", "DESC_UR": "Unidad 1", "MONTO_APROBADO": 100, "MONTO_PAGADO": 50}),
    ("d2", {"DESC_RAMO": "A", "DESC_UR": "Unidad 2", "MONTO_APROBADO": 50, "MONTO_PAGADO": 50}),
    ("d3", {"DESC_RAMO": "B", "DESC_UR": "Unidad 3", "MONTO_APROBADO": 200, "MONTO_PAGADO": 0}),
]


# ── Document database stand-ins ───────────────────────────────────────────────

class FakeDoc:
    def __init__(self, doc_id, data, exists=True):
        self.id = doc_id
        self._data = data
        self.exists = exists

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeWatch:
    def __init__(self):
        self.is_active = True
        self.unsubscribed = False

    def unsubscribe(self):
        self.unsubscribed = True
        self.is_active = False


class FakeCollection:
    def __init__(self, docs=None, get_error=None):
        self.docs = list(docs or [])
        self.get_error = get_error
        self.callback = None
        self.watch = None

    def get(self):
        if self.get_error is not None:
            raise self.get_error
        return list(self.docs)

    def on_snapshot(self, callback):
        self.callback = callback
        self.watch = FakeWatch()
        return self.watch

    def push(self, docs):
        """Simulate a server push of the full collection."""
        self.docs = list(docs)
        self.callback(self.docs, [], None)


class FakeFirestore:
    def __init__(self, docs=None, get_error=None):
        self.collections = {}
        self._docs = docs
        self._get_error = get_error
        self.requested_paths = []

    def collection(self, path):
        self.requested_paths.append(path)
        if path not in self.collections:
            self.collections[path] = FakeCollection(self._docs, self._get_error)
        return self.collections[path]


def make_docs(rows=None):
    return [FakeDoc(doc_id, data) for doc_id, data in (rows or SAMPLE_DOCS)]


# ── Auth stand-ins ────────────────────────────────────────────────────────────

def make_session(uid="user-123", expires_in=3600, refresh_token="refresh-1"):
    return Session(
        uid=uid,
        id_token="id-token",
        refresh_token=refresh_token,
        expires_at=time.time() + expires_in,
        anonymous=True,
    )


class FakeBootstrapper:
    """Callable like SessionBootstrapper(config, timeout=...)."""

    def __init__(self, session=None, error=None):
        self.session = session or make_session()
        self.error = error
        self.tokens = []
        self.closed = False

    def __call__(self, firebase_config, timeout=20):
        return self

    def sign_in(self, custom_token=None):
        self.tokens.append(custom_token)
        if self.error is not None:
            raise AuthenticationError(self.error)
        return self.session

    def refresh(self, session):
        return make_session(uid=session.uid)

    def close(self):
        self.closed = True


class GatedBootstrapper(FakeBootstrapper):
    """Blocks sign_in until the test releases the gate."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.gate = threading.Event()

    def sign_in(self, custom_token=None):
        self.gate.wait(timeout=5)
        return super().sign_in(custom_token)


# ── Dashboard builders ────────────────────────────────────────────────────────

def make_app_config(monkeypatch=None, **env) -> AppConfig:
    if monkeypatch is not None:
        for key, value in env.items():
            monkeypatch.setenv(key, str(value))
    return AppConfig()


def make_dashboard(firestore=None, bootstrapper=None, firebase_blob=FIREBASE_BLOB,
                   app_config=None, auth_token=None, environ=None) -> LiveDashboard:
    """Build a LiveDashboard wired to the fakes; not started."""
    firestore = firestore or FakeFirestore(make_docs())
    return LiveDashboard(
        app_config=app_config or AppConfig(),
        firebase_config=FirebaseConfig.from_blob(firebase_blob) if firebase_blob else None,
        app_id="test-app",
        auth_token=auth_token,
        backend=_Backend(
            bootstrapper=bootstrapper or FakeBootstrapper(),
            client=lambda cfg, session: firestore,
        ),
        environ=environ if environ is not None else {},
    )


def sample_records():
    return [
        BudgetLineItem("d1", "A", "Unidad 1", aprobado=100, pagado=50),
        BudgetLineItem("d2", "A", "Unidad 2", aprobado=50, pagado=50),
        BudgetLineItem("d3", "B", "Unidad 3", aprobado=200, pagado=0),
    ]


@pytest.fixture(autouse=True)
def _reset_dashboard_singleton():
    backend.set_dashboard(None)
    yield
    backend.set_dashboard(None)


@pytest.fixture()
def ready_dashboard():
    dash = make_dashboard()
    dash.replace_records(sample_records())
    return dash


@pytest.fixture()
def loading_dashboard():
    return make_dashboard()


@pytest.fixture()
def error_dashboard():
    dash = make_dashboard(firebase_blob=None,
                          environ={"VITE_FIREBASE_CONFIG": ""})
    dash.fail("Configuración de servicios no detectada.")
    return dash
