"""Live subscription to the public budget collection.

Wraps the document database's snapshot listener. Every push delivers the
complete collection, which is normalized and handed on as a new list; the
previous list is never patched.

Collection layouts:
    artifacts  artifacts/{app_id}/public/data/{name}
    flat       {name}
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from google.api_core import exceptions as gexc
from google.auth import exceptions as auth_exc
from google.cloud import firestore
from google.oauth2.credentials import Credentials

from realtime.auth import Session
from realtime.errors import SubscriptionError
from realtime.records import BudgetLineItem, normalize_snapshot
from utils.config import DEFAULT_COLLECTION_NAME, FirebaseConfig

logger = logging.getLogger("budget_dashboard.subscriber")

RecordsCallback = Callable[[list[BudgetLineItem]], None]
ErrorCallback = Callable[[SubscriptionError], None]

# RetryError (deadline exhausted) is a GoogleAPIError but not a GoogleAPICallError
_CLIENT_ERRORS = (gexc.GoogleAPIError, auth_exc.GoogleAuthError)


def _wrap(exc: Exception) -> SubscriptionError:
    return SubscriptionError(getattr(exc, "message", None) or str(exc))


def collection_path(app_id: str, layout: str = "artifacts",
                    name: str = DEFAULT_COLLECTION_NAME) -> str:
    """Return the slash-separated path of the budget collection.

    >>> collection_path("budget-analytics-2025")
    'artifacts/budget-analytics-2025/public/data/presupuesto_2025'
    >>> collection_path("ignored", layout="flat")
    'presupuesto_2025'
    """
    if layout == "flat":
        return name
    if layout != "artifacts":
        raise ValueError(f"unknown collection layout: {layout!r}")
    if not app_id or "/" in app_id:
        raise ValueError(f"invalid app id: {app_id!r}")
    return f"artifacts/{app_id}/public/data/{name}"


def build_firestore_client(firebase_config: FirebaseConfig,
                           session: Session) -> firestore.Client:
    """Create a document database client acting as the signed-in user.

    The user's ID token is sent as the bearer credential, so the
    collection's security rules apply exactly as they do in the browser.
    """
    if not firebase_config.project_id:
        raise SubscriptionError("projectId missing from configuration")
    credentials = Credentials(token=session.id_token)
    try:
        return firestore.Client(project=firebase_config.project_id,
                                credentials=credentials)
    except _CLIENT_ERRORS as exc:
        raise _wrap(exc) from exc


class CollectionSubscriber:
    """Owns one snapshot listener on one collection path."""

    def __init__(self, client: Any, path: str) -> None:
        self.client = client
        self.path = path
        self._watch: Any = None
        self._lock = threading.Lock()
        self._on_records: RecordsCallback | None = None
        self._on_error: ErrorCallback | None = None

    @property
    def active(self) -> bool:
        """True while the listener is open and its stream is alive."""
        watch = self._watch
        if watch is None:
            return False
        return bool(getattr(watch, "is_active", True))

    def start(self, on_records: RecordsCallback, on_error: ErrorCallback) -> None:
        """Load the collection once, then listen for pushed snapshots.

        The initial read runs synchronously so permission and addressing
        errors surface here instead of silently closing the listener.

        Raises:
            SubscriptionError: The initial read or listener setup failed.
        """
        with self._lock:
            if self._watch is not None:
                raise RuntimeError(f"already subscribed to {self.path}")
            self._on_records = on_records
            self._on_error = on_error
            col_ref = self.client.collection(self.path)
            try:
                initial = col_ref.get()
            except _CLIENT_ERRORS as exc:
                raise _wrap(exc) from exc
            self._deliver(initial)
            try:
                self._watch = col_ref.on_snapshot(self._handle_snapshot)
            except _CLIENT_ERRORS as exc:
                raise _wrap(exc) from exc
        logger.info("subscribed path=%s", self.path)

    def stop(self) -> None:
        """Close the listener. Safe to call more than once."""
        with self._lock:
            watch, self._watch = self._watch, None
        if watch is not None:
            watch.unsubscribe()
            logger.info("unsubscribed path=%s", self.path)

    # ── listener plumbing ─────────────────────────────────────────────────

    def _handle_snapshot(self, docs, changes, read_time) -> None:
        """Listener callback; runs on the client library's consumer thread."""
        logger.debug("snapshot path=%s docs=%d changes=%d",
                     self.path, len(docs), len(changes or []))
        self._deliver(docs)

    def _deliver(self, docs) -> None:
        try:
            records = normalize_snapshot(docs)
        except Exception as exc:
            logger.exception("failed to normalize snapshot path=%s", self.path)
            if self._on_error is not None:
                self._on_error(SubscriptionError(str(exc)))
            return
        if self._on_records is not None:
            self._on_records(records)
