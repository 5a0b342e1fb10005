"""Live dashboard state: loading / error / ready.

LiveDashboard owns the whole backend lifecycle for one process:

    start()  resolve credentials -> sign in -> open client -> subscribe
    stop()   cancel timers, close the subscription

Snapshot callbacks arrive on the client library's thread and HTTP handlers
read from the server's threads, so the record list is swapped under a lock
and readers always get a consistent (status, records, version) triple.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from realtime.aggregate import BudgetSummary, summarize
from realtime.auth import Session, SessionBootstrapper
from realtime.errors import (
    ConfigurationMissingError,
    DashboardError,
    SubscriptionError,
)
from realtime.records import BudgetLineItem
from realtime.subscriber import (
    CollectionSubscriber,
    build_firestore_client,
    collection_path,
)
from utils.cache import SnapshotMemo
from utils.config import AppConfig, FirebaseConfig, detect_config_sources

logger = logging.getLogger("budget_dashboard.live")

# Seconds before token expiry at which the subscription is reopened
_REFRESH_LEAD = 300


class DashboardStatus(str, enum.Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


@dataclass(frozen=True)
class DashboardSnapshot:
    """Immutable view of the dashboard state at one instant."""

    status: DashboardStatus
    error: str | None = None
    user_id: str | None = None
    records: tuple[BudgetLineItem, ...] = ()
    version: int = 0
    updated_at: float | None = None
    collection: str | None = None

    @property
    def empty(self) -> bool:
        return not self.records


@dataclass
class _Backend:
    """Factories for the vendor services; replaced in tests."""

    bootstrapper: Callable[..., SessionBootstrapper] = SessionBootstrapper
    client: Callable[[FirebaseConfig, Session], Any] = build_firestore_client
    subscriber: Callable[[Any, str], CollectionSubscriber] = CollectionSubscriber


class LiveDashboard:
    """Process-wide live view over the budget collection."""

    def __init__(
        self,
        app_config: AppConfig,
        firebase_config: FirebaseConfig | None,
        app_id: str,
        auth_token: str | None = None,
        backend: _Backend | None = None,
        environ: dict[str, str] | None = None,
    ) -> None:
        self.app_config = app_config
        self.firebase_config = firebase_config
        self.app_id = app_id
        self.auth_token = auth_token
        self.path = collection_path(
            app_id, app_config.collection_layout, app_config.collection_name
        )
        self._backend = backend or _Backend()
        self._environ = environ

        self._lock = threading.RLock()
        self._status = DashboardStatus.LOADING
        self._error: str | None = None
        self._records: tuple[BudgetLineItem, ...] = ()
        self._version = 0
        self._updated_at: float | None = None

        self._session: Session | None = None
        self._bootstrapper: SessionBootstrapper | None = None
        self._client: Any = None
        self._subscriber: CollectionSubscriber | None = None
        self._grace_timer: threading.Timer | None = None
        self._refresh_timer: threading.Timer | None = None
        self._stopped = False
        self._memo = SnapshotMemo(maxsize=16)

    # ── lifecycle ─────────────────────────────────────────────────────────

    def start(self) -> None:
        """Bring the dashboard up. Never raises; failures become the error state.

        May run on a background thread; a dashboard that was already stopped
        stays down.
        """
        with self._lock:
            if self._stopped:
                return
        if self.firebase_config is None:
            self._schedule_config_error()
            return
        try:
            self._connect()
        except DashboardError as exc:
            self.fail(exc.user_message)

    def stop(self) -> None:
        """Cancel pending timers and close the subscription."""
        with self._lock:
            self._stopped = True
            timers = (self._grace_timer, self._refresh_timer)
            self._grace_timer = self._refresh_timer = None
            subscriber, self._subscriber = self._subscriber, None
            bootstrapper, self._bootstrapper = self._bootstrapper, None
        for timer in timers:
            if timer is not None:
                timer.cancel()
        if subscriber is not None:
            subscriber.stop()
        if bootstrapper is not None:
            bootstrapper.close()

    def _schedule_config_error(self) -> None:
        grace = self.app_config.config_grace_seconds
        error = ConfigurationMissingError()
        if grace <= 0:
            self.fail(error.user_message)
            return
        timer = threading.Timer(grace, self._config_grace_expired)
        timer.daemon = True
        with self._lock:
            self._grace_timer = timer
        timer.start()

    def _config_grace_expired(self) -> None:
        with self._lock:
            if self._stopped or self._status is not DashboardStatus.LOADING:
                return
        self.fail(ConfigurationMissingError().user_message)

    def _connect(self) -> None:
        bootstrapper = self._backend.bootstrapper(
            self.firebase_config, timeout=self.app_config.auth_timeout
        )
        with self._lock:
            self._bootstrapper = bootstrapper
        session = bootstrapper.sign_in(self.auth_token)
        with self._lock:
            self._session = session
        self._open_subscription(session)

    def _open_subscription(self, session: Session) -> None:
        # The client carries the bearer token, so a new session needs a new client
        client = self._backend.client(self.firebase_config, session)
        subscriber = self._backend.subscriber(client, self.path)
        subscriber.start(self.replace_records, self._subscription_failed)
        with self._lock:
            previous = self._subscriber
            self._session = session
            self._client = client
            self._subscriber = subscriber
            stopped = self._stopped
        if previous is not None:
            previous.stop()
        if stopped:
            subscriber.stop()
            return
        self._schedule_refresh(session)

    def _schedule_refresh(self, session: Session) -> None:
        delay = session.expires_at - time.time() - _REFRESH_LEAD
        if not session.refresh_token or delay <= 0:
            return
        timer = threading.Timer(delay, self._refresh_session)
        timer.daemon = True
        with self._lock:
            if self._refresh_timer is not None:
                self._refresh_timer.cancel()
            self._refresh_timer = timer
        timer.start()

    def _refresh_session(self) -> None:
        with self._lock:
            session, bootstrapper = self._session, self._bootstrapper
            if self._stopped or session is None or bootstrapper is None:
                return
        try:
            self._open_subscription(bootstrapper.refresh(session))
        except DashboardError as exc:
            self.fail(exc.user_message)

    # ── state transitions ─────────────────────────────────────────────────

    def replace_records(self, records: list[BudgetLineItem]) -> None:
        """Swap in the record list of a new snapshot and mark the view ready."""
        frozen = tuple(records)
        with self._lock:
            self._records = frozen
            self._version += 1
            self._updated_at = time.time()
            if self._status is not DashboardStatus.ERROR:
                self._status = DashboardStatus.READY
            version = self._version
        logger.info("snapshot applied version=%d records=%d", version, len(frozen))

    def fail(self, message: str) -> None:
        """Enter the error state with *message* as the user-facing text."""
        with self._lock:
            self._status = DashboardStatus.ERROR
            self._error = message
        logger.error("dashboard error: %s", message)

    def _subscription_failed(self, error: SubscriptionError) -> None:
        self.fail(error.user_message)

    def _check_subscription(self) -> None:
        with self._lock:
            subscriber = self._subscriber
            ready = self._status is DashboardStatus.READY
        if ready and subscriber is not None and not subscriber.active:
            self.fail(SubscriptionError("la suscripción se cerró").user_message)

    # ── read side ─────────────────────────────────────────────────────────

    def snapshot(self) -> DashboardSnapshot:
        """Return the current state as one consistent, immutable value."""
        self._check_subscription()
        with self._lock:
            return DashboardSnapshot(
                status=self._status,
                error=self._error,
                user_id=self._session.uid if self._session else None,
                records=self._records,
                version=self._version,
                updated_at=self._updated_at,
                collection=self.path,
            )

    def summary(self, top_n: int | None = None,
                snap: DashboardSnapshot | None = None) -> BudgetSummary:
        """Aggregate the current records, memoized per snapshot version."""
        snap = snap or self.snapshot()
        n = top_n or self.app_config.top_n
        return self._memo.get_or_compute(
            snap.version, ("summary", n),
            lambda: summarize(snap.records, n),
        )

    def diagnostics(self) -> dict[str, bool]:
        """Detected credential sources plus whether the auth service is usable."""
        sources = detect_config_sources(self._environ)
        sources["auth_service"] = self.firebase_config is not None
        return sources
