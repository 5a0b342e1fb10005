"""
Live dashboard handle for the API.

Provides a get_dashboard() dependency returning the process-wide
LiveDashboard. The handle is created lazily from the environment the first
time it is needed, unless create_app() installed one explicitly.
"""

import threading

from fastapi import Depends, HTTPException

from realtime.dashboard import DashboardSnapshot, DashboardStatus, LiveDashboard
from utils.config import (
    AppConfig,
    resolve_app_id,
    resolve_firebase_config,
    resolve_initial_auth_token,
)

_dashboard: LiveDashboard | None = None
_dashboard_lock = threading.Lock()


def build_dashboard(app_config: AppConfig | None = None) -> LiveDashboard:
    """Build a LiveDashboard from environment-provided configuration."""
    return LiveDashboard(
        app_config=app_config or AppConfig.from_env(),
        firebase_config=resolve_firebase_config(),
        app_id=resolve_app_id(),
        auth_token=resolve_initial_auth_token(),
    )


def set_dashboard(dashboard: LiveDashboard | None) -> None:
    global _dashboard
    with _dashboard_lock:
        _dashboard = dashboard


def get_dashboard() -> LiveDashboard:
    """FastAPI dependency: return the singleton LiveDashboard.

    Usage in a route::

        from api.backend import get_dashboard
        from fastapi import Depends

        @router.get("/example")
        def example(dashboard=Depends(get_dashboard)):
            ...
    """
    global _dashboard
    if _dashboard is None:
        with _dashboard_lock:
            if _dashboard is None:
                _dashboard = build_dashboard()
    return _dashboard


def get_snapshot(dashboard: LiveDashboard = Depends(get_dashboard)) -> DashboardSnapshot:
    """FastAPI dependency: one consistent snapshot per request."""
    return dashboard.snapshot()


def require_ready(snap: DashboardSnapshot) -> DashboardSnapshot:
    """Raise HTTP 503 unless the dashboard has data to serve.

    The error state carries its user-facing message as the detail; while
    loading, clients are told to retry shortly.
    """
    if snap.status is DashboardStatus.ERROR:
        raise HTTPException(status_code=503, detail=snap.error)
    if snap.status is DashboardStatus.LOADING:
        raise HTTPException(
            status_code=503,
            detail="Conectando con el servidor...",
            headers={"Retry-After": "2"},
        )
    return snap
