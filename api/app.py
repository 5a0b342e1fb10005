"""
FastAPI application factory for the budget transparency dashboard.

Usage:
    python -m api.app                    # Dev server on port 8000
    VITE_FIREBASE_CONFIG='{"apiKey": ...}' python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

The lifespan starts the live dashboard (sign-in + collection subscription)
on a background thread, so the server answers with the loading state while
the connection is pending, and tears the subscription down on shutdown.

Structured JSON logging when APP_LOG_FORMAT=json.
CORS middleware with configurable origins via APP_CORS_ORIGINS.
"""

import json
import logging
import threading
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from api import backend
from api.routes import budget_lines, dashboard
from api.routes import frontend as frontend_routes
from realtime.dashboard import DashboardStatus, LiveDashboard
from utils.config import AppConfig
from utils.formatting import format_amount, format_percent

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


_logger = logging.getLogger("budget_dashboard.api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=_cfg.log_level, force=True)


def create_app(
    live: LiveDashboard | None = None,
    start_live: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        live: Use this LiveDashboard instead of building one from the
            environment (useful for testing).
        start_live: Start/stop the dashboard in the app lifespan.

    Returns:
        Configured FastAPI application instance.
    """
    if live is not None:
        backend.set_dashboard(live)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the live subscription on startup, close it on shutdown."""
        current = backend.get_dashboard()
        if start_live:
            _logger.info("starting dashboard collection=%s settings=%s",
                         current.path, _cfg.to_dict())
            threading.Thread(target=current.start, name="dashboard-start",
                             daemon=True).start()
        try:
            yield
        finally:
            if start_live:
                current.stop()

    app = FastAPI(
        title="Budget Transparency Dashboard",
        summary="Live aggregates over the public 2025 budget line items.",
        description=(
            "## Analítica Fiscal: Hacienda Pública 2025\n\n"
            "Read-only view over a live collection of public budget line "
            "items. Every push from the backend replaces the whole record "
            "list; summaries are recomputed per snapshot.\n\n"
            "### Key concepts\n"
            "- **Execution rate** = paid / approved, as a percentage with one decimal.\n"
            "- **Top categories** are sorted by approved amount, largest first.\n"
            "- While the connection is loading or failed, data endpoints return "
            "`503` with the user-facing message as `detail`."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "budget-lines",
                "description": "Line items of the current snapshot, sorted and paginated.",
            },
            {
                "name": "dashboard",
                "description": "Summary metrics, chart groupings and connection status.",
            },
            {
                "name": "meta",
                "description": "Health check.",
            },
        ],
    )

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its duration and a short request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        # HTMX polls would drown everything else at INFO
        level = logging.DEBUG if path.startswith("/partials") else logging.INFO
        if _cfg.log_format == "json":
            _logger.log(
                level,
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.log(
                level,
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, path, response.status_code, duration_ms, request_id,
            )
        return response

    # ── Content Security Policy + security headers ───────────────────────────

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        """Add Content-Security-Policy, X-Content-Type-Options, and X-Frame-Options."""
        response = await call_next(request)
        # CSP: allow self + CDN origins used by HTMX and Chart.js.
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' unpkg.com cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "font-src 'self'; "
            "connect-src 'self';"
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 once the live subscription has delivered data, 503 otherwise."""
        snap = backend.get_dashboard().snapshot()
        body = {
            "status": snap.status.value,
            "collection": snap.collection,
            "records": len(snap.records),
            "version": snap.version,
        }
        if snap.status is DashboardStatus.READY:
            return {"status": "ok", **{k: v for k, v in body.items() if k != "status"}}
        if snap.error:
            body["error"] = snap.error
        return JSONResponse(status_code=503, content=body)

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(budget_lines.router, prefix=prefix)
    app.include_router(dashboard.router,    prefix=prefix)

    # ── Static files + Jinja2 templates ───────────────────────────────────────
    _here = Path(__file__).parent.parent  # project root

    static_dir = _here / "static"
    templates_dir = _here / "templates"

    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    if templates_dir.exists():
        templates = Jinja2Templates(directory=str(templates_dir))
        templates.env.filters["fmt_amount"] = format_amount
        templates.env.filters["fmt_percent"] = format_percent

        frontend_routes.set_templates(templates)
        app.include_router(frontend_routes.router)

    frontend_routes.register_error_handlers(app)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
