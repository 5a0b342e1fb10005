"""
Frontend HTML routes.

Serves the Jinja2 templates for the dashboard/table toggle view and the
HTMX partials that keep it live.

Routes:
    GET /                   → index.html (nav toggle + content)
    GET /partials/content   → partials/content.html (HTMX poll target)

Both accept ``view=dashboard|table``. The content partial renders whichever
of the three states the live dashboard is in: a spinner while loading, the
error panel with configuration diagnostics, or the metric cards followed by
the charts or the detail table.
"""

from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.backend import get_dashboard, get_snapshot
from realtime.dashboard import DashboardSnapshot, DashboardStatus, LiveDashboard

router = APIRouter(tags=["frontend"])

VIEWS = ("dashboard", "table")
EMPTY_MESSAGE = "No hay datos disponibles en la colección seleccionada."

# Templates instance is set by create_app() after mounting.
_templates: Jinja2Templates | None = None


def set_templates(t: Jinja2Templates) -> None:
    global _templates
    _templates = t


def _tmpl() -> Jinja2Templates:
    if _templates is None:
        raise RuntimeError("Templates not initialised, call set_templates() first")
    return _templates


def _parse_view(request: Request) -> str:
    view = request.query_params.get("view", "dashboard")
    return view if view in VIEWS else "dashboard"


def build_context(
    request: Request,
    snap: DashboardSnapshot,
    dashboard: LiveDashboard,
) -> dict[str, Any]:
    """Template context shared by the full page and the content partial."""
    view = _parse_view(request)
    context: dict[str, Any] = {
        "request":         request,
        "view":            view,
        "status":          snap.status.value,
        "error":           snap.error,
        "user_id":         snap.user_id,
        "version":         snap.version,
        "refresh_seconds": dashboard.app_config.refresh_seconds,
        "empty_message":   EMPTY_MESSAGE,
    }
    if snap.status is DashboardStatus.ERROR:
        context["diagnostics"] = dashboard.diagnostics()
    elif snap.status is DashboardStatus.READY:
        summary = dashboard.summary(snap=snap)
        context["summary"] = summary
        context["chart_data"] = [c.to_dict() for c in summary.chart_data]
        if view == "table":
            context["items"] = list(snap.records)
    return context


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(
    request: Request,
    snap: DashboardSnapshot = Depends(get_snapshot),
    dashboard: LiveDashboard = Depends(get_dashboard),
) -> HTMLResponse:
    """Main dashboard page."""
    return _tmpl().TemplateResponse(
        request, "index.html", build_context(request, snap, dashboard),
    )


@router.get("/partials/content", response_class=HTMLResponse, include_in_schema=False)
def content_partial(
    request: Request,
    snap: DashboardSnapshot = Depends(get_snapshot),
    dashboard: LiveDashboard = Depends(get_dashboard),
) -> HTMLResponse:
    """HTMX partial: state-dependent main content for the selected view."""
    return _tmpl().TemplateResponse(
        request, "partials/content.html", build_context(request, snap, dashboard),
    )


# ── Error pages ───────────────────────────────────────────────────────────────

def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api") or request.url.path.startswith("/health")


def register_error_handlers(app: FastAPI) -> None:
    """Serve HTML 404/500 pages for browser routes, JSON for the API."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if _wants_json(request) or _templates is None:
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": _reason(exc.status_code), "detail": exc.detail,
                         "status_code": exc.status_code},
                headers=getattr(exc, "headers", None),
            )
        template = "errors/404.html" if exc.status_code == 404 else "errors/500.html"
        return _tmpl().TemplateResponse(
            request, template,
            {"request": request, "status_code": exc.status_code, "detail": exc.detail},
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": "Validation error", "detail": str(exc.errors()),
                     "status_code": 422},
        )


def _reason(status_code: int) -> str:
    return {
        400: "Bad request",
        404: "Not found",
        422: "Validation error",
        503: "Service unavailable",
    }.get(status_code, "Error")
