"""Dashboard summary and status endpoints for the overview page."""

from fastapi import APIRouter, Depends, Query

from api.backend import get_dashboard, get_snapshot, require_ready
from api.models import ErrorResponse, StatusOut, SummaryOut
from realtime.dashboard import DashboardSnapshot, LiveDashboard

router = APIRouter(tags=["dashboard"])


@router.get(
    "/dashboard/summary",
    response_model=SummaryOut,
    responses={503: {"model": ErrorResponse,
                     "description": "Dashboard loading or in the error state"}},
    summary="Dashboard summary statistics",
)
def dashboard_summary(
    top_n: int | None = Query(None, ge=1, le=50,
                              description="Categories to include in chart_data (default: APP_TOP_N)"),
    snap: DashboardSnapshot = Depends(get_snapshot),
    dashboard: LiveDashboard = Depends(get_dashboard),
) -> SummaryOut:
    """Return aggregated statistics for the metric cards and charts.

    Includes:
    - Approved, paid and (when present) modified totals
    - Execution rate: total paid / total approved, one decimal
    - Top N categories by approved amount, largest first

    Results are memoized per snapshot, so repeated polls between pushes do
    not re-aggregate.
    """
    require_ready(snap)
    summary = dashboard.summary(top_n, snap=snap)
    return SummaryOut(**summary.to_dict(), version=snap.version)


@router.get("/status", response_model=StatusOut, summary="Live connection status")
def status(
    snap: DashboardSnapshot = Depends(get_snapshot),
    dashboard: LiveDashboard = Depends(get_dashboard),
) -> StatusOut:
    """Return the connection state, the current error text and diagnostics.

    Always 200, including in the error state, so clients can render the
    configuration panel.
    """
    return StatusOut(
        status=snap.status.value,
        error=snap.error,
        user_id=snap.user_id,
        collection=snap.collection,
        record_count=len(snap.records),
        version=snap.version,
        updated_at=snap.updated_at,
        diagnostics=dashboard.diagnostics(),
    )
