"""
GET /api/v1/budget-lines endpoint.

Lists the line items of the current snapshot with sorting and pagination.
Also handles the GET /api/v1/budget-lines/{id} single-item endpoint.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from api.backend import get_snapshot, require_ready
from api.models import BudgetLineOut, ErrorResponse, PaginatedResponse
from realtime.dashboard import DashboardSnapshot
from realtime.records import BudgetLineItem

router = APIRouter(prefix="/budget-lines", tags=["budget-lines"])

_UNAVAILABLE = {"model": ErrorResponse, "description": "Dashboard loading or in the error state"}

# "snapshot" keeps the order the documents arrived in
_ALLOWED_SORT = {"snapshot", "id", "ramo", "ur", "aprobado", "pagado", "execution_rate"}


def sort_items(items: tuple[BudgetLineItem, ...] | list[BudgetLineItem],
               sort_by: str, sort_dir: str) -> list[BudgetLineItem]:
    """Return *items* ordered by *sort_by*; ties keep snapshot order."""
    if sort_by not in _ALLOWED_SORT:
        raise ValueError(f"sort_by must be one of: {sorted(_ALLOWED_SORT)}")
    ordered = list(items)
    descending = sort_dir == "desc"
    if sort_by == "snapshot":
        if descending:
            ordered.reverse()
        return ordered
    ordered.sort(key=lambda item: getattr(item, sort_by), reverse=descending)
    return ordered


def filter_items(items, ramo: list[str] | None, q: str | None) -> list[BudgetLineItem]:
    """Keep items in the given categories whose names contain *q*."""
    selected = list(items)
    if ramo:
        wanted = set(ramo)
        selected = [i for i in selected if i.ramo in wanted]
    if q:
        needle = q.strip().casefold()
        selected = [
            i for i in selected
            if needle in i.ramo.casefold() or needle in i.ur.casefold()
        ]
    return selected


def _to_out(item: BudgetLineItem) -> BudgetLineOut:
    return BudgetLineOut(**item.to_dict())


@router.get(
    "",
    response_model=PaginatedResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid sort field"},
        503: _UNAVAILABLE,
    },
    summary="List budget lines",
)
def list_budget_lines(
    ramo: list[str] | None = Query(None, description="Filter by category name(s)"),
    q: str | None = Query(None, description="Case-insensitive match on category or unit name"),
    sort_by: str = Query("snapshot", description="Field to sort by"),
    sort_dir: str = Query("asc", pattern="^(asc|desc)$", description="Sort direction"),
    limit: int = Query(50, ge=1, le=1000, description="Max items per page"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    snap: DashboardSnapshot = Depends(get_snapshot),
) -> PaginatedResponse:
    """Return a paginated, filtered list of the snapshot's line items."""
    if sort_by not in _ALLOWED_SORT:
        raise HTTPException(
            status_code=400,
            detail=f"sort_by must be one of: {sorted(_ALLOWED_SORT)}",
        )
    require_ready(snap)

    selected = sort_items(filter_items(snap.records, ramo, q), sort_by, sort_dir)
    total = len(selected)
    items = [_to_out(i) for i in selected[offset:offset + limit]]

    return PaginatedResponse(
        total=total, limit=limit, offset=offset,
        page=offset // limit,
        page_count=max(1, (total + limit - 1) // limit),
        has_next=offset + limit < total,
        version=snap.version,
        items=items,
    )


@router.get(
    "/{item_id}",
    response_model=BudgetLineOut,
    responses={
        404: {"model": ErrorResponse, "description": "No line item with this id"},
        503: _UNAVAILABLE,
    },
    summary="Get single budget line",
)
def get_budget_line(
    item_id: str,
    snap: DashboardSnapshot = Depends(get_snapshot),
) -> BudgetLineOut:
    """Return a single line item of the current snapshot by document id."""
    require_ready(snap)
    for item in snap.records:
        if item.id == item_id:
            return _to_out(item)
    raise HTTPException(status_code=404, detail=f"Budget line {item_id} not found")
