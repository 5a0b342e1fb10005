"""
Pydantic response models for the API.

Amounts are in pesos as stored in the collection; rates are percentages
rounded to one decimal.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# ── Budget line item models ───────────────────────────────────────────────────

class BudgetLineOut(BaseModel):
    """A single budget line item from the latest snapshot."""
    id: str = Field(..., description="Document identifier", examples=["a1B2c3"])
    ramo: str = Field(..., description="Administrative category name", examples=["Educación Pública"])
    ur: str = Field(..., description="Responsible unit name", examples=["Subsecretaría de Educación Básica"])
    aprobado: float = Field(..., ge=0, description="Approved amount", examples=[1250000.0])
    pagado: float = Field(..., ge=0, description="Paid amount", examples=[480000.0])
    modificado: float | None = Field(None, ge=0, description="Modified amount, when the record carries one")
    execution_rate: float = Field(..., description="Paid / approved as a percentage", examples=[38.4])


class PaginatedResponse(BaseModel):
    """Paginated list of budget line items."""
    total: int = Field(..., description="Total records in the snapshot", examples=[312])
    limit: int = Field(..., description="Page size used", examples=[50])
    offset: int = Field(..., description="Offset of this page", examples=[0])
    page: int = Field(0, description="Zero-based page number")
    page_count: int = Field(1, description="Total number of pages")
    has_next: bool = Field(False, description="Whether another page follows")
    version: int = Field(..., description="Snapshot version the page was read from")
    items: list[BudgetLineOut] = Field(..., description="Budget line items for this page")


# ── Summary models ────────────────────────────────────────────────────────────

class CategoryTotalOut(BaseModel):
    """Summed amounts for one category (chart row)."""
    name: str = Field(..., description="Category name or fallback label", examples=["Salud"])
    aprobado: float = Field(..., description="Sum of approved amounts")
    pagado: float = Field(..., description="Sum of paid amounts")
    count: int = Field(..., description="Number of line items in the category")
    execution_rate: float = Field(..., description="Paid / approved for the category")


class SummaryOut(BaseModel):
    """Response body for GET /api/v1/dashboard/summary."""
    total_approved: float = Field(..., description="Sum of approved amounts")
    total_paid: float = Field(..., description="Sum of paid amounts")
    total_modified: float | None = Field(None, description="Sum of modified amounts, if any record has one")
    execution_rate: float = Field(..., description="Total paid / total approved, percent", examples=[28.6])
    execution_rate_label: str = Field(..., description="Execution rate with one decimal", examples=["28.6"])
    record_count: int = Field(..., description="Line items in the snapshot")
    category_count: int = Field(..., description="Distinct categories in the snapshot")
    top_n: int = Field(..., description="Maximum categories in chart_data")
    chart_data: list[CategoryTotalOut] = Field(..., description="Top categories by approved amount, largest first")
    version: int = Field(..., description="Snapshot version the summary was computed from")


# ── Status models ─────────────────────────────────────────────────────────────

class StatusOut(BaseModel):
    """Response body for GET /api/v1/status."""
    status: str = Field(..., description="loading | error | ready", examples=["ready"])
    error: str | None = Field(None, description="User-facing error text in the error state")
    user_id: str | None = Field(None, description="Identity of the current session")
    collection: str | None = Field(None, description="Collection path being watched")
    record_count: int = Field(0, description="Line items in the current snapshot")
    version: int = Field(0, description="Number of snapshots applied so far")
    updated_at: float | None = Field(None, description="Unix time of the last snapshot")
    diagnostics: dict[str, bool] = Field(default_factory=dict, description="Detected configuration sources")


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Bad request"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[400])
