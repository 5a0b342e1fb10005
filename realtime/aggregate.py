"""Aggregation of budget line items into dashboard metrics.

Pure functions over a record list:

    summarize(records, top_n)  -> BudgetSummary
        totals, execution rate, and the top-N categories for the charts

Grouping uses the category name (``ramo``); records without one were already
given the fallback label by the normalizer, so they group together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from realtime.records import BudgetLineItem

DEFAULT_TOP_N = 7


@dataclass
class CategoryTotal:
    """Summed amounts for one category."""

    name: str
    aprobado: float = 0.0
    pagado: float = 0.0
    count: int = 0

    @property
    def execution_rate(self) -> float:
        return execution_rate(self.pagado, self.aprobado)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "aprobado": self.aprobado,
            "pagado": self.pagado,
            "count": self.count,
            "execution_rate": self.execution_rate,
        }


@dataclass
class BudgetSummary:
    """Everything the metric cards and charts need for one snapshot."""

    total_approved: float = 0.0
    total_paid: float = 0.0
    total_modified: float | None = None
    execution_rate: float = 0.0
    record_count: int = 0
    category_count: int = 0
    top_n: int = DEFAULT_TOP_N
    chart_data: list[CategoryTotal] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_approved": self.total_approved,
            "total_paid": self.total_paid,
            "total_modified": self.total_modified,
            "execution_rate": self.execution_rate,
            "execution_rate_label": f"{self.execution_rate:.1f}",
            "record_count": self.record_count,
            "category_count": self.category_count,
            "top_n": self.top_n,
            "chart_data": [c.to_dict() for c in self.chart_data],
        }


def execution_rate(paid: float, approved: float) -> float:
    """Return 100 * paid / approved rounded to one decimal, or 0.0.

    >>> execution_rate(100, 350)
    28.6
    >>> execution_rate(50, 0)
    0.0
    """
    if approved <= 0:
        return 0.0
    return round(paid / approved * 100, 1)


def group_by_category(records: Iterable[BudgetLineItem]) -> list[CategoryTotal]:
    """Sum approved and paid amounts per category, in first-seen order."""
    groups: dict[str, CategoryTotal] = {}
    for rec in records:
        group = groups.get(rec.ramo)
        if group is None:
            group = groups[rec.ramo] = CategoryTotal(name=rec.ramo)
        group.aprobado += rec.aprobado
        group.pagado += rec.pagado
        group.count += 1
    return list(groups.values())


def top_categories(groups: Sequence[CategoryTotal], n: int) -> list[CategoryTotal]:
    """Return the *n* largest groups by approved amount, largest first.

    The sort is stable: groups with equal approved amounts keep their
    first-seen order.

    Raises:
        ValueError: If n is less than 1.
    """
    if n < 1:
        raise ValueError(f"top_n must be >= 1, got {n}")
    return sorted(groups, key=lambda g: g.aprobado, reverse=True)[:n]


def summarize(records: Sequence[BudgetLineItem],
              top_n: int = DEFAULT_TOP_N) -> BudgetSummary:
    """Compute totals, execution rate and top-N categories for *records*.

    Example::

        >>> recs = [BudgetLineItem("1", "A", aprobado=100, pagado=50),
        ...         BudgetLineItem("2", "A", aprobado=50, pagado=50),
        ...         BudgetLineItem("3", "B", aprobado=200, pagado=0)]
        >>> s = summarize(recs)
        >>> (s.total_approved, s.total_paid, s.execution_rate)
        (350.0, 100.0, 28.6)
        >>> [c.name for c in s.chart_data]
        ['B', 'A']
    """
    groups = group_by_category(records)
    total_approved = float(sum(r.aprobado for r in records))
    total_paid = float(sum(r.pagado for r in records))
    modified = [r.modificado for r in records if r.modificado is not None]

    return BudgetSummary(
        total_approved=total_approved,
        total_paid=total_paid,
        total_modified=float(sum(modified)) if modified else None,
        execution_rate=execution_rate(total_paid, total_approved),
        record_count=len(records),
        category_count=len(groups),
        top_n=top_n,
        chart_data=top_categories(groups, top_n),
    )
