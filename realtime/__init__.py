"""
Realtime package -- live view over the public budget collection.

Re-exports key entry points so callers can do::

    from realtime import LiveDashboard, summarize
"""

from realtime.aggregate import BudgetSummary, CategoryTotal, summarize
from realtime.dashboard import DashboardSnapshot, DashboardStatus, LiveDashboard
from realtime.errors import (
    AuthenticationError,
    ConfigurationMissingError,
    DashboardError,
    SubscriptionError,
)
from realtime.records import BudgetLineItem, normalize_document

__all__ = [
    "AuthenticationError",
    "BudgetLineItem",
    "BudgetSummary",
    "CategoryTotal",
    "ConfigurationMissingError",
    "DashboardError",
    "DashboardSnapshot",
    "DashboardStatus",
    "LiveDashboard",
    "SubscriptionError",
    "normalize_document",
    "summarize",
]
