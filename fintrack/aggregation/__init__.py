"""Ledger aggregation package."""

from fintrack.aggregation.service import (
    build_dashboard,
    category_breakdown,
    category_percentages,
    month_bounds,
    monthly_cashflow,
    monthly_total,
    net_worth,
    recent_transactions,
    records_in_month,
    savings_rate,
    shift_month,
)

__all__ = [
    "build_dashboard",
    "category_breakdown",
    "category_percentages",
    "month_bounds",
    "monthly_cashflow",
    "monthly_total",
    "net_worth",
    "recent_transactions",
    "records_in_month",
    "savings_rate",
    "shift_month",
]
