"""Aggregation views over a store snapshot."""

from finance_tracker.views.aggregations import (
    category_breakdown,
    daily_series,
    financial_summary,
    on_day,
    trailing_window,
    transactions_since,
    window_cutoff,
)
from finance_tracker.views.formatting import (
    CURRENCY_SYMBOLS,
    currency_symbol,
    format_money,
)

__all__ = [
    "CURRENCY_SYMBOLS",
    "category_breakdown",
    "currency_symbol",
    "daily_series",
    "financial_summary",
    "format_money",
    "on_day",
    "trailing_window",
    "transactions_since",
    "window_cutoff",
]
