"""Export package: CSV reports and calendar links."""

from finance_tracker.export.calendar_link import google_calendar_link
from finance_tracker.export.csv_export import (
    EXPORT_HEADERS,
    build_trailing_report,
    quote_field,
    quote_if_needed,
    report_filename,
    transactions_to_csv,
)

__all__ = [
    "EXPORT_HEADERS",
    "build_trailing_report",
    "google_calendar_link",
    "quote_field",
    "quote_if_needed",
    "report_filename",
    "transactions_to_csv",
]
