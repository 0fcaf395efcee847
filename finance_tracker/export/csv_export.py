"""
CSV Export

A stateless projection of stored transactions into the yearly
report format:

    ID,Type,Date,Amount,Description,Category

- Date is yyyy-MM-dd
- Amount is a plain decimal (no exponent, no trailing zeros)
- Description and Category are always quoted; an embedded double
  quote is written as two double quotes
- ID is quoted only when it contains a comma, quote or newline
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from finance_tracker.models.records import Transaction
from finance_tracker.models.reports import CsvReport
from finance_tracker.views.aggregations import transactions_since, window_cutoff


EXPORT_HEADERS = ["ID", "Type", "Date", "Amount", "Description", "Category"]


def quote_field(value: str) -> str:
    """Wrap in double quotes, doubling any embedded quotes."""
    return '"' + value.replace('"', '""') + '"'


def quote_if_needed(value: str) -> str:
    """Quote only values that would otherwise break the row."""
    if any(ch in value for ch in (',', '"', '\n', '\r')):
        return quote_field(value)
    return value


def format_amount(amount: Decimal) -> str:
    return format(amount.normalize(), "f")


def transaction_to_row(transaction: Transaction) -> str:
    return ",".join([
        quote_if_needed(transaction.id),
        transaction.type.value,
        transaction.date.strftime("%Y-%m-%d"),
        format_amount(transaction.amount),
        quote_field(transaction.description),
        quote_field(transaction.category),
    ])


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    """Render the header plus one line per transaction, joined by newlines."""
    lines = [",".join(EXPORT_HEADERS)]
    lines.extend(transaction_to_row(t) for t in transactions)
    return "\n".join(lines)


def report_filename(today: Optional[date] = None) -> str:
    return f"financial-year-report-{(today or date.today()).year}.csv"


def build_trailing_report(
    transactions: Sequence[Transaction],
    window_days: int,
    today: Optional[date] = None,
) -> CsvReport:
    """
    Export the transactions of the last ``window_days`` days.

    An empty window still produces a report (header only, row_count 0);
    the caller decides how to tell the user.
    """
    today = today or date.today()
    cutoff = window_cutoff(window_days, today)
    selected = transactions_since(transactions, cutoff)

    return CsvReport(
        filename=report_filename(today),
        content=transactions_to_csv(selected),
        row_count=len(selected),
        window_days=window_days,
        cutoff=cutoff,
    )
