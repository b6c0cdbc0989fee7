"""
Tabular export of contract entries.

Exports the stored figures as they are. Nothing is recalculated, so an
export always matches what the dashboard sums up. Amounts are rounded
to cents for display only.
"""

import csv
import io
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional

CENT = Decimal("0.01")

EXPORT_COLUMNS = (
    ("id", "ID"),
    ("submission_date", "Submission date"),
    ("status", "Status"),
    ("operator", "Operator"),
    ("customer_name", "Customer"),
    ("customer_firstname", "First name"),
    ("policy_number", "Policy number"),
    ("category", "Category"),
    ("sub_category", "Sub-category"),
    ("payment_frequency", "Payment frequency"),
    ("duration_years", "Duration (years)"),
    ("net_premium", "Net premium"),
    ("gross_premium", "Gross premium"),
    ("net_premium_yearly", "Net premium yearly"),
    ("gross_premium_yearly", "Gross premium yearly"),
    ("valuation_sum", "Valuation sum"),
    ("commission_rate", "Rate"),
    ("commission_amount", "Commission"),
    ("reserve_amount", "Reserve"),
)

_MONEY_COLUMNS = {
    "net_premium",
    "gross_premium",
    "net_premium_yearly",
    "gross_premium_yearly",
    "valuation_sum",
    "commission_amount",
    "reserve_amount",
}


def format_money(value: Optional[Decimal]) -> str:
    """Round an amount to cents for display."""
    if value is None:
        return ""
    return str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def _cell(entry: Any, column: str, operator_names: Mapping[int, str]) -> str:
    if column == "operator":
        return operator_names.get(entry.user_id, str(entry.user_id))

    value = getattr(entry, column)
    if value is None:
        return ""
    if column in _MONEY_COLUMNS:
        return format_money(value)
    if column == "commission_rate":
        return format(Decimal(value).normalize(), "f")
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(getattr(value, "value", value))


def export_contracts_csv(
    entries: Iterable[Any],
    operator_names: Optional[Mapping[int, str]] = None,
    delimiter: str = ";",
) -> str:
    """Render contract entries as delimited text with a header row."""
    names = operator_names or {}
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")

    writer.writerow([title for _, title in EXPORT_COLUMNS])
    for entry in entries:
        writer.writerow([_cell(entry, column, names) for column, _ in EXPORT_COLUMNS])

    return buffer.getvalue()
