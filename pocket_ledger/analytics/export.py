"""
Month Export

Produces ordered rows for one month and serializes them as CSV.
Quoting of embedded commas, quotes and newlines is left to the csv
module. A UTF-8 byte-order mark is prepended by default so spreadsheet
applications pick the right encoding for non-ASCII notes.
"""

import csv
import io
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from pocket_ledger.analytics.filters import filter_by_month
from pocket_ledger.models.views import ExportRow


BOM = "\ufeff"
CENTS = Decimal("0.01")
WHOLE = Decimal("1")


def _plain(amount: Decimal) -> str:
    """4.00 -> '4', 3.50 -> '3.5'."""
    return format(amount.normalize(), "f")


def items_as_text(items: Optional[Iterable]) -> str:
    """Receipt lines as 'Milk($4); Bread($3)'."""
    if not items:
        return ""
    return "; ".join(f"{item.name}(${_plain(item.price)})" for item in items)


def export_rows(transactions: Iterable, month: str) -> list[ExportRow]:
    """One row per transaction in the month, in log order."""
    rows = []
    for transaction in filter_by_month(transactions, month):
        rows.append(ExportRow(
            date=transaction.date,
            type=transaction.type,
            category=transaction.category.value,
            amount_primary=transaction.amount_primary,
            amount_secondary=transaction.amount_secondary,
            note=transaction.note,
            tax=getattr(transaction, "tax", None) or Decimal("0"),
            superannuation=getattr(transaction, "superannuation", None) or Decimal("0"),
            items=items_as_text(transaction.items),
        ))
    return rows


def export_header(home_currency: str = "AUD", secondary_currency: str = "TWD") -> list[str]:
    return [
        "Date",
        "Type",
        "Category",
        f"Amount ({home_currency})",
        f"Amount ({secondary_currency})",
        "Note",
        "Tax",
        "Super",
        "Items",
    ]


def rows_to_csv(
    rows: Iterable[ExportRow],
    home_currency: str = "AUD",
    secondary_currency: str = "TWD",
    include_bom: bool = True,
) -> str:
    """Serialize export rows; primary amounts to cents, secondary to whole units."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(export_header(home_currency, secondary_currency))

    for row in rows:
        writer.writerow([
            row.date,
            row.type,
            row.category,
            str(row.amount_primary.quantize(CENTS, rounding=ROUND_HALF_UP)),
            str(row.amount_secondary.quantize(WHOLE, rounding=ROUND_HALF_UP)),
            row.note,
            _plain(row.tax),
            _plain(row.superannuation),
            row.items,
        ])

    content = buffer.getvalue()
    return BOM + content if include_bom else content


def export_filename(month: str, prefix: str = "pocket_ledger") -> str:
    return f"{prefix}_{month}.csv"
