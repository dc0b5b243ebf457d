"""Invoice total calculator: subtotal of line items minus a flat franchise, floored at zero."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from medassist.utils.formatting import to_money


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    total: Decimal


def line_total(quantity: int | None, unit_price: Decimal | int | float | str | None) -> Decimal:
    """A line item's total is always quantity x unit price."""
    return to_money(to_money(unit_price) * int(quantity or 0))


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def compute_totals(line_items: Iterable[Any], franchise_amount: Decimal | int | float | str | None = None) -> Totals:
    """Derive subtotal and total for an invoice.

    Line items may be ORM rows, pydantic models or plain dicts; only their
    ``quantity`` and ``unit_price`` are read, never a stored ``total``.
    """
    subtotal = sum(
        (line_total(_field(item, "quantity"), _field(item, "unit_price")) for item in line_items),
        Decimal("0.00"),
    )
    subtotal = to_money(subtotal)
    total = max(Decimal("0.00"), subtotal - to_money(franchise_amount))
    return Totals(subtotal=subtotal, total=to_money(total))
