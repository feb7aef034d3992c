"""Display helpers for monetary values."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from siteledger.services.aggregation import to_money


def format_money(value: Any, *, signed: bool = False, symbol: str = "$") -> str:
    """Render ``value`` as ``-$1,234.50``.

    Negative amounts always keep their minus sign; ``signed`` adds ``+`` to
    positive ones, which is how profit figures are shown.
    """

    amount = to_money(value)
    sign = ""
    if amount < 0:
        sign = "-"
    elif signed and amount > 0:
        sign = "+"
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_change(credits: Decimal, debits: Decimal, *, symbol: str = "$") -> str:
    return f"{format_money(credits, symbol=symbol)} in / {format_money(debits, symbol=symbol)} out"


__all__ = ["format_change", "format_money"]
