from __future__ import annotations

from typing import Optional


def format_cents(cents: Optional[int]) -> Optional[str]:
    """
    Render integer cents as a two-decimal string ("30000" -> "300.00").

    Amounts are authoritative in cents; the string form is what clients display.
    """
    if cents is None:
        return None
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(int(cents)), 100)
    return f"{sign}{whole}.{frac:02d}"


def line_total_cents(unit_price_cents: int, quantity: int) -> int:
    return unit_price_cents * quantity
