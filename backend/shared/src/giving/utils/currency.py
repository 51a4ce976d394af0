"""Currency formatting for donor-facing messages."""

from decimal import ROUND_HALF_UP, Decimal


def format_currency(amount: Decimal | int | float | str) -> str:
    """Format a ZAR amount for display, e.g. ``R1,250.00``.

    Whole amounts drop their cents: ``R100``.
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if value == value.to_integral_value():
        return f"R{value:,.0f}"
    return f"R{value:,.2f}"
