"""Display formatting for money amounts."""

from decimal import Decimal
from typing import Union


CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
}


def currency_symbol(currency: str) -> str:
    try:
        return CURRENCY_SYMBOLS[currency.upper()]
    except KeyError:
        raise ValueError(f"Unsupported currency: {currency}") from None


def format_money(amount: Union[Decimal, int, float], currency: str = "INR") -> str:
    """
    Format an amount for display, e.g. ``₹1,200.50`` or ``-$35.00``.

    Only the symbol changes with the currency; amounts are never converted.
    """
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(amount):,.2f}"
