"""
Formatters utility.

Formatting of amounts and rates for ledger descriptions and reports.
"""

from decimal import ROUND_HALF_UP, Decimal


CURRENCY_SYMBOL = "₹"


def format_money(amount: Decimal | float | int) -> str:
    """
    Format amount as currency with two decimals.

    Args:
        amount: Monetary amount

    Returns:
        Formatted string like "₹12.50"
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{CURRENCY_SYMBOL}{value}"


def format_rate(rate: Decimal) -> str:
    """
    Format fractional rate as percentage.

    Args:
        rate: Rate as a fraction (0.045)

    Returns:
        Formatted string like "4.50%"
    """
    return f"{(rate * 100):.2f}%"
