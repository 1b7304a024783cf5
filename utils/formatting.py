"""
Formatting utilities.
"""

from typing import Optional


def format_currency(amount: int, currency: str = "GBP") -> str:
    """
    Format an integer amount as currency.

    Args:
        amount: The amount in whole units (e.g., pounds, not pence).
        currency: Currency code (default GBP).

    Returns:
        Formatted currency string.
    """
    symbols = {
        "GBP": "£",
        "USD": "$",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    return f"{symbol}{amount:,}"


def format_pence(amount: Optional[int], currency: str = "GBP") -> str:
    """
    Format an amount held in minor units (pence).

    Whole-pound amounts drop the pence, e.g. 120000 -> "£1,200" and
    120050 -> "£1,200.50". A missing amount formats as zero.
    """
    pence = amount or 0
    pounds, remainder = divmod(pence, 100)
    if remainder:
        return f"{format_currency(pounds, currency)}.{remainder:02d}"
    return format_currency(pounds, currency)
