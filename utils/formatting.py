"""
Formatting utilities.
"""


def format_currency(amount: int, currency: str = "USD") -> str:
    """
    Format an integer amount as currency.

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).

    Returns:
        Formatted currency string, with the sign ahead of the symbol.
    """
    symbols = {
        "USD": "$",
        "GBP": "£",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,}"


def format_percent(value: float, decimals: int = 1) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    return f"{value:.{decimals}f}%"


def format_signed_percent(value: float, decimals: int = 1) -> str:
    """
    Format a percentage with an explicit sign, e.g. "+2.4%" or "-4.0%".

    Args:
        value: The percentage value.
        decimals: Number of decimal places.
    """
    return f"{value:+.{decimals}f}%"
