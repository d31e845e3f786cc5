"""Currency utilities — fixed-rate conversion into the display currency."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$", "EUR": "€", "GBP": "£", "CAD": "CA$",
    "MRU": "MRU ", "XOF": "CFA ", "MAD": "MAD ", "TRY": "TRY ",
    "AED": "AED ",
}


def parse_amount(raw: str | int | float | Decimal) -> Decimal:
    """Parse a provider amount ("100.00") into a Decimal. Raises ValueError on garbage."""
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, AttributeError) as e:
        raise ValueError(f"Invalid amount: {raw!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {raw!r}")
    return amount


def convert_amount(amount: Decimal, rate: Decimal) -> int:
    """Convert with a fixed rate and round to the nearest whole display unit (half up)."""
    return int((amount * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_price(amount: int | float, currency: str = "MRU") -> str:
    """Format a price with currency symbol for display."""
    symbol = CURRENCY_SYMBOLS.get(currency, currency + " ")
    return f"{symbol}{round(amount):,}"
