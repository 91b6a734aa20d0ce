# tienda/utils/formatting.py

from decimal import Decimal, ROUND_HALF_UP


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """Round half-up to `places` decimals (what a printed receipt shows)."""
    quantize_str = "0." + "0" * places if places else "1"
    return Decimal(amount).quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """
    Coerce numbers coming from JSON/DB rows into Decimal.
    Floats go through str() so 0.1 stays 0.1.
    None and empty strings become 0.
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_amount(n: Decimal) -> str:
    """
    Format to two decimals with ',' as thousands separator.
    Example: Decimal("1234.5") -> "1,234.50"
    """
    return f"{round_money(to_decimal(n)):,.2f}"


def format_soles(n: Decimal) -> str:
    return f"S/ {format_amount(n)}"


def format_percent(p: Decimal) -> str:
    """Decimal("15.00") -> "15", Decimal("12.5") -> "12.5" """
    text = f"{to_decimal(p):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
