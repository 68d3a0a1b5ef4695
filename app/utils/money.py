"""
Rupiah formatting for notification texts.

Amounts are stored as integers in minor units (whole rupiah).

Usage:
    from app.utils.money import format_rupiah

    format_rupiah(50000)     -> "Rp 50.000"
    format_rupiah(1250000)   -> "Rp 1.250.000"
    format_rupiah(0)         -> "Rp 0"
"""
from decimal import Decimal

# id-ID memakai titik sebagai pemisah ribuan
_THOUSANDS_SEPARATOR = "."
_CURRENCY_PREFIX = {
    "IDR": "Rp",
}


def currency_label(code: str) -> str:
    return _CURRENCY_PREFIX.get(code, code)


def format_amount(amount) -> str:
    """
    Format an integer amount with id-ID thousands separators.

    Args:
        amount: int / Decimal / str with an integral value

    Returns:
        "50.000"
    """
    if isinstance(amount, str):
        amount = Decimal(amount)
    formatted = f"{int(amount):,}"
    return formatted.replace(",", _THOUSANDS_SEPARATOR)


def format_rupiah(amount, currency: str = "IDR") -> str:
    return f"{currency_label(currency)} {format_amount(amount)}"
