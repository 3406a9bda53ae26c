"""
Utility functions for the DEX client.

Helper functions and utilities following functional programming principles.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP
from typing import Any, Dict, Optional, Union

Numeric = Union[Decimal, int, float, str]


def to_decimal(value: Numeric) -> Decimal:
    """Convert a numeric value to Decimal, going through str for floats.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got {value!r}")
    try:
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Expected a number, got {value!r}") from e
    if not decimal_value.is_finite():
        raise ValueError(f"Expected a finite number, got {value!r}")
    return decimal_value


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Lenient variant of to_decimal returning None for unparseable input."""
    if value is None:
        return None
    try:
        return to_decimal(value)
    except ValueError:
        return None


def round_half_up(value: Decimal, precision: int) -> Decimal:
    """Round half up to a fixed number of decimal places."""
    return value.quantize(Decimal(f"1e-{precision}"), rounding=ROUND_HALF_UP)


def to_raw_amount(amount: Decimal, decimals: int) -> int:
    """Scale a human-readable token amount to its integer on-chain units."""
    return int((amount * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN))


def from_raw_amount(raw: Union[int, str], decimals: int) -> Decimal:
    """Scale integer on-chain units back to a human-readable amount."""
    return Decimal(str(raw)) / (Decimal(10) ** decimals)


def normalize_symbol(symbol: str) -> str:
    """Uppercase and strip a token or asset symbol."""
    return symbol.strip().upper() if isinstance(symbol, str) else symbol


def validate_url(url: str) -> bool:
    """Validate URL format."""
    if not url or not isinstance(url, str):
        return False
    return url.startswith(("http://", "https://")) and ("." in url or "localhost" in url)


def sanitize_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Remove None values and empty strings from dictionary."""
    return {
        key: value for key, value in data.items()
        if value is not None and value != ""
    }
