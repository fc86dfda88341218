"""Shared type definitions for request, snapshot and response models."""

from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

# Enough significant digits for uint256 values with 18 fraction digits
DECIMAL_PRECISION = 100

# Ethereum address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Pool id: 20-byte address or 32-byte Vault pool id
PoolId = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}([a-fA-F0-9]{24})?$")]


def validate_decimal_string(value: Any) -> str:
    """Validate a non-negative, finite decimal amount.

    Accepts str, int or Decimal and returns it as a plain decimal string.

    Raises:
        ValueError: If value is not a non-negative finite decimal number
    """
    if isinstance(value, bool) or not isinstance(value, str | int | Decimal):
        raise ValueError(f"Decimal amount must be a string, got {type(value).__name__}")
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation as err:
        raise ValueError(f"Not a decimal number: '{value}'") from err
    if not parsed.is_finite():
        raise ValueError(f"Decimal amount must be finite: '{value}'")
    if parsed < 0:
        raise ValueError(f"Decimal amount cannot be negative: '{value}'")
    return str(value).strip()


# Human-readable decimal amount ("1000.5")
DecimalString = Annotated[
    str,
    BeforeValidator(validate_decimal_string),
    Field(description="Non-negative decimal number as string"),
]


def stringify_amount(value: Any) -> Any:
    """Accept JSON numbers for amounts; the router checks the value itself."""
    if isinstance(value, int | Decimal) and not isinstance(value, bool):
        return str(value)
    return value


# Swap amount as sent by the caller, parsed against the token's decimals by the router
AmountString = Annotated[str, BeforeValidator(stringify_amount)]


def normalize_address(address: str) -> str:
    """Lowercase an address and make sure it carries the 0x prefix."""
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr
    return addr


def format_units(amount: int, decimals: int) -> str:
    """Render a raw integer amount as a decimal string.

    Trailing fractional zeros are dropped, so 1_500_000 with 6 decimals
    becomes "1.5" and 10**18 with 18 decimals becomes "1".
    """
    negative = amount < 0
    digits = str(abs(amount)).rjust(decimals + 1, "0")
    whole, fraction = digits[: len(digits) - decimals], digits[len(digits) - decimals :]
    fraction = fraction.rstrip("0")
    text = f"{whole}.{fraction}" if fraction else whole
    return f"-{text}" if negative else text


def format_decimal(value: Decimal, places: int = 18) -> str:
    """Render a Decimal in plain notation, rounded to `places` fraction digits."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        quantized = value.quantize(Decimal(1).scaleb(-places))
    text = format(quantized, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


class SwapKind(str, Enum):
    """Which side of a swap is fixed."""

    GIVEN_IN = "GIVEN_IN"
    GIVEN_OUT = "GIVEN_OUT"
