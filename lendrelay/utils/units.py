#!filepath: lendrelay/utils/units.py
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, localcontext

from eth_utils import is_address, to_checksum_address

from lendrelay.utils.errors import InvalidAddress, ValidationError

ETHER_DECIMALS = 18
UINT256_MAX = 2**256 - 1
UINT256_DIGITS = len(str(UINT256_MAX))

_DIGITS = re.compile(r"[0-9]+")


def parse_units(value: str, decimals: int = ETHER_DECIMALS) -> int:
    """
    "1.5" -> 1500000000000000000 (for 18 decimals).

    Rejects more fractional digits than the token has instead of rounding.
    """
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"Invalid decimal amount: {value!r}")

    if not amount.is_finite():
        raise ValidationError(f"Invalid decimal amount: {value!r}")

    # more integer digits than uint256 has; reject before scaling can overflow
    if amount and amount.adjusted() > UINT256_DIGITS:
        raise ValidationError(f"Amount out of range: {value!r}")

    try:
        with localcontext() as ctx:
            ctx.prec = 100
            scaled = amount.scaleb(decimals)
            integral = scaled == scaled.to_integral_value()
    except ArithmeticError:
        raise ValidationError(f"Invalid decimal amount: {value!r}")
    if not integral:
        raise ValidationError(f"Too many decimals in {value!r} (max {decimals})")

    if abs(scaled) > UINT256_MAX:
        raise ValidationError(f"Amount out of range: {value!r}")

    return int(scaled)


def format_units(value: int, decimals: int = ETHER_DECIMALS) -> str:
    with localcontext() as ctx:
        ctx.prec = 100
        text = format(Decimal(value).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_uint(value, field: str) -> int:
    """Plain decimal digits (or an int) -> uint256. No sign, separators or padding."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid integer for {field}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _DIGITS.fullmatch(value):
        if len(value.lstrip("0")) > UINT256_DIGITS:
            raise ValidationError(f"{field} out of uint256 range")
        number = int(value)
    else:
        raise ValidationError(f"Invalid integer for {field}: {value!r}")
    if number < 0 or number > UINT256_MAX:
        raise ValidationError(f"{field} out of uint256 range")
    return number


def normalize_address(value, field: str = "address") -> str:
    if not isinstance(value, str) or not is_address(value):
        raise InvalidAddress(field)
    return to_checksum_address(value)


def parse_bytes32(value, field: str) -> bytes:
    if isinstance(value, bytes):
        raw = value
    else:
        text = str(value)
        if text.startswith(("0x", "0X")):
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            raise ValidationError(f"Invalid bytes32 for {field}")
    if len(raw) != 32:
        raise ValidationError(f"Invalid bytes32 length for {field}: {len(raw)}")
    return raw
