#!filepath: lendrelay/core/rules.py
"""
Validation rules shared by the gateway pre-check and the authoritative
verifier. Both layers call these functions; neither re-states a literal.
"""
from __future__ import annotations

from typing import Optional

from lendrelay.core.digest import SIGNATURE_LENGTH
from lendrelay.utils.errors import (
    DeadlineTooFar,
    InvalidAmount,
    InvalidNonce,
    InvalidSignature,
    SignatureExpired,
    ValidationError,
)

DEFAULT_MAX_DEADLINE_WINDOW = 60 * 60


def check_amount(amount: int, field: str = "amount") -> None:
    if amount <= 0:
        raise InvalidAmount(f"{field.capitalize()} must be greater than 0")


def check_not_expired(deadline: int, now: int) -> None:
    """Valid through the deadline second itself; expired once now > deadline."""
    if now > deadline:
        raise SignatureExpired(deadline, now)


def check_deadline_window(deadline: int, now: int, max_window: int = DEFAULT_MAX_DEADLINE_WINDOW) -> None:
    """
    Gateway policy: deadline strictly in the future and at most
    ``max_window`` seconds ahead.
    """
    if deadline <= now:
        raise SignatureExpired(deadline, now)
    if deadline > now + max_window:
        raise DeadlineTooFar(deadline, now + max_window)


def check_nonce(current: int, given: int) -> None:
    if given != current:
        raise InvalidNonce(current, given)


def check_signer(recovered: str, claimed: Optional[str]) -> None:
    if claimed is not None and recovered.lower() != claimed.lower():
        raise InvalidSignature("recovered signer does not match claimed actor")


def parse_signature(value) -> bytes:
    """0x-prefixed hex -> 65 raw bytes."""
    if isinstance(value, bytes):
        raw = value
    else:
        text = str(value)
        if text.startswith(("0x", "0X")):
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            raise ValidationError("Signature is not valid hex")
    if len(raw) != SIGNATURE_LENGTH:
        raise ValidationError(f"Signature must be {SIGNATURE_LENGTH} bytes")
    return raw
