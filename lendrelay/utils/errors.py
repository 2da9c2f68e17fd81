# lendrelay/utils/errors.py
from __future__ import annotations


class RelayError(RuntimeError):
    """
    Base of every error surfaced to a relay caller.

    Contract (FROZEN):
    - ``code`` is machine readable and stable
    - ``message`` is safe to return to the client (no traces, no keys)
    - ``status`` is the HTTP status the gateway answers with
    """

    code: str = "EXECUTION_FAILED"
    status: int = 500

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(RelayError):
    """Malformed, missing or out-of-range input. Nothing was mutated."""

    code = "INVALID_INPUT"
    status = 400


class ReplayError(RelayError):
    """Nonce does not match the actor's current nonce."""

    code = "INVALID_NONCE"
    status = 400


class ExpiryError(RelayError):
    """Deadline passed, or lies beyond the gateway's accepted window."""

    code = "SIGNATURE_EXPIRED"
    status = 400


class AuthenticationError(RelayError):
    """Signature does not recover to the claimed actor."""

    code = "INVALID_SIGNATURE"
    status = 400


class InsufficientStateError(RelayError):
    """Withdraw / repay exceeds the recorded principal, debt or collateral."""

    code = "INSUFFICIENT_PRINCIPAL"
    status = 400


class ExecutionError(RelayError):
    """The apply step failed after every check passed; the whole step was rolled back."""

    code = "EXECUTION_FAILED"
    status = 500


class RateLimitError(RelayError):
    code = "RATE_LIMITED"
    status = 429


# ---------------------------------------------------------
# named failure modes of the verifier / pool
# ---------------------------------------------------------
class InvalidNonce(ReplayError):
    def __init__(self, expected: int, got: int):
        super().__init__(f"Invalid nonce: expected {expected}, got {got}")
        self.expected = expected
        self.got = got


class SignatureExpired(ExpiryError):
    def __init__(self, deadline: int, now: int):
        super().__init__(f"Signature expired at {deadline} (now {now})")
        self.deadline = deadline


class DeadlineTooFar(ExpiryError):
    code = "DEADLINE_TOO_FAR"

    def __init__(self, deadline: int, limit: int):
        super().__init__(f"Deadline too far in future: {deadline} > {limit}")


class InvalidSignature(AuthenticationError):
    def __init__(self, reason: str = "signer mismatch"):
        super().__init__(f"Invalid signature: {reason}")


class InvalidAmount(ValidationError):
    code = "INVALID_AMOUNT"

    def __init__(self, reason: str = "Amount must be greater than 0"):
        super().__init__(reason)


class MissingFields(ValidationError):
    code = "MISSING_FIELDS"

    def __init__(self, fields):
        super().__init__(f"Missing required fields: {', '.join(fields)}")
        self.fields = list(fields)


class InvalidAddress(ValidationError):
    code = "INVALID_ADDRESS"

    def __init__(self, field: str):
        super().__init__(f"Invalid address: {field}")


class InsufficientPrincipal(InsufficientStateError):
    code = "INSUFFICIENT_PRINCIPAL"

    def __init__(self, principal: int, requested: int):
        super().__init__(f"Insufficient principal: have {principal}, requested {requested}")
