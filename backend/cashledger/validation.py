from __future__ import annotations

from typing import Any


class ValidationError(ValueError):
    """400-level input problem."""


class InvalidAmountError(ValidationError):
    """Amount is non-positive or exceeds what is owed."""


class NotFoundError(LookupError):
    """404-level: the referenced cut or credit does not exist."""


class StateError(Exception):
    """
    409-level business-state conflict.

    `code` names the rule that was violated so callers can branch on it
    without parsing the message.
    """

    ALREADY_PAID = "ALREADY_PAID"
    NO_RATE_CONFIGURED = "NO_RATE_CONFIGURED"
    CREDIT_CLOSED = "CREDIT_CLOSED"
    STALE_WINDOW = "STALE_WINDOW"
    NOT_LATEST_CUT = "NOT_LATEST_CUT"
    STALE_PAYOFF = "STALE_PAYOFF"
    CREDIT_EXISTS = "CREDIT_EXISTS"

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or code)
        self.code = code


class AuthorizationError(PermissionError):
    """403-level: privileged operation without a verified, authorized principal."""


# Maximum single amount: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical amounts
MAX_AMOUNT_CENTS = 999_999_999

VALID_METHODS = ("CASH", "CARD", "TRANSFER")


def require_cents(value: Any, field: str, *, allow_zero: bool = True) -> int:
    """
    Strict integer-cents coercion for request payloads.

    Rejects floats, bools, decimal strings and scientific notation so an
    amount can never be silently truncated.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be an integer number of cents")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            value = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")

    if value < 0 or (value == 0 and not allow_zero):
        raise ValidationError(f"{field} must be {'>= 0' if allow_zero else '> 0'}")
    if value > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS}")
    return value


def require_method(value: Any, field: str = "method") -> str:
    method = str(value or "").strip().upper()
    if method not in VALID_METHODS:
        raise ValidationError(f"{field} must be one of {', '.join(VALID_METHODS)}")
    return method
