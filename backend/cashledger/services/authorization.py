# Overview: Explicit principal passed into privileged operations; no session lookup.

from __future__ import annotations

from dataclasses import dataclass

from ..validation import AuthorizationError


ROLE_ADMIN = "admin"
ROLE_CASHIER = "cashier"


@dataclass(frozen=True)
class Principal:
    """
    Caller identity, already verified by the authentication layer.

    The core never checks passwords or tokens; it only trusts `verified`
    and checks the role.
    """
    user_id: int
    role: str = ROLE_CASHIER
    verified: bool = True

    @property
    def is_admin(self) -> bool:
        return self.verified and self.role == ROLE_ADMIN


def require_admin(principal: Principal | None, action: str) -> Principal:
    """Raise AuthorizationError unless principal is a verified admin."""
    if principal is None or not principal.verified:
        raise AuthorizationError(f"{action} requires a verified credential")
    if principal.role != ROLE_ADMIN:
        raise AuthorizationError(f"{action} requires admin authorization")
    return principal


def actor_id(principal: Principal | None) -> int | None:
    return principal.user_id if principal is not None else None
