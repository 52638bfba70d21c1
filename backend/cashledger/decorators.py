# Overview: Request decorators for API routes; resolves the caller principal.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services.authorization import Principal, ROLE_ADMIN, ROLE_CASHIER


def _principal_for_token(token: str) -> Principal | None:
    entry = (current_app.config.get("API_PRINCIPALS") or {}).get(token)
    if not entry:
        return None
    role = entry.get("role", ROLE_CASHIER)
    if role not in (ROLE_ADMIN, ROLE_CASHIER):
        return None
    return Principal(user_id=int(entry["user_id"]), role=role, verified=True)


def require_principal(f):
    """
    Require a bearer token and establish the caller principal.

    Sets g.principal to the Principal mapped from the token in the
    API_PRINCIPALS config. Password and session handling live outside
    this service; the mapping only names who is calling.

    Returns 401 if:
    - No Authorization header
    - Token not present in API_PRINCIPALS
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        principal = _principal_for_token(token)

        if not principal:
            return jsonify({"error": "Invalid or unknown token"}), 401

        g.principal = principal
        return f(*args, **kwargs)

    return decorated_function
