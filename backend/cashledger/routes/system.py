# backend/cashledger/routes/system.py
"""
System health endpoint.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import select, func

from ..extensions import db
from ..models import CashCut, CreditAccount, Sale
from ..clock import get_clock
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        sale_count = db.session.scalar(select(func.count()).select_from(Sale))
        credit_count = db.session.scalar(select(func.count()).select_from(CreditAccount))
        cut_count = db.session.scalar(select(func.count()).select_from(CashCut))

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "sales": sale_count,
                "credit_accounts": credit_count,
                "cash_cuts": cut_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: Database reachable
    - 503: Database unhealthy

    Also reports the business clock, which differs from server time when a
    simulated date is configured.
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503

    clock = get_clock()
    response = {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "business_now": to_utc_z(clock.now()),
        "business_date": clock.today().isoformat(),
        "timezone": clock.tz_name,
        "checks": {
            "database": database_health,
        }
    }

    return response, http_status
