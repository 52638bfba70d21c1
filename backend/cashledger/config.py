# backend/cashledger/config.py
from __future__ import annotations
import json
import os


def _principals_from_env() -> dict:
    raw = os.environ.get("API_PRINCIPALS")
    if not raw:
        return {}
    return json.loads(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cashledger.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///cashledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Calendar-day boundaries (mora, payoff, daily reports) use this zone
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", "UTC")

    # Monthly late-fee rate, basis points (200 = 2%)
    DEFAULT_MORA_RATE_BPS = int(os.environ.get("DEFAULT_MORA_RATE_BPS", "200"))

    # Simulated "system now": either a fixed ISO timestamp or a day offset
    SIMULATED_NOW = os.environ.get("SIMULATED_NOW")
    CLOCK_OFFSET_DAYS = int(os.environ.get("CLOCK_OFFSET_DAYS", "0"))

    # token -> {"user_id": int, "role": "admin" | "cashier"}
    API_PRINCIPALS = _principals_from_env()
