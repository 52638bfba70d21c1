# Overview: Injectable source of "now" shared by every reconciliation and credit service.

"""
Clock

WHY: Cash-cut windows, mora and early-payoff figures all depend on "now".
The store sometimes runs on a simulated (backdated) system date, and tests
need to pin time exactly, so "now" is an object that is passed around rather
than a global call.

All clocks return UTC-naive datetimes, matching the rest of the models.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from flask import current_app, has_app_context

from .time_utils import local_date, parse_iso_datetime, utcnow


EXTENSION_KEY = "cashledger.clock"


class Clock:
    """Base clock. Subclasses implement now()."""

    tz_name: str = "UTC"

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        """Calendar date of now() in the business timezone."""
        return local_date(self.now(), self.tz_name)


class SystemClock(Clock):
    """Wall clock."""

    def __init__(self, tz_name: str = "UTC"):
        self.tz_name = tz_name

    def now(self) -> datetime:
        return utcnow()


class OffsetClock(Clock):
    """Wall clock shifted by a fixed offset (simulated system date)."""

    def __init__(self, offset: timedelta, tz_name: str = "UTC"):
        self.offset = offset
        self.tz_name = tz_name

    def now(self) -> datetime:
        return utcnow() + self.offset


class FixedClock(Clock):
    """Clock frozen at a given instant; tests move it explicitly."""

    def __init__(self, at: datetime, tz_name: str = "UTC"):
        self._now = at
        self.tz_name = tz_name

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = at

    def advance(self, **kwargs) -> datetime:
        """Move forward by timedelta(**kwargs) and return the new now."""
        self._now = self._now + timedelta(**kwargs)
        return self._now


def clock_from_config(config) -> Clock:
    """
    Build the application clock from config.

    - SIMULATED_NOW (ISO-8601) -> FixedClock at that instant
    - CLOCK_OFFSET_DAYS != 0    -> OffsetClock (backdated/forward-dated)
    - otherwise                 -> SystemClock
    """
    tz_name = config.get("BUSINESS_TIMEZONE", "UTC")
    simulated = parse_iso_datetime(config.get("SIMULATED_NOW"))
    if simulated is not None:
        return FixedClock(simulated, tz_name=tz_name)

    offset_days = int(config.get("CLOCK_OFFSET_DAYS") or 0)
    if offset_days:
        return OffsetClock(timedelta(days=offset_days), tz_name=tz_name)

    return SystemClock(tz_name=tz_name)


def get_clock(clock: Clock | None = None) -> Clock:
    """Return the explicit clock, else the app's configured one, else wall clock."""
    if clock is not None:
        return clock
    if has_app_context():
        configured = current_app.extensions.get(EXTENSION_KEY)
        if configured is not None:
            return configured
    return SystemClock()
