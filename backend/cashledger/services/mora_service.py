# Overview: Daily late-fee (mora) on overdue credit balances; pure, never persisted.

from __future__ import annotations

from dataclasses import dataclass

from ..clock import Clock, get_clock
from ..models import CreditAccount
from ..money import apply_bps
from ..time_utils import local_date


DEFAULT_MORA_RATE_BPS = 200  # 2% per 30 days

DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class Mora:
    days_overdue: int
    mora_cents: int

    def to_dict(self) -> dict:
        return {"days_overdue": self.days_overdue, "mora_cents": self.mora_cents}


NO_MORA = Mora(days_overdue=0, mora_cents=0)


def calculate_mora(
    credit: CreditAccount,
    mora_rate_bps: int = DEFAULT_MORA_RATE_BPS,
    clock: Clock | None = None,
) -> Mora:
    """
    Late fee accrued on the unpaid balance since the due date.

        daily_rate = mora_rate / 100 / 30
        mora       = (total - paid) * daily_rate * days_overdue

    Days are calendar days in the business timezone; time of day is
    ignored, so a credit due today is not overdue and one due yesterday is
    one day overdue. Recomputed on every read from today's date.
    """
    if credit.status in ("PAID", "CANCELLED"):
        return NO_MORA

    clock = get_clock(clock)
    today = clock.today()
    due = local_date(credit.due_date, clock.tz_name)
    if due >= today:
        return NO_MORA

    days_overdue = (today - due).days
    pending = max(0, credit.total_amount_cents - credit.paid_amount_cents)

    return Mora(
        days_overdue=days_overdue,
        mora_cents=apply_bps(pending, mora_rate_bps, days_overdue, DAYS_PER_MONTH),
    )
