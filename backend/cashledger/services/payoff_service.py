# Overview: Early-settlement payoff amount and interest savings for a credit account.

"""
Early Payoff Calculator

WHY: A customer who settles early pays only the interest accrued so far
instead of the full scheduled interest. The accrued interest is the
scheduled (flat) interest pro-rated by elapsed days over the scheduled
term, where a month counts as 30 days:

    interest_accrued = scheduled_interest * days_elapsed / (term_months * 30)
                       clamped to [0, scheduled_interest]
    total_debt_today = principal + interest_accrued
    remaining_to_pay = max(0, total_debt_today - paid)
    savings          = scheduled_interest - interest_accrued

Since scheduled_interest = principal * rate * term, this is the same as
principal * (rate / 30) * days_elapsed until the term runs out.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date

from ..clock import Clock, get_clock
from ..models import CreditAccount
from ..money import scale
from ..time_utils import local_date
from .mora_service import DAYS_PER_MONTH


@dataclass(frozen=True)
class Payoff:
    credit_id: int
    as_of: date
    days_elapsed: int
    scheduled_interest_cents: int
    interest_accrued_cents: int
    total_debt_today_cents: int
    paid_amount_cents: int
    remaining_to_pay_cents: int
    savings_cents: int

    def to_dict(self) -> dict:
        data = asdict(self)
        data["as_of"] = self.as_of.isoformat()
        return data


def calculate_early_payoff(credit: CreditAccount, clock: Clock | None = None) -> Payoff | None:
    """
    Today's payoff quote, or None when there is nothing to liquidate
    (already paid, cancelled, or no interest scheme configured).
    """
    if credit.status in ("PAID", "CANCELLED"):
        return None
    if credit.rate_bps is None or not credit.term_months:
        return None

    clock = get_clock(clock)
    today = clock.today()
    days_elapsed = max(0, (today - local_date(credit.created_at, clock.tz_name)).days)

    scheduled = max(0, credit.scheduled_interest_cents)
    term_days = credit.term_months * DAYS_PER_MONTH
    accrued = min(scheduled, max(0, scale(scheduled, days_elapsed, term_days)))

    total_debt_today = credit.principal_cents + accrued

    return Payoff(
        credit_id=credit.id,
        as_of=today,
        days_elapsed=days_elapsed,
        scheduled_interest_cents=scheduled,
        interest_accrued_cents=accrued,
        total_debt_today_cents=total_debt_today,
        paid_amount_cents=credit.paid_amount_cents,
        remaining_to_pay_cents=max(0, total_debt_today - credit.paid_amount_cents),
        savings_cents=scheduled - accrued,
    )
