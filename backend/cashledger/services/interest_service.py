# Overview: Flat-rate financing terms computed once at credit origination.

"""
Interest Engine

Flat simple interest on the financed principal, applied once over the
whole term (not an amortization table):

    principal           = total - down_payment
    total_with_interest = principal * (1 + rate/100 * term_months)
    monthly_payment     = total_with_interest / term_months

`rate` is a monthly percentage, carried as basis points (2% = 200).
Amounts are integer cents, rounded half-up.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict

from ..money import apply_bps, scale
from ..validation import ValidationError


@dataclass(frozen=True)
class FinancingTerms:
    total_cents: int
    down_payment_cents: int
    principal_cents: int
    rate_bps: int | None
    term_months: int
    scheduled_interest_cents: int
    total_with_interest_cents: int
    monthly_payment_cents: int

    def installments(self) -> list[int]:
        """
        Monthly installment amounts; the last absorbs rounding so the
        schedule sums exactly to total_with_interest_cents.
        """
        regular = [self.monthly_payment_cents] * (self.term_months - 1)
        return regular + [self.total_with_interest_cents - sum(regular)]

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_terms(
    total_cents: int,
    down_payment_cents: int,
    rate_bps: int | None,
    term_months: int,
) -> FinancingTerms:
    """
    Financing terms for a credit sale.

    A rate of None means no interest scheme: the total owed is the
    principal and early liquidation does not apply.

    Raises:
        ValidationError: negative amounts, down payment above total,
            term < 1 or negative rate
    """
    if total_cents < 0:
        raise ValidationError("Total cannot be negative")
    if down_payment_cents < 0:
        raise ValidationError("Down payment cannot be negative")
    if down_payment_cents > total_cents:
        raise ValidationError("Down payment cannot exceed the sale total")
    if not isinstance(term_months, int) or isinstance(term_months, bool) or term_months < 1:
        raise ValidationError("term_months must be a positive integer")
    if rate_bps is not None and rate_bps < 0:
        raise ValidationError("rate cannot be negative")

    principal = total_cents - down_payment_cents
    interest = apply_bps(principal, rate_bps, term_months) if rate_bps else 0
    total_with_interest = principal + interest

    return FinancingTerms(
        total_cents=total_cents,
        down_payment_cents=down_payment_cents,
        principal_cents=principal,
        rate_bps=rate_bps,
        term_months=term_months,
        scheduled_interest_cents=interest,
        total_with_interest_cents=total_with_interest,
        monthly_payment_cents=scale(total_with_interest, 1, term_months),
    )
