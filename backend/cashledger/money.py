# Overview: Integer-cent money helpers; decimals appear only at the API boundary.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union


CENT = Decimal("0.01")

# Payments within one cent of the balance count as settling it
SETTLEMENT_TOLERANCE_CENTS = 1

Number = Union[int, float, str, Decimal]


def round_half_up(value: Decimal) -> int:
    """Round a Decimal number of cents to an integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_decimal(cents: int | None) -> Decimal | None:
    """Integer cents -> Decimal with two places."""
    if cents is None:
        return None
    return (Decimal(cents) / 100).quantize(CENT)


def scale(cents: int, numerator: Number, denominator: Number) -> int:
    """
    cents * numerator / denominator, rounded half-up to whole cents.

    Used for pro-rating (cost shares, interest fractions) without
    float drift.
    """
    den = Decimal(denominator)
    if den == 0:
        return 0
    return round_half_up(Decimal(cents) * Decimal(numerator) / den)


def apply_bps(cents: int, bps: int, periods: Number = 1, per: Number = 1) -> int:
    """
    Simple (non-compounding) interest: cents * bps/10000 * periods / per.

    `per` lets a monthly rate be spread over days (per=30).
    """
    return round_half_up(
        Decimal(cents) * Decimal(bps) * Decimal(periods) / (Decimal(10_000) * Decimal(per))
    )


def percent_to_bps(percent: Number) -> int:
    """2 -> 200, "2.5" -> 250."""
    if isinstance(percent, float):
        percent = str(percent)
    return round_half_up(Decimal(percent) * 100)


def bps_to_percent(bps: int | None) -> Decimal | None:
    if bps is None:
        return None
    return Decimal(bps) / 100
