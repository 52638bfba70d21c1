# Overview: Attributes recognized revenue and proportional cost of goods to calendar days.

"""
Revenue Attributor

WHY: Profit reporting works per calendar day, independently of cash-cut
windows. Revenue is recognized when money is collected, so one sale can
contribute on several days:

- the day it was created: its deposit (the full total for plain sales,
  the down payment for credit sales)
- the day an order's balance was paid: the balance paid
- each day a credit payment was received: the principal share of that
  payment (the interest share is reported as interest_income)
- the day a credit was liquidated without a final payment: the principal
  its earlier payments had not yet recognized

Cost of goods and tax follow the same proportions: a collection of X on a
sale of total T carries X/T of the sale's item cost and tax. Both are
scaled from the cumulative amount collected, so the collection that
completes a sale carries the remainder and the lifecycle sums are exact.

INVARIANT: over a sale's whole lifecycle, recognized revenue equals
sale.total exactly (deposit + balance, or down payment + financed
principal). Interest and mora are never part of revenue.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from ..clock import Clock, get_clock
from ..models import CreditAccount, CreditPayment, Sale
from ..money import scale
from ..time_utils import local_date
from ..validation import ValidationError
from .cash_flow_service import balance_paid_cents, origination_cents
from . import storage_service


@dataclass
class _SaleProgress:
    """Running totals of what one sale has contributed so far."""

    collected_cents: int = 0
    cost_cents: int = 0
    tax_cents: int = 0

    def advance(self, sale: Sale, amount_cents: int) -> tuple[int, int]:
        if sale.total_cents <= 0:
            return 0, 0
        self.collected_cents += amount_cents
        collected = max(0, min(self.collected_cents, sale.total_cents))
        cost = scale(sale.items_cost_cents, collected, sale.total_cents) - self.cost_cents
        tax = scale(sale.tax_cents or 0, collected, sale.total_cents) - self.tax_cents
        self.cost_cents += cost
        self.tax_cents += tax
        return cost, tax


@dataclass
class DayFigures:
    day: date
    deposits_cents: int = 0
    balance_payments_cents: int = 0
    credit_principal_cents: int = 0
    interest_income_cents: int = 0
    cost_cents: int = 0
    tax_cents: int = 0

    @property
    def revenue_cents(self) -> int:
        return self.deposits_cents + self.balance_payments_cents + self.credit_principal_cents

    @property
    def net_revenue_cents(self) -> int:
        return self.revenue_cents - self.tax_cents

    @property
    def profit_cents(self) -> int:
        return self.net_revenue_cents - self.cost_cents

    def recognize(self, progress: _SaleProgress | None, sale: Sale | None, amount_cents: int) -> None:
        """Proportional cost and tax for collecting `amount_cents` of `sale`."""
        if progress is None or sale is None:
            return
        cost, tax = progress.advance(sale, amount_cents)
        self.cost_cents += cost
        self.tax_cents += tax

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "revenue_cents": self.revenue_cents,
            "deposits_cents": self.deposits_cents,
            "balance_payments_cents": self.balance_payments_cents,
            "credit_principal_cents": self.credit_principal_cents,
            "interest_income_cents": self.interest_income_cents,
            "tax_cents": self.tax_cents,
            "net_revenue_cents": self.net_revenue_cents,
            "cost_cents": self.cost_cents,
            "profit_cents": self.profit_cents,
        }


def split_credit_payments(credit: CreditAccount) -> list[tuple[CreditPayment, int, int]]:
    """
    Split each payment of a credit into (payment, principal_share, interest_share).

    Principal is recognized in proportion to the cumulative amount paid
    against the scheduled total. The payment that closes a PAID account
    (final installment or liquidation) recognizes whatever principal is
    left, so the shares of a settled credit sum to its principal. An
    account liquidated without a payment has no closing payment; see
    unrecognized_principal.
    """
    payments = list(credit.payments)
    rows = []
    recognized = 0
    cumulative = 0
    closes_on_payment = credit.status == "PAID" and (
        credit.liquidated_at is None or any(p.is_liquidation for p in payments)
    )

    for index, payment in enumerate(payments):
        cumulative += payment.amount_cents
        closing = closes_on_payment and index == len(payments) - 1
        if closing or credit.total_amount_cents <= 0:
            target = credit.principal_cents
        else:
            target = min(
                credit.principal_cents,
                scale(credit.principal_cents, cumulative, credit.total_amount_cents),
            )
        share = max(0, min(payment.amount_cents, target - recognized))
        recognized += share
        rows.append((payment, share, payment.amount_cents - share))

    return rows


def unrecognized_principal(credit: CreditAccount, rows: list[tuple[CreditPayment, int, int]]) -> int:
    """
    Principal still unrecognized on an account liquidated without a payment.

    Earlier payments already covered the payoff, so the rest of the
    principal belongs to the liquidation day and comes out of what those
    payments had counted as interest.
    """
    if credit.status != "PAID" or credit.liquidated_at is None:
        return 0
    if any(payment.is_liquidation for payment, _, _ in rows):
        return 0
    return max(0, credit.principal_cents - sum(share for _, share, _ in rows))


def attribute_by_day(
    sales: Iterable[Sale],
    credits: Iterable[CreditAccount],
    tz_name: str = "UTC",
) -> dict[date, DayFigures]:
    """Pure attribution of every collection event to its calendar day."""
    days: dict[date, DayFigures] = {}

    def figures(day: date) -> DayFigures:
        if day not in days:
            days[day] = DayFigures(day=day)
        return days[day]

    sales_by_id = {}
    progress: dict[int, _SaleProgress] = {}
    for sale in sales:
        sales_by_id[sale.id] = sale
        if not sale.is_active:
            continue
        tracker = progress.setdefault(sale.id, _SaleProgress())

        deposit = origination_cents(sale)
        day = figures(local_date(sale.created_at, tz_name))
        day.deposits_cents += deposit
        day.recognize(tracker, sale, deposit)

        if sale.is_order and sale.balance_payment_date is not None:
            paid = balance_paid_cents(sale)
            day = figures(local_date(sale.balance_payment_date, tz_name))
            day.balance_payments_cents += paid
            day.recognize(tracker, sale, paid)

    for credit in credits:
        sale = sales_by_id.get(credit.sale_id)
        if sale is not None and not sale.is_active:
            continue
        tracker = progress.get(sale.id) if sale is not None else None

        rows = split_credit_payments(credit)
        for payment, principal_share, interest_share in rows:
            day = figures(local_date(payment.paid_at, tz_name))
            day.credit_principal_cents += principal_share
            day.interest_income_cents += interest_share
            day.recognize(tracker, sale, principal_share)

        residual = unrecognized_principal(credit, rows)
        if residual:
            day = figures(local_date(credit.liquidated_at, tz_name))
            day.credit_principal_cents += residual
            day.interest_income_cents -= residual
            day.recognize(tracker, sale, residual)

    return days


def daily_summary(day: date, clock: Clock | None = None) -> DayFigures:
    """Revenue, cost, tax and profit attributed to one calendar day."""
    clock = get_clock(clock)
    figures = attribute_by_day(
        storage_service.list_sales(include_voided=True),
        storage_service.list_credit_accounts(),
        clock.tz_name,
    )
    return figures.get(day) or DayFigures(day=day)


def trend(days: int = 7, clock: Clock | None = None) -> list[DayFigures]:
    """The last `days` calendar days ending today, oldest first."""
    if days < 1:
        raise ValidationError("days must be >= 1")
    clock = get_clock(clock)
    today = clock.today()
    figures = attribute_by_day(
        storage_service.list_sales(include_voided=True),
        storage_service.list_credit_accounts(),
        clock.tz_name,
    )
    wanted = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    return [figures.get(d) or DayFigures(day=d) for d in wanted]
