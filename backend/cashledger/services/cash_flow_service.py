# Overview: Sums every cash-flow event inside a window into per-method totals.

"""
Cash Flow Aggregator

WHY: A cash cut compares counted drawer cash against what the system says
the drawer should hold. That figure comes from several event kinds that
do not line up with "sales made today":

- Sale origination (created_at in window): the deposit for orders and
  credit sales, the full total otherwise.
- Order balance settlement (balance_payment_date in window): the balance
  paid, by its own method. The deposit and the balance of one order can
  land in different windows; each is counted exactly once.
- Credit payments (abonos) in window, no matter when the credit opened.
- Cash expenses and cash refunds in window reduce expected cash.

DESIGN:
- aggregate() is pure: same inputs, same Totals. No queries, no clock.
- Everything is summed in integer cents; decimals only at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Iterable

from ..clock import Clock
from ..models import Sale, CreditPayment, Expense, Refund
from ..money import to_decimal
from .concurrency import read_snapshot
from .period_service import Window, resolve_window
from . import storage_service


METHOD_CASH = "CASH"
METHOD_CARD = "CARD"
METHOD_TRANSFER = "TRANSFER"
METHOD_MIXED = "MIXED"
METHOD_CREDIT = "CREDIT"

_BUCKET_BY_METHOD = {
    METHOD_CASH: "cash_cents",
    METHOD_CARD: "card_cents",
    METHOD_TRANSFER: "transfer_cents",
    METHOD_CREDIT: "credit_cents",
}


@dataclass
class Totals:
    """Per-method totals of one window, in cents."""
    window: Window
    cash_cents: int = 0
    card_cents: int = 0
    transfer_cents: int = 0
    credit_cents: int = 0
    credit_payments_cents: int = 0
    order_payments_cents: int = 0
    cash_expenses_cents: int = 0
    cash_refunds_cents: int = 0
    total_cents: int = 0  # gross total of sales originated in the window
    sale_ids: list[int] = field(default_factory=list)

    @property
    def net_cash_expected_cents(self) -> int:
        return self.cash_cents - self.cash_expenses_cents - self.cash_refunds_cents

    @property
    def collected_cents(self) -> int:
        """Money actually received in the window, all tenders."""
        return self.cash_cents + self.card_cents + self.transfer_cents

    def add(self, method: str | None, cents: int) -> None:
        bucket = _BUCKET_BY_METHOD.get((method or METHOD_CASH).upper())
        if bucket is None:
            raise ValueError(f"Unknown payment method: {method}")
        setattr(self, bucket, getattr(self, bucket) + cents)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("sale_ids")
        data["window"] = self.window.to_dict()
        data["net_cash_expected_cents"] = self.net_cash_expected_cents
        data["collected_cents"] = self.collected_cents
        data["amounts"] = {
            key[:-len("_cents")]: str(to_decimal(value))
            for key, value in data.items()
            if key.endswith("_cents")
        }
        return data


def origination_cents(sale: Sale) -> int:
    """Money attributed at creation: deposit for orders/credit, else total."""
    if sale.is_order or sale.payment_method == METHOD_CREDIT:
        return sale.deposit_cents or 0
    return sale.total_cents


def balance_paid_cents(sale: Sale) -> int:
    # Older orders only recorded balance_cents
    if sale.balance_paid_cents is not None:
        return sale.balance_paid_cents
    return sale.balance_cents or 0


def _add_tenders(totals: Totals, sale: Sale, amount: int) -> None:
    """Split `amount` over the sale's stored breakdown, or all cash without one."""
    parts = sale.breakdown()
    if parts is None:
        totals.add(METHOD_CASH, amount)
        return

    tenders = (METHOD_CASH, METHOD_CARD, METHOD_TRANSFER)
    breakdown_total = sum(parts[tender] or 0 for tender in tenders)
    if breakdown_total != amount:
        raise ValueError(
            f"Sale {sale.id} breakdown sums to {breakdown_total} cents, expected {amount}"
        )
    for tender in tenders:
        if parts[tender]:
            totals.add(tender, parts[tender])


def _attribute_origination(totals: Totals, sale: Sale) -> None:
    method = (sale.payment_method or METHOD_CASH).upper()
    amount = origination_cents(sale)

    if method == METHOD_MIXED:
        _add_tenders(totals, sale, amount)
        return

    if method == METHOD_CREDIT:
        # Down payment in hand, financed remainder is a receivable
        _add_tenders(totals, sale, amount)
        totals.add(METHOD_CREDIT, sale.total_cents - amount)
        return

    totals.add(method, amount)


def aggregate(
    window: Window,
    sales: Iterable[Sale],
    credit_payments: Iterable[CreditPayment],
    expenses: Iterable[Expense] = (),
    refunds: Iterable[Refund] = (),
) -> Totals:
    """
    Per-method totals for every event inside `window`.

    Voided sales contribute nothing. Events outside the window are
    ignored, so callers may pass a superset of the log.
    """
    totals = Totals(window=window)

    for sale in sales:
        if not sale.is_active:
            continue

        touched = False

        if window.contains(sale.created_at):
            _attribute_origination(totals, sale)
            totals.total_cents += sale.total_cents
            touched = True

        if sale.is_order and window.contains(sale.balance_payment_date):
            paid = balance_paid_cents(sale)
            totals.add(sale.balance_payment_method or METHOD_CASH, paid)
            totals.order_payments_cents += paid
            touched = True

        if touched:
            totals.sale_ids.append(sale.id)

    for payment in credit_payments:
        if window.contains(payment.paid_at):
            totals.add(payment.method, payment.amount_cents)
            totals.credit_payments_cents += payment.amount_cents

    for expense in expenses:
        if window.contains(expense.occurred_at) and (expense.method or METHOD_CASH).upper() == METHOD_CASH:
            totals.cash_expenses_cents += expense.amount_cents

    for refund in refunds:
        if window.contains(refund.occurred_at) and (refund.method or METHOD_CASH).upper() == METHOD_CASH:
            totals.cash_refunds_cents += refund.amount_cents

    return totals


def reconcile(clock: Clock | None = None) -> Totals:
    """
    Resolve the open window and aggregate it from one read snapshot.

    Only events after the window start are loaded; the window end is fixed
    before any read, so an event written meanwhile falls in the next window.
    """
    with read_snapshot():
        window = resolve_window(clock)
        return aggregate(
            window,
            storage_service.list_sales(touching_after=window.start),
            storage_service.list_credit_payments(after=window.start),
            storage_service.list_expenses(after=window.start),
            storage_service.list_refunds(after=window.start),
        )
