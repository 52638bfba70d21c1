# Overview: Service-layer operations for credit accounts; origination, payments and liquidation.

"""
Credit Ledger

WHY: Credit sales are collected over months. The ledger owns the credit
accounts and their payment history and is the only writer of either.

DESIGN PRINCIPLES:
- Payments are append-only; paid_amount always equals the sum of payments.
- A payment may not exceed the remaining balance (+1 cent tolerance).
- Status flips to PAID when paid >= total - 1 cent, or by liquidation.
- Liquidation closes the account for today's payoff (accrued interest
  only) and records the interest saved.
- Interest, mora and payoff are computed by pure helpers; nothing here
  stores a running mora balance.
- Every write is one record plus its audit event, committed once, never
  retried.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import timedelta

from ..clock import Clock, get_clock
from ..models import CreditAccount, CreditPayment
from ..money import SETTLEMENT_TOLERANCE_CENTS
from ..time_utils import local_date
from ..validation import (
    InvalidAmountError,
    NotFoundError,
    StateError,
    ValidationError,
    require_method,
)
from .authorization import Principal, actor_id
from .concurrency import commit_or_rollback
from .interest_service import calculate_terms
from .ledger_service import append_ledger_event
from .mora_service import DAYS_PER_MONTH, DEFAULT_MORA_RATE_BPS, calculate_mora
from .payoff_service import Payoff, calculate_early_payoff
from . import storage_service


STATUS_PENDING = "PENDING"
STATUS_OVERDUE = "OVERDUE"
STATUS_PAID = "PAID"
STATUS_CANCELLED = "CANCELLED"

OPEN_STATUSES = (STATUS_PENDING, STATUS_OVERDUE)


def _load_for_update(credit_id: int) -> CreditAccount:
    credit = storage_service.get_credit_account(credit_id, lock=True)
    if not credit:
        raise NotFoundError(f"Credit {credit_id} not found")
    return credit


# =============================================================================
# ORIGINATION
# =============================================================================

def open_credit(
    sale_id: int,
    *,
    rate_bps: int | None,
    term_months: int,
    down_payment_cents: int | None = None,
    customer_id: int | None = None,
    principal: Principal | None = None,
    clock: Clock | None = None,
) -> CreditAccount:
    """
    Open a credit account for a CREDIT sale.

    The down payment is the sale's deposit (collected at the register and
    counted by the cash cut as part of the sale); the account finances
    only the remainder, with flat interest from interest_service. A
    down_payment_cents that differs from the deposit is rejected. The due
    date is term_months * 30 days after opening. A sale carries at most
    one open or settled account.

    Raises:
        NotFoundError: sale does not exist
        ValidationError: sale is not an active CREDIT sale, down payment
            differs from the deposit, or bad terms
        StateError(CREDIT_EXISTS): sale already has a credit account
    """
    sale = storage_service.get_sale(sale_id)
    if not sale:
        raise NotFoundError(f"Sale {sale_id} not found")
    if sale.status != "ACTIVE":
        raise ValidationError("Cannot open credit for a voided sale")
    if sale.payment_method != "CREDIT":
        raise ValidationError("Credit accounts can only be opened for CREDIT sales")

    down = sale.deposit_cents or 0
    if down_payment_cents is not None and down_payment_cents != down:
        raise ValidationError(
            f"Down payment {down_payment_cents / 100:.2f} does not match the sale deposit {down / 100:.2f}"
        )

    existing = [
        c for c in storage_service.list_credit_accounts(sale_id=sale.id)
        if c.status != STATUS_CANCELLED
    ]
    if existing:
        raise StateError(StateError.CREDIT_EXISTS, f"Sale {sale.id} already has credit {existing[0].id}")

    terms = calculate_terms(sale.total_cents, down, rate_bps, term_months)

    now = get_clock(clock).now()
    credit = CreditAccount(
        sale_id=sale.id,
        customer_id=customer_id if customer_id is not None else sale.customer_id,
        created_at=now,
        due_date=now + timedelta(days=term_months * DAYS_PER_MONTH),
        principal_cents=terms.principal_cents,
        total_amount_cents=terms.total_with_interest_cents,
        paid_amount_cents=0,
        rate_bps=rate_bps,
        term_months=term_months,
        monthly_payment_cents=terms.monthly_payment_cents,
        status=STATUS_PAID if terms.total_with_interest_cents <= SETTLEMENT_TOLERANCE_CENTS else STATUS_PENDING,
    )
    storage_service.update_credit_account(credit)

    append_ledger_event(
        event_type="credit.opened",
        event_category="credit",
        entity_type="credit_account",
        entity_id=credit.id,
        actor_user_id=actor_id(principal),
        amount_cents=credit.total_amount_cents,
        occurred_at=now,
        note=f"Sale {sale.id}: {term_months} months",
        payload=terms.to_dict(),
    )

    commit_or_rollback()
    return credit


# =============================================================================
# PAYMENTS
# =============================================================================

def add_payment(
    credit_id: int,
    amount_cents: int,
    method: str,
    note: str | None = None,
    *,
    principal: Principal | None = None,
    clock: Clock | None = None,
) -> CreditPayment:
    """
    Append a payment (abono) to a credit account.

    Raises:
        InvalidAmountError: amount <= 0 or above remaining + 1 cent
        NotFoundError: credit does not exist
        StateError: credit already PAID or CANCELLED
        ValidationError: unknown payment method
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidAmountError("Payment amount must be an integer number of cents")
    if amount_cents <= 0:
        raise InvalidAmountError("Payment amount must be positive")
    method = require_method(method)

    credit = _load_for_update(credit_id)
    if credit.status == STATUS_PAID:
        raise StateError(StateError.ALREADY_PAID, f"Credit {credit_id} is already paid")
    if credit.status == STATUS_CANCELLED:
        raise StateError(StateError.CREDIT_CLOSED, f"Credit {credit_id} is cancelled")

    remaining = credit.total_amount_cents - credit.paid_amount_cents
    if amount_cents > remaining + SETTLEMENT_TOLERANCE_CENTS:
        raise InvalidAmountError(
            f"Payment {amount_cents / 100:.2f} exceeds remaining balance {remaining / 100:.2f}"
        )

    now = get_clock(clock).now()
    payment = CreditPayment(
        paid_at=now,
        amount_cents=amount_cents,
        method=method,
        note=note,
        is_liquidation=False,
        created_by_user_id=actor_id(principal),
    )
    storage_service.persist_credit_payment(credit, payment)

    credit.paid_amount_cents += amount_cents
    if credit.is_settled():
        credit.status = STATUS_PAID
    storage_service.update_credit_account(credit)

    append_ledger_event(
        event_type="credit.payment_added",
        event_category="credit",
        entity_type="credit_payment",
        entity_id=payment.id,
        actor_user_id=actor_id(principal),
        amount_cents=amount_cents,
        occurred_at=now,
        note=note,
        payload={"credit_id": credit.id, "method": method, "status": credit.status},
    )

    commit_or_rollback()
    return payment


def liquidate(
    credit_id: int,
    payoff: Payoff | None = None,
    *,
    method: str = "CASH",
    principal: Principal | None = None,
    clock: Clock | None = None,
) -> CreditAccount:
    """
    Settle a credit early for today's payoff amount.

    Appends a final liquidation payment of payoff.remaining_to_pay, marks
    the account PAID and records payoff.savings. When `payoff` is omitted
    it is computed now. A quote computed before a later payment is
    rejected rather than silently applied.

    Raises:
        NotFoundError: credit does not exist
        StateError(ALREADY_PAID): credit already paid
        StateError(NO_RATE_CONFIGURED): credit has no interest scheme
        StateError(CREDIT_CLOSED): credit cancelled
        StateError(STALE_PAYOFF): payoff belongs to another credit or predates a payment
    """
    method = require_method(method)
    credit = _load_for_update(credit_id)

    if credit.status == STATUS_PAID:
        raise StateError(StateError.ALREADY_PAID, f"Credit {credit_id} is already paid")
    if credit.status == STATUS_CANCELLED:
        raise StateError(StateError.CREDIT_CLOSED, f"Credit {credit_id} is cancelled")
    if credit.rate_bps is None:
        raise StateError(StateError.NO_RATE_CONFIGURED, f"Credit {credit_id} has no interest rate to liquidate against")

    if payoff is None:
        payoff = calculate_early_payoff(credit, clock)
    if payoff is None:
        raise StateError(StateError.NO_RATE_CONFIGURED, f"Credit {credit_id} has no payoff")
    if payoff.credit_id != credit.id or payoff.paid_amount_cents != credit.paid_amount_cents:
        raise StateError(StateError.STALE_PAYOFF, "Payoff quote is out of date; recalculate")

    now = get_clock(clock).now()
    amount = payoff.remaining_to_pay_cents

    payment = None
    if amount > 0:
        payment = CreditPayment(
            paid_at=now,
            amount_cents=amount,
            method=method,
            note=f"Early liquidation. Savings: {payoff.savings_cents / 100:.2f}",
            is_liquidation=True,
            created_by_user_id=actor_id(principal),
        )
        storage_service.persist_credit_payment(credit, payment)
        credit.paid_amount_cents += amount

    credit.status = STATUS_PAID
    credit.liquidated_at = now
    credit.liquidation_savings_cents = payoff.savings_cents
    storage_service.update_credit_account(credit)

    append_ledger_event(
        event_type="credit.liquidated",
        event_category="credit",
        entity_type="credit_account",
        entity_id=credit.id,
        actor_user_id=actor_id(principal),
        amount_cents=amount,
        occurred_at=now,
        note=f"Savings: {payoff.savings_cents / 100:.2f}",
        payload={**payoff.to_dict(), "payment_id": payment.id if payment else None},
    )

    commit_or_rollback()
    return credit


# =============================================================================
# STATUS MAINTENANCE
# =============================================================================

def refresh_overdue(clock: Clock | None = None) -> list[int]:
    """
    Flip PENDING credits past their due date to OVERDUE.

    Only the status is persisted; mora is always recomputed on read.

    Returns:
        IDs of credits that changed status
    """
    clock = get_clock(clock)
    today = clock.today()

    changed = []
    for credit in storage_service.list_credit_accounts(status=STATUS_PENDING):
        if local_date(credit.due_date, clock.tz_name) < today:
            credit.status = STATUS_OVERDUE
            storage_service.update_credit_account(credit)
            changed.append(credit.id)

    if changed:
        commit_or_rollback()
    return changed


# =============================================================================
# READS
# =============================================================================

def get_credit(credit_id: int) -> CreditAccount:
    credit = storage_service.get_credit_account(credit_id)
    if not credit:
        raise NotFoundError(f"Credit {credit_id} not found")
    return credit


def list_credits(status: str | None = None, customer_id: int | None = None) -> list[CreditAccount]:
    return storage_service.list_credit_accounts(status=status, customer_id=customer_id)


def receivables_summary(
    mora_rate_bps: int = DEFAULT_MORA_RATE_BPS,
    clock: Clock | None = None,
) -> dict:
    """
    Accounts receivable: pending and overdue balances with accrued mora.

    Returns:
        - total_pending_cents, total_overdue_cents, total_mora_cents
        - overdue_count
        - customers: per customer pending/overdue/mora, largest pending first
    """
    clock = get_clock(clock)
    today = clock.today()

    total_pending = 0
    total_overdue = 0
    total_mora = 0
    overdue_count = 0
    by_customer = defaultdict(lambda: {"pending_cents": 0, "overdue_cents": 0, "mora_cents": 0})

    for credit in storage_service.list_credit_accounts():
        if credit.status not in OPEN_STATUSES:
            continue

        pending = credit.remaining_cents
        is_overdue = local_date(credit.due_date, clock.tz_name) < today
        mora = calculate_mora(credit, mora_rate_bps, clock)

        total_pending += pending
        total_mora += mora.mora_cents
        row = by_customer[credit.customer_id]
        row["pending_cents"] += pending
        row["mora_cents"] += mora.mora_cents
        if is_overdue:
            overdue_count += 1
            total_overdue += pending
            row["overdue_cents"] += pending

    customers = [
        {"customer_id": customer_id, **row}
        for customer_id, row in by_customer.items()
    ]
    customers.sort(key=lambda r: (-r["pending_cents"], r["customer_id"] or 0))

    return {
        "total_pending_cents": total_pending,
        "total_overdue_cents": total_overdue,
        "total_mora_cents": total_mora,
        "overdue_count": overdue_count,
        "customers": customers,
    }
