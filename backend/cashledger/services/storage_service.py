# Overview: Persistence collaborator; read and write access to the store for the reconciliation core.

"""
Storage Service

WHY: The reconciliation and credit services never query the database
directly. Reads return materialized lists; writes add or delete exactly
one record and flush, leaving the commit (and the audit event that goes
with it) to the calling service.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Sale, Expense, Refund, CreditAccount, CreditPayment, CashCut
from .concurrency import lock_for_update


# =============================================================================
# READS
# =============================================================================

def list_sales(*, touching_after: datetime | None = None, include_voided: bool = False) -> list[Sale]:
    """
    Sales, optionally only those with an event after `touching_after`.

    A sale "touches" a window if it was created in it or its balance was
    paid in it, so both timestamps are checked. Items are eager-loaded
    for cost attribution.
    """
    query = db.session.query(Sale).options(selectinload(Sale.items))
    if not include_voided:
        query = query.filter(Sale.status == "ACTIVE")
    if touching_after is not None:
        query = query.filter(or_(
            Sale.created_at > touching_after,
            Sale.balance_payment_date > touching_after,
        ))
    return query.order_by(Sale.created_at, Sale.id).all()


def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def list_credit_accounts(
    *,
    status: str | None = None,
    customer_id: int | None = None,
    sale_id: int | None = None,
) -> list[CreditAccount]:
    query = db.session.query(CreditAccount).options(selectinload(CreditAccount.payments))
    if status:
        query = query.filter(CreditAccount.status == status)
    if customer_id is not None:
        query = query.filter(CreditAccount.customer_id == customer_id)
    if sale_id is not None:
        query = query.filter(CreditAccount.sale_id == sale_id)
    return query.order_by(CreditAccount.created_at, CreditAccount.id).all()


def get_credit_account(credit_id: int, *, lock: bool = False) -> CreditAccount | None:
    query = db.session.query(CreditAccount).filter_by(id=credit_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def list_credit_payments(*, after: datetime | None = None) -> list[CreditPayment]:
    """Every credit payment, regardless of when its account was opened."""
    query = db.session.query(CreditPayment)
    if after is not None:
        query = query.filter(CreditPayment.paid_at > after)
    return query.order_by(CreditPayment.paid_at, CreditPayment.id).all()


def list_expenses(*, after: datetime | None = None) -> list[Expense]:
    query = db.session.query(Expense)
    if after is not None:
        query = query.filter(Expense.occurred_at > after)
    return query.order_by(Expense.occurred_at, Expense.id).all()


def list_refunds(*, after: datetime | None = None) -> list[Refund]:
    query = db.session.query(Refund)
    if after is not None:
        query = query.filter(Refund.occurred_at > after)
    return query.order_by(Refund.occurred_at, Refund.id).all()


def list_cash_cuts(*, newest_first: bool = False) -> list[CashCut]:
    order = (CashCut.cut_at.desc(), CashCut.id.desc()) if newest_first else (CashCut.cut_at, CashCut.id)
    return db.session.query(CashCut).order_by(*order).all()


def latest_cash_cut() -> CashCut | None:
    return db.session.query(CashCut).order_by(CashCut.cut_at.desc(), CashCut.id.desc()).first()


def get_cash_cut(cut_id: int, *, lock: bool = False) -> CashCut | None:
    query = db.session.query(CashCut).filter_by(id=cut_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


# =============================================================================
# WRITES (flush only; caller commits)
# =============================================================================

def persist_cash_cut(cut: CashCut) -> CashCut:
    db.session.add(cut)
    db.session.flush()
    return cut


def delete_cash_cut(cut: CashCut) -> None:
    db.session.delete(cut)
    db.session.flush()


def persist_credit_payment(credit: CreditAccount, payment: CreditPayment) -> CreditPayment:
    payment.credit = credit
    db.session.add(payment)
    db.session.flush()
    return payment


def update_credit_account(credit: CreditAccount) -> CreditAccount:
    db.session.add(credit)
    db.session.flush()
    return credit
