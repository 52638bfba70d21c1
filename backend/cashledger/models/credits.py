from __future__ import annotations

from ..extensions import db
from cashledger.money import SETTLEMENT_TOLERANCE_CENTS, bps_to_percent
from cashledger.time_utils import to_utc_z


class CreditAccount(db.Model):
    """
    Installment credit opened from a CREDIT sale.

    WHY: The financed part of a sale is collected over time. The account
    carries its flat-interest terms and the running paid amount; the
    payment rows are the source of truth for paid_amount_cents.

    LIFECYCLE:
    - PENDING: balance outstanding, not past due
    - OVERDUE: balance outstanding, due date passed (see refresh_overdue)
    - PAID: paid_amount >= total_amount - 1 cent (terminal)
    - CANCELLED: closed without collection (terminal)

    Mora (late fee) is never stored; it is recomputed from today's date.
    """
    __tablename__ = "credit_accounts"
    __table_args__ = (
        db.Index("ix_credit_accounts_status_due", "status", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    customer_id = db.Column(db.Integer, nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    due_date = db.Column(db.DateTime(timezone=True), nullable=False)

    # Terms (amounts in cents, rate in basis points per month)
    principal_cents = db.Column(db.Integer, nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False)  # principal + scheduled interest
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    rate_bps = db.Column(db.Integer, nullable=True)  # NULL = no interest scheme
    term_months = db.Column(db.Integer, nullable=True)
    monthly_payment_cents = db.Column(db.Integer, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)

    # Set by early liquidation
    liquidated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    liquidation_savings_cents = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    sale = db.relationship("Sale", backref=db.backref("credit_accounts", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def remaining_cents(self) -> int:
        return max(0, self.total_amount_cents - self.paid_amount_cents)

    @property
    def scheduled_interest_cents(self) -> int:
        return self.total_amount_cents - self.principal_cents

    def is_settled(self) -> bool:
        return self.paid_amount_cents >= self.total_amount_cents - SETTLEMENT_TOLERANCE_CENTS

    def to_dict(self, include_payments: bool = True) -> dict:
        data = {
            "id": self.id,
            "sale_id": self.sale_id,
            "customer_id": self.customer_id,
            "created_at": to_utc_z(self.created_at),
            "due_date": to_utc_z(self.due_date),
            "principal_cents": self.principal_cents,
            "total_amount_cents": self.total_amount_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "remaining_cents": self.remaining_cents,
            "rate_bps": self.rate_bps,
            "rate_percent": str(bps_to_percent(self.rate_bps)) if self.rate_bps is not None else None,
            "term_months": self.term_months,
            "monthly_payment_cents": self.monthly_payment_cents,
            "status": self.status,
            "liquidated_at": to_utc_z(self.liquidated_at) if self.liquidated_at else None,
            "liquidation_savings_cents": self.liquidation_savings_cents,
            "version_id": self.version_id,
        }
        if include_payments:
            data["payments"] = [p.to_dict() for p in self.payments]
        return data


class CreditPayment(db.Model):
    """
    Payment (abono) on a credit account.

    IMMUTABLE: rows are append-only. A liquidation is just a final payment
    flagged is_liquidation.
    """
    __tablename__ = "credit_payments"
    __table_args__ = (
        db.Index("ix_credit_payments_paid_at", "paid_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    credit_id = db.Column(db.Integer, db.ForeignKey("credit_accounts.id"), nullable=False, index=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    amount_cents = db.Column(db.Integer, nullable=False)
    method = db.Column(db.String(16), nullable=False)  # CASH, CARD, TRANSFER
    note = db.Column(db.String(255), nullable=True)
    is_liquidation = db.Column(db.Boolean, nullable=False, default=False)
    created_by_user_id = db.Column(db.Integer, nullable=True)

    credit = db.relationship(
        "CreditAccount",
        backref=db.backref("payments", lazy=True, order_by=lambda: [CreditPayment.paid_at, CreditPayment.id]),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "credit_id": self.credit_id,
            "paid_at": to_utc_z(self.paid_at),
            "amount_cents": self.amount_cents,
            "method": self.method,
            "note": self.note,
            "is_liquidation": self.is_liquidation,
            "created_by_user_id": self.created_by_user_id,
        }
