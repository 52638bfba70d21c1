from __future__ import annotations

from ..extensions import db
from cashledger.time_utils import to_utc_z


class Sale(db.Model):
    """
    Sale document, owned by the sales subsystem (read-only here).

    WHY: The reconciliation core only reads sales. A sale produces up to
    two cash events: the origination (deposit, or full total) at
    created_at, and for orders the balance settlement at
    balance_payment_date, which may fall in a later window.

    PAYMENT METHODS:
    - CASH / CARD / TRANSFER: whole origination amount to that bucket
    - MIXED: split by the stored cash/card/transfer breakdown
    - CREDIT: down payment (deposit) per breakdown, financed part to credit
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    folio = db.Column(db.String(64), nullable=True, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    status = db.Column(db.String(16), nullable=False, default="ACTIVE", index=True)  # ACTIVE, VOIDED

    payment_method = db.Column(db.String(16), nullable=False)  # CASH, CARD, TRANSFER, MIXED, CREDIT

    total_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)

    # Orders: deposit collected at creation, balance settled later
    is_order = db.Column(db.Boolean, nullable=False, default=False)
    deposit_cents = db.Column(db.Integer, nullable=False)
    balance_cents = db.Column(db.Integer, nullable=False, default=0)
    balance_payment_date = db.Column(db.DateTime(timezone=True), nullable=True, index=True)
    balance_payment_method = db.Column(db.String(16), nullable=True)
    balance_paid_cents = db.Column(db.Integer, nullable=True)

    # Per-method breakdown of the origination amount (MIXED / CREDIT)
    cash_cents = db.Column(db.Integer, nullable=True)
    card_cents = db.Column(db.Integer, nullable=True)
    transfer_cents = db.Column(db.Integer, nullable=True)
    credit_cents = db.Column(db.Integer, nullable=True)

    customer_id = db.Column(db.Integer, nullable=True, index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"

    @property
    def items_cost_cents(self) -> int:
        return sum((item.cost_cents or 0) * item.quantity for item in self.items)

    def breakdown(self) -> dict[str, int] | None:
        """Stored per-method split, or None if the sale has none."""
        parts = {
            "CASH": self.cash_cents,
            "CARD": self.card_cents,
            "TRANSFER": self.transfer_cents,
            "CREDIT": self.credit_cents,
        }
        if all(v is None for v in parts.values()):
            return None
        return {k: v or 0 for k, v in parts.items()}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "folio": self.folio,
            "created_at": to_utc_z(self.created_at),
            "status": self.status,
            "payment_method": self.payment_method,
            "total_cents": self.total_cents,
            "tax_cents": self.tax_cents,
            "is_order": self.is_order,
            "deposit_cents": self.deposit_cents,
            "balance_cents": self.balance_cents,
            "balance_payment_date": to_utc_z(self.balance_payment_date) if self.balance_payment_date else None,
            "balance_payment_method": self.balance_payment_method,
            "balance_paid_cents": self.balance_paid_cents,
            "breakdown": self.breakdown(),
            "customer_id": self.customer_id,
            "items_cost_cents": self.items_cost_cents,
        }


class SaleItem(db.Model):
    """Line on a sale; cost snapshot is what profit reporting uses."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)

    description = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "description": self.description,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "cost_cents": self.cost_cents,
        }
