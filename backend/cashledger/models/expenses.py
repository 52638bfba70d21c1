from __future__ import annotations

from ..extensions import db
from cashledger.time_utils import to_utc_z


class Expense(db.Model):
    """Operating expense. Only cash expenses reduce the drawer's expected cash."""
    __tablename__ = "expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    method = db.Column(db.String(16), nullable=False, default="CASH")  # CASH, CARD, TRANSFER
    category = db.Column(db.String(64), nullable=True)
    description = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "occurred_at": to_utc_z(self.occurred_at),
            "amount_cents": self.amount_cents,
            "method": self.method,
            "category": self.category,
            "description": self.description,
        }


class Refund(db.Model):
    """Money returned to a customer; cash refunds leave the drawer."""
    __tablename__ = "refunds"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    method = db.Column(db.String(16), nullable=False, default="CASH")
    reason = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "amount_cents": self.amount_cents,
            "method": self.method,
            "reason": self.reason,
        }
