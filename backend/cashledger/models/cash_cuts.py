from __future__ import annotations

from ..extensions import db
from cashledger.time_utils import to_utc_z


class CashCut(db.Model):
    """
    Cash cut (corte de caja): one reconciliation of the drawer.

    WHY: The drawer is counted at arbitrary times, possibly several times a
    day. Each cut closes the window (window_start, cut_at]; the next window
    starts at this cut_at. Windows are never stored separately: they are
    derived from the ordered cut history.

    IMMUTABLE: never edited. The only mutation is an authorized reversal,
    which deletes the row and thereby re-opens its window.
    """
    __tablename__ = "cash_cuts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    # Window covered by this cut: (window_start, cut_at]; NULL start = epoch
    window_start = db.Column(db.DateTime(timezone=True), nullable=True)
    cut_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_expected_cents = db.Column(db.Integer, nullable=False)  # net of cash expenses/refunds
    cash_counted_cents = db.Column(db.Integer, nullable=False)
    difference_cents = db.Column(db.Integer, nullable=False)  # counted - expected

    # Per-method breakdown of the window
    cash_cents = db.Column(db.Integer, nullable=False, default=0)
    card_cents = db.Column(db.Integer, nullable=False, default=0)
    transfer_cents = db.Column(db.Integer, nullable=False, default=0)
    credit_cents = db.Column(db.Integer, nullable=False, default=0)
    credit_payments_cents = db.Column(db.Integer, nullable=False, default=0)
    order_payments_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_expenses_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_refunds_cents = db.Column(db.Integer, nullable=False, default=0)

    # {"bill_500": 2, ..., "coins_cents": 350}
    denominations = db.Column(db.JSON, nullable=False, default=dict)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "window_start": to_utc_z(self.window_start) if self.window_start else None,
            "cut_at": to_utc_z(self.cut_at),
            "total_sales_cents": self.total_sales_cents,
            "cash_expected_cents": self.cash_expected_cents,
            "cash_counted_cents": self.cash_counted_cents,
            "difference_cents": self.difference_cents,
            "breakdown": {
                "cash_cents": self.cash_cents,
                "card_cents": self.card_cents,
                "transfer_cents": self.transfer_cents,
                "credit_cents": self.credit_cents,
                "credit_payments_cents": self.credit_payments_cents,
                "order_payments_cents": self.order_payments_cents,
                "cash_expenses_cents": self.cash_expenses_cents,
                "cash_refunds_cents": self.cash_refunds_cents,
            },
            "denominations": self.denominations,
            "created_by_user_id": self.created_by_user_id,
            "notes": self.notes,
        }
