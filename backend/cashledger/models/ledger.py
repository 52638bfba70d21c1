from __future__ import annotations

from ..extensions import db
from cashledger.time_utils import to_utc_z


class LedgerEvent(db.Model):
    """
    Append-only audit log of money-moving operations.

    WHY: Cut reversals delete the cut row, and liquidations close a credit
    for less than its scheduled total. Both must stay auditable, so every
    such operation leaves an event written in the same transaction.

    occurred_at is business time (the injected clock); created_at is
    system time (DB default).
    """
    __tablename__ = "ledger_events"
    __table_args__ = (
        db.Index("ix_ledger_events_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(64), nullable=False, index=True)  # e.g. "cash_cut.created"
    event_category = db.Column(db.String(32), nullable=False, index=True)  # cash_cut, credit

    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)

    actor_user_id = db.Column(db.Integer, nullable=True)
    amount_cents = db.Column(db.Integer, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    note = db.Column(db.String(255), nullable=True)
    payload = db.Column(db.JSON, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "event_category": self.event_category,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_user_id": self.actor_user_id,
            "amount_cents": self.amount_cents,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
            "note": self.note,
            "payload": self.payload,
        }
