# Overview: Service-layer operations for cash cuts; creates and reverses drawer reconciliations.

"""
Cash Cut Ledger

WHY: A cash cut freezes one window of drawer activity: what the system
expected, what was physically counted, and the difference. The cut
history is what defines the windows (see period_service), so creating a
cut closes the open window and reversing the latest cut re-opens it.

DESIGN PRINCIPLES:
- Cuts are never edited. The only mutation is reversal (delete), which
  requires a verified admin principal supplied by the caller.
- Only the latest cut can be reversed; reversing an older one would
  leave its events in no window.
- Any number of cuts per calendar day; no special-casing.
- One record plus its audit event per commit; never retried.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date

from ..clock import Clock, get_clock
from ..models import CashCut
from ..time_utils import local_date
from ..validation import ValidationError, NotFoundError, StateError
from .authorization import Principal, actor_id, require_admin
from .cash_flow_service import Totals
from .concurrency import commit_or_rollback
from .ledger_service import append_ledger_event
from . import storage_service


# Banknote face values (whole currency units); coins are counted as a cent total
BILL_VALUES = (500, 200, 100, 50, 20, 10, 5, 2, 1)


@dataclass(frozen=True)
class Denominations:
    """Physical count of the drawer: number of notes per face value plus loose coins."""
    bill_500: int = 0
    bill_200: int = 0
    bill_100: int = 0
    bill_50: int = 0
    bill_20: int = 0
    bill_10: int = 0
    bill_5: int = 0
    bill_2: int = 0
    bill_1: int = 0
    coins_cents: int = 0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{f.name} must be an integer")
            if value < 0:
                raise ValidationError(f"{f.name} cannot be negative")

    @classmethod
    def from_dict(cls, data: dict | None) -> "Denominations":
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValidationError(f"Unknown denominations: {', '.join(sorted(unknown))}")
        return cls(**data)

    def total_cents(self) -> int:
        notes = sum(getattr(self, f"bill_{value}") * value * 100 for value in BILL_VALUES)
        return notes + self.coins_cents

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# =============================================================================
# CREATE
# =============================================================================

def create_cut(
    counted: Denominations,
    totals: Totals,
    *,
    principal: Principal | None = None,
    notes: str | None = None,
) -> CashCut:
    """
    Record a cash cut for the window `totals` was computed over.

    Args:
        counted: Physical drawer count
        totals: Result of cash_flow_service.reconcile() for the open window
        principal: Who performed the count (optional, for audit)
        notes: Free-form closing notes

    Raises:
        ValidationError: Nothing counted although cash was expected
        StateError(STALE_WINDOW): Another cut closed this window meanwhile
    """
    cash_counted = counted.total_cents()
    expected = totals.net_cash_expected_cents

    if cash_counted == 0 and expected > 0:
        raise ValidationError("Cash counted is zero but cash is expected in the drawer")

    window = totals.window
    latest = storage_service.latest_cash_cut()
    latest_at = latest.cut_at if latest else None
    if latest_at != window.start:
        raise StateError(StateError.STALE_WINDOW, "Window changed since totals were computed; recalculate")
    if window.start is not None and window.end <= window.start:
        raise StateError(StateError.STALE_WINDOW, "Cut time must be after the previous cut")

    cut = CashCut(
        window_start=window.start,
        cut_at=window.end,
        total_sales_cents=totals.total_cents,
        cash_expected_cents=expected,
        cash_counted_cents=cash_counted,
        difference_cents=cash_counted - expected,
        cash_cents=totals.cash_cents,
        card_cents=totals.card_cents,
        transfer_cents=totals.transfer_cents,
        credit_cents=totals.credit_cents,
        credit_payments_cents=totals.credit_payments_cents,
        order_payments_cents=totals.order_payments_cents,
        cash_expenses_cents=totals.cash_expenses_cents,
        cash_refunds_cents=totals.cash_refunds_cents,
        denominations=counted.to_dict(),
        created_by_user_id=actor_id(principal),
        notes=notes,
    )
    storage_service.persist_cash_cut(cut)

    append_ledger_event(
        event_type="cash_cut.created",
        event_category="cash_cut",
        entity_type="cash_cut",
        entity_id=cut.id,
        actor_user_id=actor_id(principal),
        amount_cents=cash_counted,
        occurred_at=cut.cut_at,
        note=f"Difference: {cut.difference_cents / 100:.2f}",
        payload={"expected_cents": expected, "sale_ids": list(totals.sale_ids)},
    )

    commit_or_rollback()
    return cut


# =============================================================================
# REVERSAL
# =============================================================================

def reverse(
    cut_id: int,
    principal: Principal | None,
    *,
    reason: str | None = None,
    clock: Clock | None = None,
) -> dict:
    """
    Reverse (delete) the most recent cut.

    WHY: A miscounted drawer is recounted by reversing the cut; its window
    re-opens automatically because windows are derived from the history.

    Returns:
        Snapshot of the deleted cut

    Raises:
        AuthorizationError: principal missing, unverified or not admin
        NotFoundError: no such cut (including a concurrent second reversal)
        StateError(NOT_LATEST_CUT): a later cut exists
    """
    require_admin(principal, "Cash cut reversal")

    cut = storage_service.get_cash_cut(cut_id, lock=True)
    if not cut:
        raise NotFoundError(f"Cash cut {cut_id} not found")

    latest = storage_service.latest_cash_cut()
    if latest is not None and latest.id != cut.id:
        raise StateError(StateError.NOT_LATEST_CUT, "Only the most recent cash cut can be reversed")

    snapshot = cut.to_dict()
    storage_service.delete_cash_cut(cut)

    append_ledger_event(
        event_type="cash_cut.reversed",
        event_category="cash_cut",
        entity_type="cash_cut",
        entity_id=cut_id,
        actor_user_id=principal.user_id,
        amount_cents=snapshot["cash_counted_cents"],
        occurred_at=get_clock(clock).now(),
        note=reason or "Cash cut reversed",
        payload=snapshot,
    )

    commit_or_rollback()
    return snapshot


# =============================================================================
# READS
# =============================================================================

def get_cut(cut_id: int) -> CashCut:
    cut = storage_service.get_cash_cut(cut_id)
    if not cut:
        raise NotFoundError(f"Cash cut {cut_id} not found")
    return cut


def list_cuts() -> list[CashCut]:
    """Cut history, newest first."""
    return storage_service.list_cash_cuts(newest_first=True)


def cuts_on(day: date, clock: Clock | None = None) -> list[CashCut]:
    """Cuts whose cut_at falls on `day` in the business timezone."""
    tz_name = get_clock(clock).tz_name
    return [c for c in storage_service.list_cash_cuts() if local_date(c.cut_at, tz_name) == day]
