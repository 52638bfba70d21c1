# Overview: Derives the open reconciliation window from the cash-cut history.

"""
Period Boundary Resolver

WHY: The transaction log grows forever and the drawer can be counted at
any moment, several times a day. Windows are therefore derived, never
stored: the open window runs from the last cut to now, and every closed
window runs from the previous cut to its own cut.

INVARIANTS:
- Windows are half-open: (start, end]. An event stamped exactly at a cut
  belongs to that cut, never to the next one.
- Consecutive windows share a boundary, so there are no gaps and no
  overlaps by construction.
- Deleting (reversing) the latest cut makes the open window start at the
  cut before it, re-opening exactly the events that cut had covered.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..clock import Clock, get_clock
from ..models import CashCut
from ..time_utils import to_utc_z
from . import storage_service


@dataclass(frozen=True)
class Window:
    """(start, end]; start None means the epoch."""
    start: datetime | None
    end: datetime

    def contains(self, ts: datetime | None) -> bool:
        if ts is None:
            return False
        if self.start is not None and ts <= self.start:
            return False
        return ts <= self.end

    def to_dict(self) -> dict:
        return {
            "start": to_utc_z(self.start) if self.start else None,
            "end": to_utc_z(self.end),
        }


def resolve_window(clock: Clock | None = None) -> Window:
    """Open window: (cut_at of the most recent cut, now]."""
    now = get_clock(clock).now()
    latest = storage_service.latest_cash_cut()
    return Window(start=latest.cut_at if latest else None, end=now)


def list_windows() -> list[tuple[CashCut, Window]]:
    """
    Closed windows of the whole cut history, oldest first.

    Each cut covers (previous cut_at, its cut_at]; used by audits to
    check that the history partitions the log.
    """
    result = []
    previous: datetime | None = None
    for cut in storage_service.list_cash_cuts():
        result.append((cut, Window(start=previous, end=cut.cut_at)))
        previous = cut.cut_at
    return result
