# Overview: Pytest coverage for cash cut creation and reversal.

"""
Cash Cut Tests

Covers the count-versus-expected record, stale-window protection,
admin-only reversal of the latest cut, and that reversal restores the
open window exactly.
"""

from datetime import datetime, timedelta

import pytest
from cashledger.models import CashCut, LedgerEvent
from cashledger.services import cash_cut_service, cash_flow_service, ledger_service
from cashledger.services.authorization import Principal
from cashledger.services.cash_cut_service import Denominations
from cashledger.validation import AuthorizationError, NotFoundError, StateError, ValidationError


class TestDenominations:
    """Physical count parsing."""

    def test_total(self):
        counted = Denominations(bill_500=1, bill_100=2, bill_20=3, bill_1=4, coins_cents=75)
        assert counted.total_cents() == (500 + 200 + 60 + 4) * 100 + 75

    def test_rejects_negative(self):
        with pytest.raises(ValidationError):
            Denominations(bill_100=-1)

    def test_rejects_non_integer(self):
        with pytest.raises(ValidationError):
            Denominations(bill_50=1.5)

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            Denominations.from_dict({"bill_3": 1})


class TestCreateCut:
    """Recording a cut for the open window."""

    def test_records_expected_counted_and_difference(self, db_session, clock, make_sale, make_expense, cashier):
        make_sale(clock.now() - timedelta(hours=3), 30000, "CASH")
        make_sale(clock.now() - timedelta(hours=2), 20000, "CARD")
        make_expense(clock.now() - timedelta(hours=1), 5000)

        totals = cash_flow_service.reconcile()
        cut = cash_cut_service.create_cut(Denominations(bill_200=1, bill_20=1), totals, principal=cashier)

        assert cut.cash_expected_cents == 25000
        assert cut.cash_counted_cents == 22000
        assert cut.difference_cents == -3000
        assert cut.card_cents == 20000
        assert cut.total_sales_cents == 50000
        assert cut.cut_at == clock.now()
        assert cut.window_start is None
        assert cut.created_by_user_id == cashier.user_id
        assert cut.denominations["bill_200"] == 1

    def test_surplus_is_positive_difference(self, db_session, clock, make_sale):
        make_sale(clock.now() - timedelta(hours=1), 10000, "CASH")
        cut = cash_cut_service.create_cut(Denominations(bill_100=1, bill_5=1), cash_flow_service.reconcile())
        assert cut.difference_cents == 500

    def test_zero_count_with_expected_cash_rejected(self, db_session, clock, make_sale):
        make_sale(clock.now() - timedelta(hours=1), 10000, "CASH")
        with pytest.raises(ValidationError):
            cash_cut_service.create_cut(Denominations(), cash_flow_service.reconcile())
        assert db_session.query(CashCut).count() == 0

    def test_zero_count_allowed_when_nothing_expected(self, db_session, clock, make_sale):
        make_sale(clock.now() - timedelta(hours=1), 10000, "CARD")
        cut = cash_cut_service.create_cut(Denominations(), cash_flow_service.reconcile())
        assert cut.difference_cents == 0

    def test_stale_totals_rejected(self, db_session, clock, make_sale):
        make_sale(clock.now() - timedelta(hours=1), 10000, "CASH")
        stale = cash_flow_service.reconcile()
        cash_cut_service.create_cut(Denominations(bill_100=1), stale)

        clock.advance(minutes=5)
        with pytest.raises(StateError) as exc:
            cash_cut_service.create_cut(Denominations(bill_100=1), stale)
        assert exc.value.code == StateError.STALE_WINDOW
        assert db_session.query(CashCut).count() == 1

    def test_many_cuts_on_one_day(self, db_session, clock, make_sale):
        for _ in range(3):
            make_sale(clock.now(), 1000, "CASH")
            cash_cut_service.create_cut(Denominations(bill_10=1), cash_flow_service.reconcile())
            clock.advance(hours=1)

        assert len(cash_cut_service.cuts_on(clock.today())) == 3
        assert [c.cash_cents for c in cash_cut_service.list_cuts()] == [1000, 1000, 1000]

    def test_writes_audit_event(self, db_session, clock, make_sale, cashier):
        make_sale(clock.now() - timedelta(hours=1), 10000, "CASH")
        cut = cash_cut_service.create_cut(Denominations(bill_100=1), cash_flow_service.reconcile(), principal=cashier)

        events = ledger_service.list_events(entity_type="cash_cut", entity_id=cut.id)
        assert [e.event_type for e in events] == ["cash_cut.created"]
        assert events[0].actor_user_id == cashier.user_id


class TestOrderAcrossWindows:
    """Order deposit and balance land in the windows they were collected in."""

    def test_deposit_day_one_balance_day_five(self, db_session, clock, make_sale, settle_balance):
        day1 = datetime(2024, 5, 1)
        clock.set(day1.replace(hour=10))
        order = make_sale(clock.now(), 50000, "CASH", is_order=True, deposit_cents=10000)

        clock.set(day1.replace(hour=20))
        first = cash_cut_service.create_cut(Denominations(bill_100=1), cash_flow_service.reconcile())
        assert first.cash_cents == 10000
        assert first.card_cents == 0

        day5 = day1 + timedelta(days=4)
        settle_balance(order, day5.replace(hour=12), "CARD")

        clock.set(day5.replace(hour=20))
        second = cash_cut_service.create_cut(Denominations(), cash_flow_service.reconcile())
        assert second.card_cents == 40000
        assert second.cash_cents == 0
        assert second.order_payments_cents == 40000
        assert second.total_sales_cents == 0


class TestReverse:
    """Admin-only reversal of the latest cut."""

    def _cut(self, clock, make_sale, cents=10000):
        make_sale(clock.now() - timedelta(minutes=30), cents, "CASH")
        return cash_cut_service.create_cut(Denominations(coins_cents=cents), cash_flow_service.reconcile())

    def test_round_trip_restores_open_window(self, db_session, clock, make_sale, make_expense, admin):
        make_sale(clock.now() - timedelta(hours=2), 30000, "CASH")
        make_sale(clock.now() - timedelta(hours=1), 12000, "TRANSFER")
        make_expense(clock.now() - timedelta(minutes=10), 2500)

        before = cash_flow_service.reconcile()
        cut = cash_cut_service.create_cut(Denominations(bill_200=1, bill_50=1, coins_cents=2500), before)

        assert cash_flow_service.reconcile().cash_cents == 0

        cash_cut_service.reverse(cut.id, admin, reason="Miscounted")
        after = cash_flow_service.reconcile()

        assert after == before
        assert after.to_dict() == before.to_dict()

    def test_returns_snapshot_and_logs(self, db_session, clock, make_sale, admin):
        cut = self._cut(clock, make_sale)
        cut_id = cut.id

        snapshot = cash_cut_service.reverse(cut_id, admin, reason="Recount")

        assert snapshot["id"] == cut_id
        assert snapshot["cash_counted_cents"] == 10000
        assert db_session.query(CashCut).count() == 0
        event = db_session.query(LedgerEvent).filter_by(event_type="cash_cut.reversed").one()
        assert event.actor_user_id == admin.user_id
        assert event.payload["id"] == cut_id
        assert event.note == "Recount"

    def test_cashier_cannot_reverse(self, db_session, clock, make_sale, cashier):
        cut = self._cut(clock, make_sale)
        with pytest.raises(AuthorizationError):
            cash_cut_service.reverse(cut.id, cashier)
        assert db_session.query(CashCut).count() == 1

    def test_missing_principal_cannot_reverse(self, db_session, clock, make_sale):
        cut = self._cut(clock, make_sale)
        with pytest.raises(AuthorizationError):
            cash_cut_service.reverse(cut.id, None)

    def test_unverified_admin_cannot_reverse(self, db_session, clock, make_sale):
        cut = self._cut(clock, make_sale)
        with pytest.raises(AuthorizationError):
            cash_cut_service.reverse(cut.id, Principal(user_id=1, role="admin", verified=False))

    def test_only_latest_cut(self, db_session, clock, make_sale, admin):
        older = self._cut(clock, make_sale)
        clock.advance(hours=1)
        self._cut(clock, make_sale)

        with pytest.raises(StateError) as exc:
            cash_cut_service.reverse(older.id, admin)
        assert exc.value.code == StateError.NOT_LATEST_CUT

    def test_second_reversal_not_found(self, db_session, clock, make_sale, admin):
        cut = self._cut(clock, make_sale)
        cut_id = cut.id
        cash_cut_service.reverse(cut_id, admin)

        with pytest.raises(NotFoundError):
            cash_cut_service.reverse(cut_id, admin)

    def test_previous_cut_reversible_after_latest_removed(self, db_session, clock, make_sale, admin):
        older = self._cut(clock, make_sale)
        clock.advance(hours=1)
        newer = self._cut(clock, make_sale)

        cash_cut_service.reverse(newer.id, admin)
        cash_cut_service.reverse(older.id, admin)

        totals = cash_flow_service.reconcile()
        assert totals.window.start is None
        assert totals.cash_cents == 20000
