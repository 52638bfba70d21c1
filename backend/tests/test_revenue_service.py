# Overview: Pytest coverage for daily revenue, cost and profit attribution.

"""
Revenue Attribution Tests

Revenue is recognized on the day money is collected. Over a sale's whole
lifecycle the recognized revenue adds up to the sale total exactly, and
item cost follows in proportion.
"""

from datetime import date, datetime, timedelta

import pytest
from cashledger.services import credit_service, revenue_service
from cashledger.validation import ValidationError


DAY1 = date(2024, 5, 1)


class TestOrders:

    def test_deposit_and_balance_on_their_own_days(self, db_session, clock, make_sale, settle_balance):
        order = make_sale(clock.now(), 50000, "CASH", is_order=True, deposit_cents=10000,
                          cost_cents=30000, tax_cents=5000)
        settle_balance(order, clock.now() + timedelta(days=4), "CARD")

        first = revenue_service.daily_summary(DAY1)
        fifth = revenue_service.daily_summary(DAY1 + timedelta(days=4))

        assert first.deposits_cents == 10000
        assert first.cost_cents == 6000
        assert first.tax_cents == 1000
        assert first.profit_cents == 10000 - 1000 - 6000

        assert fifth.balance_payments_cents == 40000
        assert fifth.cost_cents == 24000
        assert fifth.tax_cents == 4000

        assert first.revenue_cents + fifth.revenue_cents == 50000

    def test_plain_sale_recognized_in_full(self, db_session, clock, make_sale):
        make_sale(clock.now(), 20000, "CARD", cost_cents=12000)
        figures = revenue_service.daily_summary(DAY1)
        assert figures.revenue_cents == 20000
        assert figures.profit_cents == 8000

    def test_voided_sale_ignored(self, db_session, clock, make_sale):
        make_sale(clock.now(), 20000, "CASH", cost_cents=12000, status="VOIDED")
        figures = revenue_service.daily_summary(DAY1)
        assert figures.revenue_cents == 0
        assert figures.cost_cents == 0

    def test_empty_day(self, db_session, clock):
        figures = revenue_service.daily_summary(DAY1 - timedelta(days=30))
        assert figures.to_dict()["revenue_cents"] == 0


class TestCreditSales:

    @pytest.fixture
    def financed(self, clock, make_sale):
        sale = make_sale(clock.now(), 120000, "CREDIT", deposit_cents=20000, cost_cents=60000)
        credit = credit_service.open_credit(sale.id, rate_bps=200, term_months=3)
        return sale, credit

    def test_full_lifecycle_recognizes_exactly_the_total(self, db_session, clock, financed):
        sale, credit = financed
        for amount in (35333, 35333, 35334):
            clock.advance(days=30)
            credit_service.add_payment(credit.id, amount, "CASH")

        series = revenue_service.trend(days=95)

        assert sum(d.revenue_cents for d in series) == 120000
        assert sum(d.interest_income_cents for d in series) == 6000
        assert sum(d.cost_cents for d in series) == 60000

    def test_tax_shares_add_up_to_the_sale_tax(self, db_session, clock, make_sale):
        sale = make_sale(clock.now(), 120000, "CREDIT", deposit_cents=20000, tax_cents=19200)
        credit = credit_service.open_credit(sale.id, rate_bps=200, term_months=3)
        for amount in (35333, 35333, 35334):
            clock.advance(days=30)
            credit_service.add_payment(credit.id, amount, "CASH")

        series = revenue_service.trend(days=95)
        taxes = [d.tax_cents for d in series if d.revenue_cents]

        assert taxes == [3200, 5333, 5334, 5333]
        assert sum(taxes) == 19200

    def test_payment_split_into_principal_and_interest(self, db_session, clock, financed):
        _, credit = financed
        clock.advance(days=30)
        credit_service.add_payment(credit.id, 35333, "CASH")

        day = revenue_service.daily_summary(clock.today())
        # 100000 * 35333 / 106000 = 33333.02
        assert day.credit_principal_cents == 33333
        assert day.interest_income_cents == 2000
        assert day.revenue_cents == 33333

    def test_liquidation_recognizes_remaining_principal(self, db_session, clock, financed):
        _, credit = financed
        credit_service.add_payment(credit.id, 35333, "CASH")
        clock.advance(days=45)
        credit_service.liquidate(credit.id)

        series = revenue_service.trend(days=46)
        assert sum(d.revenue_cents for d in series) == 120000
        assert sum(d.interest_income_cents for d in series) == 3000

    def test_liquidation_without_payment_recognized_on_liquidation_day(self, db_session, clock, financed):
        _, credit = financed
        credit_service.add_payment(credit.id, 103000, "CASH")
        clock.advance(days=30)
        # Accrued debt is 102000, already covered
        credit_service.liquidate(credit.id)
        assert len(credit_service.get_credit(credit.id).payments) == 1

        opening = revenue_service.daily_summary(DAY1)
        assert opening.credit_principal_cents == 97170
        assert opening.interest_income_cents == 5830

        closing = revenue_service.daily_summary(clock.today())
        assert closing.credit_principal_cents == 2830
        assert closing.interest_income_cents == -2830

        series = revenue_service.trend(days=31)
        assert sum(d.revenue_cents for d in series) == 120000
        assert sum(d.interest_income_cents for d in series) == 3000
        assert sum(d.cost_cents for d in series) == 60000

    def test_voided_credit_sale_ignored(self, db_session, clock, financed):
        sale, credit = financed
        credit_service.add_payment(credit.id, 35333, "CASH")
        sale.status = "VOIDED"
        db_session.commit()

        assert revenue_service.daily_summary(DAY1).revenue_cents == 0


class TestTrend:

    def test_returns_consecutive_days_oldest_first(self, db_session, clock):
        clock.set(datetime(2024, 5, 7, 12, 0))
        series = revenue_service.trend(days=7)
        assert [d.day for d in series] == [DAY1 + timedelta(days=i) for i in range(7)]

    def test_rejects_non_positive_days(self, db_session, clock):
        with pytest.raises(ValidationError):
            revenue_service.trend(days=0)
