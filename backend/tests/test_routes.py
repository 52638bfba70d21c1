# Overview: Pytest coverage for the HTTP adapter.

"""
API Route Tests

Exercise token resolution, status codes and JSON shapes of the cash cut,
credit and report endpoints.
"""

from datetime import timedelta

from cashledger.models import CashCut


ADMIN_TOKEN = "admin-token"
CASHIER_TOKEN = "cashier-token"


class TestAuthentication:

    def test_missing_token(self, client, db_session, clock):
        assert client.get("/api/cash-cuts/current").status_code == 401

    def test_unknown_token(self, client, db_session, clock):
        response = client.get("/api/cash-cuts/current", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_health_is_public(self, client, db_session, clock):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "healthy"
        assert body["business_date"] == "2024-05-01"


class TestCashCutRoutes:

    def test_preview_then_cut(self, client, db_session, clock, make_sale, auth_headers):
        make_sale(clock.now() - timedelta(hours=1), 15000, "CASH")

        preview = client.get("/api/cash-cuts/current", headers=auth_headers()).get_json()["totals"]
        assert preview["cash_cents"] == 15000
        assert preview["amounts"]["net_cash_expected"] == "150.00"

        response = client.post("/api/cash-cuts", headers=auth_headers(), json={
            "denominations": {"bill_100": 1, "bill_50": 1},
            "window_start": preview["window"]["start"],
            "notes": "Close",
        })
        assert response.status_code == 201
        cut = response.get_json()["cash_cut"]
        assert cut["difference_cents"] == 0
        assert cut["breakdown"]["cash_cents"] == 15000
        assert cut["created_by_user_id"] == 2

        listing = client.get("/api/cash-cuts", headers=auth_headers()).get_json()["cash_cuts"]
        assert [c["id"] for c in listing] == [cut["id"]]
        assert client.get(f"/api/cash-cuts/{cut['id']}", headers=auth_headers()).status_code == 200

    def test_stale_preview_conflicts(self, client, db_session, clock, make_sale, auth_headers):
        make_sale(clock.now() - timedelta(hours=1), 10000, "CASH")
        preview = client.get("/api/cash-cuts/current", headers=auth_headers()).get_json()["totals"]

        first = client.post("/api/cash-cuts", headers=auth_headers(), json={
            "denominations": {"bill_100": 1}, "window_start": preview["window"]["start"],
        })
        assert first.status_code == 201

        clock.advance(minutes=10)
        second = client.post("/api/cash-cuts", headers=auth_headers(), json={
            "denominations": {"bill_100": 1}, "window_start": preview["window"]["start"],
        })
        assert second.status_code == 409
        assert second.get_json()["code"] == "STALE_WINDOW"

    def test_bad_denominations(self, client, db_session, clock, auth_headers):
        response = client.post("/api/cash-cuts", headers=auth_headers(), json={"denominations": {"bill_100": -2}})
        assert response.status_code == 400
        assert client.post("/api/cash-cuts", headers=auth_headers(), json={}).status_code == 400

    def test_reverse_requires_admin(self, client, db_session, clock, make_sale, auth_headers):
        make_sale(clock.now() - timedelta(hours=1), 10000, "CASH")
        cut_id = client.post("/api/cash-cuts", headers=auth_headers(), json={
            "denominations": {"bill_100": 1},
        }).get_json()["cash_cut"]["id"]

        denied = client.delete(f"/api/cash-cuts/{cut_id}", headers=auth_headers(CASHIER_TOKEN))
        assert denied.status_code == 403

        allowed = client.delete(f"/api/cash-cuts/{cut_id}", headers=auth_headers(ADMIN_TOKEN),
                                json={"reason": "Recount"})
        assert allowed.status_code == 200
        assert allowed.get_json()["reversed"]["id"] == cut_id
        assert db_session.query(CashCut).count() == 0

        again = client.delete(f"/api/cash-cuts/{cut_id}", headers=auth_headers(ADMIN_TOKEN))
        assert again.status_code == 404

    def test_missing_cut(self, client, db_session, clock, auth_headers):
        assert client.get("/api/cash-cuts/9999", headers=auth_headers()).status_code == 404


class TestCreditRoutes:

    def _open(self, client, make_sale, clock, auth_headers):
        sale = make_sale(clock.now(), 120000, "CREDIT", deposit_cents=20000)
        response = client.post("/api/credits", headers=auth_headers(), json={
            "sale_id": sale.id, "rate_percent": "2", "term_months": 3,
        })
        assert response.status_code == 201
        return response.get_json()["credit"]

    def test_open_pay_and_read(self, client, db_session, clock, make_sale, auth_headers):
        credit = self._open(client, make_sale, clock, auth_headers)
        assert credit["rate_bps"] == 200
        assert credit["total_amount_cents"] == 106000

        paid = client.post(f"/api/credits/{credit['id']}/payments", headers=auth_headers(), json={
            "amount_cents": 35333, "method": "card",
        })
        assert paid.status_code == 201
        assert paid.get_json()["credit"]["paid_amount_cents"] == 35333

        detail = client.get(f"/api/credits/{credit['id']}", headers=auth_headers()).get_json()
        assert detail["mora"]["mora_cents"] == 0
        assert detail["payoff"]["remaining_to_pay_cents"] == 100000 - 35333
        assert len(detail["credit"]["payments"]) == 1

    def test_payment_errors(self, client, db_session, clock, make_sale, auth_headers):
        credit = self._open(client, make_sale, clock, auth_headers)
        url = f"/api/credits/{credit['id']}/payments"

        assert client.post(url, headers=auth_headers(), json={"amount_cents": 10.5, "method": "CASH"}).status_code == 400
        assert client.post(url, headers=auth_headers(), json={"amount_cents": 999999, "method": "CASH"}).status_code == 400
        assert client.post("/api/credits/9999/payments", headers=auth_headers(),
                           json={"amount_cents": 100, "method": "CASH"}).status_code == 404

        client.post(url, headers=auth_headers(), json={"amount_cents": 106000, "method": "CASH"})
        closed = client.post(url, headers=auth_headers(), json={"amount_cents": 100, "method": "CASH"})
        assert closed.status_code == 409
        assert closed.get_json()["code"] == "ALREADY_PAID"

    def test_liquidate_with_quote(self, client, db_session, clock, make_sale, auth_headers):
        credit = self._open(client, make_sale, clock, auth_headers)
        clock.advance(days=45)

        quote = client.get(f"/api/credits/{credit['id']}", headers=auth_headers()).get_json()["payoff"]
        response = client.post(f"/api/credits/{credit['id']}/liquidate", headers=auth_headers(), json={
            "paid_amount_cents": quote["paid_amount_cents"],
        })
        assert response.status_code == 200
        body = response.get_json()
        assert body["credit"]["status"] == "PAID"
        assert body["credit"]["liquidation_savings_cents"] == 3000

    def test_liquidate_stale_quote(self, client, db_session, clock, make_sale, auth_headers):
        credit = self._open(client, make_sale, clock, auth_headers)
        client.post(f"/api/credits/{credit['id']}/payments", headers=auth_headers(),
                    json={"amount_cents": 1000, "method": "CASH"})

        response = client.post(f"/api/credits/{credit['id']}/liquidate", headers=auth_headers(),
                               json={"paid_amount_cents": 0})
        assert response.status_code == 409
        assert response.get_json()["code"] == "STALE_PAYOFF"

    def test_receivables(self, client, db_session, clock, make_sale, auth_headers):
        self._open(client, make_sale, clock, auth_headers)
        clock.advance(days=95)

        summary = client.get("/api/credits/receivables", headers=auth_headers()).get_json()
        assert summary["overdue_count"] == 1
        assert summary["total_overdue_cents"] == 106000
        # 106000 * 2% / 30 * 5 days
        assert summary["total_mora_cents"] == 353

    def test_open_for_cash_sale_rejected(self, client, db_session, clock, make_sale, auth_headers):
        sale = make_sale(clock.now(), 10000, "CASH")
        response = client.post("/api/credits", headers=auth_headers(), json={
            "sale_id": sale.id, "rate_bps": 200, "term_months": 3,
        })
        assert response.status_code == 400

    def test_open_twice_conflicts(self, client, db_session, clock, make_sale, auth_headers):
        credit = self._open(client, make_sale, clock, auth_headers)
        response = client.post("/api/credits", headers=auth_headers(), json={
            "sale_id": credit["sale_id"], "rate_bps": 200, "term_months": 3,
        })
        assert response.status_code == 409
        assert response.get_json()["code"] == "CREDIT_EXISTS"

    def test_open_with_other_down_payment_rejected(self, client, db_session, clock, make_sale, auth_headers):
        sale = make_sale(clock.now(), 120000, "CREDIT", deposit_cents=20000)
        response = client.post("/api/credits", headers=auth_headers(), json={
            "sale_id": sale.id, "rate_bps": 200, "term_months": 3, "down_payment_cents": 0,
        })
        assert response.status_code == 400


class TestReportRoutes:

    def test_daily_and_trend(self, client, db_session, clock, make_sale, auth_headers):
        make_sale(clock.now(), 20000, "CASH", cost_cents=8000)

        daily = client.get("/api/reports/daily?date=2024-05-01", headers=auth_headers()).get_json()["day"]
        assert daily["revenue_cents"] == 20000
        assert daily["profit_cents"] == 12000

        trend = client.get("/api/reports/trend?days=3", headers=auth_headers()).get_json()
        assert len(trend["days"]) == 3
        assert trend["totals"]["revenue_cents"] == 20000

    def test_bad_inputs(self, client, db_session, clock, auth_headers):
        assert client.get("/api/reports/daily?date=May", headers=auth_headers()).status_code == 400
        assert client.get("/api/reports/trend?days=0", headers=auth_headers()).status_code == 400
        assert client.get("/api/reports/trend?days=5000", headers=auth_headers()).status_code == 400
