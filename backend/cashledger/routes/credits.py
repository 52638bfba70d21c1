# Overview: Flask API routes for credit accounts; parses input and returns JSON responses.

# backend/cashledger/routes/credits.py
"""
Credit API Routes

WHY: Credit sales are collected over months at the register. These routes
open accounts, take payments (abonos), quote and apply early liquidation,
and report receivables.

DESIGN:
- Mora and payoff are computed on read from the business clock
- Amounts are integer cents in and out
- A liquidation may carry the paid amount of the quote it was based on;
  a payment recorded since then rejects it with 409 STALE_PAYOFF
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..money import percent_to_bps
from ..services import credit_service
from ..services.mora_service import calculate_mora
from ..services.payoff_service import calculate_early_payoff
from ..decorators import require_principal
from ..validation import NotFoundError, StateError, ValidationError, require_cents


credits_bp = Blueprint("credits", __name__, url_prefix="/api/credits")


def _mora_rate_bps() -> int:
    rate = request.args.get("mora_rate_bps", type=int)
    if rate is None:
        rate = current_app.config.get("DEFAULT_MORA_RATE_BPS", 200)
    if rate < 0:
        raise ValidationError("mora_rate_bps cannot be negative")
    return rate


def _rate_bps_from(data: dict) -> int | None:
    if data.get("rate_bps") is not None:
        return require_cents(data["rate_bps"], "rate_bps")
    if data.get("rate_percent") is not None:
        try:
            return percent_to_bps(data["rate_percent"])
        except ArithmeticError:
            raise ValidationError("rate_percent must be a number")
    return None


def _credit_detail(credit) -> dict:
    mora = calculate_mora(credit, _mora_rate_bps())
    payoff = calculate_early_payoff(credit)
    return {
        "credit": credit.to_dict(),
        "mora": mora.to_dict(),
        "payoff": payoff.to_dict() if payoff else None,
    }


# =============================================================================
# READS
# =============================================================================

@credits_bp.get("/")
@credits_bp.get("")
@require_principal
def list_credits_route():
    """
    List credit accounts.

    Query params:
    - status: PENDING, OVERDUE, PAID or CANCELLED (optional)
    - customer_id: filter by customer (optional)
    """
    try:
        status = request.args.get("status")
        if status:
            status = status.upper()
        customer_id = request.args.get("customer_id", type=int)

        credits = credit_service.list_credits(status=status, customer_id=customer_id)
        return jsonify({"credits": [c.to_dict(include_payments=False) for c in credits]}), 200
    except Exception:
        current_app.logger.exception("Failed to list credits")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.get("/receivables")
@require_principal
def receivables_route():
    """Pending and overdue balances with accrued mora, per customer."""
    try:
        summary = credit_service.receivables_summary(_mora_rate_bps())
        return jsonify(summary), 200
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build receivables summary")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.get("/<int:credit_id>")
@require_principal
def get_credit_route(credit_id: int):
    """
    Credit account with payment history, today's mora and payoff quote.

    Query params:
    - mora_rate_bps: monthly late-fee rate (default from config)
    """
    try:
        credit = credit_service.get_credit(credit_id)
        return jsonify(_credit_detail(credit)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to load credit")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# WRITES
# =============================================================================

@credits_bp.post("/")
@credits_bp.post("")
@require_principal
def open_credit_route():
    """
    Open a credit account for a CREDIT sale.

    Request body:
    {
        "sale_id": 12,
        "rate_bps": 200,              (or "rate_percent": "2"; omit both for no interest)
        "term_months": 3,
        "down_payment_cents": 20000,  (optional, must equal the sale deposit)
        "customer_id": 4              (optional, defaults to the sale customer)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        sale_id = data.get("sale_id")
        term_months = data.get("term_months")
        if sale_id is None or term_months is None:
            return jsonify({"error": "sale_id and term_months required"}), 400

        down_payment = data.get("down_payment_cents")
        if down_payment is not None:
            down_payment = require_cents(down_payment, "down_payment_cents")

        credit = credit_service.open_credit(
            int(sale_id),
            rate_bps=_rate_bps_from(data),
            term_months=term_months,
            down_payment_cents=down_payment,
            customer_id=data.get("customer_id"),
            principal=g.principal,
        )

        current_app.logger.info(
            "Credit %s opened for sale %s by user %s: total=%s over %s months",
            credit.id, credit.sale_id, g.principal.user_id,
            credit.total_amount_cents, credit.term_months,
        )
        return jsonify({"credit": credit.to_dict()}), 201

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except StateError as e:
        db.session.rollback()
        return jsonify({"error": str(e), "code": e.code}), 409
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to open credit")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.post("/<int:credit_id>/payments")
@require_principal
def add_payment_route(credit_id: int):
    """
    Record a payment (abono).

    Request body:
    {
        "amount_cents": 35333,
        "method": "CASH",    (CASH, CARD or TRANSFER)
        "note": "March installment"  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        amount = require_cents(data.get("amount_cents"), "amount_cents", allow_zero=False)
        payment = credit_service.add_payment(
            credit_id,
            amount,
            data.get("method"),
            data.get("note"),
            principal=g.principal,
        )

        credit = credit_service.get_credit(credit_id)
        current_app.logger.info(
            "Payment %s of %s (%s) on credit %s by user %s; status %s",
            payment.id, payment.amount_cents, payment.method,
            credit_id, g.principal.user_id, credit.status,
        )
        return jsonify({"payment": payment.to_dict(), "credit": credit.to_dict()}), 201

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except StateError as e:
        db.session.rollback()
        return jsonify({"error": str(e), "code": e.code}), 409
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to record credit payment")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.post("/<int:credit_id>/liquidate")
@require_principal
def liquidate_route(credit_id: int):
    """
    Settle a credit early for today's payoff.

    Request body:
    {
        "method": "CASH",              (optional, default CASH)
        "paid_amount_cents": 35333     (optional, from the quote shown to the customer)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        credit = credit_service.get_credit(credit_id)
        payoff = calculate_early_payoff(credit)

        quoted_paid = data.get("paid_amount_cents")
        if payoff is not None and quoted_paid is not None:
            if require_cents(quoted_paid, "paid_amount_cents") != payoff.paid_amount_cents:
                raise StateError(StateError.STALE_PAYOFF, "Payoff quote is out of date; recalculate")

        credit = credit_service.liquidate(
            credit_id,
            payoff,
            method=data.get("method") or "CASH",
            principal=g.principal,
        )

        current_app.logger.info(
            "Credit %s liquidated by user %s; savings %s",
            credit_id, g.principal.user_id, credit.liquidation_savings_cents,
        )
        return jsonify({"credit": credit.to_dict(), "payoff": payoff.to_dict() if payoff else None}), 200

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except StateError as e:
        db.session.rollback()
        return jsonify({"error": str(e), "code": e.code}), 409
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to liquidate credit")
        return jsonify({"error": "Internal server error"}), 500
