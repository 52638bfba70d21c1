# Overview: Flask API routes for cash cuts; parses input and returns JSON responses.

# backend/cashledger/routes/cash_cuts.py
"""
Cash Cut API Routes

WHY: The register closes a drawer by previewing the open window, counting
the cash and posting the count. Reversal is how a miscounted cut is redone.

DESIGN:
- GET /current is a read-only preview of the open window
- POST recomputes the totals itself; the client only sends the count
- DELETE is admin only and only for the most recent cut

SECURITY:
- Every route requires a bearer token mapped to a principal
- Reversal authorization is checked by cash_cut_service, not here
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..services import cash_cut_service, cash_flow_service
from ..services.cash_cut_service import Denominations
from ..decorators import require_principal
from ..time_utils import parse_iso_date, parse_iso_datetime, to_utc_z
from ..validation import AuthorizationError, NotFoundError, StateError


cash_cuts_bp = Blueprint("cash_cuts", __name__, url_prefix="/api/cash-cuts")


@cash_cuts_bp.get("/current")
@require_principal
def current_window_route():
    """
    Preview the open window: per-method totals and expected drawer cash.
    """
    try:
        totals = cash_flow_service.reconcile()
        return jsonify({"totals": totals.to_dict()}), 200
    except Exception:
        current_app.logger.exception("Failed to compute open window totals")
        return jsonify({"error": "Internal server error"}), 500


@cash_cuts_bp.post("/")
@cash_cuts_bp.post("")
@require_principal
def create_cut_route():
    """
    Close the open window with a physical count.

    Request body:
    {
        "denominations": {"bill_100": 3, "bill_20": 1, "coins_cents": 250},
        "window_start": "2024-05-01T18:00:00Z",   (optional, from the preview)
        "notes": "Evening close"                   (optional)
    }

    A window_start that no longer matches the open window means another
    cut happened after the preview; the request is rejected with 409.
    """
    try:
        data = request.get_json(silent=True) or {}

        if not isinstance(data.get("denominations"), dict):
            return jsonify({"error": "denominations object required"}), 400
        counted = Denominations.from_dict(data["denominations"])

        totals = cash_flow_service.reconcile()

        if "window_start" in data:
            # Serialized starts are second-precision
            expected_start = parse_iso_datetime(data.get("window_start") or None)
            if to_utc_z(expected_start) != to_utc_z(totals.window.start):
                raise StateError(StateError.STALE_WINDOW, "Window changed since preview; recalculate")

        cut = cash_cut_service.create_cut(
            counted,
            totals,
            principal=g.principal,
            notes=data.get("notes"),
        )

        current_app.logger.info(
            "Cash cut %s created by user %s: expected=%s counted=%s difference=%s",
            cut.id, g.principal.user_id, cut.cash_expected_cents,
            cut.cash_counted_cents, cut.difference_cents,
        )
        return jsonify({"cash_cut": cut.to_dict()}), 201

    except StateError as e:
        db.session.rollback()
        return jsonify({"error": str(e), "code": e.code}), 409
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create cash cut")
        return jsonify({"error": "Internal server error"}), 500


@cash_cuts_bp.get("/")
@cash_cuts_bp.get("")
@require_principal
def list_cuts_route():
    """
    List cash cuts, newest first.

    Query params:
    - date: YYYY-MM-DD, only cuts on that business day (optional)
    """
    try:
        day = request.args.get("date")
        if day:
            cuts = list(reversed(cash_cut_service.cuts_on(parse_iso_date(day))))
        else:
            cuts = cash_cut_service.list_cuts()
        return jsonify({"cash_cuts": [c.to_dict() for c in cuts]}), 200
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list cash cuts")
        return jsonify({"error": "Internal server error"}), 500


@cash_cuts_bp.get("/<int:cut_id>")
@require_principal
def get_cut_route(cut_id: int):
    try:
        cut = cash_cut_service.get_cut(cut_id)
        return jsonify({"cash_cut": cut.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@cash_cuts_bp.delete("/<int:cut_id>")
@require_principal
def reverse_cut_route(cut_id: int):
    """
    Reverse the most recent cash cut.

    Requires: admin principal

    Request body (optional):
    {
        "reason": "Recount after miscounted bills"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        snapshot = cash_cut_service.reverse(cut_id, g.principal, reason=data.get("reason"))

        current_app.logger.info(
            "Cash cut %s reversed by user %s (window end %s)",
            cut_id, g.principal.user_id, snapshot.get("cut_at"),
        )
        return jsonify({"reversed": snapshot}), 200

    except AuthorizationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except StateError as e:
        db.session.rollback()
        return jsonify({"error": str(e), "code": e.code}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to reverse cash cut")
        return jsonify({"error": "Internal server error"}), 500
