from flask import Blueprint, jsonify, request

from ..clock import get_clock
from ..decorators import require_principal
from ..services import revenue_service
from ..time_utils import parse_iso_date
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

MAX_TREND_DAYS = 366


@reports_bp.get("/daily")
@require_principal
def daily_report():
    try:
        day = parse_iso_date(request.args.get("date")) or get_clock().today()
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    figures = revenue_service.daily_summary(day)
    return jsonify({"day": figures.to_dict()}), 200


@reports_bp.get("/trend")
@require_principal
def trend_report():
    days = request.args.get("days", default=7, type=int)
    if days > MAX_TREND_DAYS:
        return jsonify({"error": f"days cannot exceed {MAX_TREND_DAYS}"}), 400

    try:
        series = revenue_service.trend(days)
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify({
        "days": [figures.to_dict() for figures in series],
        "totals": {
            "revenue_cents": sum(f.revenue_cents for f in series),
            "cost_cents": sum(f.cost_cents for f in series),
            "profit_cents": sum(f.profit_cents for f in series),
            "interest_income_cents": sum(f.interest_income_cents for f in series),
        },
    }), 200
