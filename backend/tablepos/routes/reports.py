# Overview: Flask API routes for reports; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import DomainError
from ..services import reporting_service, business_session_service
from ..validation import optional_int_arg
from ..decorators import require_auth, require_permission

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales-statistics")
@require_auth
@require_permission("VIEW_REPORTS", "VIEW_DASHBOARD")
def sales_statistics_route():
    """
    All-time product statistics plus today's most popular product.

    Query params:
    - sessionId: int (optional, must exist; figures stay all-time)
    """
    try:
        session_id = optional_int_arg(request.args, "sessionId")
        return jsonify(reporting_service.get_sales_statistics(session_id)), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build sales statistics")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/session-summary")
@require_auth
@require_permission("VIEW_REPORTS", "VIEW_DASHBOARD")
def session_summary_route():
    """Sales count, sales/expense totals and net profit of one business day."""
    try:
        session_id = optional_int_arg(request.args, "sessionId")
        session = business_session_service.resolve_session(session_id)
        return jsonify(reporting_service.session_summary(session)), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build session summary")
        return jsonify({"error": "Internal server error"}), 500
