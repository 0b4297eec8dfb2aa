# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/tablepos/routes/sales.py
"""Sales API routes with permission enforcement"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import DomainError
from ..services import sales_service, business_session_service
from ..validation import validate_line_requests, parse_range_args, optional_int_arg
from ..decorators import require_auth, require_permission


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SALES_READERS = ("MANAGE_SALES", "VIEW_REPORTS", "VIEW_DASHBOARD")


@sales_bp.get("")
@require_auth
@require_permission(*SALES_READERS)
def list_sales_route():
    """
    Sales of one business day, newest first.

    Query params:
    - sessionId: int (optional) - defaults to the active session
    - dateFrom / dateTo: ISO date or datetime (optional, inclusive)
    """
    try:
        session_id = optional_int_arg(request.args, "sessionId")
        date_from, date_to = parse_range_args(request.args)

        session = business_session_service.resolve_session(session_id)
        sales = sales_service.get_sales(session.id, date_from, date_to)
        return jsonify([s.to_dict() for s in sales]), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("")
@require_auth
@require_permission("MANAGE_SALES")
def create_sale_route():
    """
    Direct POS sale: {"items": [{"product_id": int, "quantity": int}, ...]}.

    Prices come from the catalog. Response: {sale, items, stock_warnings}.
    """
    try:
        line_requests = validate_line_requests(request.get_json(silent=True))
        result = sales_service.create_pos_sale(line_requests)
        return jsonify(result.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission(*SALES_READERS)
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
        return jsonify({
            "sale": sale.to_dict(),
            "items": [item.to_dict() for item in sale.items],
        }), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@sales_bp.get("/<int:sale_id>/items")
@require_auth
@require_permission(*SALES_READERS)
def get_sale_items_route(sale_id: int):
    try:
        items = sales_service.get_sale_items(sale_id)
        return jsonify([item.to_dict() for item in items]), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_permission("MANAGE_SALES")
def delete_sale_route(sale_id: int):
    """Delete a sale of today's active session. Deducted stock is not restored."""
    try:
        sales_service.delete_sale(sale_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500
