# Overview: Flask API routes for restaurant tables; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import DomainError
from ..models import RestaurantTable
from ..services import table_service, order_service
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth, require_permission

TABLE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "order_number"},
    required_on_create={"name"},
)

tables_bp = Blueprint("tables", __name__, url_prefix="/api/tables")


@tables_bp.get("")
@require_auth
@require_permission("MANAGE_TABLES", "MANAGE_ORDERS")
def list_tables_route():
    """Tables in floor-plan order, each with its occupying order (or null)."""
    tables = table_service.list_tables()
    result = []
    for table in tables:
        order = table_service.get_occupying_order(table.id)
        data = table.to_dict()
        data["active_order"] = order.to_dict() if order else None
        result.append(data)
    return jsonify(result), 200


@tables_bp.get("/<int:table_id>")
@require_auth
@require_permission("MANAGE_TABLES", "MANAGE_ORDERS")
def get_table_route(table_id: int):
    try:
        return jsonify(table_service.get_table(table_id).to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@tables_bp.get("/<int:table_id>/active-order")
@require_auth
@require_permission("MANAGE_TABLES", "MANAGE_ORDERS")
def active_order_route(table_id: int):
    """The table's active or completed order with its items, or null when free."""
    try:
        order = order_service.get_active_order_for_table(table_id)
        if not order:
            return jsonify(None), 200
        return jsonify({
            "order": order.to_dict(),
            "items": [item.to_dict() for item in order.items],
        }), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@tables_bp.post("")
@require_auth
@require_permission("MANAGE_TABLES")
def create_table_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=RestaurantTable, payload=payload, policy=TABLE_POLICY, partial=False)
        table = table_service.create_table(patch=patch)
        return jsonify(table.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create table")
        return jsonify({"error": "Internal server error"}), 500


@tables_bp.put("/<int:table_id>")
@require_auth
@require_permission("MANAGE_TABLES")
def update_table_route(table_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=RestaurantTable, payload=payload, policy=TABLE_POLICY, partial=True)
        table = table_service.update_table(table_id, patch)
        return jsonify(table.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update table")
        return jsonify({"error": "Internal server error"}), 500


@tables_bp.delete("/<int:table_id>")
@require_auth
@require_permission("MANAGE_TABLES")
def delete_table_route(table_id: int):
    """Refused while the table has an active or completed order."""
    try:
        table_service.delete_table(table_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete table")
        return jsonify({"error": "Internal server error"}), 500
