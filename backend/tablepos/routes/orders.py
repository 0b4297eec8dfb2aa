# Overview: Flask API routes for table orders, order items and the kitchen display.

# backend/tablepos/routes/orders.py
"""
Table order routes.

- /api/orders: order lifecycle (create, complete, cancel, close bill)
- /api/order-items: edit or remove a single line
- /api/kitchen/active-orders: orders still being prepared (polled)
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import DomainError, ValidationError
from ..models import OrderItem
from ..services import order_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_order_item,
    validate_quantity,
    coerce_int,
    optional_int_arg,
)
from ..decorators import require_auth, require_permission

ORDER_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"quantity", "unit_price_cents"},
    required_on_create=set(),
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")
order_items_bp = Blueprint("order_items", __name__, url_prefix="/api/order-items")
kitchen_bp = Blueprint("kitchen", __name__, url_prefix="/api/kitchen")


def _order_detail(order) -> dict:
    return {
        "order": order.to_dict(),
        "table": order.table.to_dict() if order.table else None,
        "items": [item.to_dict() for item in order.items],
    }


@orders_bp.get("")
@require_auth
@require_permission("MANAGE_ORDERS", "VIEW_KITCHEN")
def list_orders_route():
    """
    Query params:
    - tableId: int (optional)
    - status: active | completed (optional)
    """
    try:
        table_id = optional_int_arg(request.args, "tableId")
        status = request.args.get("status") or None
        orders = order_service.list_orders(table_id=table_id, status=status)
        return jsonify([o.to_dict() for o in orders]), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("MANAGE_ORDERS", "VIEW_KITCHEN")
def get_order_route(order_id: int):
    try:
        return jsonify(_order_detail(order_service.get_order(order_id))), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@orders_bp.post("")
@require_auth
@require_permission("MANAGE_ORDERS")
def create_order_route():
    """Open an order: {"table_id": int}. 400 if the table is already occupied."""
    payload = request.get_json(silent=True) or {}
    try:
        if payload.get("table_id") is None:
            raise ValidationError("table_id is required")
        table_id = coerce_int(payload["table_id"], "table_id")

        order = order_service.create_order(table_id)
        return jsonify(order.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>")
@require_auth
@require_permission("MANAGE_ORDERS")
def update_order_route(order_id: int):
    """Only {"status": "completed"} is accepted."""
    payload = request.get_json(silent=True) or {}
    try:
        unknown = set(payload) - {"status"}
        if unknown:
            raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")
        order = order_service.update_order(order_id, payload)
        return jsonify(order.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("MANAGE_ORDERS")
def cancel_order_route(order_id: int):
    """Cancel: the order and its items are deleted, nothing is sold."""
    try:
        order_service.cancel_order(order_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>/items")
@require_auth
@require_permission("MANAGE_ORDERS", "VIEW_KITCHEN")
def list_order_items_route(order_id: int):
    try:
        items = order_service.list_items(order_id)
        return jsonify([item.to_dict() for item in items]), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@orders_bp.post("/<int:order_id>/items")
@require_auth
@require_permission("MANAGE_ORDERS")
def add_order_item_route(order_id: int):
    """
    Add a line: {"product_id": int, "quantity": int}.

    The unit price is the product's current catalog price; any price in the
    body is ignored.
    """
    payload = request.get_json(silent=True) or {}
    try:
        if payload.get("product_id") is None:
            raise ValidationError("product_id is required")
        product_id = coerce_int(payload["product_id"], "product_id")
        quantity = validate_quantity(payload.get("quantity"))

        item = order_service.add_item(order_id, product_id, quantity)
        order = order_service.get_order(order_id)
        return jsonify({"item": item.to_dict(), "order": order.to_dict()}), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add order item")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/complete")
@require_auth
@require_permission("MANAGE_ORDERS")
def complete_order_route(order_id: int):
    try:
        order = order_service.complete_order(order_id)
        return jsonify(order.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to complete order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/close-bill")
@require_auth
@require_permission("MANAGE_ORDERS")
def close_bill_route(order_id: int):
    """
    Settle a completed order into a sale of today's session.

    Response: {sale, items, stock_warnings}.
    """
    try:
        result = order_service.close_bill(order_id)
        return jsonify(result.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to close bill")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# ORDER ITEMS
# =============================================================================

@order_items_bp.put("/<int:item_id>")
@require_auth
@require_permission("MANAGE_ORDERS")
def update_order_item_route(item_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=OrderItem, payload=payload, policy=ORDER_ITEM_POLICY, partial=True)
        enforce_rules_order_item(patch)

        item = order_service.update_item(item_id, patch)
        order = order_service.get_order(item.order_id)
        return jsonify({"item": item.to_dict(), "order": order.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order item")
        return jsonify({"error": "Internal server error"}), 500


@order_items_bp.delete("/<int:item_id>")
@require_auth
@require_permission("MANAGE_ORDERS")
def delete_order_item_route(item_id: int):
    try:
        order = order_service.remove_item(item_id)
        return jsonify({"ok": True, "order": order.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete order item")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# KITCHEN
# =============================================================================

@kitchen_bp.get("/active-orders")
@require_auth
@require_permission("VIEW_KITCHEN", "MANAGE_ORDERS")
def kitchen_active_orders_route():
    """Every active order with its table and items, oldest first."""
    return jsonify(order_service.kitchen_view()), 200
