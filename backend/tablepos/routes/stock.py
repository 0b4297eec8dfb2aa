# Overview: Flask API routes for stock operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import DomainError, ValidationError
from ..models import Stock
from ..services import stock_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_stock,
    coerce_int,
)
from ..decorators import require_auth, require_permission

STOCK_POLICY = ModelValidationPolicy(
    writable_fields={"name", "quantity", "price_cents", "category_id", "alert_threshold"},
    required_on_create={"name"},
)

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.get("")
@require_auth
@require_permission("MANAGE_STOCK", "VIEW_DASHBOARD")
def list_stock_route():
    return jsonify([s.to_dict() for s in stock_service.list_stock()]), 200


@stock_bp.get("/alerts")
@require_auth
@require_permission("MANAGE_STOCK", "VIEW_DASHBOARD")
def low_stock_route():
    """Rows at or below their alert threshold."""
    return jsonify([s.to_dict() for s in stock_service.list_low_stock()]), 200


@stock_bp.get("/<int:stock_id>")
@require_auth
@require_permission("MANAGE_STOCK", "VIEW_DASHBOARD")
def get_stock_route(stock_id: int):
    try:
        return jsonify(stock_service.get_stock(stock_id).to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@stock_bp.post("")
@require_auth
@require_permission("MANAGE_STOCK")
def create_stock_route():
    """
    Receive stock by name.

    An existing row with the same name gets `quantity` added to it and any
    given optional fields overwritten; otherwise a new row is created.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Stock, payload=payload, policy=STOCK_POLICY, partial=False)
        enforce_rules_stock(patch)

        name = patch.pop("name")
        quantity = patch.pop("quantity", None) or 0
        stock = stock_service.upsert_by_name(name, quantity, **patch)
        return jsonify(stock.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.put("/<int:stock_id>")
@require_auth
@require_permission("MANAGE_STOCK")
def update_stock_route(stock_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Stock, payload=payload, policy=STOCK_POLICY, partial=True)
        enforce_rules_stock(patch)
        stock = stock_service.update_stock(stock_id, patch)
        return jsonify(stock.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.post("/<int:stock_id>/adjust")
@require_auth
@require_permission("MANAGE_STOCK")
def adjust_stock_route(stock_id: int):
    """
    Add {"delta": int} to the quantity (negative to remove).

    Decrements stop at zero; the response carries a warning when they do.
    """
    payload = request.get_json(silent=True) or {}
    try:
        if "delta" not in payload:
            raise ValidationError("delta is required")
        delta = coerce_int(payload["delta"], "delta")

        movement = stock_service.adjust(stock_id, delta)
        return jsonify({
            "stock": movement.stock.to_dict(),
            "stock_warnings": [movement.to_warning()] if movement.insufficient else [],
        }), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.delete("/<int:stock_id>")
@require_auth
@require_permission("MANAGE_STOCK")
def delete_stock_route(stock_id: int):
    try:
        stock_service.delete_stock(stock_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete stock")
        return jsonify({"error": "Internal server error"}), 500
