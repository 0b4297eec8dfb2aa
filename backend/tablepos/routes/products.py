# Overview: Flask API routes for products and categories; parses input and returns JSON responses.

# backend/tablepos/routes/products.py
"""
Catalog routes: /api/products and /api/categories.

SECURITY: All routes require authentication.
- Reads are open to anyone who rings up sales or orders
- Writes require MANAGE_PRODUCTS
"""
from flask import Blueprint, request, jsonify, current_app

from ..errors import DomainError
from ..models import Product, Category
from ..services import catalog_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
)
from ..decorators import require_auth, require_permission

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price_cents", "category_id", "stock_item_id"},
    required_on_create={"name", "price_cents"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

CATALOG_READERS = ("MANAGE_PRODUCTS", "MANAGE_SALES", "MANAGE_ORDERS", "VIEW_DASHBOARD")

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


# =============================================================================
# PRODUCTS
# =============================================================================

@products_bp.get("")
@require_auth
@require_permission(*CATALOG_READERS)
def list_products_route():
    """
    List products.

    Query params:
    - categoryId: int (optional) - only products of that category
    """
    category_id = request.args.get("categoryId", type=int)
    products = catalog_service.list_products(category_id=category_id)
    return jsonify([p.to_dict() for p in products]), 200


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission(*CATALOG_READERS)
def get_product_route(product_id: int):
    try:
        return jsonify(catalog_service.get_product(product_id).to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = catalog_service.create_product(patch=patch)
        return jsonify(created.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    """Partial update; keys not sent stay unchanged, null clears optional links."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = catalog_service.update_product(product_id, patch)
        return jsonify(updated.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    try:
        catalog_service.delete_product(product_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CATEGORIES
# =============================================================================

@categories_bp.get("")
@require_auth
@require_permission(*CATALOG_READERS)
def list_categories_route():
    return jsonify([c.to_dict() for c in catalog_service.list_categories()]), 200


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        created = catalog_service.create_category(patch["name"])
        return jsonify(created.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        updated = catalog_service.update_category(category_id, patch)
        return jsonify(updated.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_category_route(category_id: int):
    try:
        catalog_service.delete_category(category_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Internal server error"}), 500
