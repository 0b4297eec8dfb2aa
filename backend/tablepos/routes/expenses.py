# Overview: Flask API routes for expenses; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import DomainError
from ..models import Expense
from ..services import expense_service, business_session_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_expense,
    parse_range_args,
    optional_int_arg,
)
from ..decorators import require_auth, require_permission

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"category", "amount_cents", "note"},
    required_on_create={"category", "amount_cents"},
)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_auth
@require_permission("MANAGE_EXPENSES", "VIEW_REPORTS", "VIEW_DASHBOARD")
def list_expenses_route():
    """Same query params as GET /api/sales (sessionId, dateFrom, dateTo)."""
    try:
        session_id = optional_int_arg(request.args, "sessionId")
        date_from, date_to = parse_range_args(request.args)

        session = business_session_service.resolve_session(session_id)
        expenses = expense_service.get_expenses(session.id, date_from, date_to)
        return jsonify([e.to_dict() for e in expenses]), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list expenses")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.post("")
@require_auth
@require_permission("MANAGE_EXPENSES")
def create_expense_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
        expense = expense_service.create_expense(patch=patch)
        return jsonify(expense.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.delete("/<int:expense_id>")
@require_auth
@require_permission("MANAGE_EXPENSES")
def delete_expense_route(expense_id: int):
    try:
        expense_service.delete_expense(expense_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"error": "Internal server error"}), 500
