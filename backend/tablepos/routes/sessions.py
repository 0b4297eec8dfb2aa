# Overview: Flask API routes for business days; parses input and returns JSON responses.

"""
Business day (session) routes.

Switching the active day is how managers review past days; sales and
expenses of a past day stay read-only (enforced in the services).
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import DomainError
from ..models import BusinessSession
from ..services import business_session_service
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_auth, require_permission

SESSION_POLICY = ModelValidationPolicy(
    writable_fields={"date", "name", "is_active"},
    required_on_create={"date"},
)

sessions_bp = Blueprint("sessions", __name__, url_prefix="/api/sessions")


@sessions_bp.get("")
@require_auth
@require_permission("VIEW_DASHBOARD", "MANAGE_SESSIONS")
def list_sessions_route():
    sessions = business_session_service.list_sessions()
    return jsonify([s.to_dict() for s in sessions]), 200


@sessions_bp.get("/active")
@require_auth
@require_permission("VIEW_DASHBOARD", "MANAGE_SESSIONS", "MANAGE_SALES")
def active_session_route():
    """The active session, or null when no day is open."""
    session = business_session_service.get_active_session()
    return jsonify(session.to_dict() if session else None), 200


@sessions_bp.post("")
@require_auth
@require_permission("MANAGE_SESSIONS")
def create_session_route():
    """
    Create a session: {"date": "YYYY-MM-DD", "name"?: str, "is_active"?: bool}.

    With is_active=true every other session is deactivated first.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=BusinessSession, payload=payload, policy=SESSION_POLICY, partial=False)
        session = business_session_service.create_session(
            day=patch["date"],
            name=patch.get("name"),
            is_active=bool(patch.get("is_active")),
        )
        return jsonify(session.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create session")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.post("/<int:session_id>/activate")
@require_auth
@require_permission("MANAGE_SESSIONS")
def activate_session_route(session_id: int):
    try:
        session = business_session_service.activate_session(session_id)
        return jsonify(session.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to activate session")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.post("/start-day")
@require_auth
@require_permission("MANAGE_SESSIONS")
def start_day_route():
    try:
        session = business_session_service.start_day()
        return jsonify(session.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to start business day")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.post("/end-day")
@require_auth
@require_permission("MANAGE_SESSIONS")
def end_day_route():
    try:
        session = business_session_service.end_day()
        return jsonify(session.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to end business day")
        return jsonify({"error": "Internal server error"}), 500


@sessions_bp.delete("/<int:session_id>")
@require_auth
@require_permission("MANAGE_SESSIONS")
def delete_session_route(session_id: int):
    """Delete a non-active session with all its sales and expenses."""
    try:
        business_session_service.delete_session(session_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete session")
        return jsonify({"error": "Internal server error"}), 500
