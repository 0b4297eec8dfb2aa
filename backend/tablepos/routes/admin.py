# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/tablepos/routes/admin.py
"""
Admin routes for user and role management.

Provides endpoints for:
- User management (list, create, delete, change password)
- Role management (list, create, update, delete)
- Permission management (list, grant to role, revoke from role)

Users require MANAGE_USERS; roles and permissions require MANAGE_ROLES.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import DomainError, ValidationError
from ..services import auth_service, session_service, permission_service
from ..decorators import require_auth, require_permission

admin_bp = Blueprint("admin", __name__, url_prefix="/api")


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    users = auth_service.list_users()
    return jsonify([u.to_dict() for u in users]), 200


@admin_bp.post("/users")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    """Create a user: {"username", "password", "role"}."""
    data = request.get_json(silent=True) or {}
    try:
        username = data.get("username")
        password = data.get("password")
        role_name = data.get("role")
        if not all([username, password, role_name]):
            raise ValidationError("username, password and role required")

        user = auth_service.create_user(username, password, role_name)
        return jsonify(user.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route(user_id: int):
    try:
        auth_service.delete_user(user_id, acting_user_id=g.current_user.id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.put("/users/<int:user_id>/password")
@require_auth
@require_permission("MANAGE_USERS")
def change_password_route(user_id: int):
    """Set a new password and log the user out everywhere."""
    data = request.get_json(silent=True) or {}
    try:
        password = data.get("password")
        if not password:
            raise ValidationError("password required")

        user = auth_service.change_password(user_id, password)
        session_service.revoke_all_user_sessions(user.id)
        return jsonify(user.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# ROLE MANAGEMENT
# =============================================================================

@admin_bp.get("/roles")
@require_auth
@require_permission("MANAGE_ROLES", "MANAGE_USERS")
def list_roles_route():
    result = []
    for role in permission_service.list_roles():
        data = role.to_dict()
        data["permissions"] = sorted(permission_service.get_role_permissions(role.id))
        result.append(data)
    return jsonify(result), 200


@admin_bp.post("/roles")
@require_auth
@require_permission("MANAGE_ROLES")
def create_role_route():
    data = request.get_json(silent=True) or {}
    try:
        role = permission_service.create_role(data.get("name"), data.get("description"))
        return jsonify(role.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create role")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.put("/roles/<int:role_id>")
@require_auth
@require_permission("MANAGE_ROLES")
def update_role_route(role_id: int):
    data = request.get_json(silent=True) or {}
    try:
        patch = {k: v for k, v in data.items() if k in {"name", "description"}}
        role = permission_service.update_role(role_id, patch)
        return jsonify(role.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update role")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/roles/<int:role_id>")
@require_auth
@require_permission("MANAGE_ROLES")
def delete_role_route(role_id: int):
    try:
        permission_service.delete_role(role_id)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete role")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PERMISSIONS
# =============================================================================

@admin_bp.get("/permissions")
@require_auth
@require_permission("MANAGE_ROLES")
def list_permissions_route():
    return jsonify([p.to_dict() for p in permission_service.list_permissions()]), 200


@admin_bp.get("/role-permissions")
@require_auth
@require_permission("MANAGE_ROLES")
def list_role_permissions_route():
    return jsonify([rp.to_dict() for rp in permission_service.list_role_permissions()]), 200


@admin_bp.post("/roles/<int:role_id>/permissions/<int:permission_id>")
@require_auth
@require_permission("MANAGE_ROLES")
def grant_role_permission_route(role_id: int, permission_id: int):
    try:
        link = permission_service.grant_permission_to_role(role_id, permission_id)
        return jsonify(link.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to grant permission")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/roles/<int:role_id>/permissions/<int:permission_id>")
@require_auth
@require_permission("MANAGE_ROLES")
def revoke_role_permission_route(role_id: int, permission_id: int):
    try:
        revoked = permission_service.revoke_permission_from_role(role_id, permission_id)
        if not revoked:
            return jsonify({"error": "Permission is not granted to this role"}), 404
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to revoke permission")
        return jsonify({"error": "Internal server error"}), 500
