# Overview: Service-layer operations for permission; role/permission resolution and admin CRUD.

"""
Permission Checking

WHY: Enforce role-based access control. A user has exactly one role; the
role carries a set of permission codes.

DESIGN PRINCIPLES:
- Fail closed: deny by default, require an explicit grant
- One capability check: has_any(required, granted) on PermissionSet
- Denials are logged, grants are not
"""

from flask import current_app

from ..extensions import db
from ..models import User, Role, RolePermission, Permission
from ..permissions import (
    PERMISSION_DEFINITIONS,
    DEFAULT_ROLE_PERMISSIONS,
    PermissionSet,
    permission_set,
    has_any,
)
from ..errors import NotFoundError, ConflictError, ValidationError, PermissionDeniedError


def get_role_permissions(role_id: int) -> PermissionSet:
    rows = db.session.query(Permission.code).join(
        RolePermission, RolePermission.permission_id == Permission.id
    ).filter(RolePermission.role_id == role_id).all()
    return permission_set(code for (code,) in rows)


def get_user_permissions(user_id: int) -> PermissionSet:
    """
    Get all permission codes for a user.

    Returns a PermissionSet (e.g., frozenset({"MANAGE_SALES", "VIEW_KITCHEN"})).
    """
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        return permission_set(())
    return get_role_permissions(user.role_id)


def require_any(user_id: int, required: PermissionSet, resource: str | None = None) -> PermissionSet:
    """
    Require the user to hold at least one of `required`.

    Returns the user's granted set so callers can stash it on flask.g.
    """
    granted = get_user_permissions(user_id)
    if not has_any(required, granted):
        codes = ", ".join(sorted(required))
        current_app.logger.warning(
            "Permission denied for user %s on %s (needs any of %s)", user_id, resource, codes
        )
        raise PermissionDeniedError(f"Permission denied: {codes}")
    return granted


def initialize_permissions() -> int:
    """
    Initialize all permission definitions in database.

    Idempotent: Safe to run multiple times.
    """
    created_count = 0

    for code, name, description, category in PERMISSION_DEFINITIONS:
        existing = db.session.query(Permission).filter_by(code=code).first()
        if not existing:
            db.session.add(Permission(code=code, name=name, description=description, category=category))
            created_count += 1

    db.session.commit()
    return created_count


def assign_default_role_permissions() -> int:
    """
    Link roles to their default permissions based on DEFAULT_ROLE_PERMISSIONS.

    Idempotent: skips existing links, and roles/permissions that don't exist.
    """
    created_count = 0

    for role_name, permission_codes in DEFAULT_ROLE_PERMISSIONS.items():
        role = db.session.query(Role).filter_by(name=role_name).first()
        if not role:
            continue

        for permission_code in permission_codes:
            permission = db.session.query(Permission).filter_by(code=permission_code).first()
            if not permission:
                continue

            existing = db.session.query(RolePermission).filter_by(
                role_id=role.id,
                permission_id=permission.id
            ).first()

            if not existing:
                db.session.add(RolePermission(role_id=role.id, permission_id=permission.id))
                created_count += 1

    db.session.commit()
    return created_count


# =============================================================================
# ADMIN: ROLES AND ROLE PERMISSIONS
# =============================================================================

def list_permissions() -> list[Permission]:
    return db.session.query(Permission).order_by(Permission.category.asc(), Permission.code.asc()).all()


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.name.asc()).all()


def get_role(role_id: int) -> Role:
    role = db.session.query(Role).filter_by(id=role_id).first()
    if not role:
        raise NotFoundError("Role not found")
    return role


def create_role(name: str, description: str | None = None) -> Role:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if db.session.query(Role.id).filter_by(name=name).first():
        raise ConflictError(f"Role '{name}' already exists")

    role = Role(name=name, description=description)
    db.session.add(role)
    db.session.commit()
    return role


def update_role(role_id: int, patch: dict) -> Role:
    role = get_role(role_id)

    name = patch.get("name")
    if name and name != role.name:
        if db.session.query(Role.id).filter_by(name=name).first():
            raise ConflictError(f"Role '{name}' already exists")
        role.name = name
    if "description" in patch:
        role.description = patch["description"]

    db.session.commit()
    return role


def delete_role(role_id: int) -> None:
    role = get_role(role_id)
    if db.session.query(User.id).filter_by(role_id=role.id).first():
        raise ConflictError("Cannot delete a role that is assigned to users")
    db.session.delete(role)
    db.session.commit()


def list_role_permissions() -> list[RolePermission]:
    return db.session.query(RolePermission).order_by(
        RolePermission.role_id.asc(), RolePermission.permission_id.asc()
    ).all()


def _get_permission(permission_id: int) -> Permission:
    permission = db.session.query(Permission).filter_by(id=permission_id).first()
    if not permission:
        raise NotFoundError("Permission not found")
    return permission


def grant_permission_to_role(role_id: int, permission_id: int) -> RolePermission:
    """Grant a permission to a role. Granting twice returns the existing link."""
    role = get_role(role_id)
    permission = _get_permission(permission_id)

    existing = db.session.query(RolePermission).filter_by(
        role_id=role.id,
        permission_id=permission.id
    ).first()
    if existing:
        return existing

    role_permission = RolePermission(role_id=role.id, permission_id=permission.id)
    db.session.add(role_permission)
    db.session.commit()
    return role_permission


def revoke_permission_from_role(role_id: int, permission_id: int) -> bool:
    """Revoke a permission from a role. False if it wasn't granted."""
    role = get_role(role_id)
    permission = _get_permission(permission_id)

    role_permission = db.session.query(RolePermission).filter_by(
        role_id=role.id,
        permission_id=permission.id
    ).first()

    if role_permission:
        db.session.delete(role_permission)
        db.session.commit()
        return True

    return False
