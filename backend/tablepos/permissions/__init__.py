# Overview: Permission system package.

from .categories import PermissionCategory
from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS, DEFAULT_ROLE_DESCRIPTIONS
from .helpers import (
    PermissionSet,
    permission_set,
    has_any,
    get_all_permission_codes,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "DEFAULT_ROLE_DESCRIPTIONS",
    "PermissionSet",
    "permission_set",
    "has_any",
    "get_all_permission_codes",
]
