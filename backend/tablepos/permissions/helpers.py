# Overview: Utility functions for permission lookups and capability checks.

from typing import FrozenSet, Iterable

from .definitions import PERMISSION_DEFINITIONS


PermissionSet = FrozenSet[str]


def permission_set(codes: Iterable[str]) -> PermissionSet:
    return frozenset(codes)


def has_any(required: PermissionSet, granted: PermissionSet) -> bool:
    """True when at least one required permission is granted."""
    return not required.isdisjoint(granted)


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]
