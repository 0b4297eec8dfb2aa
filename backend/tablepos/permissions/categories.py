# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    DASHBOARD = "DASHBOARD"
    SALES = "SALES"
    ORDERS = "ORDERS"
    INVENTORY = "INVENTORY"
    REPORTS = "REPORTS"
    SESSIONS = "SESSIONS"
    USERS = "USERS"
