# Overview: Default role -> permission mapping used by bootstrap.

from .helpers import get_all_permission_codes

_ALL_CODES = get_all_permission_codes()

DEFAULT_ROLE_PERMISSIONS = {
    "admin": list(_ALL_CODES),
    "manager": [code for code in _ALL_CODES if code not in {"MANAGE_USERS", "MANAGE_ROLES"}],
    "cashier": [
        "VIEW_DASHBOARD",
        "MANAGE_SALES",
        "MANAGE_EXPENSES",
        "MANAGE_ORDERS",
        "MANAGE_TABLES",
        "VIEW_KITCHEN",
    ],
    "kitchen": [
        "VIEW_KITCHEN",
    ],
}

DEFAULT_ROLE_DESCRIPTIONS = {
    "admin": "Full access, including staff accounts and roles",
    "manager": "Runs the day: catalog, stock, reports and business days",
    "cashier": "Front of house: tables, orders, sales and expenses",
    "kitchen": "Kitchen display only",
}
