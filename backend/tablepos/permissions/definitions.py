# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- DASHBOARD --

DASHBOARD_PERMISSIONS = [
    (
        "VIEW_DASHBOARD",
        "View Dashboard",
        "View the day summary (sales, expenses, net profit)",
        PermissionCategory.DASHBOARD,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        "MANAGE_SALES",
        "Manage Sales",
        "Ring up direct POS sales, list and delete today's sales",
        PermissionCategory.SALES,
    ),
    (
        "MANAGE_EXPENSES",
        "Manage Expenses",
        "Record, list and delete today's expenses",
        PermissionCategory.SALES,
    ),
]


# -- ORDERS --

ORDER_PERMISSIONS = [
    (
        "MANAGE_ORDERS",
        "Manage Orders",
        "Open table orders, add/remove items, complete, cancel and close bills",
        PermissionCategory.ORDERS,
    ),
    (
        "MANAGE_TABLES",
        "Manage Tables",
        "Create, rename and delete restaurant tables",
        PermissionCategory.ORDERS,
    ),
    (
        "VIEW_KITCHEN",
        "View Kitchen Display",
        "See active orders on the kitchen display",
        PermissionCategory.ORDERS,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "MANAGE_PRODUCTS",
        "Manage Products",
        "Create and edit products and categories",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_STOCK",
        "Manage Stock",
        "Create, adjust and delete stock rows",
        PermissionCategory.INVENTORY,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "View sales statistics",
        PermissionCategory.REPORTS,
    ),
]


# -- SESSIONS --

SESSION_PERMISSIONS = [
    (
        "MANAGE_SESSIONS",
        "Manage Business Days",
        "Start/end the business day and switch between days",
        PermissionCategory.SESSIONS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create and delete staff accounts, reset passwords",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_ROLES",
        "Manage Roles",
        "Create roles and edit their permissions",
        PermissionCategory.USERS,
    ),
]


PERMISSION_DEFINITIONS = (
    DASHBOARD_PERMISSIONS
    + SALES_PERMISSIONS
    + ORDER_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + REPORT_PERMISSIONS
    + SESSION_PERMISSIONS
    + USER_PERMISSIONS
)
