from .business_sessions import BusinessSession
from .catalog import Category, Product, Stock
from .tables import RestaurantTable, Order, OrderItem
from .sales import Sale, SaleItem, Expense
from .auth import User, Role, Permission, RolePermission, SessionToken

__all__ = [
    'BusinessSession',
    'Category', 'Product', 'Stock',
    'RestaurantTable', 'Order', 'OrderItem',
    'Sale', 'SaleItem', 'Expense',
    'User', 'Role', 'Permission', 'RolePermission', 'SessionToken',
]
