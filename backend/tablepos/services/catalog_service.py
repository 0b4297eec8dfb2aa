# backend/tablepos/services/catalog_service.py
"""
Catalog Service: categories and products.

Plain CRUD. The only rules that matter elsewhere:
- category/stock references must point at existing rows
- a product on an open table order cannot be deleted
- deleting a product keeps sold lines intact (their product_id becomes NULL)
"""
from __future__ import annotations

from ..extensions import db
from ..models import Category, Product, Stock, OrderItem, SaleItem
from ..errors import NotFoundError, ConflictError, ValidationError

PRODUCT_MUTABLE_FIELDS = {"name", "price_cents", "category_id", "stock_item_id"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_references(patch: dict) -> None:
    category_id = patch.get("category_id")
    if category_id is not None and not db.session.query(Category.id).filter_by(id=category_id).first():
        raise ValidationError("category_id does not exist")

    stock_item_id = patch.get("stock_item_id")
    if stock_item_id is not None and not db.session.query(Stock.id).filter_by(id=stock_item_id).first():
        raise ValidationError("stock_item_id does not exist")


# =============================================================================
# CATEGORIES
# =============================================================================

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def get_category(category_id: int) -> Category:
    category = db.session.query(Category).filter_by(id=category_id).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def create_category(name: str) -> Category:
    if db.session.query(Category.id).filter_by(name=name).first():
        raise ConflictError(f"Category '{name}' already exists")
    category = Category(name=name)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, patch: dict) -> Category:
    category = get_category(category_id)
    name = patch.get("name")
    if name and name != category.name:
        if db.session.query(Category.id).filter_by(name=name).first():
            raise ConflictError(f"Category '{name}' already exists")
        category.name = name
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    """Products and stock rows in the category become uncategorized."""
    category = get_category(category_id)
    db.session.query(Product).filter_by(category_id=category.id).update(
        {Product.category_id: None}, synchronize_session="fetch"
    )
    db.session.query(Stock).filter_by(category_id=category.id).update(
        {Stock.category_id: None}, synchronize_session="fetch"
    )
    db.session.delete(category)
    db.session.commit()


# =============================================================================
# PRODUCTS
# =============================================================================

def list_products(category_id: int | None = None) -> list[Product]:
    query = db.session.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if not product:
        raise NotFoundError(f"Product not found: {product_id}")
    return product


def create_product(*, patch: dict) -> Product:
    """Create product using a validated patch dict."""
    _check_references(patch)
    product = Product()
    apply_product_patch(product, patch)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, patch: dict) -> Product:
    """
    Update a product.

    Existing order and sale lines keep the name/price they were rung up with.
    """
    product = get_product(product_id)
    _check_references(patch)
    apply_product_patch(product, patch)
    db.session.commit()
    return product


def delete_product(product_id: int) -> None:
    product = get_product(product_id)

    if db.session.query(OrderItem.id).filter_by(product_id=product.id).first():
        raise ConflictError("Cannot delete a product that is on an open table order")

    db.session.query(SaleItem).filter_by(product_id=product.id).update(
        {SaleItem.product_id: None}, synchronize_session="fetch"
    )
    db.session.delete(product)
    db.session.commit()
