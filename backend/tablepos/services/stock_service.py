# Overview: Service-layer operations for stock; one decrement primitive shared by every deduction path.

"""
Stock Ledger Invariants (authoritative)

- Stock rows hold a mutable on-hand quantity keyed by a unique name.
- Every decrement (manual adjust, adjust/deduct by name, sale-driven
  deduction) goes through apply_delta(), which clamps at zero. When the
  requested decrement exceeds the on-hand quantity the shortfall is
  reported back (never raised) so a sale is not blocked by stock counts.
- Manual updates may not set a negative quantity (validated at the route).
- Low stock: alert_threshold set, > 0, and quantity <= alert_threshold.
- Sale-driven deduction never commits on its own; the sale ledger commits
  the sale and its stock effect together.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import Stock, Product
from ..errors import NotFoundError, ConflictError
from .concurrency import lock_for_update

STOCK_MUTABLE_FIELDS = {"name", "quantity", "price_cents", "category_id", "alert_threshold"}
STOCK_OVERLAY_FIELDS = {"price_cents", "category_id", "alert_threshold"}


@dataclass
class StockMovement:
    """Result of one quantity change on a stock row."""
    stock: Stock
    requested_delta: int
    applied_delta: int

    @property
    def shortfall(self) -> int:
        """Units that could not be deducted because stock ran out."""
        return self.applied_delta - self.requested_delta

    @property
    def insufficient(self) -> bool:
        return self.shortfall > 0

    def to_warning(self) -> dict:
        return {
            "stock_id": self.stock.id,
            "name": self.stock.name,
            "requested": -self.requested_delta,
            "deducted": -self.applied_delta,
            "shortfall": self.shortfall,
            "message": f"Insufficient stock for {self.stock.name}",
        }


def apply_delta(stock: Stock, delta: int) -> StockMovement:
    """Add delta to quantity, never going below zero. Does not commit."""
    current = stock.quantity or 0
    new_quantity = max(0, current + delta)
    movement = StockMovement(stock=stock, requested_delta=delta, applied_delta=new_quantity - current)
    stock.quantity = new_quantity

    if movement.insufficient:
        current_app.logger.warning(
            "Insufficient stock for %r: requested %s, had %s", stock.name, -delta, current
        )
    return movement


def list_stock() -> list[Stock]:
    return db.session.query(Stock).order_by(Stock.name.asc(), Stock.id.asc()).all()


def get_stock(stock_id: int) -> Stock:
    stock = db.session.query(Stock).filter_by(id=stock_id).first()
    if not stock:
        raise NotFoundError("Stock not found")
    return stock


def get_stock_by_name(name: str) -> Stock | None:
    return db.session.query(Stock).filter_by(name=name).first()


def upsert_by_name(name: str, quantity_delta: int = 0, **fields) -> Stock:
    """
    Receive stock by name.

    Existing row: quantity += quantity_delta and any given optional field
    (price_cents, category_id, alert_threshold) overwrites the stored one.
    Missing row: created with quantity = quantity_delta.
    """
    overlay = {k: v for k, v in fields.items() if k in STOCK_OVERLAY_FIELDS}

    stock = lock_for_update(db.session.query(Stock).filter_by(name=name)).first()
    if stock:
        apply_delta(stock, quantity_delta)
        for key, value in overlay.items():
            setattr(stock, key, value)
    else:
        stock = Stock(name=name, quantity=max(0, quantity_delta), **overlay)
        db.session.add(stock)

    db.session.commit()
    return stock


def update_stock(stock_id: int, patch: dict) -> Stock:
    stock = get_stock(stock_id)

    new_name = patch.get("name")
    if new_name and new_name != stock.name and get_stock_by_name(new_name):
        raise ConflictError(f"Stock '{new_name}' already exists")

    for key, value in patch.items():
        if key not in STOCK_MUTABLE_FIELDS:
            continue
        setattr(stock, key, value)

    db.session.commit()
    return stock


def delete_stock(stock_id: int) -> None:
    """Delete a stock row; products linked to it lose their stock linkage."""
    stock = get_stock(stock_id)
    db.session.query(Product).filter_by(stock_item_id=stock.id).update(
        {Product.stock_item_id: None}, synchronize_session="fetch"
    )
    db.session.delete(stock)
    db.session.commit()


def adjust(stock_id: int, delta: int) -> StockMovement:
    stock = lock_for_update(db.session.query(Stock).filter_by(id=stock_id)).first()
    if not stock:
        raise NotFoundError("Stock not found")
    movement = apply_delta(stock, delta)
    db.session.commit()
    return movement


def adjust_by_name(name: str, delta: int) -> StockMovement:
    stock = lock_for_update(db.session.query(Stock).filter_by(name=name)).first()
    if not stock:
        raise NotFoundError(f"Stock '{name}' not found")
    movement = apply_delta(stock, delta)
    db.session.commit()
    return movement


def deduct_by_name(name: str, quantity: int) -> StockMovement:
    """Remove `quantity` units from the named row (clamped at zero like every decrement)."""
    return adjust_by_name(name, -quantity)


def deduct_for_lines(lines) -> list[StockMovement]:
    """
    Deduct stock for sold lines whose product has a stock linkage.

    `lines` are objects with product_id and quantity (SaleItem rows).
    Lines whose product no longer exists, or has no linkage, are skipped.
    Caller owns the transaction.
    """
    movements = []
    for line in lines:
        if line.product_id is None:
            continue
        product = db.session.query(Product).filter_by(id=line.product_id).first()
        if not product or not product.stock_item_id:
            continue

        stock = lock_for_update(db.session.query(Stock).filter_by(id=product.stock_item_id)).first()
        if not stock:
            continue
        movements.append(apply_delta(stock, -line.quantity))
    return movements


def list_low_stock() -> list[Stock]:
    return db.session.query(Stock).filter(
        Stock.alert_threshold.isnot(None),
        Stock.alert_threshold > 0,
        Stock.quantity <= Stock.alert_threshold,
    ).order_by(Stock.quantity.asc(), Stock.name.asc()).all()
