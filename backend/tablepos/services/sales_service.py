"""
Sale Ledger Service

WHY: A sale is the permanent record of what was sold on a business day.
It is written once (direct POS cart or closed table bill) and can only be
deleted afterwards, never edited.

INVARIANTS:
- A sale always belongs to exactly one business session
- Sale items are a snapshot (name, unit price, quantity, total)
- Recording a sale and deducting stock for its linked products is one
  transaction: both are committed or neither is
- Every sale deducts stock exactly once, whatever its origin
- Deleting a sale does not restore stock
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..extensions import db
from ..models import Sale, SaleItem, Product, BusinessSession
from ..errors import NotFoundError, PastSessionReadOnlyError, ValidationError
from tablepos.money_utils import line_total_cents
from . import business_session_service, stock_service
from .concurrency import run_with_retry


SALE_SOURCE_POS = "pos"
SALE_SOURCE_TABLE = "table"


@dataclass
class SaleResult:
    sale: Sale
    movements: list = field(default_factory=list)

    @property
    def stock_warnings(self) -> list[dict]:
        return [m.to_warning() for m in self.movements if m.insufficient]

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(),
            "items": [item.to_dict() for item in self.sale.items],
            "stock_warnings": self.stock_warnings,
        }


def price_lines(line_requests: list[dict]) -> list[dict]:
    """
    Resolve [{product_id, quantity}] into priced sale lines.

    Prices and names always come from the catalog, never from the client.
    """
    lines = []
    for request_line in line_requests:
        product = db.session.query(Product).filter_by(id=request_line["product_id"]).first()
        if not product:
            raise NotFoundError(f"Product not found: {request_line['product_id']}")

        quantity = request_line["quantity"]
        lines.append({
            "product_id": product.id,
            "product_name": product.name,
            "quantity": quantity,
            "unit_price_cents": product.price_cents,
            "total_cents": line_total_cents(product.price_cents, quantity),
        })
    return lines


def record_sale(
    session: BusinessSession,
    lines: list[dict],
    *,
    total_cents: int | None = None,
    source: str = SALE_SOURCE_POS,
) -> SaleResult:
    """
    Add a sale, its items and the matching stock deduction to the current
    transaction. Does NOT commit; callers wrap it in their unit of work.

    The ledger trusts `lines`: callers resolve prices before getting here.
    """
    if not lines:
        raise ValidationError("Cannot record a sale with no items")

    if total_cents is None:
        total_cents = sum(line["total_cents"] for line in lines)

    sale = Sale(session_id=session.id, total_cents=total_cents, source=source)
    for line in lines:
        sale.items.append(SaleItem(
            product_id=line["product_id"],
            product_name=line["product_name"],
            quantity=line["quantity"],
            unit_price_cents=line["unit_price_cents"],
            total_cents=line["total_cents"],
        ))

    db.session.add(sale)
    db.session.flush()

    movements = stock_service.deduct_for_lines(sale.items)
    return SaleResult(sale=sale, movements=movements)


def create_sale(
    session_id: int,
    lines: list[dict],
    *,
    total_cents: int | None = None,
    source: str = SALE_SOURCE_POS,
) -> SaleResult:
    """Persist a sale with its items and stock effect atomically."""
    def _op():
        session = business_session_service.get_session(session_id)
        result = record_sale(session, lines, total_cents=total_cents, source=source)
        db.session.commit()
        return result

    return run_with_retry(_op)


def create_pos_sale(line_requests: list[dict]) -> SaleResult:
    """
    Direct POS sale ("cart checkout").

    Requires an active session dated today. Prices are resolved server-side,
    the total is the sum of the line totals.
    """
    session = business_session_service.require_writable_session("create sales for")
    lines = price_lines(line_requests)
    return create_sale(session.id, lines, source=SALE_SOURCE_POS)


def get_sale(sale_id: int) -> Sale:
    sale = db.session.query(Sale).filter_by(id=sale_id).first()
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


def get_sales(
    session_id: int,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[Sale]:
    """Sales of one session, optionally bounded (inclusive) by date, newest first."""
    query = db.session.query(Sale).filter(Sale.session_id == session_id)
    if date_from is not None:
        query = query.filter(Sale.date >= date_from)
    if date_to is not None:
        query = query.filter(Sale.date <= date_to)
    return query.order_by(Sale.date.desc(), Sale.id.desc()).all()


def get_sale_items(sale_id: int) -> list[SaleItem]:
    sale = get_sale(sale_id)
    return list(sale.items)


def delete_sale(sale_id: int) -> None:
    """
    Delete a sale of today's active session.

    Stock deducted by the sale is NOT restored.
    """
    session = business_session_service.require_writable_session("delete sales from")

    sale = get_sale(sale_id)
    if sale.session_id != session.id:
        raise PastSessionReadOnlyError("Cannot delete sales from other sessions.")

    db.session.delete(sale)
    db.session.commit()
