# Overview: Service-layer operations for reporting; aggregates sold lines into product statistics.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Sale, SaleItem, Product, Expense, BusinessSession
from tablepos.money_utils import format_cents
from tablepos.time_utils import start_of_business_day_utc
from . import business_session_service


def _product_stat(product_id: int | None, name: str, quantity: int, revenue_cents: int) -> dict:
    return {
        "product_id": product_id,
        "product_name": name,
        "quantity": int(quantity or 0),
        "revenue_cents": int(revenue_cents or 0),
        "revenue": format_cents(int(revenue_cents or 0)),
    }


def _product_totals(since=None) -> list[dict]:
    """
    Fold line totals into one entry per product.

    Lines of an existing product are keyed by product_id and reported under
    its current name. Lines whose product was deleted (product_id NULL) are
    keyed by the name they were sold with.
    """
    query = db.session.query(
        SaleItem.product_id,
        SaleItem.product_name,
        Product.name.label("current_name"),
        func.coalesce(func.sum(SaleItem.quantity), 0).label("quantity"),
        func.coalesce(func.sum(SaleItem.total_cents), 0).label("revenue_cents"),
    ).outerjoin(Product, Product.id == SaleItem.product_id)
    if since is not None:
        query = query.join(Sale, Sale.id == SaleItem.sale_id).filter(Sale.date >= since)

    rows = query.group_by(
        SaleItem.product_id, SaleItem.product_name, Product.name
    ).all()

    totals: dict[tuple, list] = {}
    for r in rows:
        key = ("id", r.product_id) if r.product_id is not None else ("name", r.product_name)
        entry = totals.setdefault(key, [r.product_id, r.current_name or r.product_name, 0, 0])
        entry[2] += int(r.quantity or 0)
        entry[3] += int(r.revenue_cents or 0)

    return sorted(
        (_product_stat(*entry) for entry in totals.values()),
        key=lambda s: (-s["quantity"], s["product_name"], s["product_id"] or 0),
    )


def get_sales_statistics(session_id: int | None = None) -> dict:
    """
    Product statistics over ALL sales of ALL sessions.

    session_id only has to name an existing session (kept for API
    compatibility); it does not narrow the all-time figures.
    today's_most_popular only counts sales dated since local midnight.

    Products sharing a name are reported separately. Lines of a deleted
    product still count under the name they were sold with.
    """
    if session_id is not None:
        business_session_service.get_session(session_id)

    all_products = _product_totals()
    todays = _product_totals(since=start_of_business_day_utc())

    return {
        "best_selling": all_products[0] if all_products else None,
        "least_selling": all_products[-1] if all_products else None,
        "todays_most_popular": todays[0] if todays else None,
        "all_products": all_products,
    }


def session_summary(session: BusinessSession) -> dict:
    """Dashboard figures for one business day."""
    sales_count, sales_total = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_cents), 0),
    ).filter(Sale.session_id == session.id).one()

    expenses_total = db.session.query(
        func.coalesce(func.sum(Expense.amount_cents), 0)
    ).filter(Expense.session_id == session.id).scalar()

    sales_total = int(sales_total or 0)
    expenses_total = int(expenses_total or 0)
    net_cents = sales_total - expenses_total

    return {
        "session": session.to_dict(),
        "sales_count": int(sales_count or 0),
        "total_sales_cents": sales_total,
        "total_sales": format_cents(sales_total),
        "total_expenses_cents": expenses_total,
        "total_expenses": format_cents(expenses_total),
        "net_profit_cents": net_cents,
        "net_profit": format_cents(net_cents),
    }
