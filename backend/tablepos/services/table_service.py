# Overview: Service-layer operations for restaurant tables.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import RestaurantTable, Order
from ..models.tables import OCCUPYING_STATUSES
from ..errors import NotFoundError, ConflictError

TABLE_MUTABLE_FIELDS = {"name", "order_number"}


def list_tables() -> list[RestaurantTable]:
    return db.session.query(RestaurantTable).order_by(
        RestaurantTable.order_number.asc(), RestaurantTable.id.asc()
    ).all()


def get_table(table_id: int) -> RestaurantTable:
    table = db.session.query(RestaurantTable).filter_by(id=table_id).first()
    if not table:
        raise NotFoundError("Table not found")
    return table


def next_order_number() -> int:
    current = db.session.query(func.max(RestaurantTable.order_number)).scalar()
    return (current or 0) + 1


def create_table(*, patch: dict) -> RestaurantTable:
    order_number = patch.get("order_number")
    table = RestaurantTable(
        name=patch["name"],
        order_number=order_number if order_number is not None else next_order_number(),
    )
    db.session.add(table)
    db.session.commit()
    return table


def update_table(table_id: int, patch: dict) -> RestaurantTable:
    table = get_table(table_id)
    for k, v in patch.items():
        if k not in TABLE_MUTABLE_FIELDS or v is None:
            continue
        setattr(table, k, v)
    db.session.commit()
    return table


def get_occupying_order(table_id: int) -> Order | None:
    """The table's live order (active or completed), if any."""
    return db.session.query(Order).filter(
        Order.table_id == table_id,
        Order.status.in_(OCCUPYING_STATUSES),
    ).order_by(Order.id.desc()).first()


def delete_table(table_id: int) -> None:
    table = get_table(table_id)
    if get_occupying_order(table.id):
        raise ConflictError("Cannot delete table with active orders")
    db.session.delete(table)
    db.session.commit()
