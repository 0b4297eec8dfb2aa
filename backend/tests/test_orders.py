"""
Table order lifecycle tests.

Verifies:
- One occupying order per table
- Order total always equals the sum of its item totals
- Only completed orders can be billed, and billing needs today's session
- Closing a bill records a sale identical to the order, deducts stock once,
  and removes the order in the same transaction
"""

import pytest

from tablepos.errors import (
    ConflictError,
    InvalidStateError,
    NoActiveSessionError,
    NotFoundError,
    PastSessionReadOnlyError,
)
from tablepos.models import Order, OrderItem, Sale, Stock
from tablepos.services import order_service, business_session_service, table_service


def order_total(order_id: int) -> int:
    order = order_service.get_order(order_id)
    assert order.total_cents == sum(item.total_cents for item in order.items)
    return order.total_cents


class TestOrderItems:

    def test_two_lines_total(self, db_session, table, product, drink):
        order = order_service.create_order(table.id)
        order_service.add_item(order.id, product.id, 2)
        order_service.add_item(order.id, drink.id, 10)

        order = order_service.get_order(order.id)
        assert order.to_dict()["total"] == "300.00"
        assert [i.unit_price_cents for i in order.items] == [10000, 1000]

    def test_same_product_twice_is_two_lines(self, db_session, table, drink):
        order = order_service.create_order(table.id)
        order_service.add_item(order.id, drink.id, 1)
        order_service.add_item(order.id, drink.id, 1)

        assert len(order_service.list_items(order.id)) == 2
        assert order_total(order.id) == 2000

    def test_update_and_remove_keep_total_consistent(self, db_session, table, product, drink):
        order = order_service.create_order(table.id)
        pide = order_service.add_item(order.id, product.id, 1)
        ayran = order_service.add_item(order.id, drink.id, 2)

        updated = order_service.update_item(pide.id, {"quantity": 3})
        assert updated.total_cents == 30000
        assert order_total(order.id) == 32000

        order_service.update_item(ayran.id, {"unit_price_cents": 500, "product_name": "ignored"})
        assert order_total(order.id) == 31000

        order_service.remove_item(pide.id)
        assert order_total(order.id) == 1000

    def test_add_unknown_product(self, db_session, table):
        order = order_service.create_order(table.id)
        with pytest.raises(NotFoundError, match="Product not found"):
            order_service.add_item(order.id, 9999, 1)
        assert order_total(order.id) == 0

    def test_price_snapshot_survives_catalog_change(self, db_session, table, drink):
        order = order_service.create_order(table.id)
        item = order_service.add_item(order.id, drink.id, 1)

        drink.price_cents = 9999
        db_session.commit()

        assert order_service.list_items(order.id)[0].unit_price_cents == 1000
        assert item.product_name == "Ayran"


class TestOrderLifecycle:

    def test_table_has_single_occupying_order(self, db_session, table):
        order_service.create_order(table.id)
        with pytest.raises(ConflictError, match="Table already has an active order"):
            order_service.create_order(table.id)

    def test_completed_order_still_occupies_table(self, db_session, table):
        order = order_service.create_order(table.id)
        order_service.complete_order(order.id)

        with pytest.raises(ConflictError):
            order_service.create_order(table.id)
        assert order_service.get_active_order_for_table(table.id).id == order.id

    def test_create_for_unknown_table(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.create_order(9999)

    def test_complete_is_idempotent(self, db_session, table):
        order = order_service.create_order(table.id)
        order_service.complete_order(order.id)
        again = order_service.complete_order(order.id)
        assert again.status == "completed"

    def test_update_only_allows_completion(self, db_session, table):
        order = order_service.create_order(table.id)
        assert order_service.update_order(order.id, {"status": "completed"}).status == "completed"

        with pytest.raises(InvalidStateError):
            order_service.update_order(order.id, {"status": "active"})

    def test_cancel_frees_table_without_sale(self, db_session, today_session, table, product, stock_item, fresh):
        order = order_service.create_order(table.id)
        order_service.add_item(order.id, product.id, 2)

        order_service.cancel_order(order.id)

        db_session.expire_all()
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0
        assert db_session.query(Sale).count() == 0
        assert fresh(Stock, stock_item.id).quantity == 10
        assert order_service.get_active_order_for_table(table.id) is None

    def test_kitchen_view_lists_active_orders_only(self, db_session, table, product):
        other = table_service.create_table(patch={"name": "Masa 2"})
        first = order_service.create_order(table.id)
        second = order_service.create_order(other.id)
        order_service.add_item(first.id, product.id, 1)
        order_service.complete_order(second.id)

        view = order_service.kitchen_view()
        assert [entry["order"]["id"] for entry in view] == [first.id]
        assert view[0]["table"]["name"] == "Masa 1"
        assert view[0]["items"][0]["product_name"] == "Kıymalı Pide"

    def test_table_with_order_cannot_be_deleted(self, db_session, table):
        order_service.create_order(table.id)
        with pytest.raises(ConflictError, match="Cannot delete table with active orders"):
            table_service.delete_table(table.id)


class TestCloseBill:

    def _completed_order(self, table, product, drink):
        order = order_service.create_order(table.id)
        order_service.add_item(order.id, product.id, 2)
        order_service.add_item(order.id, drink.id, 10)
        order_service.complete_order(order.id)
        return order.id

    def test_sale_mirrors_order(self, db_session, today_session, table, product, drink, stock_item, fresh):
        order_id = self._completed_order(table, product, drink)
        before = [item.to_dict() for item in order_service.list_items(order_id)]

        result = order_service.close_bill(order_id)

        sale = result.sale
        assert sale.session_id == today_session.id
        assert sale.total_cents == 30000
        assert sale.source == "table"
        after = [item.to_dict() for item in sale.items]
        for key in ("product_id", "product_name", "quantity", "unit_price_cents", "total_cents"):
            assert [i[key] for i in after] == [i[key] for i in before]

        with pytest.raises(NotFoundError):
            order_service.get_order(order_id)
        assert order_service.get_active_order_for_table(table.id) is None
        assert fresh(Stock, stock_item.id).quantity == 8

    def test_active_order_cannot_be_billed(self, db_session, today_session, table, drink):
        order = order_service.create_order(table.id)
        order_service.add_item(order.id, drink.id, 1)

        with pytest.raises(InvalidStateError, match="Only completed orders can be closed"):
            order_service.close_bill(order.id)

    def test_empty_order_cannot_be_billed(self, db_session, today_session, table):
        order = order_service.create_order(table.id)
        order_service.complete_order(order.id)

        with pytest.raises(InvalidStateError):
            order_service.close_bill(order.id)
        assert db_session.query(Sale).count() == 0

    def test_no_session_keeps_order(self, db_session, table, product, drink, stock_item, fresh):
        order_id = self._completed_order(table, product, drink)

        with pytest.raises(NoActiveSessionError):
            order_service.close_bill(order_id)

        assert order_service.get_order(order_id).status == "completed"
        assert db_session.query(Sale).count() == 0
        assert fresh(Stock, stock_item.id).quantity == 10

    def test_past_session_keeps_order(self, db_session, today_session, past_session, table, product, drink):
        order_id = self._completed_order(table, product, drink)
        business_session_service.activate_session(past_session.id)

        with pytest.raises(PastSessionReadOnlyError):
            order_service.close_bill(order_id)

        assert order_service.get_order(order_id).status == "completed"
        assert db_session.query(Sale).count() == 0

    def test_insufficient_stock_still_closes(self, db_session, today_session, table, product, stock_item, fresh):
        order = order_service.create_order(table.id)
        order_service.add_item(order.id, product.id, 11)
        order_service.complete_order(order.id)

        result = order_service.close_bill(order.id)

        assert fresh(Stock, stock_item.id).quantity == 0
        assert [w["shortfall"] for w in result.stock_warnings] == [1]


class TestOrderRoutes:

    def test_full_table_flow(self, client, cashier_headers, today_session, table, product, drink, stock_item, fresh):
        resp = client.post("/api/orders", json={"table_id": table.id}, headers=cashier_headers)
        assert resp.status_code == 201
        order_id = resp.json["id"]

        resp = client.post(
            f"/api/orders/{order_id}/items",
            json={"product_id": product.id, "quantity": 2, "unit_price_cents": 1},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json["item"]["price"] == "100.00"

        resp = client.post(
            f"/api/orders/{order_id}/items",
            json={"product_id": drink.id, "quantity": 10},
            headers=cashier_headers,
        )
        assert resp.json["order"]["total"] == "300.00"

        resp = client.get(f"/api/tables/{table.id}/active-order", headers=cashier_headers)
        assert resp.json["order"]["id"] == order_id
        assert len(resp.json["items"]) == 2

        resp = client.post(f"/api/orders/{order_id}/close-bill", headers=cashier_headers)
        assert resp.status_code == 400

        resp = client.post(f"/api/orders/{order_id}/complete", headers=cashier_headers)
        assert resp.json["status"] == "completed"

        resp = client.post(f"/api/orders/{order_id}/close-bill", headers=cashier_headers)
        assert resp.status_code == 201
        assert resp.json["sale"]["total"] == "300.00"
        assert len(resp.json["items"]) == 2

        resp = client.get(f"/api/orders/{order_id}", headers=cashier_headers)
        assert resp.status_code == 404
        resp = client.get(f"/api/tables/{table.id}/active-order", headers=cashier_headers)
        assert resp.json is None
        assert fresh(Stock, stock_item.id).quantity == 8

    def test_occupied_table_conflict(self, client, cashier_headers, table):
        client.post("/api/orders", json={"table_id": table.id}, headers=cashier_headers)
        resp = client.post("/api/orders", json={"table_id": table.id}, headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Table already has an active order"

    def test_item_edit_routes(self, client, cashier_headers, table, drink):
        order = order_service.create_order(table.id)
        item = order_service.add_item(order.id, drink.id, 1)

        resp = client.put(f"/api/order-items/{item.id}", json={"quantity": 4}, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["total"] == "40.00"

        resp = client.put(f"/api/order-items/{item.id}", json={"quantity": 0}, headers=cashier_headers)
        assert resp.status_code == 400

        resp = client.delete(f"/api/order-items/{item.id}", headers=cashier_headers)
        assert resp.json["order"]["total"] == "0.00"

    def test_kitchen_permissions(self, client, kitchen_headers, table, product):
        order = order_service.create_order(table.id)
        order_service.add_item(order.id, product.id, 1)

        resp = client.get("/api/kitchen/active-orders", headers=kitchen_headers)
        assert resp.status_code == 200
        assert resp.json[0]["order"]["id"] == order.id

        resp = client.post("/api/orders", json={"table_id": table.id}, headers=kitchen_headers)
        assert resp.status_code == 403

    def test_delete_occupied_table_route(self, client, cashier_headers, table):
        order_service.create_order(table.id)
        resp = client.delete(f"/api/tables/{table.id}", headers=cashier_headers)
        assert resp.status_code == 400
