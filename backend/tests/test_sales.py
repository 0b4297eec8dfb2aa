"""
Sale ledger tests.

Verifies:
- Direct POS sales price lines from the catalog and deduct linked stock
- Stock decrements stop at zero and come back as warnings
- Sales can only be created/deleted under today's active session
- A failure during stock deduction leaves no sale behind
- Repeated reads with no writes in between return the same data
"""

import pytest

from tablepos.errors import PastSessionReadOnlyError, NoActiveSessionError, NotFoundError
from tablepos.models import Sale, SaleItem, Stock
from tablepos.services import sales_service, business_session_service, stock_service, order_service


class TestPosSaleService:

    def test_sale_total_and_stock_deduction(self, db_session, today_session, product, stock_item, fresh):
        result = sales_service.create_pos_sale([{"product_id": product.id, "quantity": 3}])

        sale = result.sale.to_dict()
        assert sale["total"] == "300.00"
        assert sale["total_cents"] == 30000
        assert sale["session_id"] == today_session.id
        assert sale["source"] == "pos"
        assert result.stock_warnings == []
        assert fresh(Stock, stock_item.id).quantity == 7

    def test_items_are_catalog_snapshots(self, db_session, today_session, product, drink):
        result = sales_service.create_pos_sale([
            {"product_id": product.id, "quantity": 1},
            {"product_id": drink.id, "quantity": 4},
        ])

        items = [item.to_dict() for item in result.sale.items]
        assert [(i["product_name"], i["quantity"], i["price"], i["total"]) for i in items] == [
            ("Kıymalı Pide", 1, "100.00", "100.00"),
            ("Ayran", 4, "10.00", "40.00"),
        ]
        assert result.sale.total_cents == 14000

    def test_insufficient_stock_clamps_and_warns(self, db_session, today_session, product, stock_item, fresh):
        result = sales_service.create_pos_sale([{"product_id": product.id, "quantity": 12}])

        assert fresh(Stock, stock_item.id).quantity == 0
        assert result.stock_warnings == [{
            "stock_id": stock_item.id,
            "name": "Pide dough",
            "requested": 12,
            "deducted": 10,
            "shortfall": 2,
            "message": "Insufficient stock for Pide dough",
        }]

    def test_unlinked_product_has_no_stock_effect(self, db_session, today_session, drink, stock_item, fresh):
        sales_service.create_pos_sale([{"product_id": drink.id, "quantity": 5}])
        assert fresh(Stock, stock_item.id).quantity == 10

    def test_unknown_product_records_nothing(self, db_session, today_session, product):
        with pytest.raises(NotFoundError):
            sales_service.create_pos_sale([
                {"product_id": product.id, "quantity": 1},
                {"product_id": 9999, "quantity": 1},
            ])
        assert db_session.query(Sale).count() == 0

    def test_failed_deduction_rolls_back_sale(self, db_session, today_session, product, stock_item, monkeypatch, fresh):
        def boom(lines):
            raise RuntimeError("disk full")

        monkeypatch.setattr(stock_service, "deduct_for_lines", boom)

        with pytest.raises(RuntimeError):
            sales_service.create_pos_sale([{"product_id": product.id, "quantity": 2}])

        db_session.expire_all()
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert fresh(Stock, stock_item.id).quantity == 10

    def test_requires_active_session(self, db_session, product):
        with pytest.raises(NoActiveSessionError):
            sales_service.create_pos_sale([{"product_id": product.id, "quantity": 1}])

    def test_past_session_is_read_only(self, db_session, today_session, past_session, product):
        business_session_service.activate_session(past_session.id)

        with pytest.raises(PastSessionReadOnlyError):
            sales_service.create_pos_sale([{"product_id": product.id, "quantity": 1}])


class TestSaleDeletion:

    def test_delete_does_not_restore_stock(self, db_session, today_session, product, stock_item, fresh):
        result = sales_service.create_pos_sale([{"product_id": product.id, "quantity": 3}])

        sales_service.delete_sale(result.sale.id)

        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert fresh(Stock, stock_item.id).quantity == 7

    def test_cannot_delete_other_sessions_sale(self, db_session, past_session, today_session, drink):
        old_sale = sales_service.create_sale(
            past_session.id,
            sales_service.price_lines([{"product_id": drink.id, "quantity": 1}]),
        ).sale

        with pytest.raises(PastSessionReadOnlyError):
            sales_service.delete_sale(old_sale.id)

    def test_cannot_delete_while_viewing_past_day(self, db_session, today_session, past_session, drink):
        result = sales_service.create_pos_sale([{"product_id": drink.id, "quantity": 1}])
        business_session_service.activate_session(past_session.id)

        with pytest.raises(PastSessionReadOnlyError):
            sales_service.delete_sale(result.sale.id)


class TestSalesRoutes:

    def test_scenario_pos_sale(self, client, cashier_headers, today_session, product, stock_item, fresh):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 3}]},
            headers=cashier_headers,
        )

        assert resp.status_code == 201
        assert resp.json["sale"]["total"] == "300.00"
        assert len(resp.json["items"]) == 1
        assert resp.json["stock_warnings"] == []
        assert fresh(Stock, stock_item.id).quantity == 7

    def test_client_price_is_ignored(self, client, cashier_headers, today_session, product):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 1, "price": "0.01"}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json["sale"]["total"] == "100.00"

    @pytest.mark.parametrize("body", [
        {},
        {"items": []},
        {"items": [{"quantity": 1}]},
        {"items": [{"product_id": 1, "quantity": 0}]},
        {"items": [{"product_id": 1, "quantity": 1.5}]},
    ])
    def test_malformed_body(self, client, cashier_headers, today_session, body):
        resp = client.post("/api/sales", json=body, headers=cashier_headers)
        assert resp.status_code == 400

    def test_no_active_session(self, client, cashier_headers, product):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 1}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "No active session. Please start a new business day first."

    def test_past_session_forbidden(self, client, cashier_headers, today_session, past_session, product):
        business_session_service.activate_session(past_session.id)

        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 1}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 403
        assert "past sessions" in resp.json["error"]

    def test_list_defaults_to_active_session(self, client, cashier_headers, today_session, past_session, drink):
        sales_service.create_sale(
            past_session.id, sales_service.price_lines([{"product_id": drink.id, "quantity": 1}])
        )
        sales_service.create_pos_sale([{"product_id": drink.id, "quantity": 2}])

        resp = client.get("/api/sales", headers=cashier_headers)
        assert resp.status_code == 200
        assert [s["total"] for s in resp.json] == ["20.00"]

        resp = client.get(f"/api/sales?sessionId={past_session.id}", headers=cashier_headers)
        assert [s["total"] for s in resp.json] == ["10.00"]

    def test_list_date_range_is_inclusive_of_whole_day(self, client, cashier_headers, today_session, drink):
        sales_service.create_pos_sale([{"product_id": drink.id, "quantity": 1}])
        today = today_session.date.isoformat()

        resp = client.get(f"/api/sales?dateFrom={today}&dateTo={today}", headers=cashier_headers)
        assert len(resp.json) == 1

        resp = client.get("/api/sales?dateFrom=banana", headers=cashier_headers)
        assert resp.status_code == 400

    def test_list_without_any_session(self, client, cashier_headers):
        resp = client.get("/api/sales", headers=cashier_headers)
        assert resp.status_code == 400

    def test_sale_items_route(self, client, cashier_headers, today_session, drink):
        sale = sales_service.create_pos_sale([{"product_id": drink.id, "quantity": 2}]).sale

        resp = client.get(f"/api/sales/{sale.id}/items", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json[0]["total"] == "20.00"

        resp = client.get("/api/sales/9999/items", headers=cashier_headers)
        assert resp.status_code == 404

    def test_kitchen_cannot_sell(self, client, kitchen_headers, today_session, product):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 1}]},
            headers=kitchen_headers,
        )
        assert resp.status_code == 403


class TestReadPaths:

    @pytest.mark.parametrize("path", ["/api/sales", "/api/stock", "/api/orders"])
    def test_repeated_reads_are_identical(self, client, manager_headers, today_session, table, product, drink, path):
        sales_service.create_pos_sale([
            {"product_id": product.id, "quantity": 2},
            {"product_id": drink.id, "quantity": 1},
        ])
        stock_service.upsert_by_name("Ayran", 24)
        order = order_service.create_order(table.id)
        order_service.add_item(order.id, drink.id, 3)

        first = client.get(path, headers=manager_headers)
        second = client.get(path, headers=manager_headers)

        assert first.status_code == 200
        assert first.json
        assert second.json == first.json
