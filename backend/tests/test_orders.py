"""
Order lifecycle tests.

Verifies:
- Creating orders (with and without items, skipping items that fail)
- Role-scoped listing and reads (customers only see their own orders)
- Edits limited to the owner's pending window; staff may edit any time
- Status flow is staff-only and strictly forward
- Deletion only while pending, for every actor
"""

import pytest

from conftest import API, make_product
from setaside.extensions import db
from setaside.models import Order, OrderItem
from setaside.services import order_service

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def _advance(client, order_id, headers, *statuses):
    for status in statuses:
        resp = client.patch(f"{API}/orders/{order_id}/status", json={"status": status}, headers=headers)
        assert resp.status_code == 200, resp.get_json()
    return resp


class TestCreateOrder:

    def test_create_empty_order(self, client, customer, customer_headers, place_order):
        body = place_order(customer_headers, notes="Extra napkins")

        assert body["status"] == "pending"
        assert body["total_amount"] == 0
        assert body["items"] == []
        assert body["notes"] == "Extra napkins"
        assert body["customer_id"] == customer.id
        assert body["customer"]["email"] == customer.email
        assert body["preparer"] is None

    def test_create_with_items_sets_total(self, client, customer_headers, place_order, latte, bagel):
        body = place_order(
            customer_headers,
            items=[
                {"product_id": latte.id, "quantity": 2, "special_instructions": "Oat milk"},
                {"product_id": bagel.id, "quantity": 1},
            ],
        )

        assert len(body["items"]) == 2
        assert body["total_amount"] == 11.25
        assert sum(item["subtotal"] for item in body["items"]) == body["total_amount"]

        latte_item = next(i for i in body["items"] if i["product_id"] == latte.id)
        assert latte_item["unit_price"] == 4.5
        assert latte_item["subtotal"] == 9.0
        assert latte_item["special_instructions"] == "Oat milk"
        assert latte_item["product"]["name"] == "Latte"

    def test_nonexistent_product_is_skipped(self, client, customer_headers, place_order, latte):
        body = place_order(
            customer_headers,
            items=[
                {"product_id": latte.id, "quantity": 2},
                {"product_id": MISSING_ID, "quantity": 1},
            ],
        )

        assert len(body["items"]) == 1
        assert body["items"][0]["product_id"] == latte.id
        assert body["items"][0]["quantity"] == 2
        assert body["total_amount"] == 9.0

    def test_unavailable_and_out_of_stock_items_skipped(self, client, db_session, customer_headers, place_order, latte):
        hidden = make_product("Seasonal", "6.00", is_available=False)
        scarce = make_product("Croissant", "3.00", stock_quantity=1)

        body = place_order(
            customer_headers,
            items=[
                {"product_id": hidden.id, "quantity": 1},
                {"product_id": scarce.id, "quantity": 2},
                {"product_id": latte.id, "quantity": 1},
            ],
        )

        assert [i["product_id"] for i in body["items"]] == [latte.id]
        assert body["total_amount"] == 4.5

    def test_all_items_failing_still_creates_order(self, client, customer_headers, place_order):
        body = place_order(customer_headers, items=[{"product_id": MISSING_ID, "quantity": 1}])

        assert body["items"] == []
        assert db.session.get(Order, body["id"]) is not None

    def test_duplicate_products_merge(self, client, customer_headers, place_order, bagel):
        body = place_order(
            customer_headers,
            items=[
                {"product_id": bagel.id, "quantity": 1},
                {"product_id": bagel.id, "quantity": 3},
            ],
        )

        assert len(body["items"]) == 1
        assert body["items"][0]["quantity"] == 4
        assert body["total_amount"] == 9.0

    def test_unexpected_item_error_is_skipped(self, client, customer_headers, place_order, monkeypatch, latte, bagel):
        add_item = order_service.add_item_to_new_order

        def failing_for_bagel(order, patch):
            if patch["product_id"] == bagel.id:
                raise RuntimeError("storage failure")
            return add_item(order, patch)

        monkeypatch.setattr(order_service, "add_item_to_new_order", failing_for_bagel)

        body = place_order(
            customer_headers,
            items=[
                {"product_id": latte.id, "quantity": 2},
                {"product_id": bagel.id, "quantity": 1},
            ],
        )

        assert [i["product_id"] for i in body["items"]] == [latte.id]
        assert body["total_amount"] == 9.0
        assert db.session.query(Order).count() == 1

    def test_item_too_expensive_for_subtotal_is_skipped(self, client, db_session, customer_headers, place_order, latte):
        tray = make_product("Catering Tray", "99999.99", stock_quantity=None)

        body = place_order(
            customer_headers,
            items=[
                {"product_id": latte.id, "quantity": 2},
                {"product_id": tray.id, "quantity": 9999},
            ],
        )

        assert [i["product_id"] for i in body["items"]] == [latte.id]
        assert body["total_amount"] == 9.0

    def test_pickup_time_normalized_to_utc(self, client, customer_headers, place_order):
        body = place_order(customer_headers, pickup_time="2030-05-01T10:30:00+02:00")
        assert body["pickup_time"] == "2030-05-01T08:30:00Z"

    @pytest.mark.parametrize(
        "payload",
        [
            {"items": [{"product_id": MISSING_ID, "quantity": 0}]},
            {"items": [{"product_id": "not-a-uuid", "quantity": 1}]},
            {"items": [{"quantity": 1}]},
            {"items": "latte"},
            {"items": {}},
            {"items": ""},
            {"items": [{"product_id": MISSING_ID, "quantity": 2 ** 63}]},
            {"pickup_time": "tomorrow"},
            {"status": "ready"},
            {"customer_id": MISSING_ID},
        ],
    )
    def test_invalid_payload_creates_nothing(self, client, customer_headers, payload):
        resp = client.post(f"{API}/orders", json=payload, headers=customer_headers)
        assert resp.status_code == 400
        assert db.session.query(Order).count() == 0

    def test_requires_auth(self, client, db_session):
        assert client.post(f"{API}/orders", json={}).status_code == 401


class TestListAndGetOrders:

    def test_customer_sees_only_own_orders(
        self, client, customer, customer_headers, other_customer_headers, place_order
    ):
        mine = place_order(customer_headers)
        theirs = place_order(other_customer_headers)

        body = client.get(f"{API}/orders", headers=customer_headers).get_json()
        assert [o["id"] for o in body["data"]] == [mine["id"]]

        # customer_id filter cannot widen a customer's view
        body = client.get(f"{API}/orders?customer_id={theirs['customer_id']}", headers=customer_headers).get_json()
        assert [o["id"] for o in body["data"]] == [mine["id"]]

    def test_staff_sees_all_newest_first(self, client, cashier_headers, customer_headers, other_customer_headers, place_order):
        first = place_order(customer_headers)
        second = place_order(other_customer_headers)

        body = client.get(f"{API}/orders", headers=cashier_headers).get_json()
        assert [o["id"] for o in body["data"]] == [second["id"], first["id"]]
        assert body["meta"] == {"total": 2, "page": 1, "limit": 10, "totalPages": 1}

    def test_staff_filters_by_customer_and_status(
        self, client, customer, cashier_headers, customer_headers, other_customer_headers, place_order
    ):
        mine = place_order(customer_headers)
        place_order(other_customer_headers)
        _advance(client, mine["id"], cashier_headers, "preparing")

        by_customer = client.get(f"{API}/orders?customer_id={customer.id}", headers=cashier_headers).get_json()
        assert [o["id"] for o in by_customer["data"]] == [mine["id"]]

        preparing = client.get(f"{API}/orders?status=preparing", headers=cashier_headers).get_json()
        assert [o["id"] for o in preparing["data"]] == [mine["id"]]

    def test_invalid_status_filter(self, client, cashier_headers):
        assert client.get(f"{API}/orders?status=done", headers=cashier_headers).status_code == 400

    def test_list_includes_items(self, client, customer_headers, place_order, latte):
        place_order(customer_headers, items=[{"product_id": latte.id, "quantity": 1}])
        body = client.get(f"{API}/orders", headers=customer_headers).get_json()
        assert body["data"][0]["items"][0]["product"]["id"] == latte.id

    def test_get_own_order(self, client, customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.get(f"{API}/orders/{order['id']}", headers=customer_headers)
        assert resp.status_code == 200
        assert resp.get_json()["id"] == order["id"]

    def test_get_other_customers_order_forbidden(self, client, customer_headers, other_customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.get(f"{API}/orders/{order['id']}", headers=other_customer_headers)
        assert resp.status_code == 403

    def test_staff_can_get_any_order(self, client, admin_headers, customer_headers, place_order):
        order = place_order(customer_headers)
        assert client.get(f"{API}/orders/{order['id']}", headers=admin_headers).status_code == 200

    def test_get_missing_order(self, client, customer_headers):
        assert client.get(f"{API}/orders/{MISSING_ID}", headers=customer_headers).status_code == 404


class TestUpdateOrder:

    def test_owner_updates_pending_order(self, client, customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.patch(
            f"{API}/orders/{order['id']}",
            json={"notes": "No sugar", "pickup_time": "2030-01-01T09:00:00Z"},
            headers=customer_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["notes"] == "No sugar"
        assert body["pickup_time"] == "2030-01-01T09:00:00Z"

    def test_other_customer_forbidden(self, client, customer_headers, other_customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.patch(f"{API}/orders/{order['id']}", json={"notes": "x"}, headers=other_customer_headers)
        assert resp.status_code == 403

    def test_owner_cannot_update_after_pending(self, client, customer_headers, cashier_headers, place_order):
        order = place_order(customer_headers)
        _advance(client, order["id"], cashier_headers, "preparing")

        resp = client.patch(f"{API}/orders/{order['id']}", json={"notes": "x"}, headers=customer_headers)
        assert resp.status_code == 400

    def test_staff_can_update_any_status(self, client, customer_headers, cashier_headers, place_order):
        order = place_order(customer_headers)
        _advance(client, order["id"], cashier_headers, "preparing", "ready")

        resp = client.patch(f"{API}/orders/{order['id']}", json={"notes": "Shelf 3"}, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.get_json()["notes"] == "Shelf 3"

    @pytest.mark.parametrize("field,value", [("status", "ready"), ("total_amount", 0), ("customer_id", MISSING_ID)])
    def test_only_notes_and_pickup_time_editable(self, client, customer_headers, place_order, field, value):
        order = place_order(customer_headers)
        resp = client.patch(f"{API}/orders/{order['id']}", json={field: value}, headers=customer_headers)
        assert resp.status_code == 400

    def test_update_missing_order(self, client, customer_headers):
        resp = client.patch(f"{API}/orders/{MISSING_ID}", json={"notes": "x"}, headers=customer_headers)
        assert resp.status_code == 404


class TestOrderStatus:

    def test_full_flow_records_preparer(self, client, cashier, cashier_headers, customer_headers, place_order):
        order = place_order(customer_headers)

        resp = _advance(client, order["id"], cashier_headers, "preparing", "ready", "picked_up")
        body = resp.get_json()
        assert body["status"] == "picked_up"
        assert body["prepared_by"] == cashier.id

        detail = client.get(f"{API}/orders/{order['id']}", headers=customer_headers).get_json()
        assert detail["preparer"]["id"] == cashier.id

    def test_customer_cannot_change_status(self, client, customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.patch(f"{API}/orders/{order['id']}/status", json={"status": "preparing"}, headers=customer_headers)
        assert resp.status_code == 403

    def test_skipping_a_stage_rejected(self, client, cashier_headers, customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.patch(f"{API}/orders/{order['id']}/status", json={"status": "ready"}, headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid status transition from 'pending' to 'ready'"

    def test_reverse_and_terminal_rejected(self, client, admin_headers, customer_headers, place_order):
        order = place_order(customer_headers)
        _advance(client, order["id"], admin_headers, "preparing", "ready", "picked_up")

        for status in ("pending", "ready", "picked_up"):
            resp = client.patch(f"{API}/orders/{order['id']}/status", json={"status": status}, headers=admin_headers)
            assert resp.status_code == 400

    def test_unknown_status_rejected(self, client, cashier_headers, customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.patch(f"{API}/orders/{order['id']}/status", json={"status": "completed"}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_status_required(self, client, cashier_headers, customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.patch(f"{API}/orders/{order['id']}/status", json={}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_missing_order(self, client, cashier_headers):
        resp = client.patch(f"{API}/orders/{MISSING_ID}/status", json={"status": "preparing"}, headers=cashier_headers)
        assert resp.status_code == 404


class TestDeleteOrder:

    def test_owner_deletes_pending_order_and_items(self, client, customer_headers, place_order, latte):
        order = place_order(customer_headers, items=[{"product_id": latte.id, "quantity": 1}])

        resp = client.delete(f"{API}/orders/{order['id']}", headers=customer_headers)
        assert resp.status_code == 204
        assert db.session.get(Order, order["id"]) is None
        assert db.session.query(OrderItem).filter_by(order_id=order["id"]).count() == 0

    def test_other_customer_forbidden(self, client, customer_headers, other_customer_headers, place_order):
        order = place_order(customer_headers)
        resp = client.delete(f"{API}/orders/{order['id']}", headers=other_customer_headers)
        assert resp.status_code == 403

    def test_owner_cannot_delete_non_pending(self, client, customer_headers, cashier_headers, place_order):
        order = place_order(customer_headers)
        _advance(client, order["id"], cashier_headers, "preparing")

        resp = client.delete(f"{API}/orders/{order['id']}", headers=customer_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Only pending orders can be deleted"

    def test_staff_cannot_delete_non_pending(self, client, customer_headers, admin_headers, place_order):
        order = place_order(customer_headers)
        _advance(client, order["id"], admin_headers, "preparing")

        resp = client.delete(f"{API}/orders/{order['id']}", headers=admin_headers)
        assert resp.status_code == 400

    def test_staff_deletes_pending_order(self, client, customer_headers, cashier_headers, place_order):
        order = place_order(customer_headers)
        assert client.delete(f"{API}/orders/{order['id']}", headers=cashier_headers).status_code == 204

    def test_delete_missing_order(self, client, customer_headers):
        assert client.delete(f"{API}/orders/{MISSING_ID}", headers=customer_headers).status_code == 404
