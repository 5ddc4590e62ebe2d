import pytest


def order_payload(studio_id, with_product=True):
    items = [
        {
            "item_type": "course",
            "item_id": "course-glaze-201",
            "seller_id": studio_id,
            "name": "Glazing Masterclass",
            "price": 1800,
            "quantity": 1,
        }
    ]
    if with_product:
        items.append(
            {
                "item_type": "product",
                "item_id": "prod-mug-07",
                "seller_id": studio_id,
                "name": "Speckled Mug",
                "price": 450.5,
                "quantity": 2,
            }
        )
    return {"items": items}


class TestCustomerOrders:
    """Customer order endpoints"""

    def test_create_order(self, client, customer_headers, studio_user, shipping_address):
        payload = order_payload(studio_user.id)
        payload["shipping_address"] = shipping_address

        response = client.post("/api/v1/customer/orders/", json=payload, headers=customer_headers)

        assert response.status_code == 201
        order = response.json["order"]
        assert order["status"] == "pending"
        assert order["subtotal"] == 2701.0
        assert len(order["items"]) == 2
        assert order["tracking_history"][0]["status"] == "pending"

    def test_create_order_without_address_for_product(self, client, customer_headers, studio_user):
        response = client.post(
            "/api/v1/customer/orders/", json=order_payload(studio_user.id), headers=customer_headers
        )

        assert response.status_code == 400
        assert response.json["code"] == "validation_error"

    def test_create_order_schema_error(self, client, customer_headers):
        response = client.post("/api/v1/customer/orders/", json={"items": []}, headers=customer_headers)

        assert response.status_code == 400
        assert response.json["error"] == "Validation error"
        assert "items" in response.json["messages"]

    def test_list_and_get_own_orders(self, client, customer_headers, pending_order):
        response = client.get("/api/v1/customer/orders/", headers=customer_headers)
        assert response.status_code == 200
        assert response.json["total"] == 1

        response = client.get(f"/api/v1/customer/orders/{pending_order.id}", headers=customer_headers)
        assert response.status_code == 200
        assert response.json["order"]["order_number"] == pending_order.order_number

    def test_other_customer_cannot_see_order(self, client, pending_order, other_customer):
        login = client.post(
            "/api/v1/auth/login", json={"username": "othercustomer", "password": "password123"}
        )
        headers = {"Authorization": f"Bearer {login.json['access_token']}"}

        response = client.get(f"/api/v1/customer/orders/{pending_order.id}", headers=headers)
        assert response.status_code == 404

    def test_studio_cannot_use_customer_endpoints(self, client, studio_headers):
        response = client.get("/api/v1/customer/orders/", headers=studio_headers)
        assert response.status_code == 403

    def test_requires_token(self, client):
        response = client.get("/api/v1/customer/orders/")
        assert response.status_code == 401


class TestStudioOrderStatus:
    """Studio status updates"""

    def test_walk_order_to_delivered(self, client, studio_headers, pending_order):
        url = f"/api/v1/studio/orders/{pending_order.id}/status"

        for status in ("confirmed", "processing"):
            response = client.patch(url, json={"status": status}, headers=studio_headers)
            assert response.status_code == 200
            assert response.json["order"]["status"] == status

        response = client.patch(
            url,
            json={
                "status": "shipped",
                "tracking_info": {"carrier": "BlueDart", "tracking_number": "BD1"},
            },
            headers=studio_headers,
        )
        assert response.status_code == 200
        assert response.json["order"]["shipping_tracking"]["carrier"] == "BlueDart"

        response = client.patch(url, json={"status": "delivered"}, headers=studio_headers)
        order = response.json["order"]
        assert order["status"] == "delivered"
        assert [e["status"] for e in order["tracking_history"]] == [
            "pending", "confirmed", "processing", "shipped", "delivered",
        ]

    def test_illegal_transition(self, client, studio_headers, pending_order):
        response = client.patch(
            f"/api/v1/studio/orders/{pending_order.id}/status",
            json={"status": "delivered"},
            headers=studio_headers,
        )

        assert response.status_code == 400
        assert response.json["code"] == "illegal_transition"

    def test_missing_tracking_info(self, client, studio_headers, pending_order, advance):
        from marketplace.enums import OrderStatus

        advance(pending_order, OrderStatus.CONFIRMED, OrderStatus.PROCESSING)
        response = client.patch(
            f"/api/v1/studio/orders/{pending_order.id}/status",
            json={"status": "shipped", "tracking_info": {"carrier": "BlueDart"}},
            headers=studio_headers,
        )

        assert response.status_code == 400
        assert response.json["code"] == "missing_tracking_info"

    def test_repeat_status_is_idempotent(self, client, studio_headers, pending_order):
        url = f"/api/v1/studio/orders/{pending_order.id}/status"

        first = client.patch(url, json={"status": "confirmed"}, headers=studio_headers)
        second = client.patch(url, json={"status": "confirmed"}, headers=studio_headers)

        assert first.status_code == second.status_code == 200
        assert len(second.json["order"]["tracking_history"]) == 2

    def test_other_studio_gets_404(self, client, pending_order, other_studio):
        login = client.post(
            "/api/v1/auth/login", json={"username": "otherstudio", "password": "password123"}
        )
        headers = {"Authorization": f"Bearer {login.json['access_token']}"}

        response = client.patch(
            f"/api/v1/studio/orders/{pending_order.id}/status",
            json={"status": "confirmed"},
            headers=headers,
        )
        assert response.status_code == 404
        assert response.json["code"] == "not_found"


class TestAdminOrders:
    """Admin order endpoints"""

    def test_admin_lists_all_orders(self, client, admin_headers, pending_order):
        response = client.get("/api/v1/admin/orders/?status=pending", headers=admin_headers)

        assert response.status_code == 200
        assert response.json["total"] == 1

    def test_admin_invalid_status_filter(self, client, admin_headers):
        response = client.get("/api/v1/admin/orders/?status=lost", headers=admin_headers)
        assert response.status_code == 400

    def test_admin_patch_status_and_tracking(self, client, admin_headers, pending_order, advance):
        from marketplace.enums import OrderStatus

        advance(pending_order, OrderStatus.CONFIRMED, OrderStatus.PROCESSING)
        url = f"/api/v1/admin/orders/{pending_order.id}"

        response = client.patch(
            url, json={"tracking_info": {"carrier": "DTDC", "tracking_number": "D42"}},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json["order"]["status"] == "processing"
        assert response.json["order"]["shipping_tracking"]["tracking_number"] == "D42"

        # Tracking already present, so shipping needs no new tracking info
        response = client.patch(url, json={"status": "shipped"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json["order"]["status"] == "shipped"

    def test_admin_patch_nothing(self, client, admin_headers, pending_order):
        response = client.patch(
            f"/api/v1/admin/orders/{pending_order.id}", json={}, headers=admin_headers
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("target", ["cancelled", "refunded"])
    def test_delivered_order_is_terminal(self, client, admin_headers, delivered_order, target):
        response = client.patch(
            f"/api/v1/admin/orders/{delivered_order.id}", json={"status": target},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json["code"] == "illegal_transition"
