"""Integration tests for payment endpoints via TestClient."""


def headers(user_id="cust-001", role="user"):
    return {"X-User-Id": user_id, "X-User-Role": role}


class TestPaymentAPI:
    def test_intent_then_confirm(self, client, customer, api_product, api_order, fake_gateway):
        product_id = api_product(price=50.0, quantity=5)
        order = api_order([(product_id, 2)], payment_method="credit-card")

        response = client.post("/payments/create-intent", json={"order_id": order["id"]}, headers=customer)
        assert response.status_code == 200
        intent = response.json()
        assert intent["success"] is True
        assert intent["amount"] == 12000
        assert intent["client_secret"]

        fake_gateway.succeed_intent(intent["payment_intent_id"])
        payload = {"order_id": order["id"], "payment_intent_id": intent["payment_intent_id"]}

        first = client.post("/payments/confirm", json=payload, headers=customer)
        second = client.post("/payments/confirm", json=payload, headers=customer)

        for response in (first, second):
            assert response.status_code == 200
            body = response.json()
            assert body["message"] == "Order marked paid"
            assert body["order"]["payment_status"] == "paid"
            assert body["order"]["status"] == "processing"
        assert first.json()["order"]["payment_method_details"]["last4"] == "4242"
        assert client.get(f"/products/{product_id}").json()["product"]["quantity"] == 3

    def test_confirm_incomplete_payment(self, client, customer, api_product, api_order):
        order = api_order([(api_product(), 1)], payment_method="credit-card")
        intent = client.post("/payments/create-intent", json={"order_id": order["id"]}, headers=customer).json()

        response = client.post(
            "/payments/confirm",
            json={"order_id": order["id"], "payment_intent_id": intent["payment_intent_id"]},
            headers=customer,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Payment not completed: requires_payment_method"

    def test_intent_for_other_users_order(self, client, api_product, api_order):
        order = api_order([(api_product(), 1)], payment_method="credit-card")
        response = client.post(
            "/payments/create-intent",
            json={"order_id": order["id"]},
            headers=headers("cust-002"),
        )
        assert response.status_code == 403

    def test_processor_failure_is_500(self, client, customer, api_product, api_order, fake_gateway):
        order = api_order([(api_product(), 1)], payment_method="credit-card")
        fake_gateway.configure(should_succeed=False, failure_reason="Processor down")

        response = client.post("/payments/create-intent", json={"order_id": order["id"]}, headers=customer)
        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Processor down"}

    def test_configure_gateway(self, client, fake_gateway):
        response = client.post(
            "/payments/gateway/configure",
            json={"should_succeed": True, "intent_status": "succeeded"},
        )
        assert response.status_code == 200
        assert response.json()["gateway"] == "FakeGateway"
        assert fake_gateway.intent_status == "succeeded"

    def test_configure_gateway_blocked_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        response = client.post("/payments/gateway/configure", json={"should_succeed": False})
        assert response.status_code == 403
