"""
Tests for the HTTP adapter: routing, tenant header and error mapping.
"""

from decimal import Decimal

from pos_core.models import Ingredient


class TestHealthEndpoints:

    def test_health_check(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "pos-core"
        assert data["dependencies"]["database"]["status"] == "healthy"

    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestBusinessHeader:

    def test_missing_header_unauthorized(self, client, seed_business):
        response = client.get("/api/orders")
        assert response.status_code == 401

    def test_invalid_header_unauthorized(self, client, seed_business):
        response = client.get("/api/orders", headers={"X-Business-ID": "abc"})
        assert response.status_code == 401


class TestInventoryRoutes:

    def test_movement_flow(self, client, db_session, business_headers, make_ingredient):
        ingredient = make_ingredient(name="Tomate")

        for quantity, cost in (("10", "2.00"), ("10", "4.00")):
            response = client.post(
                "/api/inventory/movements",
                json={"ingredient_id": ingredient.id, "type": "entrada", "quantity": quantity, "unit_cost": cost},
                headers=business_headers,
            )
            assert response.status_code == 201

        db_session.refresh(ingredient)
        assert ingredient.cost_per_unit == Decimal("3.00")

        listed = client.get(
            "/api/inventory/movements", params={"ingredient_id": ingredient.id}, headers=business_headers
        )
        assert listed.status_code == 200
        assert len(listed.json()) == 2

    def test_salida_without_stock_conflict(self, client, business_headers, make_ingredient):
        ingredient = make_ingredient(name="Pan", stock="1")

        response = client.post(
            "/api/inventory/movements",
            json={"ingredient_id": ingredient.id, "type": "salida", "quantity": "2"},
            headers=business_headers,
        )

        assert response.status_code == 409

    def test_unknown_ingredient_not_found(self, client, business_headers):
        response = client.post(
            "/api/inventory/movements",
            json={"ingredient_id": 999, "type": "entrada", "quantity": "1"},
            headers=business_headers,
        )
        assert response.status_code == 404

    def test_create_ingredient_and_low_stock(self, client, db_session, business_headers):
        response = client.post(
            "/api/inventory/ingredients",
            json={"name": "Palta", "unit": "kg", "stock": "1", "min_stock": "2", "cost_per_unit": "4.00"},
            headers=business_headers,
        )
        assert response.status_code == 201
        ingredient_id = response.json()["id"]

        low = client.get("/api/inventory/ingredients/low-stock", headers=business_headers)
        assert [i["id"] for i in low.json()] == [ingredient_id]

        rebuilt = client.post(f"/api/inventory/ingredients/{ingredient_id}/rebuild", headers=business_headers)
        assert rebuilt.status_code == 200
        assert db_session.get(Ingredient, ingredient_id).stock == Decimal("1")


class TestRecipeRoutes:

    def test_preparation_and_product_cost(self, client, business_headers, seed_product, make_ingredient, make_preparation):
        tomato = make_ingredient(name="Tomate", cost="1.50")
        onion = make_ingredient(name="Cebolla", cost="3.00")
        sauce = make_preparation(name="Pebre", yield_quantity="3")

        response = client.post(
            f"/api/recipes/preparations/{sauce.id}",
            json={"items": [
                {"ingredient_id": tomato.id, "quantity": "2"},
                {"ingredient_id": onion.id, "quantity": "1"},
            ]},
            headers=business_headers,
        )
        assert response.status_code == 200
        assert Decimal(response.json()["cost_per_unit"]) == Decimal("2.00")

        response = client.post(
            f"/api/recipes/products/{seed_product.id}",
            json={"items": [{"item_type": "preparation", "item_id": sauce.id, "quantity": "1"}]},
            headers=business_headers,
        )
        assert response.status_code == 200

        cost = client.get(f"/api/recipes/products/{seed_product.id}/cost", headers=business_headers)
        assert Decimal(cost.json()["cost"]) == Decimal("2.00")
        assert Decimal(cost.json()["margin"]) == Decimal("8.00")

    def test_create_preparation(self, client, business_headers):
        response = client.post(
            "/api/recipes/preparations",
            json={"name": "Pebre", "yield_quantity": "3"},
            headers=business_headers,
        )
        assert response.status_code == 201
        assert Decimal(response.json()["cost_per_unit"]) == Decimal("0")

        rejected = client.post(
            "/api/recipes/preparations",
            json={"name": "Pebre", "yield_quantity": "0"},
            headers=business_headers,
        )
        assert rejected.status_code == 400

    def test_unknown_item_type_rejected(self, client, business_headers, seed_product):
        response = client.post(
            f"/api/recipes/products/{seed_product.id}",
            json={"items": [{"item_type": "combo", "item_id": 1, "quantity": "1"}]},
            headers=business_headers,
        )
        assert response.status_code == 422


class TestOfferRoutes:

    def test_calculate_discount(self, client, business_headers):
        created = client.post(
            "/api/offers/discounts",
            json={"name": "Todo 10", "type": "percentage", "value": "10"},
            headers=business_headers,
        )
        assert created.status_code == 201

        response = client.post(
            "/api/offers/discounts/calculate", json={"amount": "20.00"}, headers=business_headers
        )
        data = response.json()
        assert data["applied"] is True
        assert Decimal(data["final_amount"]) == Decimal("18.00")

        active = client.get("/api/offers/discounts/active", headers=business_headers)
        assert len(active.json()) == 1

    def test_create_combo(self, client, business_headers):
        response = client.post(
            "/api/offers/combos", json={"name": "Combo Once", "price": "4.50"}, headers=business_headers
        )
        assert response.status_code == 201
        assert response.json()["items"] == []

        rejected = client.post(
            "/api/offers/combos", json={"name": "Combo", "price": "-1"}, headers=business_headers
        )
        assert rejected.status_code == 400

    def test_combo_items_and_pricing(self, client, business_headers, make_product, make_combo):
        burger = make_product(name="Hamburguesa", price="10.00")
        combo = make_combo(price="8.00")

        response = client.post(
            f"/api/offers/combos/{combo.id}/items",
            json={"items": [{"product_id": burger.id}]},
            headers=business_headers,
        )
        assert response.status_code == 200
        assert Decimal(response.json()["original_price"]) == Decimal("10.00")

        pricing = client.get(f"/api/offers/combos/{combo.id}/pricing", headers=business_headers)
        assert Decimal(pricing.json()["savings"]) == Decimal("2.00")


class TestOrderRoutes:

    def test_order_lifecycle(self, client, db_session, business_headers, seed_product):
        response = client.post(
            "/api/orders",
            json={"items": [{"product_id": seed_product.id, "quantity": 3}], "payment_method": "tarjeta"},
            headers=business_headers,
        )
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "registrado"
        assert Decimal(order["total"]) == Decimal("30.00")
        assert order["items"][0]["product_name"] == "Hamburguesa"

        fetched = client.get(f"/api/orders/{order['id']}", headers=business_headers)
        assert fetched.status_code == 200

        completed = client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "completado"}, headers=business_headers
        )
        assert completed.json()["status"] == "completado"

        cancelled = client.delete(f"/api/orders/{order['id']}", headers=business_headers)
        assert cancelled.json()["status"] == "cancelado"
        db_session.refresh(seed_product)
        assert seed_product.stock == 10

        again = client.delete(f"/api/orders/{order['id']}", headers=business_headers)
        assert again.status_code == 400

    def test_empty_order_bad_request(self, client, business_headers):
        response = client.post("/api/orders", json={"items": []}, headers=business_headers)
        assert response.status_code == 400

    def test_other_business_cannot_read(self, client, seed_product, other_business):
        created = client.post(
            "/api/orders",
            json={"items": [{"product_id": seed_product.id, "quantity": 1}]},
            headers={"X-Business-ID": "1"},
        )

        response = client.get(f"/api/orders/{created.json()['id']}", headers={"X-Business-ID": str(other_business.id)})

        assert response.status_code == 404
