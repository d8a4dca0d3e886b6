import pytest
from datetime import datetime, timezone
from decimal import Decimal
from fastapi.testclient import TestClient
from types import SimpleNamespace
from unittest.mock import patch, AsyncMock

from app.core.exceptions import InsufficientStockError, OrderNotFoundError, OrderStateError
from app.main import app
from app.models.inventory import AdjustmentReason
from app.models.order import OrderStatus, OrderType, PaymentMethod, PaymentStatus
from app.services.inventory_service import Shortage
from app.services.order_service import PlacementOutcome, PlacementResult, PlacementState


@pytest.fixture
def client():
    return TestClient(app)


ORDER_DATA = {
    "customer_id": 1,
    "order_type": "TAKEOUT",
    "items": [{"product_id": 10, "quantity": 2}],
    "assigned_employee_ids": [3],
}


def _stored_order(order_id=42):
    return SimpleNamespace(
        id=order_id,
        customer_id=1,
        order_type=OrderType.TAKEOUT,
        order_status=OrderStatus.PENDING,
        payment_status=PaymentStatus.UNPAID,
        payment_method=None,
        total_amount=Decimal("10.00"),
        line_items=[SimpleNamespace(product_id=10, quantity=2, price_at_time=Decimal("5.00"))],
        assigned_employee_ids=[3],
        created_at=datetime(2026, 5, 1, 12, tzinfo=timezone.utc),
    )


class TestOrderRoutes:
    def test_create_order_success(self, client):
        """Placed orders return 201 with the new id"""
        result = PlacementResult(
            PlacementOutcome.PLACED, PlacementState.COMMITTED, order_id=42, total_amount=Decimal("10.00")
        )
        with patch('app.api.v1.orders.place_order', AsyncMock(return_value=result)) as mock_place_order:
            response = client.post("/api/v1/orders/", json=ORDER_DATA)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["order_id"] == 42
        assert body["data"]["order_status"] == "PENDING"
        draft = mock_place_order.await_args.args[0]
        assert draft.items[0].quantity == 2
        assert draft.assigned_employee_ids == [3]

    def test_create_order_insufficient_inventory(self, client):
        result = PlacementResult(
            PlacementOutcome.INSUFFICIENT_INVENTORY,
            PlacementState.REJECTED,
            reason="Insufficient inventory.",
            shortages=[Shortage(7, Decimal("5"), Decimal("4"))],
        )
        with patch('app.api.v1.orders.place_order', AsyncMock(return_value=result)):
            response = client.post("/api/v1/orders/", json=ORDER_DATA)

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "insufficient_inventory"
        assert error["details"][0]["ingredient_id"] == 7

    def test_create_order_empty_items(self, client):
        """Empty orders are rejected by the placement validation"""
        result = PlacementResult(
            PlacementOutcome.INVALID, PlacementState.REJECTED, reason="Order must contain at least one item."
        )
        with patch('app.api.v1.orders.place_order', AsyncMock(return_value=result)):
            response = client.post("/api/v1/orders/", json={**ORDER_DATA, "items": []})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_order"

    def test_create_order_failed(self, client):
        result = PlacementResult(PlacementOutcome.FAILED, PlacementState.ROLLED_BACK, reason="disk full")
        with patch('app.api.v1.orders.place_order', AsyncMock(return_value=result)):
            response = client.post("/api/v1/orders/", json=ORDER_DATA)

        assert response.status_code == 500
        assert response.json()["success"] is False

    def test_create_order_malformed_body(self, client):
        response = client.post("/api/v1/orders/", json={"items": "nope"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    def test_get_order_success(self, client):
        """Test order retrieval"""
        with patch('app.api.v1.orders.get_order', AsyncMock(return_value=_stored_order())):
            response = client.get("/api/v1/orders/42")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == 42
        assert data["items"][0]["price_at_time"] == "5.00"
        assert data["assigned_employee_ids"] == [3]

    def test_get_order_not_found(self, client):
        with patch('app.api.v1.orders.get_order', AsyncMock(return_value=None)):
            response = client.get("/api/v1/orders/404")

        assert response.status_code == 404

    def test_list_orders_routes_to_filters(self, client):
        with patch('app.api.v1.orders.list_orders_by_customer', AsyncMock(return_value=[_stored_order()])) as by_customer:
            response = client.get("/api/v1/orders/?customer_id=1")
        assert response.status_code == 200
        by_customer.assert_awaited_once_with(1)

        with patch('app.api.v1.orders.list_orders_by_date_range', AsyncMock(return_value=[])) as by_range:
            response = client.get("/api/v1/orders/?start_date=2026-05-01&end_date=2026-05-31")
        assert response.status_code == 200
        assert response.json()["data"] == []
        assert by_range.await_args.args[0].isoformat() == "2026-05-01"

        response = client.get("/api/v1/orders/?start_date=2026-05-01")
        assert response.status_code == 400

    def test_update_status_final_state_conflict(self, client):
        error = OrderStateError("Order is already in a final state: COMPLETED. Status cannot be updated.")
        with patch('app.api.v1.orders.update_order_status', AsyncMock(side_effect=error)):
            response = client.patch("/api/v1/orders/42/status", json={"order_status": "CANCELLED"})

        assert response.status_code == 409
        assert "final state" in response.json()["error"]["message"]

    def test_update_status_unknown_order(self, client):
        with patch('app.api.v1.orders.update_order_status', AsyncMock(side_effect=OrderNotFoundError(42))):
            response = client.patch("/api/v1/orders/42/status", json={"order_status": "IN_PROGRESS"})

        assert response.status_code == 404

    def test_update_payment(self, client):
        order = SimpleNamespace(id=42, payment_status=PaymentStatus.PAID, payment_method=PaymentMethod.CARD)
        with patch('app.api.v1.orders.update_payment_status', AsyncMock(return_value=order)) as mock_update:
            response = client.patch(
                "/api/v1/orders/42/payment", json={"payment_status": "PAID", "payment_method": "CARD"}
            )

        assert response.status_code == 200
        assert response.json()["data"]["payment_method"] == "CARD"
        mock_update.assert_awaited_once_with(42, PaymentStatus.PAID, PaymentMethod.CARD)

    def test_order_total(self, client):
        with patch('app.api.v1.orders.calculate_order_total', AsyncMock(return_value=Decimal("13.50"))):
            response = client.get("/api/v1/orders/42/total")

        assert response.status_code == 200
        assert Decimal(response.json()["data"]["total_amount"]) == Decimal("13.50")


class TestInventoryRoutes:
    def test_get_stock(self, client):
        ingredient = SimpleNamespace(
            id=7, name="Flour", quantity_in_stock=Decimal("5"), unit="kg", updated_at="2026-05-01 12:00:00"
        )
        with patch('app.api.v1.inventory.get_stock', AsyncMock(return_value=ingredient)):
            response = client.get("/api/v1/inventory/7")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Flour"

    def test_adjust_stock_refused(self, client):
        error = InsufficientStockError(7, Decimal("1"), Decimal("-5"))
        with patch('app.api.v1.inventory.adjust_stock', AsyncMock(side_effect=error)):
            response = client.post(
                "/api/v1/inventory/7/adjust",
                json={"quantity_change": "-5", "employee_id": 3, "reason": "Waste"},
            )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "insufficient_stock"

    def test_adjust_stock_restock(self, client):
        adjustment = SimpleNamespace(
            id=1,
            ingredient_id=7,
            quantity_change=Decimal("2.5"),
            employee_id=3,
            reason=AdjustmentReason.RESTOCK,
            note="delivery",
            created_at="2026-05-01 12:00:00",
        )
        with patch('app.api.v1.inventory.adjust_stock', AsyncMock(return_value=adjustment)) as mock_adjust:
            response = client.post(
                "/api/v1/inventory/7/adjust",
                json={"quantity_change": "2.5", "employee_id": 3, "note": "delivery"},
            )

        assert response.status_code == 201
        assert response.json()["data"]["reason"] == "Restock"
        args, kwargs = mock_adjust.await_args
        assert args == (7, Decimal("2.5"), 3, AdjustmentReason.RESTOCK)
        assert kwargs["note"] == "delivery"
