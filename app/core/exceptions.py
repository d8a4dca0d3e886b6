from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from app.services.inventory_service import Shortage


class OrderPlacementError(Exception):
    """Base class for every failure raised while placing an order."""


class OrderValidationError(OrderPlacementError):
    """The order draft is malformed; raised before anything is written."""


class InsufficientInventoryError(OrderPlacementError):
    """Business rejection: at least one ingredient cannot cover the order."""

    def __init__(self, message: str, shortages: Optional[List["Shortage"]] = None):
        super().__init__(message)
        self.shortages = shortages or []


class PersistenceError(OrderPlacementError):
    """A data-store write failed inside the placement unit of work."""


class PartialBatchError(PersistenceError):
    """Fewer rows were written than the batch requested."""

    def __init__(self, table: str, expected: int, written: int):
        super().__init__(f"Partial batch write to {table}: expected {expected} rows, wrote {written}")
        self.table = table
        self.expected = expected
        self.written = written


class StockAdjustmentError(Exception):
    """Base class for refused inventory ledger adjustments."""

    def __init__(self, message: str, ingredient_id: int):
        super().__init__(message)
        self.ingredient_id = ingredient_id


class IngredientNotFoundError(StockAdjustmentError):
    def __init__(self, ingredient_id: int):
        super().__init__(f"Ingredient {ingredient_id} not found", ingredient_id)


class InsufficientStockError(StockAdjustmentError):
    """The adjustment would drive stock below zero."""

    def __init__(self, ingredient_id: int, available: Decimal, delta: Decimal):
        super().__init__(
            f"Insufficient stock for ingredient {ingredient_id}: have {available}, change {delta}",
            ingredient_id,
        )
        self.available = available
        self.delta = delta


class OrderNotFoundError(Exception):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class OrderStateError(Exception):
    """A lifecycle update is not allowed from the order's current state."""

