# app/models/__init__.py
from .inventory import AdjustmentReason, DishIngredient, Ingredient, StockAdjustment
from .order import (
    AssignedEmployee,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    PaymentMethod,
    PaymentStatus,
    Product,
)
from .people import Customer, Employee, EmployeeRole

# Export all models
__all__ = [
    "AdjustmentReason",
    "AssignedEmployee",
    "Customer",
    "DishIngredient",
    "Employee",
    "EmployeeRole",
    "Ingredient",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderType",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "StockAdjustment",
]
