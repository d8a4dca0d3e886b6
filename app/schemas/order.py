from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

from app.models.order import OrderStatus, OrderType, PaymentMethod, PaymentStatus


class OrderItemDraft(BaseModel):
    """A single line of an order that has not been placed yet."""
    product_id: int
    quantity: int
    # Leave empty to snapshot the current catalog price at placement
    price_at_time: Optional[Decimal] = None


class OrderDraft(BaseModel):
    """
    In-memory order built by the caller and handed to place_order().
    Quantities and staff are deliberately not constrained here: the placement
    transaction validates them and reports a distinguished rejection.
    """
    customer_id: int
    order_type: OrderType = OrderType.DINE_IN
    payment_method: Optional[PaymentMethod] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemDraft] = Field(default_factory=list)
    assigned_employee_ids: List[int] = Field(default_factory=list)


class OrderPlacementResponse(BaseModel):
    """Response schema for a newly placed order (201 Created)."""
    order_id: int
    order_status: OrderStatus
    total_amount: Decimal
    message: str


class OrderStatusUpdate(BaseModel):
    """Schema for updating an order status."""
    order_status: OrderStatus


class PaymentUpdate(BaseModel):
    """Schema for updating the payment status of an order."""
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None


class OrderItemResponse(BaseModel):
    """Schema for an item inside the detailed order response."""
    product_id: int
    quantity: int
    price_at_time: str  # Use string for Decimal type serialization


class OrderDetailResponse(BaseModel):
    """Schema for fetching detailed order information."""
    id: int
    customer_id: int
    order_type: OrderType
    order_status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    total_amount: Decimal
    items: List[OrderItemResponse]
    assigned_employee_ids: List[int]
    created_at: str


class OrderTotalResponse(BaseModel):
    order_id: int
    total_amount: Decimal
