from decimal import Decimal
from pydantic import BaseModel, Field

from app.models.inventory import AdjustmentReason


class StockResponse(BaseModel):
    """Schema for fetching ingredient stock."""
    ingredient_id: int
    name: str
    quantity_in_stock: Decimal
    unit: str
    updated_at: str


class StockAdjustmentRequest(BaseModel):
    quantity_change: Decimal = Field(..., description="Signed change; negative values consume stock.")
    employee_id: int = Field(..., description="Employee responsible for the adjustment.")
    reason: AdjustmentReason = Field(AdjustmentReason.RESTOCK, description="Reason category for the audit trail.")
    note: str = Field("", max_length=255)


class StockAdjustmentResponse(BaseModel):
    id: int
    ingredient_id: int
    quantity_change: Decimal
    employee_id: int
    reason: AdjustmentReason
    note: str
    created_at: str


class ShortageResponse(BaseModel):
    ingredient_id: int
    required: Decimal
    available: Decimal
