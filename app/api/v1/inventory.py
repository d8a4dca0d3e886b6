import logging
from fastapi import APIRouter, HTTPException, status

from app.models.inventory import StockAdjustment
from app.schemas.inventory import StockAdjustmentRequest, StockAdjustmentResponse, StockResponse
from app.schemas.response import SuccessResponse
from app.services.inventory_service import adjust_stock, get_stock, list_adjustments

log = logging.getLogger("api.inventory")

router = APIRouter()


def _adjustment(adj: StockAdjustment) -> dict:
    return StockAdjustmentResponse(
        id=adj.id,
        ingredient_id=adj.ingredient_id,
        quantity_change=adj.quantity_change,
        employee_id=adj.employee_id,
        reason=adj.reason,
        note=adj.note,
        created_at=str(adj.created_at),
    ).model_dump(mode="json")


@router.get("/{ingredient_id}", response_model=SuccessResponse)
async def get_stock_endpoint(ingredient_id: int):
    """Fetches the current stock of an ingredient."""
    ingredient = await get_stock(ingredient_id)
    if not ingredient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ingredient not found.")

    data = StockResponse(
        ingredient_id=ingredient.id,
        name=ingredient.name,
        quantity_in_stock=ingredient.quantity_in_stock,
        unit=ingredient.unit,
        updated_at=str(ingredient.updated_at),
    ).model_dump(mode="json")
    return SuccessResponse(data=data)


@router.post("/{ingredient_id}/adjust", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def adjust_stock_endpoint(ingredient_id: int, payload: StockAdjustmentRequest):
    """
    Applies a signed stock change (restock, waste, correction) and records it
    in the audit trail. Refused with 409 if it would make the stock negative.
    """
    adjustment = await adjust_stock(
        ingredient_id,
        payload.quantity_change,
        payload.employee_id,
        payload.reason,
        note=payload.note,
    )
    log.info(f"Ingredient {ingredient_id} adjusted by {adjustment.quantity_change} ({payload.reason.value}).")
    return SuccessResponse(data=_adjustment(adjustment))


@router.get("/{ingredient_id}/adjustments", response_model=SuccessResponse)
async def list_adjustments_endpoint(ingredient_id: int):
    """Audit trail of an ingredient, newest first."""
    if not await get_stock(ingredient_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ingredient not found.")
    adjustments = await list_adjustments(ingredient_id)
    return SuccessResponse(data=[_adjustment(a) for a in adjustments])
