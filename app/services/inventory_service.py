import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from tortoise.transactions import in_transaction

from app.core.exceptions import IngredientNotFoundError, InsufficientStockError
from app.models.inventory import AdjustmentReason, Ingredient, StockAdjustment
from app.services.recipe_service import quantize_stock

log = logging.getLogger("inventory_service")


@dataclass(frozen=True)
class Shortage:
    ingredient_id: int
    required: Decimal
    available: Decimal
    missing: bool = False  # No ingredient row at all


async def _current_stock(ingredient_ids: List[int], conn: Any = None) -> Dict[int, Decimal]:
    ingredients = await Ingredient.filter(id__in=ingredient_ids).using_db(conn)
    return {ing.id: ing.quantity_in_stock for ing in ingredients}


async def find_shortages(requirements: Mapping[int, Decimal], conn: Any = None) -> List[Shortage]:
    """Every ingredient whose stock cannot cover the requirement. A missing row counts as zero stock."""
    if not requirements:
        return []
    stock = await _current_stock(list(requirements), conn=conn)
    shortages = []
    for ingredient_id, required in sorted(requirements.items()):
        available = stock.get(ingredient_id)
        if available is None:
            shortages.append(Shortage(ingredient_id, required, Decimal("0"), missing=True))
        elif available < required:
            shortages.append(Shortage(ingredient_id, required, available))
    return shortages


async def has_sufficient_stock(requirements: Mapping[int, Decimal], conn: Any = None) -> bool:
    """
    Read-only availability check used before opening a write transaction.
    Only a fast path: adjust_stock() re-checks every deduction under a row lock.
    """
    return not await find_shortages(requirements, conn=conn)


async def _apply_adjustment(
    ingredient_id: int,
    delta: Decimal,
    employee_id: int,
    reason: AdjustmentReason,
    note: str,
    conn: Any,
) -> StockAdjustment:
    # Lock the row so the non-negativity check and the write are one atomic step
    ingredient = await Ingredient.filter(id=ingredient_id).using_db(conn).select_for_update().first()
    if ingredient is None:
        raise IngredientNotFoundError(ingredient_id)

    new_qty = ingredient.quantity_in_stock + delta
    if new_qty < 0:
        raise InsufficientStockError(ingredient_id, ingredient.quantity_in_stock, delta)

    ingredient.quantity_in_stock = new_qty
    await ingredient.save(update_fields=["quantity_in_stock", "updated_at"], using_db=conn)

    adjustment = await StockAdjustment.create(
        ingredient_id=ingredient_id,
        quantity_change=delta,
        employee_id=employee_id,
        reason=reason,
        note=note,
        using_db=conn,
    )

    if delta < 0 and new_qty <= ingredient.reorder_level:
        log.warning(f"Low stock: ingredient {ingredient.name} ({ingredient_id}) at {new_qty} {ingredient.unit}")
    return adjustment


async def adjust_stock(
    ingredient_id: int,
    delta: Decimal,
    employee_id: int,
    reason: AdjustmentReason,
    note: str = "",
    conn: Any = None,
) -> StockAdjustment:
    """
    Applies a signed change to an ingredient's stock and appends the audit record.

    Runs inside the caller's transaction when `conn` is given, otherwise in its own.
    Raises IngredientNotFoundError or InsufficientStockError; stock is never clamped.
    """
    delta = quantize_stock(delta)
    if delta == 0:
        raise ValueError("Stock adjustment must be non-zero.")

    if conn is None:
        async with in_transaction() as own_conn:
            return await _apply_adjustment(ingredient_id, delta, employee_id, reason, note, own_conn)
    return await _apply_adjustment(ingredient_id, delta, employee_id, reason, note, conn)


async def get_stock(ingredient_id: int) -> Optional[Ingredient]:
    return await Ingredient.get_or_none(id=ingredient_id)


async def list_adjustments(ingredient_id: int) -> List[StockAdjustment]:
    """Audit trail of one ingredient, newest first."""
    return await StockAdjustment.filter(ingredient_id=ingredient_id).order_by("-created_at", "-id")
