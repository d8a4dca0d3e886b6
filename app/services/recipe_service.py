from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping

from app.core.config import STOCK_DECIMAL_PLACES
from app.models.inventory import DishIngredient
from app.schemas.order import OrderItemDraft

_QUANTUM = Decimal(1).scaleb(-STOCK_DECIMAL_PLACES)


def quantize_stock(value: Decimal) -> Decimal:
    """Rounds an ingredient quantity to the fixed-point precision used for stock."""
    return Decimal(value).quantize(_QUANTUM)


async def required_ingredients(product_id: int, quantity: int, conn: Any = None) -> Dict[int, Decimal]:
    """
    Ingredient quantities consumed by `quantity` units of a product.
    A product without recipe lines yields an empty mapping.
    """
    recipe = await DishIngredient.filter(product_id=product_id).using_db(conn)
    return {
        line.ingredient_id: quantize_stock(line.quantity_needed * quantity)
        for line in recipe
    }


def merge_requirements(*requirements: Mapping[int, Decimal]) -> Dict[int, Decimal]:
    """Sums several ingredient maps into one, keyed by ingredient id."""
    total: Dict[int, Decimal] = defaultdict(Decimal)
    for mapping in requirements:
        for ingredient_id, qty in mapping.items():
            total[ingredient_id] += qty
    return dict(total)


async def aggregate_requirements(items: Iterable[OrderItemDraft], conn: Any = None) -> Dict[int, Decimal]:
    """
    Total ingredient requirement of an order. Decimal addition is exact, so the
    result does not depend on the order of the items.
    """
    resolved = [await required_ingredients(item.product_id, item.quantity, conn=conn) for item in items]
    return merge_requirements(*resolved)
