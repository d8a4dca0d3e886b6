from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone
from typing import Any, List, Optional

from app.models.order import AssignedEmployee, Order, OrderItem

# Newest first; id breaks ties between orders created in the same instant
_RECENT_FIRST = ("-created_at", "-id")


async def get_order_items(order_id: int, conn: Any = None) -> List[OrderItem]:
    return await OrderItem.filter(order_id=order_id).using_db(conn).order_by("id")


async def get_assigned_employees(order_id: int, conn: Any = None) -> List[int]:
    """Employee ids assigned to an order, in assignment order."""
    rows = await AssignedEmployee.filter(order_id=order_id).using_db(conn).order_by("id")
    return [row.employee_id for row in rows]


async def _hydrate(order: Order) -> Order:
    # Attached as plain attributes so callers get lists, not reverse relations
    order.line_items = await get_order_items(order.id)
    order.assigned_employee_ids = await get_assigned_employees(order.id)
    return order


async def _hydrate_all(orders: List[Order]) -> List[Order]:
    return [await _hydrate(order) for order in orders]


async def get_order(order_id: int) -> Optional[Order]:
    order = await Order.get_or_none(id=order_id)
    if order is None:
        return None
    return await _hydrate(order)


async def list_orders() -> List[Order]:
    return await _hydrate_all(await Order.all().order_by(*_RECENT_FIRST))


async def list_orders_by_customer(customer_id: int) -> List[Order]:
    return await _hydrate_all(await Order.filter(customer_id=customer_id).order_by(*_RECENT_FIRST))


async def list_orders_by_date_range(start: date, end: date) -> List[Order]:
    """Orders created on any day from `start` to `end`, both inclusive (UTC days)."""
    if end < start:
        raise ValueError("end date must not be before start date.")
    lower = datetime.combine(start, time.min, tzinfo=dt_timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=dt_timezone.utc)
    orders = await Order.filter(created_at__gte=lower, created_at__lt=upper).order_by(*_RECENT_FIRST)
    return await _hydrate_all(orders)
