from datetime import date, datetime, timezone

import pytest

from app.models.people import Customer
from app.services.order_repository import (
    get_assigned_employees,
    get_order,
    get_order_items,
    list_orders,
    list_orders_by_customer,
    list_orders_by_date_range,
)
from app.services.order_service import place_order


def _at(day: int, hour: int = 12) -> datetime:
    return datetime(2026, 5, day, hour, 0, tzinfo=timezone.utc)


@pytest.fixture
def place(make_draft, kitchen):
    async def _place(day, hour=12, customer=None, employees=None):
        draft = make_draft((kitchen.water, 1), (kitchen.pizza_base, 1), created_at=_at(day, hour), employees=employees)
        if customer is not None:
            draft.customer_id = customer.id
        result = await place_order(draft)
        assert result.placed
        return result.order_id
    return _place


async def test_get_order_hydrates_items_and_staff(kitchen, place):
    order_id = await place(1, employees=[kitchen.waiter, kitchen.chef])

    order = await get_order(order_id)

    assert [(i.product_id, i.quantity) for i in order.line_items] == [(kitchen.water.id, 1), (kitchen.pizza_base.id, 1)]
    assert order.assigned_employee_ids == [kitchen.waiter.id, kitchen.chef.id]
    assert [i.id for i in await get_order_items(order_id)] == [i.id for i in order.line_items]
    assert await get_assigned_employees(order_id) == [kitchen.waiter.id, kitchen.chef.id]


async def test_get_missing_order(db):
    assert await get_order(404) is None


async def test_list_orders_most_recent_first(place):
    older = await place(2)
    newest = await place(9)
    middle = await place(5)

    assert [o.id for o in await list_orders()] == [newest, middle, older]


async def test_list_orders_by_customer(kitchen, place):
    other = await Customer.create(first_name="Alan", last_name="Turing")
    mine_old = await place(1)
    await place(3, customer=other)
    mine_new = await place(4)

    orders = await list_orders_by_customer(kitchen.customer.id)

    assert [o.id for o in orders] == [mine_new, mine_old]
    assert all(o.line_items for o in orders)


async def test_date_range_is_inclusive(place):
    await place(1, hour=23)
    first_day = await place(2, hour=0)
    last_day = await place(4, hour=23)
    await place(5, hour=0)

    orders = await list_orders_by_date_range(date(2026, 5, 2), date(2026, 5, 4))

    assert [o.id for o in orders] == [last_day, first_day]


async def test_date_range_rejects_reversed_bounds(db):
    with pytest.raises(ValueError):
        await list_orders_by_date_range(date(2026, 5, 4), date(2026, 5, 2))
