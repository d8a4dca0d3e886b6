from decimal import Decimal
from types import SimpleNamespace

import pytest
import pytest_asyncio
from tortoise import Tortoise

from app.core.db import init_db
from app.models.inventory import DishIngredient, Ingredient, StockAdjustment
from app.models.order import AssignedEmployee, Order, OrderItem, Product
from app.models.people import Customer, Employee, EmployeeRole
from app.schemas.order import OrderDraft, OrderItemDraft


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database for every test."""
    await init_db(db_url="sqlite://:memory:")
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def kitchen(db):
    """
    Two ingredients and four dishes:
      - pizza_base:   1 kg flour per unit
      - loaf:         3 kg flour per unit
      - cheese_toast: 0.5 kg flour + 0.25 kg cheese per unit
      - water:        no recipe
    """
    customer = await Customer.create(first_name="Ada", last_name="Lovelace", email="ada@example.com")
    chef = await Employee.create(first_name="Gino", last_name="Rossi", role=EmployeeRole.CHEF)
    waiter = await Employee.create(first_name="Mia", last_name="Chen", role=EmployeeRole.WAITER)

    flour = await Ingredient.create(name="Flour", unit="kg", quantity_in_stock=Decimal("10"))
    cheese = await Ingredient.create(
        name="Cheese", unit="kg", quantity_in_stock=Decimal("2.5"), reorder_level=Decimal("1")
    )

    pizza_base = await Product.create(name="Pizza Base", price=Decimal("5.00"))
    loaf = await Product.create(name="Loaf", price=Decimal("3.50"))
    cheese_toast = await Product.create(name="Cheese Toast", price=Decimal("4.00"))
    water = await Product.create(name="Water", price=Decimal("1.00"))

    await DishIngredient.create(product=pizza_base, ingredient=flour, quantity_needed=Decimal("1"))
    await DishIngredient.create(product=loaf, ingredient=flour, quantity_needed=Decimal("3"))
    await DishIngredient.create(product=cheese_toast, ingredient=flour, quantity_needed=Decimal("0.5"))
    await DishIngredient.create(product=cheese_toast, ingredient=cheese, quantity_needed=Decimal("0.25"))

    return SimpleNamespace(
        customer=customer,
        chef=chef,
        waiter=waiter,
        flour=flour,
        cheese=cheese,
        pizza_base=pizza_base,
        loaf=loaf,
        cheese_toast=cheese_toast,
        water=water,
    )


@pytest.fixture
def make_draft(kitchen):
    """Factory: make_draft((product, qty), ...) with the chef assigned by default."""
    def _make(*lines, employees=None, **kwargs):
        items = [OrderItemDraft(product_id=product.id, quantity=qty) for product, qty in lines]
        if employees is None:
            employees = [kitchen.chef]
        return OrderDraft(
            customer_id=kitchen.customer.id,
            items=items,
            assigned_employee_ids=[e.id for e in employees],
            **kwargs,
        )
    return _make


@pytest.fixture
def snapshot():
    """Row counts of every table the placement transaction writes, plus all stock levels."""
    async def _snapshot():
        stock = {i.id: i.quantity_in_stock for i in await Ingredient.all()}
        return {
            "orders": await Order.all().count(),
            "order_items": await OrderItem.all().count(),
            "assignments": await AssignedEmployee.all().count(),
            "adjustments": await StockAdjustment.all().count(),
            "stock": stock,
        }
    return _snapshot
