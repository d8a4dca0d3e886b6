# scripts/seed_data.py
import asyncio
from decimal import Decimal
from tortoise import Tortoise
from app.core.db import init_db
from app.models.inventory import DishIngredient, Ingredient
from app.models.order import Product
from app.models.people import Customer, Employee, EmployeeRole

INGREDIENTS = {
    # name: (unit, stock, reorder level)
    "Flour": ("kg", "25.000", "5.000"),
    "Mozzarella": ("kg", "10.000", "2.000"),
    "Tomato Sauce": ("l", "8.000", "1.500"),
    "Basil": ("g", "500.000", "50.000"),
}

RECIPES = {
    # product: (price, {ingredient: per-unit quantity})
    "Margherita Pizza": ("12.50", {"Flour": "0.250", "Mozzarella": "0.150", "Tomato Sauce": "0.100", "Basil": "5.000"}),
    "Garlic Bread": ("4.00", {"Flour": "0.150"}),
    "Bottled Water": ("1.50", {}),
}


async def seed():
    customer, _ = await Customer.get_or_create(
        first_name="Ada", last_name="Lovelace", defaults={"email": "ada@example.com"}
    )
    chef, _ = await Employee.get_or_create(first_name="Gino", last_name="Rossi", defaults={"role": EmployeeRole.CHEF})
    waiter, _ = await Employee.get_or_create(first_name="Mia", last_name="Chen", defaults={"role": EmployeeRole.WAITER})
    print("Customer:", customer.id, "Employees:", chef.id, waiter.id)

    ingredients = {}
    for name, (unit, stock, reorder) in INGREDIENTS.items():
        ing, _ = await Ingredient.get_or_create(
            name=name, defaults={"unit": unit, "reorder_level": Decimal(reorder)}
        )
        # If existing, reset quantities (idempotent)
        ing.quantity_in_stock = Decimal(stock)
        await ing.save()
        ingredients[name] = ing

    for name, (price, recipe) in RECIPES.items():
        product, _ = await Product.get_or_create(name=name, defaults={"price": Decimal(price)})
        for ing_name, qty in recipe.items():
            await DishIngredient.get_or_create(
                product=product, ingredient=ingredients[ing_name], defaults={"quantity_needed": Decimal(qty)}
            )
        print("Product:", product.id, name)

    print("Inventory seeded.")


async def main():
    await init_db()
    await seed()
    await Tortoise.close_connections()

if __name__ == "__main__":
    asyncio.run(main())
