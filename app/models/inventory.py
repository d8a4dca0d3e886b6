from enum import Enum
from tortoise import fields, models


class AdjustmentReason(str, Enum):
    USAGE = "Usage"  # Consumed by an order
    RESTOCK = "Restock"
    WASTE = "Waste"
    CORRECTION = "Correction"  # Manual stock count fix


class Ingredient(models.Model):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=255, unique=True)
    quantity_in_stock = fields.DecimalField(max_digits=14, decimal_places=3, default=0)
    unit = fields.CharField(max_length=16)  # e.g. g, ml, pcs
    reorder_level = fields.DecimalField(max_digits=14, decimal_places=3, default=0)  # For low stock warning
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "ingredients"


class DishIngredient(models.Model):
    """A recipe line: how much of one ingredient a single unit of a product consumes."""
    id = fields.IntField(primary_key=True)
    product = fields.ForeignKeyField("models.Product", related_name="recipe")
    ingredient = fields.ForeignKeyField("models.Ingredient", related_name="used_in")
    quantity_needed = fields.DecimalField(max_digits=14, decimal_places=3)

    class Meta:
        table = "dish_ingredients"
        unique_together = (("product", "ingredient"),)
        indexes = [
            ("product_id",),  # Recipe lookups per dish
        ]


class StockAdjustment(models.Model):
    """
    Append-only audit trail of every signed change to an ingredient's stock.
    Rows are written in the same transaction as the stock update they describe.
    """
    id = fields.IntField(primary_key=True)
    ingredient = fields.ForeignKeyField("models.Ingredient", related_name="adjustments")
    quantity_change = fields.DecimalField(max_digits=14, decimal_places=3)
    employee = fields.ForeignKeyField("models.Employee", related_name="stock_adjustments")
    reason = fields.CharEnumField(AdjustmentReason)
    note = fields.CharField(max_length=255, default="")
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "inventory_transactions"
        indexes = [
            ("ingredient_id",),
            ("ingredient_id", "created_at"),  # Composite: per-ingredient history
        ]
