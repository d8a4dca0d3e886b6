from enum import Enum
from tortoise import fields, models


class OrderType(str, Enum):
    DINE_IN = "DINE_IN"
    TAKEOUT = "TAKEOUT"
    DELIVERY = "DELIVERY"


class OrderStatus(str, Enum):
    PENDING = "PENDING"  # Initial state after placement
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    ONLINE = "ONLINE"


class Product(models.Model):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=255)
    price = fields.DecimalField(max_digits=12, decimal_places=2)
    is_active = fields.BooleanField(default=True)

    class Meta:
        table = "products"
        indexes = [
            ("is_active",),  # Filter active dishes
        ]


class Order(models.Model):
    id = fields.IntField(primary_key=True)
    customer = fields.ForeignKeyField("models.Customer", related_name="orders")
    created_at = fields.DatetimeField()
    order_type = fields.CharEnumField(OrderType)
    order_status = fields.CharEnumField(OrderStatus, default=OrderStatus.PENDING)
    payment_status = fields.CharEnumField(PaymentStatus, default=PaymentStatus.UNPAID)
    # Snapshot taken at placement; calculate_order_total() recomputes it from the items
    total_amount = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    payment_method = fields.CharEnumField(PaymentMethod, null=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "orders"
        indexes = [
            ("customer_id",),                    # Customer order history
            ("created_at",),                     # Date range queries
            ("order_status", "created_at"),      # Composite: status with time
        ]


class OrderItem(models.Model):
    id = fields.IntField(primary_key=True)
    order = fields.ForeignKeyField("models.Order", related_name="items")
    product = fields.ForeignKeyField("models.Product", related_name="order_items")
    quantity = fields.IntField()
    # Catalog price captured at order time so historical totals never drift
    price_at_time = fields.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        table = "order_items"
        indexes = [
            ("order_id",),              # Order line items
            ("product_id",),            # Dish popularity
        ]


class AssignedEmployee(models.Model):
    id = fields.IntField(primary_key=True)
    order = fields.ForeignKeyField("models.Order", related_name="assignments")
    employee = fields.ForeignKeyField("models.Employee", related_name="assignments")

    class Meta:
        table = "assigned_employees_to_orders"
        unique_together = (("order", "employee"),)
