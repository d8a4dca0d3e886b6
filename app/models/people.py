from enum import Enum
from tortoise import fields, models


class EmployeeRole(str, Enum):
    MANAGER = "MANAGER"
    CHEF = "CHEF"
    WAITER = "WAITER"
    CASHIER = "CASHIER"
    DRIVER = "DRIVER"


class Customer(models.Model):
    id = fields.IntField(primary_key=True)
    first_name = fields.CharField(max_length=100)
    last_name = fields.CharField(max_length=100)
    email = fields.CharField(max_length=255, null=True)
    phone = fields.CharField(max_length=32, null=True)
    address = fields.CharField(max_length=255, null=True)

    class Meta:
        table = "customers"

    def __str__(self):
        return f"{self.first_name} {self.last_name}"


class Employee(models.Model):
    id = fields.IntField(primary_key=True)
    first_name = fields.CharField(max_length=100)
    last_name = fields.CharField(max_length=100)
    role = fields.CharEnumField(EmployeeRole, default=EmployeeRole.WAITER)
    is_active = fields.BooleanField(default=True)

    class Meta:
        table = "employees"
        indexes = [
            ("is_active",),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name}"
