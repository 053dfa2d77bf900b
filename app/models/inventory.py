from enum import Enum
from tortoise import fields, models
import uuid


class TransactionType(str, Enum):
    SALE = "sale"
    SUPPLY = "supply"
    WRITEOFF = "writeoff"


class Ingredient(models.Model):
    id = fields.IntField(primary_key=True)
    slug = fields.CharField(max_length=128, unique=True)
    name = fields.CharField(max_length=255)
    unit = fields.CharField(max_length=16, default="g")
    # Current stock. Deductions floor at zero so this is never persisted negative.
    quantity = fields.DecimalField(max_digits=18, decimal_places=6, default=0)
    min_quantity = fields.DecimalField(max_digits=18, decimal_places=6, default=0)  # Low stock threshold
    cost_per_unit = fields.DecimalField(max_digits=12, decimal_places=4, default=0)
    is_active = fields.BooleanField(default=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "ingredients"
        indexes = [
            ("is_active",),
        ]


class InventoryTransaction(models.Model):
    """Append-only stock audit trail. Rows are never updated or deleted."""
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    type = fields.CharEnumField(TransactionType)
    ingredient = fields.ForeignKeyField("models.Ingredient", related_name="transactions")
    product_slug = fields.CharField(max_length=128, null=True)
    quantity = fields.DecimalField(max_digits=18, decimal_places=6)  # Signed delta
    previous_qty = fields.DecimalField(max_digits=18, decimal_places=6)
    new_qty = fields.DecimalField(max_digits=18, decimal_places=6)
    reference = fields.CharField(max_length=128)  # e.g. ORD-<id>, SUP-<id>, WO-<id>
    performed_by = fields.CharField(max_length=255, null=True)
    notes = fields.TextField(null=True)
    shift = fields.ForeignKeyField("models.Shift", related_name="inventory_transactions", null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "inventory_transactions"
        indexes = [
            ("type",),
            ("created_at",),
            ("ingredient_id",),
        ]
