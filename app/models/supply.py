from enum import Enum
from tortoise import fields, models
import uuid


class SupplyStatus(str, Enum):
    DRAFT = "draft"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class Supply(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    supplier_name = fields.CharField(max_length=255)
    status = fields.CharEnumField(SupplyStatus, default=SupplyStatus.DRAFT)
    total_cost = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    notes = fields.TextField(null=True)
    created_by = fields.CharField(max_length=255, null=True)
    received_by = fields.CharField(max_length=255, null=True)
    received_at = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "supplies"
        indexes = [
            ("status",),
            ("created_at",),
        ]


class SupplyItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    supply = fields.ForeignKeyField("models.Supply", related_name="items")
    ingredient_slug = fields.CharField(max_length=128, null=True)
    legacy_ingredient_id = fields.IntField(null=True)
    ingredient_name = fields.CharField(max_length=255, default="")
    quantity = fields.DecimalField(max_digits=18, decimal_places=6)
    unit_cost = fields.DecimalField(max_digits=12, decimal_places=4, default=0)
    total_cost = fields.DecimalField(max_digits=14, decimal_places=2, default=0)

    class Meta:
        table = "supply_items"
