from enum import Enum
from tortoise import fields, models
import uuid


class WriteOffType(str, Enum):
    EXPIRED = "expired"
    DAMAGED = "damaged"
    OTHER = "other"


class WriteOff(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    type = fields.CharEnumField(WriteOffType)
    total_cost = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    reason = fields.TextField(default="")
    performed_by = fields.CharField(max_length=255)
    shift = fields.ForeignKeyField("models.Shift", related_name="write_offs", null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "write_offs"
        indexes = [
            ("created_at",),
        ]


class WriteOffItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    write_off = fields.ForeignKeyField("models.WriteOff", related_name="items")
    ingredient_slug = fields.CharField(max_length=128, null=True)
    legacy_ingredient_id = fields.IntField(null=True)
    ingredient_name = fields.CharField(max_length=255, default="")
    quantity = fields.DecimalField(max_digits=18, decimal_places=6)
    unit_cost = fields.DecimalField(max_digits=12, decimal_places=4, default=0)
    total_cost = fields.DecimalField(max_digits=14, decimal_places=2, default=0)

    class Meta:
        table = "write_off_items"
