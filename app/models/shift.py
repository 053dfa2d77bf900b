from enum import Enum
from tortoise import fields, models
import uuid


class ShiftStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class ActivityType(str, Enum):
    ORDER_CREATE = "order_create"
    ORDER_STATUS = "order_status"
    SUPPLY_RECEIVE = "supply_receive"
    WRITEOFF_CREATE = "writeoff_create"
    SHIFT_OPEN = "shift_open"
    SHIFT_CLOSE = "shift_close"


OPEN_MARKER = "open"


class Shift(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    opened_at = fields.DatetimeField()
    opened_by = fields.CharField(max_length=255)
    closed_at = fields.DatetimeField(null=True)
    closed_by = fields.CharField(max_length=255, null=True)
    opening_cash = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    closing_cash = fields.DecimalField(max_digits=14, decimal_places=2, null=True)
    status = fields.CharEnumField(ShiftStatus, default=ShiftStatus.OPEN)
    # "open" while the shift is open, NULL once closed. The UNIQUE index admits
    # any number of NULLs but only one "open", so two open shifts cannot coexist.
    open_marker = fields.CharField(max_length=8, null=True, unique=True)
    cash_sales = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    card_sales = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_sales = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    orders_count = fields.IntField(default=0)
    write_offs_total = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    supplies_total = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    notes = fields.TextField(null=True)

    class Meta:
        table = "shifts"
        indexes = [
            ("status",),
            ("opened_at",),
        ]


class ShiftActivity(models.Model):
    """One entry of a shift's append-only activity log. Read newest first."""
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    shift = fields.ForeignKeyField("models.Shift", related_name="activities")
    type = fields.CharEnumField(ActivityType)
    timestamp = fields.DatetimeField()
    details = fields.JSONField(default=dict)

    class Meta:
        table = "shift_activities"
        ordering = ["-timestamp"]
        indexes = [
            ("shift_id", "timestamp"),
        ]
