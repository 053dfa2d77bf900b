from enum import Enum
from tortoise import fields, models
import uuid


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderType(str, Enum):
    DINE_IN = "dine_in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


class DiscountType(str, Enum):
    NONE = "none"
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    QR = "qr"
    ONLINE = "online"
    OTHER = "other"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Order(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order_number = fields.CharField(max_length=64)
    status = fields.CharEnumField(OrderStatus, default=OrderStatus.PENDING)
    type = fields.CharEnumField(OrderType, default=OrderType.DINE_IN)
    subtotal = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    discount_type = fields.CharEnumField(DiscountType, default=DiscountType.NONE)
    discount_value = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    discount_amount = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    total = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    table_number = fields.CharField(max_length=32, null=True)
    customer_name = fields.CharField(max_length=255, null=True)
    customer_phone = fields.CharField(max_length=64, null=True)
    notes = fields.TextField(null=True)
    created_by = fields.CharField(max_length=255, null=True)
    # Open shift at creation time, if any
    shift = fields.ForeignKeyField("models.Shift", related_name="orders", null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)
    prepared_at = fields.DatetimeField(null=True)
    completed_at = fields.DatetimeField(null=True)

    class Meta:
        table = "orders"
        indexes = [
            ("status",),                 # Status-based filtering
            ("created_at",),             # Time-based queries
            ("shift_id",),               # Shift reconciliation
            ("status", "created_at"),    # Composite: status with time
        ]


class OrderItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order = fields.ForeignKeyField("models.Order", related_name="items")
    product_name = fields.CharField(max_length=255)
    # Stable product key; legacy_product_id is the numeric fallback from older imports
    product_slug = fields.CharField(max_length=128, null=True)
    legacy_product_id = fields.IntField(null=True)
    size_id = fields.CharField(max_length=64, null=True)
    size_name = fields.CharField(max_length=64, null=True)
    quantity = fields.IntField()
    unit_price = fields.DecimalField(max_digits=12, decimal_places=2)
    line_total = fields.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        table = "order_items"
        indexes = [
            ("order_id",),              # Order line items
            ("product_slug",),          # Product popularity
        ]


class Payment(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order = fields.OneToOneField("models.Order", related_name="payment")
    method = fields.CharEnumField(PaymentMethod)
    amount = fields.DecimalField(max_digits=14, decimal_places=2)
    status = fields.CharEnumField(PaymentStatus, default=PaymentStatus.PENDING)
    processed_at = fields.DatetimeField(null=True)

    class Meta:
        table = "payments"
