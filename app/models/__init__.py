# app/models/__init__.py
from .catalog import Product, Recipe
from .inventory import Ingredient, InventoryTransaction, TransactionType
from .order import DiscountType, Order, OrderItem, OrderStatus, OrderType, Payment, PaymentMethod, PaymentStatus
from .shift import ActivityType, Shift, ShiftActivity, ShiftStatus
from .supply import Supply, SupplyItem, SupplyStatus
from .write_off import WriteOff, WriteOffItem, WriteOffType

# Export all models
__all__ = [
    "ActivityType",
    "DiscountType",
    "Ingredient",
    "InventoryTransaction",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderType",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "Recipe",
    "Shift",
    "ShiftActivity",
    "ShiftStatus",
    "Supply",
    "SupplyItem",
    "SupplyStatus",
    "TransactionType",
    "WriteOff",
    "WriteOffItem",
    "WriteOffType",
]
