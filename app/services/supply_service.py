import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from tortoise.transactions import in_transaction

from app.core.errors import NotFoundError, StateConflictError
from app.core.money import ZERO, quantize_money, to_decimal
from app.core.validation import FieldErrors, sanitize_optional, sanitize_string, validate_array, validate_number, validate_required
from app.models.shift import ActivityType
from app.models.supply import Supply, SupplyItem, SupplyStatus
from app.schemas.inventory import StockLineRequest
from app.schemas.supply import SupplyRequest, SupplyResponse
from app.services import inventory_service, shift_service

log = logging.getLogger("supply_service")


def validate_stock_lines(errors: FieldErrors, lines: Optional[List[StockLineRequest]]) -> List[StockLineRequest]:
    lines = errors.check("items", validate_array, lines, "items", min_length=1) or []
    for i, line in enumerate(lines):
        if not line.ingredient_slug and line.ingredient_id is None:
            errors.add(f"items.{i}.ingredient", "ingredient_slug or ingredient_id is required")
        errors.check(f"items.{i}.quantity", validate_number, line.quantity, f"items.{i}.quantity", min_value=0)
        if line.unit_cost is not None:
            errors.check(f"items.{i}.unit_cost", validate_number, line.unit_cost, f"items.{i}.unit_cost", min_value=0)
    return lines


async def create_supply(request: SupplyRequest) -> SupplyResponse:
    """Records an expected delivery as a draft. Stock only moves on receive."""
    errors = FieldErrors()
    errors.check("supplier_name", validate_required, {"supplier_name": request.supplier_name}, ["supplier_name"])
    lines = validate_stock_lines(errors, request.items)
    errors.raise_if_any()

    async with in_transaction() as conn:
        supply = await Supply.create(
            supplier_name=sanitize_string(request.supplier_name),
            status=SupplyStatus.DRAFT,
            notes=sanitize_optional(request.notes),
            created_by=sanitize_optional(request.created_by),
            using_db=conn,
        )
        total_cost = ZERO
        items = []
        for line in lines:
            quantity = to_decimal(line.quantity)
            unit_cost = to_decimal(line.unit_cost)
            line_total = quantize_money(quantity * unit_cost)
            total_cost += line_total
            items.append(await SupplyItem.create(
                supply=supply,
                ingredient_slug=line.ingredient_slug,
                legacy_ingredient_id=line.ingredient_id,
                ingredient_name=sanitize_string(line.ingredient_name),
                quantity=quantity,
                unit_cost=unit_cost,
                total_cost=line_total,
                using_db=conn,
            ))
        supply.total_cost = quantize_money(total_cost)
        await supply.save(update_fields=["total_cost"], using_db=conn)

    log.info(f"Supply {supply.id} from {supply.supplier_name} drafted, total {supply.total_cost}.")
    return SupplyResponse.from_models(supply, items)


async def get_supply(supply_id: UUID) -> SupplyResponse:
    supply = await Supply.get_or_none(id=supply_id)
    if not supply:
        raise NotFoundError("Supply", str(supply_id))
    items = await SupplyItem.filter(supply_id=supply.id)
    return SupplyResponse.from_models(supply, items)


async def receive_supply(supply_id: UUID, received_by: Optional[str] = None) -> SupplyResponse:
    """
    Adds every supply line to stock exactly once, books the cost on the open
    shift and marks the supply received. A second receive is rejected.
    """
    received_by = sanitize_optional(received_by) or "Unknown"

    async with in_transaction() as conn:
        supply = await Supply.filter(id=supply_id).using_db(conn).select_for_update().first()
        if not supply:
            raise NotFoundError("Supply", str(supply_id))
        if supply.status == SupplyStatus.RECEIVED:
            raise StateConflictError("Supply is already received", {"status": supply.status.value})
        if supply.status == SupplyStatus.CANCELLED:
            raise StateConflictError("Cannot receive a cancelled supply", {"status": supply.status.value})

        items = await SupplyItem.filter(supply_id=supply.id).using_db(conn)
        shift = await shift_service.get_current_shift(conn)
        shift_id = shift.id if shift else None

        warnings = await inventory_service.add_stock_lines(
            items, f"SUP-{supply.id}", conn, shift_id=shift_id, performed_by=received_by
        )

        supply.status = SupplyStatus.RECEIVED
        supply.received_at = datetime.now(timezone.utc)
        supply.received_by = received_by
        await supply.save(using_db=conn)

        if shift_id:
            await shift_service.add_supply(shift_id, supply.total_cost, conn)
            await shift_service.log_activity(shift_id, ActivityType.SUPPLY_RECEIVE, {
                "supply_id": str(supply.id),
                "supplier_name": supply.supplier_name,
                "total_cost": float(supply.total_cost),
                "received_by": received_by,
                "items_count": len(items),
            }, conn)

    log.info(f"Supply {supply.id} received by {received_by}.")
    return SupplyResponse.from_models(supply, items, warnings)


async def cancel_supply(supply_id: UUID) -> SupplyResponse:
    async with in_transaction() as conn:
        supply = await Supply.filter(id=supply_id).using_db(conn).select_for_update().first()
        if not supply:
            raise NotFoundError("Supply", str(supply_id))
        if supply.status != SupplyStatus.DRAFT:
            raise StateConflictError(
                f"Cannot cancel a supply in status {supply.status.value}", {"status": supply.status.value}
            )
        supply.status = SupplyStatus.CANCELLED
        await supply.save(update_fields=["status", "updated_at"], using_db=conn)
        items = await SupplyItem.filter(supply_id=supply.id).using_db(conn)

    log.info(f"Supply {supply.id} cancelled.")
    return SupplyResponse.from_models(supply, items)
