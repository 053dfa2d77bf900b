import logging
from typing import Optional

from tortoise.transactions import in_transaction

from app.core.validation import FieldErrors, sanitize_optional, sanitize_string, validate_enum, validate_required
from app.models.shift import ActivityType
from app.models.write_off import WriteOff, WriteOffItem, WriteOffType
from app.schemas.write_off import WriteOffRequest, WriteOffResponse
from app.services import inventory_service, shift_service
from app.services.supply_service import validate_stock_lines

log = logging.getLogger("write_off_service")


async def create_write_off(request: WriteOffRequest) -> WriteOffResponse:
    """
    Books a stock loss: deducts each line (floored at zero), costs it at the
    ingredient's cost_per_unit and adds the total to the open shift.
    """
    errors = FieldErrors()
    errors.check("write_off", validate_required,
                 {"type": request.type, "performed_by": request.performed_by}, ["type", "performed_by"])
    if request.type:
        errors.check("type", validate_enum, request.type, "type", [t.value for t in WriteOffType])
    lines = validate_stock_lines(errors, request.items)
    errors.raise_if_any()

    performed_by = sanitize_string(request.performed_by)
    reason: Optional[str] = sanitize_optional(request.reason)

    async with in_transaction() as conn:
        shift = await shift_service.get_current_shift(conn)
        shift_id = shift.id if shift else None

        write_off = await WriteOff.create(
            type=WriteOffType(request.type),
            reason=reason or "",
            performed_by=performed_by,
            shift_id=shift_id,
            using_db=conn,
        )
        items = [
            WriteOffItem(
                write_off=write_off,
                ingredient_slug=line.ingredient_slug,
                legacy_ingredient_id=line.ingredient_id,
                ingredient_name=sanitize_string(line.ingredient_name),
                quantity=line.quantity,
            )
            for line in lines
        ]
        total_cost, warnings = await inventory_service.write_off_lines(
            items, f"WO-{write_off.id}", conn,
            shift_id=shift_id, performed_by=performed_by,
            notes=reason or f"Write-off: {write_off.type.value}",
        )
        for item in items:
            await item.save(using_db=conn)

        write_off.total_cost = total_cost
        await write_off.save(update_fields=["total_cost"], using_db=conn)

        if shift_id:
            await shift_service.add_write_off(shift_id, total_cost, conn)
            await shift_service.log_activity(shift_id, ActivityType.WRITEOFF_CREATE, {
                "write_off_id": str(write_off.id),
                "type": write_off.type.value,
                "total_cost": float(total_cost),
                "performed_by": performed_by,
                "items_count": len(items),
            }, conn)

    log.info(f"Write-off {write_off.id} ({write_off.type.value}) created, cost {total_cost}.")
    return WriteOffResponse.from_models(write_off, items, warnings)
