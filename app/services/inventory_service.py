"""
Inventory ledger: recipe resolution, stock deduction/addition and the
append-only transaction trail.

Missing product, recipe or ingredient links never abort the parent
operation. Each one is skipped, logged and reported back as a StockWarning.
"""
import logging
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple
from uuid import UUID

from tortoise.transactions import in_transaction

from app.core.errors import NotFoundError
from app.core.money import ZERO, quantize_money, to_decimal
from app.models.catalog import Product, Recipe
from app.models.inventory import Ingredient, InventoryTransaction, TransactionType
from app.schemas.inventory import StockWarning

log = logging.getLogger("inventory_service")


def _warn(code: str, message: str, **context) -> StockWarning:
    log.warning("%s %s", message, context)
    return StockWarning(code=code, message=message, context=context)


def select_recipe(recipes: Sequence[Recipe], size_id: Optional[str] = None) -> Optional[Recipe]:
    """Size match first, then the default recipe, then whichever came first."""
    if not recipes:
        return None
    if size_id:
        for recipe in recipes:
            if recipe.size_id == size_id:
                return recipe
    for recipe in recipes:
        if recipe.is_default:
            return recipe
    return recipes[0]


async def find_ingredient(
    slug: Optional[str] = None, legacy_id: Optional[int] = None, conn: Any = None, lock: bool = True
) -> Optional[Ingredient]:
    """Resolves an ingredient by stable slug, falling back to the legacy numeric id."""
    if slug:
        query = Ingredient.filter(slug=slug)
    elif legacy_id is not None:
        query = Ingredient.filter(id=legacy_id)
    else:
        return None
    query = query.using_db(conn)
    if lock:
        # Serialises concurrent read-modify-write on the same stock row
        query = query.select_for_update()
    return await query.first()


async def check_for_low_stock(ingredient: Ingredient) -> bool:
    """Logs an alert when stock sits at or below the ingredient's threshold."""
    if ingredient.is_active and ingredient.quantity <= ingredient.min_quantity:
        log.warning(
            "Low stock alert: %s - %s %s (min: %s)",
            ingredient.name, ingredient.quantity, ingredient.unit, ingredient.min_quantity,
        )
        return True
    return False


async def apply_stock_change(
    ingredient: Ingredient,
    delta: Decimal,
    tx_type: TransactionType,
    reference: str,
    conn: Any,
    shift_id: Optional[UUID] = None,
    product_slug: Optional[str] = None,
    performed_by: Optional[str] = None,
    notes: Optional[str] = None,
) -> InventoryTransaction:
    """
    Moves stock by a signed delta and records the movement.

    Negative deltas floor the stored quantity at zero. The transaction keeps
    the requested delta so an oversell stays visible in the audit trail.
    """
    previous_qty = to_decimal(ingredient.quantity)
    new_qty = previous_qty + delta
    if new_qty < ZERO:
        new_qty = ZERO

    ingredient.quantity = new_qty
    await ingredient.save(update_fields=["quantity", "updated_at"], using_db=conn)

    tx = await InventoryTransaction.create(
        type=tx_type,
        ingredient=ingredient,
        product_slug=product_slug,
        quantity=delta,
        previous_qty=previous_qty,
        new_qty=new_qty,
        reference=reference,
        performed_by=performed_by,
        notes=notes,
        shift_id=shift_id,
        using_db=conn,
    )
    await check_for_low_stock(ingredient)
    return tx


async def _find_product(item: Any, conn: Any) -> Tuple[Optional[Product], Optional[StockWarning]]:
    slug = getattr(item, "product_slug", None)
    legacy_id = getattr(item, "legacy_product_id", None)
    name = getattr(item, "product_name", None)

    if not slug and legacy_id is None:
        return None, _warn(
            "missing_product_reference", "Order item has no product reference; no recipe applied",
            product_name=name,
        )
    if slug:
        product = await Product.get_or_none(slug=slug, using_db=conn)
    else:
        product = await Product.get_or_none(id=legacy_id, using_db=conn)
    if not product:
        return None, _warn(
            "recipe_not_found", "Product not found; no recipe applied",
            product_slug=slug, product_id=legacy_id, product_name=name,
        )
    return product, None


async def _deduct_item(order_id: UUID, item: Any, shift_id: Optional[UUID], conn: Any) -> List[StockWarning]:
    warnings: List[StockWarning] = []

    product, warning = await _find_product(item, conn)
    if warning:
        return [warning]

    recipes = await Recipe.filter(product_id=product.id).order_by("id").using_db(conn)
    recipe = select_recipe(recipes, getattr(item, "size_id", None))
    if recipe is None:
        return [_warn("recipe_not_found", "No recipe for product; stock not deducted", product_slug=product.slug)]

    quantity = to_decimal(getattr(item, "quantity", 1) or 1)
    for line in recipe.ingredients or []:
        slug = line.get("ingredient_slug")
        legacy_id = line.get("ingredient_id")
        ingredient = await find_ingredient(slug, legacy_id, conn)
        if not ingredient:
            warnings.append(_warn(
                "ingredient_not_found", "Recipe ingredient not found; skipped",
                recipe_id=recipe.id, ingredient_slug=slug, ingredient_id=legacy_id,
            ))
            continue

        deduct_amount = to_decimal(line.get("amount")) * quantity
        await apply_stock_change(
            ingredient,
            -deduct_amount,
            TransactionType.SALE,
            reference=f"ORD-{order_id}",
            conn=conn,
            shift_id=shift_id,
            product_slug=product.slug,
        )
    return warnings


async def deduct_for_order(
    order_id: UUID, items: Sequence[Any], shift_id: Optional[UUID] = None, conn: Any = None
) -> List[StockWarning]:
    """
    Deducts recipe ingredients for every item of an order.

    Items need product_slug / legacy_product_id, size_id, quantity and
    product_name attributes (OrderItem rows fit). Returns the collected
    warnings; an empty list means every item was fully applied.
    """
    if conn is None:
        async with in_transaction() as tx_conn:
            return await deduct_for_order(order_id, items, shift_id, tx_conn)

    warnings: List[StockWarning] = []
    for item in items:
        warnings.extend(await _deduct_item(order_id, item, shift_id, conn))
    return warnings


async def add_stock_lines(
    lines: Sequence[Any],
    reference: str,
    conn: Any,
    shift_id: Optional[UUID] = None,
    performed_by: Optional[str] = None,
) -> List[StockWarning]:
    """Adds delivered quantities (SupplyItem-like lines) to stock."""
    warnings: List[StockWarning] = []
    for line in lines:
        quantity = to_decimal(line.quantity)
        if quantity <= ZERO:
            continue
        ingredient = await find_ingredient(line.ingredient_slug, line.legacy_ingredient_id, conn)
        if not ingredient:
            warnings.append(_warn(
                "ingredient_not_found", "Supply ingredient not found; skipped",
                ingredient_slug=line.ingredient_slug, ingredient_id=line.legacy_ingredient_id,
            ))
            continue
        await apply_stock_change(
            ingredient, quantity, TransactionType.SUPPLY, reference, conn,
            shift_id=shift_id, performed_by=performed_by,
        )
    return warnings


async def write_off_lines(
    lines: Sequence[Any],
    reference: str,
    conn: Any,
    shift_id: Optional[UUID] = None,
    performed_by: Optional[str] = None,
    notes: Optional[str] = None,
) -> Tuple[Decimal, List[StockWarning]]:
    """
    Removes lost stock (WriteOffItem-like lines), costing each line at the
    ingredient's cost_per_unit. Lines are updated in place with their cost;
    the caller persists them. Returns (total_cost, warnings).
    """
    total_cost = ZERO
    warnings: List[StockWarning] = []
    for line in lines:
        quantity = to_decimal(line.quantity)
        if quantity <= ZERO:
            continue
        ingredient = await find_ingredient(line.ingredient_slug, line.legacy_ingredient_id, conn)
        if not ingredient:
            warnings.append(_warn(
                "ingredient_not_found", "Write-off ingredient not found; skipped",
                ingredient_slug=line.ingredient_slug, ingredient_id=line.legacy_ingredient_id,
            ))
            continue

        line.unit_cost = to_decimal(ingredient.cost_per_unit)
        line.total_cost = quantize_money(quantity * line.unit_cost)
        line.ingredient_name = line.ingredient_name or ingredient.name
        total_cost += line.total_cost

        await apply_stock_change(
            ingredient, -quantity, TransactionType.WRITEOFF, reference, conn,
            shift_id=shift_id, performed_by=performed_by, notes=notes,
        )
    return quantize_money(total_cost), warnings


# ----------- Read side -----------

async def get_ingredient(slug: str) -> Ingredient:
    ingredient = await Ingredient.get_or_none(slug=slug)
    if not ingredient:
        raise NotFoundError("Ingredient", slug)
    return ingredient


async def list_low_stock() -> List[Ingredient]:
    ingredients = await Ingredient.filter(is_active=True).order_by("name")
    return [i for i in ingredients if to_decimal(i.quantity) <= to_decimal(i.min_quantity)]


async def list_transactions(
    ingredient_slug: Optional[str] = None,
    tx_type: Optional[TransactionType] = None,
    limit: int = 100,
) -> List[InventoryTransaction]:
    query = InventoryTransaction.all()
    if ingredient_slug:
        query = query.filter(ingredient__slug=ingredient_slug)
    if tx_type:
        query = query.filter(type=tx_type)
    return await query.order_by("-created_at").limit(limit)
