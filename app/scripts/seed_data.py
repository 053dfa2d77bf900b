# scripts/seed_data.py
import asyncio
from decimal import Decimal
from app.core.db import init_db, close_db
from app.models.catalog import Product, Recipe
from app.models.inventory import Ingredient

INGREDIENTS = [
    # slug, name, unit, quantity, min_quantity, cost_per_unit
    ("espresso-beans", "Espresso beans", "g", "5000", "500", "0.8"),
    ("milk", "Milk", "ml", "20000", "2000", "0.05"),
    ("cup-250", "Cup 250 ml", "pcs", "500", "50", "2.5"),
    ("cup-350", "Cup 350 ml", "pcs", "500", "50", "3"),
    ("chocolate-syrup", "Chocolate syrup", "ml", "3000", "300", "0.3"),
]

PRODUCTS = [
    # slug, name, price, recipes: (size_id, size_name, is_default, [(ingredient slug, amount)])
    ("espresso", "Espresso", "45", [
        (None, None, True, [("espresso-beans", "18"), ("cup-250", "1")]),
    ]),
    ("latte", "Latte", "70", [
        ("m", "M", True, [("espresso-beans", "18"), ("milk", "200"), ("cup-250", "1")]),
        ("l", "L", False, [("espresso-beans", "18"), ("milk", "300"), ("cup-350", "1")]),
    ]),
    ("mocha", "Mocha", "85", [
        ("m", "M", True, [("espresso-beans", "18"), ("milk", "180"), ("chocolate-syrup", "20"), ("cup-250", "1")]),
    ]),
]


async def seed():
    for slug, name, unit, qty, min_qty, cost in INGREDIENTS:
        ingredient, created = await Ingredient.get_or_create(slug=slug, defaults={
            "name": name, "unit": unit, "quantity": Decimal(qty),
            "min_quantity": Decimal(min_qty), "cost_per_unit": Decimal(cost),
        })
        print("Ingredient:", ingredient.slug, "created" if created else "exists")

    for slug, name, price, recipes in PRODUCTS:
        product, _ = await Product.get_or_create(slug=slug, defaults={"name": name, "price": Decimal(price)})
        # Recipes are replaced wholesale so reruns stay idempotent
        await Recipe.filter(product_id=product.id).delete()
        for size_id, size_name, is_default, lines in recipes:
            await Recipe.create(
                product=product,
                size_id=size_id,
                size_name=size_name,
                is_default=is_default,
                ingredients=[{"ingredient_slug": s, "amount": float(a)} for s, a in lines],
            )
        print("Product:", product.slug, f"({len(recipes)} recipe(s))")

    print("Catalog seeded.")


async def main():
    await init_db()
    await seed()
    await close_db()

if __name__ == "__main__":
    asyncio.run(main())
