from tortoise import fields, models


class Product(models.Model):
    """
    Minimal view of a catalog product. Catalog management lives elsewhere;
    the ledger only needs the stable slug to resolve recipes.
    """
    id = fields.IntField(primary_key=True)
    slug = fields.CharField(max_length=128, unique=True)
    name = fields.CharField(max_length=255)
    price = fields.DecimalField(max_digits=12, decimal_places=2, default=0)
    is_active = fields.BooleanField(default=True)

    class Meta:
        table = "products"


class Recipe(models.Model):
    """
    Ingredients consumed per unit of a product, optionally per size.

    `ingredients` is a list of {"ingredient_slug": str, "ingredient_id": int, "amount": number};
    either reference may be missing, the slug wins when both are present.
    """
    id = fields.IntField(primary_key=True)
    product = fields.ForeignKeyField("models.Product", related_name="recipes")
    size_id = fields.CharField(max_length=64, null=True)
    size_name = fields.CharField(max_length=64, null=True)
    is_default = fields.BooleanField(default=False)
    ingredients = fields.JSONField(default=list)

    class Meta:
        table = "recipes"
        indexes = [
            ("product_id",),
        ]
