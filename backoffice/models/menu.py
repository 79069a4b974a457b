from enum import Enum
from tortoise import fields, models
import uuid


class PricingType(str, Enum):
    A_LA_CARTE = "A_LA_CARTE"  # Dishes priced individually
    PRIX_FIXE = "PRIX_FIXE"    # One flat price, diner gets every dish
    CHOICE = "CHOICE"          # One flat price, diner picks within sections


class Dish(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    is_active = fields.BooleanField(default=True)
    selling_price = fields.DecimalField(max_digits=12, decimal_places=2, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "dishes"
        indexes = [
            ("name",),
        ]


class RecipeIngredient(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    dish = fields.ForeignKeyField("models.Dish", related_name="recipe_ingredients", on_delete=fields.CASCADE)
    item = fields.ForeignKeyField("models.Item", related_name="recipe_ingredients", on_delete=fields.CASCADE)
    quantity_required = fields.DecimalField(max_digits=14, decimal_places=3)
    unit = fields.CharField(max_length=16)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "recipe_ingredients"
        indexes = [
            ("dish_id",),
            ("item_id",),
        ]


class Menu(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    is_active = fields.BooleanField(default=True)
    pricing_type = fields.CharEnumField(PricingType, default=PricingType.PRIX_FIXE)
    fixed_price = fields.DecimalField(max_digits=12, decimal_places=2, null=True)
    min_courses = fields.IntField(null=True)
    max_courses = fields.IntField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "menus"
        indexes = [
            ("name",),
        ]


class MenuSection(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    menu = fields.ForeignKeyField("models.Menu", related_name="sections", on_delete=fields.CASCADE)
    name = fields.CharField(max_length=255)
    display_order = fields.IntField()
    is_required = fields.BooleanField(default=True)
    is_optional = fields.BooleanField(default=False)

    class Meta:
        table = "menu_sections"
        indexes = [
            ("menu_id",),
        ]


class MenuDish(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    section = fields.ForeignKeyField("models.MenuSection", related_name="dishes", on_delete=fields.CASCADE)
    dish = fields.ForeignKeyField("models.Dish", related_name="menu_entries", on_delete=fields.CASCADE)
    price_override = fields.DecimalField(max_digits=12, decimal_places=2, null=True)
    display_order = fields.IntField(default=0)
    notes = fields.TextField(null=True)

    class Meta:
        table = "menu_dishes"
        indexes = [
            ("section_id",),
            ("dish_id",),
        ]


class Sale(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    dish = fields.ForeignKeyField("models.Dish", related_name="sales", on_delete=fields.CASCADE)
    quantity_sold = fields.IntField()
    sale_date = fields.DatetimeField(auto_now_add=True)
    notes = fields.TextField(null=True)

    class Meta:
        table = "sales"
        indexes = [
            ("dish_id",),
            ("sale_date",),
        ]
