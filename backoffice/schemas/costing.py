"""
Read models for the costing engine.

They are assembled from the database by ``menu_service`` and are plain data:
the costing functions never touch the ORM.
"""
import uuid
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from backoffice.models.menu import PricingType


class IngredientLine(BaseModel):
    item_id: Optional[uuid.UUID] = None
    item_name: Optional[str] = None
    quantity: Decimal
    unit: Optional[str] = None
    unit_price: Optional[Decimal] = None  # Item's current price, None when unknown


class DishSnapshot(BaseModel):
    id: Optional[uuid.UUID] = None
    name: str
    selling_price: Optional[Decimal] = None
    ingredients: List[IngredientLine] = Field(default_factory=list)


class MenuDishSnapshot(BaseModel):
    price_override: Optional[Decimal] = None
    dish: DishSnapshot


class SectionSnapshot(BaseModel):
    name: str
    is_required: bool = True
    is_optional: bool = False
    dishes: List[MenuDishSnapshot] = Field(default_factory=list)


class MenuSnapshot(BaseModel):
    id: Optional[uuid.UUID] = None
    name: str
    pricing_type: PricingType = PricingType.PRIX_FIXE
    fixed_price: Optional[Decimal] = None
    min_courses: Optional[int] = None
    max_courses: Optional[int] = None
    sections: List[SectionSnapshot] = Field(default_factory=list)


# ----------- Results -----------

class DishCosting(BaseModel):
    dish_id: Optional[uuid.UUID] = None
    name: str
    cost: Optional[Decimal] = None
    selling_price: Optional[Decimal] = None
    margin: Optional[Decimal] = None
    unpriced_ingredients: List[str] = Field(default_factory=list)


class MenuCostRange(BaseModel):
    min_cost: Decimal
    max_cost: Decimal
    average_cost: Decimal
    average_dish_cost: Decimal
    # False when at least one dish cost could not be computed (counted as 0)
    complete: bool = True


class MenuPrice(BaseModel):
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    display_price: str


class MenuMargin(BaseModel):
    min_margin: Optional[Decimal] = None      # worst case, against max cost
    max_margin: Optional[Decimal] = None      # best case, against min cost
    average_margin: Optional[Decimal] = None
    display_margin: str


class MenuPricingSummary(BaseModel):
    menu_id: Optional[uuid.UUID] = None
    name: str
    pricing_type: str
    price: str
    margin: str
    cost_range: str
    costs: MenuCostRange
    pricing: MenuPrice
    margins: MenuMargin
