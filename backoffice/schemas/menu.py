import uuid
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from backoffice.models.menu import PricingType


class RecipeLineRequest(BaseModel):
    item_id: uuid.UUID
    quantity: Decimal = Field(..., gt=0, decimal_places=3)
    unit: str = Field(..., min_length=1)


class DishCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    selling_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_active: bool = True
    ingredients: List[RecipeLineRequest] = Field(default_factory=list)


class MenuDishRequest(BaseModel):
    dish_id: uuid.UUID
    price_override: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    notes: Optional[str] = None


class MenuSectionRequest(BaseModel):
    name: str = Field(..., min_length=1)
    is_required: bool = True
    is_optional: bool = False
    dishes: List[MenuDishRequest] = Field(default_factory=list)


class MenuCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_active: bool = True
    pricing_type: PricingType = PricingType.PRIX_FIXE
    fixed_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    min_courses: Optional[int] = Field(None, ge=0)
    max_courses: Optional[int] = Field(None, ge=0)
    sections: List[MenuSectionRequest] = Field(default_factory=list)


class SaleRequest(BaseModel):
    dish_id: uuid.UUID
    quantity_sold: int = Field(..., gt=0)
    notes: Optional[str] = None
