import uuid
from decimal import Decimal
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.inventory import LossReason, MovementType, Unit


class ItemCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Product name (e.g., Tomates grappe).")
    unit: Unit = Field(Unit.PC, description="Unit of measure for quantity and price.")
    quantity: Decimal = Field(Decimal("0"), ge=0, decimal_places=3, description="Opening stock, recorded as an INITIAL movement.")
    unit_price: Optional[Decimal] = Field(None, ge=0, decimal_places=4, description="Current price per unit, if known.")
    trackable: bool = Field(True, description="Whether sales deduct stock from this item.")
    par_level: Optional[Decimal] = Field(None, ge=0, decimal_places=3, description="Reorder threshold for low-stock alerts.")
    category: Optional[str] = None


class ItemResponse(BaseModel):
    """Current cached state of an item."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    unit: Unit
    quantity: Decimal
    unit_price: Optional[Decimal] = None
    total_value: Optional[Decimal] = None
    trackable: bool
    par_level: Optional[Decimal] = None
    category: Optional[str] = None


class MovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: uuid.UUID
    movement_type: MovementType
    quantity: Decimal
    balance_after: Decimal
    movement_date: datetime
    bill_id: Optional[uuid.UUID] = None
    dispute_id: Optional[uuid.UUID] = None
    sale_id: Optional[uuid.UUID] = None
    reason: str
    description: Optional[str] = None
    loss_reason: Optional[LossReason] = None
    unit_price: Optional[Decimal] = None
    total_value: Optional[Decimal] = None


class AdjustmentRequest(BaseModel):
    delta: Decimal = Field(..., decimal_places=3, description="Signed quantity change; negative removes stock.")
    reason: str = Field(..., min_length=1)
    loss_reason: Optional[LossReason] = None
    description: Optional[str] = None


class LedgerResponse(BaseModel):
    """Items touched by a ledger operation and the movements it appended."""
    items: List[ItemResponse]
    movements: List[MovementResponse]


class LowStockEntry(BaseModel):
    item: ItemResponse
    urgency: str
    percentage_left: Decimal


class MenuStockAlert(BaseModel):
    """An ingredient of the dishes on offer running short of servings."""
    item: ItemResponse
    total_needed: Decimal
    servings_available: int
    urgency: str
    used_in_dishes: List[str]


def ledger_response(result) -> LedgerResponse:
    """Builds the response body of a ledger operation from its LedgerResult."""
    return LedgerResponse(
        items=[ItemResponse.model_validate(item) for item in result.items],
        movements=[MovementResponse.model_validate(m) for m in result.movements],
    )
