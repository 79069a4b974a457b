import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from backoffice.models.bill import BillStatus, DisputeType
from backoffice.models.inventory import Unit


class BillCreateRequest(BaseModel):
    filename: str = Field(..., min_length=1)
    bill_date: Optional[date] = None
    total_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    raw_content: Optional[str] = Field(None, description="OCR text of the supplier bill.")


class BillLine(BaseModel):
    """One confirmed line of a supplier bill."""
    item_id: Optional[uuid.UUID] = Field(None, description="Existing item; omit to create a new one.")
    item_name: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0, decimal_places=3)
    unit: Unit = Unit.PC
    unit_price: Decimal = Field(..., ge=0, decimal_places=4)


class BillConfirmRequest(BaseModel):
    lines: List[BillLine] = Field(..., min_length=1)
    supplier: Optional[str] = None
    bill_date: Optional[date] = None
    total_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class BillResponse(BaseModel):
    id: uuid.UUID
    filename: str
    status: BillStatus
    supplier: Optional[str] = None
    bill_date: Optional[date] = None
    total_amount: Optional[Decimal] = None


class DisputeCreateRequest(BaseModel):
    bill_id: uuid.UUID
    type: DisputeType
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    amount_disputed: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class DisputeAdjustment(BaseModel):
    item_id: uuid.UUID
    delta: Decimal = Field(..., decimal_places=3, description="Signed change; a product return is negative.")

    @model_validator(mode="after")
    def non_zero(self):
        if self.delta == 0:
            raise ValueError("delta must not be zero")
        return self


class DisputeResolveRequest(BaseModel):
    resolution_notes: str = Field(..., min_length=1)
    adjustments: List[DisputeAdjustment] = Field(default_factory=list)
