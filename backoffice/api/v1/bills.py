import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from backoffice.core.exception_handlers import status_for
from backoffice.core.exceptions import BackofficeError
from backoffice.models.bill import Bill
from backoffice.schemas.bill import BillConfirmRequest, BillCreateRequest, BillResponse
from backoffice.schemas.inventory import ledger_response
from backoffice.schemas.response import SuccessResponse
from backoffice.services.ledger_service import confirm_bill

log = logging.getLogger("uvicorn")

router = APIRouter()


def _bill_data(bill: Bill, supplier_name=None) -> dict:
    return BillResponse(
        id=bill.id,
        filename=bill.filename,
        status=bill.status,
        supplier=supplier_name,
        bill_date=bill.bill_date,
        total_amount=bill.total_amount,
    ).model_dump()


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_bill_endpoint(bill_data: BillCreateRequest):
    """Registers an uploaded supplier bill, pending confirmation."""
    try:
        bill = await Bill.create(
            filename=bill_data.filename,
            bill_date=bill_data.bill_date,
            total_amount=bill_data.total_amount,
            raw_content=bill_data.raw_content,
        )
        log.info(f"Bill {bill.id} registered from {bill.filename}.")
        return SuccessResponse(data=_bill_data(bill))
    except Exception as e:
        log.error(f"Error creating bill: {e}")
        raise HTTPException(status_code=500, detail="Server failed to create bill.")


@router.get("/{bill_id}", response_model=SuccessResponse)
async def get_bill_endpoint(bill_id: UUID):
    try:
        bill = await Bill.get_or_none(id=bill_id).prefetch_related("supplier")
        if not bill:
            raise HTTPException(status_code=404, detail="Bill not found")
        supplier_name = bill.supplier.name if bill.supplier_id else None
        return SuccessResponse(data=_bill_data(bill, supplier_name))
    except HTTPException:
        raise
    except Exception as e:
        log.error(f"Error fetching bill {bill_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch bill.")


@router.post("/{bill_id}/confirm", response_model=SuccessResponse)
async def confirm_bill_endpoint(bill_id: UUID, payload: BillConfirmRequest):
    """
    Confirms the bill lines and receives the stock. New items are created for
    lines without an item id. All lines are applied or none are.
    """
    try:
        result = await confirm_bill(
            bill_id,
            payload.lines,
            supplier_name=payload.supplier,
            bill_date=payload.bill_date,
            total_amount=payload.total_amount,
        )
        return SuccessResponse(
            message="Bill confirmed and inventory updated",
            data=ledger_response(result).model_dump(),
        )
    except BackofficeError as e:
        log.error(f"Error confirming bill {bill_id}: {e}")
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error confirming bill {bill_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to confirm bill.")
