import logging

from fastapi import APIRouter, HTTPException, status

from backoffice.core.exception_handlers import status_for
from backoffice.core.exceptions import BackofficeError
from backoffice.schemas.inventory import ledger_response
from backoffice.schemas.menu import SaleRequest
from backoffice.schemas.response import SuccessResponse
from backoffice.services.ledger_service import record_sale

log = logging.getLogger("uvicorn")

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def record_sale_endpoint(payload: SaleRequest):
    """Records a dish sale and deducts its ingredients from stock."""
    try:
        result = await record_sale(payload.dish_id, payload.quantity_sold, notes=payload.notes)
        data = ledger_response(result).model_dump()
        data["sale_id"] = str(result.reference_id)
        return SuccessResponse(message="Sale recorded", data=data)
    except BackofficeError as e:
        log.error(f"Error recording sale of dish {payload.dish_id}: {e}")
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error recording sale of dish {payload.dish_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to record sale.")
