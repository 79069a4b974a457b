import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from backoffice.core.exception_handlers import status_for
from backoffice.core.exceptions import BackofficeError
from backoffice.models.bill import Bill, Dispute
from backoffice.schemas.bill import DisputeCreateRequest, DisputeResolveRequest
from backoffice.schemas.inventory import ledger_response
from backoffice.schemas.response import SuccessResponse
from backoffice.services.ledger_service import resolve_dispute

log = logging.getLogger("uvicorn")

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_dispute_endpoint(payload: DisputeCreateRequest):
    """Opens a dispute against a supplier bill."""
    try:
        bill = await Bill.get_or_none(id=payload.bill_id)
        if not bill:
            raise HTTPException(status_code=404, detail=f"Bill {payload.bill_id} not found.")
        dispute = await Dispute.create(
            bill=bill,
            type=payload.type,
            title=payload.title,
            description=payload.description,
            amount_disputed=payload.amount_disputed,
        )
        return SuccessResponse(data={
            "dispute_id": str(dispute.id),
            "status": dispute.status.value,
        })
    except HTTPException:
        raise
    except Exception as e:
        log.error(f"Error creating dispute: {e}")
        raise HTTPException(status_code=500, detail="Server failed to create dispute.")


@router.post("/{dispute_id}/resolve", response_model=SuccessResponse)
async def resolve_dispute_endpoint(dispute_id: UUID, payload: DisputeResolveRequest):
    """Resolves the dispute and applies its stock adjustments atomically."""
    try:
        result = await resolve_dispute(dispute_id, payload.resolution_notes, payload.adjustments)
        return SuccessResponse(
            message="Dispute resolved successfully",
            data=ledger_response(result).model_dump(),
        )
    except BackofficeError as e:
        log.error(f"Error resolving dispute {dispute_id}: {e}")
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error resolving dispute {dispute_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to resolve dispute.")
