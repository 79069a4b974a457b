import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from backoffice.core.exception_handlers import status_for
from backoffice.core.exceptions import BackofficeError
from backoffice.schemas.inventory import (
    AdjustmentRequest,
    ItemCreateRequest,
    ItemResponse,
    LowStockEntry,
    MenuStockAlert,
    MovementResponse,
    ledger_response,
)
from backoffice.schemas.response import SuccessResponse
from backoffice.services.inventory_service import (
    delete_item,
    get_item,
    get_item_movements,
    get_low_stock_report,
    get_menu_stock_alerts,
    list_items,
)
from backoffice.services.ledger_service import adjust_stock, create_item

log = logging.getLogger("uvicorn")

router = APIRouter()


@router.get("/", response_model=SuccessResponse)
async def list_items_endpoint(category: Optional[str] = None):
    """Lists inventory items with their current quantity, price and value."""
    try:
        items = await list_items(category=category)
        data = [ItemResponse.model_validate(item).model_dump() for item in items]
        return SuccessResponse(data=data)
    except Exception as e:
        log.error(f"Error listing items: {e}")
        raise HTTPException(status_code=500, detail="Server failed to list items.")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_item_endpoint(item_data: ItemCreateRequest):
    """
    Creates an item. A non-zero opening quantity is recorded as an INITIAL movement.
    """
    try:
        result = await create_item(
            name=item_data.name,
            unit=item_data.unit,
            quantity=item_data.quantity,
            unit_price=item_data.unit_price,
            trackable=item_data.trackable,
            par_level=item_data.par_level,
            category=item_data.category,
        )
        return SuccessResponse(
            message=f"Item '{item_data.name}' created.",
            data=ledger_response(result).model_dump(),
        )
    except BackofficeError as e:
        log.error(f"Error creating item: {e}")
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error creating item: {e}")
        raise HTTPException(status_code=500, detail="Server failed to create item.")


@router.get("/low-stock", response_model=SuccessResponse)
async def low_stock_endpoint():
    """Items below their par level, most urgent first."""
    try:
        report = await get_low_stock_report()
        data = [
            LowStockEntry(
                item=ItemResponse.model_validate(entry["item"]),
                urgency=entry["urgency"],
                percentage_left=entry["percentage_left"],
            ).model_dump()
            for entry in report
        ]
        return SuccessResponse(data=data)
    except Exception as e:
        log.error(f"Error building low stock report: {e}")
        raise HTTPException(status_code=500, detail="Server failed to build low stock report.")


@router.get("/menu-alerts", response_model=SuccessResponse)
async def menu_alerts_endpoint():
    """Ingredients that cannot cover the next few servings of the dishes on offer."""
    try:
        alerts = await get_menu_stock_alerts()
        data = [
            MenuStockAlert(
                item=ItemResponse.model_validate(entry["item"]),
                total_needed=entry["total_needed"],
                servings_available=entry["servings_available"],
                urgency=entry["urgency"],
                used_in_dishes=entry["used_in_dishes"],
            ).model_dump()
            for entry in alerts
        ]
        return SuccessResponse(data=data)
    except Exception as e:
        log.error(f"Error building menu stock alerts: {e}")
        raise HTTPException(status_code=500, detail="Server failed to build menu stock alerts.")


@router.get("/{item_id}", response_model=SuccessResponse)
async def get_item_endpoint(item_id: UUID):
    """Current state of one item."""
    try:
        item = await get_item(item_id)
        return SuccessResponse(data=ItemResponse.model_validate(item).model_dump())
    except BackofficeError as e:
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error fetching item {item_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch item.")


@router.delete("/{item_id}", response_model=SuccessResponse)
async def delete_item_endpoint(item_id: UUID):
    try:
        await delete_item(item_id)
        return SuccessResponse(message=f"Item {item_id} deleted.")
    except BackofficeError as e:
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error deleting item {item_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to delete item.")


@router.get("/{item_id}/movements", response_model=SuccessResponse)
async def item_movements_endpoint(item_id: UUID, limit: Optional[int] = Query(None, gt=0)):
    """Movement history of an item, newest first."""
    try:
        movements = await get_item_movements(item_id, limit=limit)
        data = [MovementResponse.model_validate(m).model_dump() for m in movements]
        return SuccessResponse(data=data)
    except BackofficeError as e:
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error fetching movements for item {item_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch movements.")


@router.post("/{item_id}/adjust", response_model=SuccessResponse)
async def adjust_item_endpoint(item_id: UUID, payload: AdjustmentRequest):
    """Manual stock correction recorded as an ADJUSTMENT movement."""
    try:
        result = await adjust_stock(
            item_id,
            payload.delta,
            payload.reason,
            loss_reason=payload.loss_reason,
            description=payload.description,
        )
        log.info(f"Item {item_id} adjusted by {payload.delta}.")
        return SuccessResponse(data=ledger_response(result).model_dump())
    except BackofficeError as e:
        log.error(f"Error adjusting item {item_id}: {e}")
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error adjusting item {item_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to adjust stock.")
