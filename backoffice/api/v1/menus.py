import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from backoffice.core.exception_handlers import status_for
from backoffice.core.exceptions import BackofficeError
from backoffice.schemas.menu import DishCreateRequest, MenuCreateRequest
from backoffice.schemas.response import SuccessResponse
from backoffice.services.menu_service import (
    create_dish,
    create_menu,
    delete_dish,
    get_dish_costing,
    get_menu_pricing,
    list_dish_costings,
)

log = logging.getLogger("uvicorn")

router = APIRouter()


@router.post("/dishes", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_dish_endpoint(payload: DishCreateRequest):
    try:
        dish = await create_dish(payload)
        return SuccessResponse(data={"dish_id": str(dish.id), "name": dish.name})
    except BackofficeError as e:
        log.error(f"Error creating dish: {e}")
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error creating dish: {e}")
        raise HTTPException(status_code=500, detail="Server failed to create dish.")


@router.get("/dishes/costs", response_model=SuccessResponse)
async def list_dish_costs_endpoint(active_only: bool = True):
    """Cost and margin of every dish. Unknown values are null."""
    try:
        costings = await list_dish_costings(active_only=active_only)
        return SuccessResponse(data=[c.model_dump() for c in costings])
    except Exception as e:
        log.error(f"Error computing dish costs: {e}")
        raise HTTPException(status_code=500, detail="Server failed to compute dish costs.")


@router.get("/dishes/{dish_id}/cost", response_model=SuccessResponse)
async def dish_cost_endpoint(dish_id: UUID):
    try:
        costing = await get_dish_costing(dish_id)
        return SuccessResponse(data=costing.model_dump())
    except BackofficeError as e:
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error computing cost of dish {dish_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to compute dish cost.")


@router.delete("/dishes/{dish_id}", response_model=SuccessResponse)
async def delete_dish_endpoint(dish_id: UUID):
    try:
        await delete_dish(dish_id)
        return SuccessResponse(message=f"Dish {dish_id} deleted.")
    except BackofficeError as e:
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error deleting dish {dish_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to delete dish.")


@router.post("/menus", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_menu_endpoint(payload: MenuCreateRequest):
    try:
        menu = await create_menu(payload)
        return SuccessResponse(data={"menu_id": str(menu.id), "name": menu.name})
    except BackofficeError as e:
        log.error(f"Error creating menu: {e}")
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error creating menu: {e}")
        raise HTTPException(status_code=500, detail="Server failed to create menu.")


@router.get("/menus/{menu_id}/pricing", response_model=SuccessResponse)
async def menu_pricing_endpoint(menu_id: UUID):
    """Cost range, display price and margin band of a menu."""
    try:
        summary = await get_menu_pricing(menu_id)
        return SuccessResponse(data=summary.model_dump())
    except BackofficeError as e:
        raise HTTPException(status_code=status_for(e), detail=e.message)
    except Exception as e:
        log.error(f"Error computing pricing of menu {menu_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to compute menu pricing.")
