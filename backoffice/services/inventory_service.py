import logging
from collections import defaultdict
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from backoffice.core.config import MENU_ALERT_SERVINGS
from backoffice.core.exceptions import NotFoundError
from backoffice.models.inventory import Item, StockMovement
from backoffice.models.menu import Dish, Menu, MenuDish, MenuSection, RecipeIngredient

log = logging.getLogger("backoffice.inventory")


async def get_item(item_id: UUID) -> Item:
    item = await Item.get_or_none(id=item_id)
    if not item:
        raise NotFoundError(f"Item {item_id} not found.")
    return item


async def list_items(category: Optional[str] = None) -> List[Item]:
    query = Item.all()
    if category:
        query = query.filter(category=category)
    return await query.order_by("name")


async def get_item_movements(item_id: UUID, limit: Optional[int] = None) -> List[StockMovement]:
    """Audit trail of one item, newest first."""
    await get_item(item_id)
    query = StockMovement.filter(item_id=item_id).order_by("-movement_date", "-id")
    if limit:
        query = query.limit(limit)
    return await query


async def delete_item(item_id: UUID) -> None:
    """Removes an item; its movements and recipe lines cascade."""
    item = await get_item(item_id)
    await item.delete()
    log.info(f"Item {item.name} ({item_id}) deleted")


def low_stock_urgency(quantity: Decimal, par_level: Decimal) -> str:
    if quantity <= 0:
        return "critical"
    percentage_left = quantity / par_level * 100
    if percentage_left <= 25:
        return "high"
    if percentage_left <= 50:
        return "medium"
    return "low"


URGENCY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


async def get_low_stock_report() -> List[dict]:
    """Items below their par level, most urgent first."""
    items = await Item.filter(par_level__isnull=False)
    report = []
    for item in items:
        if item.par_level <= 0 or item.quantity >= item.par_level:
            continue
        report.append({
            "item": item,
            "urgency": low_stock_urgency(item.quantity, item.par_level),
            "percentage_left": (item.quantity / item.par_level * 100).quantize(Decimal("0.1")),
        })
    report.sort(key=lambda entry: (URGENCY_ORDER[entry["urgency"]], entry["percentage_left"]))
    return report


# ----------- Menu-aware stock alerts -----------

async def _dishes_on_offer() -> List[Dish]:
    """Active dishes plus every dish of an active menu, each once."""
    dishes = {str(dish.id): dish for dish in await Dish.filter(is_active=True)}

    menu_ids = await Menu.filter(is_active=True).values_list("id", flat=True)
    section_ids = await MenuSection.filter(menu_id__in=list(menu_ids)).values_list("id", flat=True) if menu_ids else []
    dish_ids = await MenuDish.filter(section_id__in=list(section_ids)).values_list("dish_id", flat=True) if section_ids else []
    missing = {str(dish_id) for dish_id in dish_ids} - set(dishes)
    if missing:
        for dish in await Dish.filter(id__in=list(missing)):
            dishes[str(dish.id)] = dish

    return sorted(dishes.values(), key=lambda dish: dish.name)


def servings_urgency(servings: int) -> str:
    if servings == 0:
        return "critical"
    if servings <= 3:
        return "high"
    return "medium"


async def get_menu_stock_alerts() -> List[dict]:
    """
    Ingredients of the dishes on offer that cannot cover MENU_ALERT_SERVINGS
    more servings.

    For every tracked item the recipe quantities of all dishes using it are
    summed into the quantity one serving of each dish needs; the stock then
    covers floor(quantity / total_needed) servings, 0 when stock is negative.
    """
    dishes = await _dishes_on_offer()
    if not dishes:
        return []
    dish_names = {str(dish.id): dish.name for dish in dishes}

    lines = await RecipeIngredient.filter(dish_id__in=list(dish_names)).order_by("created_at")
    items = {
        str(item.id): item
        for item in await Item.filter(id__in=list({line.item_id for line in lines}), trackable=True)
    }

    total_needed = defaultdict(Decimal)
    used_in = defaultdict(list)
    for line in lines:
        item_id = str(line.item_id)
        if item_id not in items:
            continue
        total_needed[item_id] += line.quantity_required
        name = dish_names[str(line.dish_id)]
        if name not in used_in[item_id]:
            used_in[item_id].append(name)

    alerts = []
    for item_id, needed in total_needed.items():
        if needed <= 0:
            continue
        item = items[item_id]
        servings = max(int(item.quantity // needed), 0)
        if servings >= MENU_ALERT_SERVINGS:
            continue
        alerts.append({
            "item": item,
            "total_needed": needed,
            "servings_available": servings,
            "urgency": servings_urgency(servings),
            "used_in_dishes": sorted(used_in[item_id]),
        })
    alerts.sort(key=lambda entry: (URGENCY_ORDER[entry["urgency"]], entry["servings_available"], entry["item"].name))
    return alerts
