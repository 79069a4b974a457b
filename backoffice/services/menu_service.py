import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List
from uuid import UUID

from tortoise.transactions import in_transaction

from backoffice.core.exceptions import NotFoundError, ValidationError
from backoffice.models.inventory import Item
from backoffice.models.menu import Dish, Menu, MenuDish, MenuSection, PricingType, RecipeIngredient
from backoffice.schemas.costing import (
    DishCosting,
    DishSnapshot,
    IngredientLine,
    MenuDishSnapshot,
    MenuPricingSummary,
    MenuSnapshot,
    SectionSnapshot,
)
from backoffice.schemas.menu import DishCreateRequest, MenuCreateRequest
from backoffice.services import costing

log = logging.getLogger("backoffice.menu")


# ----------- Writes -----------

async def create_dish(data: DishCreateRequest) -> Dish:
    """Creates a dish and its recipe lines. Every referenced item must exist."""
    async with in_transaction() as conn:
        item_ids = {str(line.item_id) for line in data.ingredients}
        found = await Item.filter(id__in=list(item_ids)).using_db(conn).values_list("id", flat=True)
        missing = sorted(item_ids - {str(i) for i in found})
        if missing:
            raise NotFoundError(f"Item not found: {', '.join(missing)}", details={"item_ids": missing})

        dish = await Dish.create(
            name=data.name.strip(),
            description=data.description,
            selling_price=data.selling_price,
            is_active=data.is_active,
            using_db=conn,
        )
        for line in data.ingredients:
            await RecipeIngredient.create(
                dish=dish,
                item_id=line.item_id,
                quantity_required=line.quantity,
                unit=line.unit,
                using_db=conn,
            )

    log.info(f"Dish {dish.name} ({dish.id}) created with {len(data.ingredients)} ingredients")
    return dish


async def create_menu(data: MenuCreateRequest) -> Menu:
    """Creates a menu with its sections and dish entries, in display order."""
    if (
        data.min_courses is not None
        and data.max_courses is not None
        and data.min_courses > data.max_courses
    ):
        raise ValidationError("min_courses cannot be greater than max_courses.")
    if data.pricing_type != PricingType.A_LA_CARTE and data.fixed_price is None:
        log.warning(f"Menu {data.name} has pricing type {data.pricing_type.value} but no fixed price")

    async with in_transaction() as conn:
        dish_ids = {str(md.dish_id) for section in data.sections for md in section.dishes}
        found = await Dish.filter(id__in=list(dish_ids)).using_db(conn).values_list("id", flat=True)
        missing = sorted(dish_ids - {str(i) for i in found})
        if missing:
            raise NotFoundError(f"Dish not found: {', '.join(missing)}", details={"dish_ids": missing})

        menu = await Menu.create(
            name=data.name.strip(),
            description=data.description,
            is_active=data.is_active,
            pricing_type=data.pricing_type,
            fixed_price=data.fixed_price,
            min_courses=data.min_courses,
            max_courses=data.max_courses,
            using_db=conn,
        )
        for section_order, section_data in enumerate(data.sections):
            section = await MenuSection.create(
                menu=menu,
                name=section_data.name,
                display_order=section_order,
                is_required=section_data.is_required,
                is_optional=section_data.is_optional,
                using_db=conn,
            )
            for dish_order, entry in enumerate(section_data.dishes):
                await MenuDish.create(
                    section=section,
                    dish_id=entry.dish_id,
                    price_override=entry.price_override,
                    display_order=dish_order,
                    notes=entry.notes,
                    using_db=conn,
                )

    log.info(f"Menu {menu.name} ({menu.id}) created with {len(data.sections)} sections")
    return menu


async def delete_dish(dish_id: UUID) -> None:
    """Removes a dish; recipe lines and menu entries cascade."""
    dish = await Dish.get_or_none(id=dish_id)
    if not dish:
        raise NotFoundError(f"Dish {dish_id} not found.")
    await dish.delete()
    log.info(f"Dish {dish.name} ({dish_id}) deleted")


# ----------- Read model assembly -----------

async def load_dish_snapshots(dishes: Iterable[Dish], conn: Any = None) -> Dict[str, DishSnapshot]:
    """Joins dishes with their recipe lines and the current price of each item."""
    dishes = list(dishes)
    dish_ids = [dish.id for dish in dishes]
    line_query = RecipeIngredient.filter(dish_id__in=dish_ids).order_by("created_at")
    lines = await (line_query.using_db(conn) if conn else line_query)
    item_query = Item.filter(id__in=list({line.item_id for line in lines}))
    items = await (item_query.using_db(conn) if conn else item_query)
    item_map = {str(item.id): item for item in items}

    lines_by_dish = defaultdict(list)
    for line in lines:
        item = item_map[str(line.item_id)]
        lines_by_dish[str(line.dish_id)].append(IngredientLine(
            item_id=item.id,
            item_name=item.name,
            quantity=line.quantity_required,
            unit=line.unit,
            unit_price=item.unit_price,
        ))

    return {
        str(dish.id): DishSnapshot(
            id=dish.id,
            name=dish.name,
            selling_price=dish.selling_price,
            ingredients=lines_by_dish[str(dish.id)],
        )
        for dish in dishes
    }


async def load_menu_snapshot(menu_id: UUID) -> MenuSnapshot:
    """Reads a menu, its sections, entries, dishes and prices in one transaction."""
    async with in_transaction() as conn:
        menu = await Menu.get_or_none(id=menu_id).using_db(conn)
        if not menu:
            raise NotFoundError(f"Menu {menu_id} not found.")

        sections = await MenuSection.filter(menu_id=menu.id).using_db(conn).order_by("display_order")
        entries = await MenuDish.filter(
            section_id__in=[s.id for s in sections]
        ).using_db(conn).order_by("display_order")
        dishes = await Dish.filter(id__in=list({e.dish_id for e in entries})).using_db(conn)
        dish_snapshots = await load_dish_snapshots(dishes, conn)

    entries_by_section = defaultdict(list)
    for entry in entries:
        entries_by_section[str(entry.section_id)].append(MenuDishSnapshot(
            price_override=entry.price_override,
            dish=dish_snapshots[str(entry.dish_id)],
        ))

    return MenuSnapshot(
        id=menu.id,
        name=menu.name,
        pricing_type=menu.pricing_type,
        fixed_price=menu.fixed_price,
        min_courses=menu.min_courses,
        max_courses=menu.max_courses,
        sections=[
            SectionSnapshot(
                name=section.name,
                is_required=section.is_required,
                is_optional=section.is_optional,
                dishes=entries_by_section[str(section.id)],
            )
            for section in sections
        ],
    )


# ----------- Costing -----------

async def get_dish_costing(dish_id: UUID) -> DishCosting:
    dish = await Dish.get_or_none(id=dish_id)
    if not dish:
        raise NotFoundError(f"Dish {dish_id} not found.")
    snapshots = await load_dish_snapshots([dish])
    return costing.dish_costing(snapshots[str(dish.id)])


async def list_dish_costings(active_only: bool = True) -> List[DishCosting]:
    query = Dish.all()
    if active_only:
        query = query.filter(is_active=True)
    dishes = await query.order_by("name")
    snapshots = await load_dish_snapshots(dishes)
    return [costing.dish_costing(snapshots[str(dish.id)]) for dish in dishes]


async def get_menu_pricing(menu_id: UUID) -> MenuPricingSummary:
    snapshot = await load_menu_snapshot(menu_id)
    return costing.get_menu_pricing_summary(snapshot)
