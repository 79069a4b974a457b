import uuid
from decimal import Decimal

import pytest

from backoffice.core.exceptions import NotFoundError, ValidationError
from backoffice.models.inventory import Item, Unit
from backoffice.models.menu import Dish, MenuDish, PricingType, RecipeIngredient
from backoffice.schemas.bill import BillLine
from backoffice.schemas.menu import (
    DishCreateRequest,
    MenuCreateRequest,
    MenuDishRequest,
    MenuSectionRequest,
    RecipeLineRequest,
)
from backoffice.services import ledger_service, menu_service


def D(value) -> Decimal:
    return Decimal(str(value))


async def priced_item(name, unit_price, unit=Unit.KG):
    result = await ledger_service.create_item(name=name, unit=unit, unit_price=D(unit_price) if unit_price else None)
    return result.items[0]


async def single_ingredient_dish(name, cost, selling_price=None):
    item = await priced_item(f"{name} base", cost)
    return await menu_service.create_dish(DishCreateRequest(
        name=name,
        selling_price=D(selling_price) if selling_price else None,
        ingredients=[RecipeLineRequest(item_id=item.id, quantity=D(1), unit="KG")],
    ))


@pytest.mark.asyncio
async def test_create_dish_with_recipe(db):
    tomato = await priced_item("Tomates", "2.40")
    mozzarella = await priced_item("Mozzarella", "9.80")

    dish = await menu_service.create_dish(DishCreateRequest(
        name=" Salade Caprese ",
        selling_price=D("9.00"),
        ingredients=[
            RecipeLineRequest(item_id=tomato.id, quantity=D("0.2"), unit="KG"),
            RecipeLineRequest(item_id=mozzarella.id, quantity=D("0.125"), unit="KG"),
        ],
    ))

    assert dish.name == "Salade Caprese"
    assert await RecipeIngredient.filter(dish_id=dish.id).count() == 2

    costing = await menu_service.get_dish_costing(dish.id)
    assert costing.cost == D("1.705")
    assert costing.selling_price == D("9.00")
    assert costing.margin.quantize(D("0.01")) == D("81.06")


@pytest.mark.asyncio
async def test_create_dish_with_unknown_item(db):
    data = DishCreateRequest(
        name="Fantôme",
        ingredients=[RecipeLineRequest(item_id=uuid.uuid4(), quantity=D(1), unit="PC")],
    )
    with pytest.raises(NotFoundError):
        await menu_service.create_dish(data)
    assert await Dish.all().count() == 0


@pytest.mark.asyncio
async def test_dish_cost_follows_latest_bill_price(pending_bill):
    dish = await single_ingredient_dish("Gratin", "3.00")
    item = await Item.get(name="Gratin base")

    lines = [BillLine(item_id=item.id, item_name=item.name, quantity=D(10), unit_price=D("3.60"))]
    await ledger_service.confirm_bill(pending_bill.id, lines)

    assert (await menu_service.get_dish_costing(dish.id)).cost == D("3.60")


@pytest.mark.asyncio
async def test_unpriced_ingredient_is_reported(db):
    item = await priced_item("Truffe", None)
    dish = await menu_service.create_dish(DishCreateRequest(
        name="Risotto",
        ingredients=[RecipeLineRequest(item_id=item.id, quantity=D("0.01"), unit="KG")],
    ))

    costing = await menu_service.get_dish_costing(dish.id)
    assert costing.cost is None
    assert costing.margin is None
    assert costing.unpriced_ingredients == ["Truffe"]


@pytest.mark.asyncio
async def test_list_dish_costings_skips_inactive(db):
    await single_ingredient_dish("Soupe", "1.20", "6.00")
    inactive = await single_ingredient_dish("Velouté", "1.50", "7.00")
    inactive.is_active = False
    await inactive.save()

    costings = await menu_service.list_dish_costings()
    assert [c.name for c in costings] == ["Soupe"]
    assert len(await menu_service.list_dish_costings(active_only=False)) == 2


@pytest.mark.asyncio
async def test_fixed_price_menu_pricing(db):
    starter = await single_ingredient_dish("Entrée", "4.00")
    main = await single_ingredient_dish("Plat", "6.50")

    menu = await menu_service.create_menu(MenuCreateRequest(
        name="Menu du jour",
        pricing_type=PricingType.PRIX_FIXE,
        fixed_price=D("25.00"),
        sections=[
            MenuSectionRequest(name="Entrées", dishes=[MenuDishRequest(dish_id=starter.id)]),
            MenuSectionRequest(name="Plats", dishes=[MenuDishRequest(dish_id=main.id)]),
        ],
    ))

    summary = await menu_service.get_menu_pricing(menu.id)
    assert summary.pricing_type == "Fixed Price Menu"
    assert summary.price == "€25.00"
    assert summary.costs.min_cost == D("10.50")
    assert summary.margins.min_margin == D(58)
    assert summary.margins.max_margin == D(58)
    assert summary.margin == "58.0% - 58.0%"


@pytest.mark.asyncio
async def test_choice_menu_pricing(db):
    mains = [await single_ingredient_dish(f"Plat {c}", c) for c in ["3", "5", "8"]]
    desserts = [await single_ingredient_dish(f"Dessert {c}", c) for c in ["2", "10"]]

    menu = await menu_service.create_menu(MenuCreateRequest(
        name="Menu du midi",
        pricing_type=PricingType.CHOICE,
        fixed_price=D("20.00"),
        min_courses=1,
        max_courses=2,
        sections=[
            MenuSectionRequest(name="Plats", dishes=[MenuDishRequest(dish_id=d.id) for d in mains]),
            MenuSectionRequest(
                name="Desserts",
                is_required=False,
                is_optional=True,
                dishes=[MenuDishRequest(dish_id=d.id) for d in desserts],
            ),
        ],
    ))

    summary = await menu_service.get_menu_pricing(menu.id)
    assert summary.price == "€20.00 (1-2 courses)"
    assert summary.costs.min_cost == D(3)
    assert summary.costs.max_cost == D(18)
    assert summary.cost_range == "€3.00 - €18.00"
    assert summary.margin == "10.0% - 85.0%"

    entries = await MenuDish.filter(section__menu__id=menu.id).order_by("display_order")
    assert len(entries) == 5


@pytest.mark.asyncio
async def test_create_menu_rejects_inverted_course_bounds(db):
    with pytest.raises(ValidationError):
        await menu_service.create_menu(MenuCreateRequest(
            name="Menu", pricing_type=PricingType.CHOICE, min_courses=3, max_courses=2,
        ))


@pytest.mark.asyncio
async def test_create_menu_with_unknown_dish(db):
    with pytest.raises(NotFoundError):
        await menu_service.create_menu(MenuCreateRequest(
            name="Menu",
            sections=[MenuSectionRequest(name="Plats", dishes=[MenuDishRequest(dish_id=uuid.uuid4())])],
        ))


@pytest.mark.asyncio
async def test_unknown_menu(db):
    with pytest.raises(NotFoundError):
        await menu_service.get_menu_pricing(uuid.uuid4())


@pytest.mark.asyncio
async def test_delete_dish_cascades_recipe(db):
    dish = await single_ingredient_dish("Éphémère", "1.00")
    await menu_service.delete_dish(dish.id)

    assert await RecipeIngredient.filter(dish_id=dish.id).count() == 0
    with pytest.raises(NotFoundError):
        await menu_service.get_dish_costing(dish.id)
