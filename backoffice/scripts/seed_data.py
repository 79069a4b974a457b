# scripts/seed_data.py
import asyncio
import logging
from datetime import date
from decimal import Decimal

from tortoise import Tortoise

from backoffice.core.config import LOG_FORMAT, LOG_LEVEL
from backoffice.core.db import init_db
from backoffice.models.bill import Bill
from backoffice.models.inventory import Unit
from backoffice.models.menu import PricingType
from backoffice.schemas.bill import BillLine
from backoffice.schemas.menu import (
    DishCreateRequest,
    MenuCreateRequest,
    MenuDishRequest,
    MenuSectionRequest,
    RecipeLineRequest,
)
from backoffice.services.ledger_service import confirm_bill
from backoffice.services.menu_service import create_dish, create_menu, get_menu_pricing

log = logging.getLogger("seed")


async def seed():
    # Receive a first delivery; every line creates a new item
    bill = await Bill.create(filename="seed-bill.pdf")
    result = await confirm_bill(
        bill.id,
        [
            BillLine(item_name="Tomates grappe", quantity=Decimal("5"), unit=Unit.KG, unit_price=Decimal("2.40")),
            BillLine(item_name="Mozzarella", quantity=Decimal("3"), unit=Unit.KG, unit_price=Decimal("9.80")),
            BillLine(item_name="Basilic", quantity=Decimal("4"), unit=Unit.BUNCH, unit_price=Decimal("1.20")),
            BillLine(item_name="Pâte à pizza", quantity=Decimal("20"), unit=Unit.PC, unit_price=Decimal("0.65")),
        ],
        supplier_name="Primeurs du Marché",
        bill_date=date.today(),
        total_amount=Decimal("58.60"),
    )
    items = {item.name: item for item in result.items}
    log.info(f"Items: {', '.join(f'{name}={item.id}' for name, item in items.items())}")

    caprese = await create_dish(DishCreateRequest(
        name="Salade Caprese",
        selling_price=Decimal("11.00"),
        ingredients=[
            RecipeLineRequest(item_id=items["Tomates grappe"].id, quantity=Decimal("0.2"), unit="KG"),
            RecipeLineRequest(item_id=items["Mozzarella"].id, quantity=Decimal("0.125"), unit="KG"),
            RecipeLineRequest(item_id=items["Basilic"].id, quantity=Decimal("0.1"), unit="BUNCH"),
        ],
    ))
    margherita = await create_dish(DishCreateRequest(
        name="Pizza Margherita",
        selling_price=Decimal("13.50"),
        ingredients=[
            RecipeLineRequest(item_id=items["Pâte à pizza"].id, quantity=Decimal("1"), unit="PC"),
            RecipeLineRequest(item_id=items["Tomates grappe"].id, quantity=Decimal("0.15"), unit="KG"),
            RecipeLineRequest(item_id=items["Mozzarella"].id, quantity=Decimal("0.125"), unit="KG"),
        ],
    ))

    menu = await create_menu(MenuCreateRequest(
        name="Menu du midi",
        pricing_type=PricingType.CHOICE,
        fixed_price=Decimal("19.00"),
        min_courses=1,
        max_courses=2,
        sections=[
            MenuSectionRequest(name="Entrée", is_required=False, is_optional=True,
                               dishes=[MenuDishRequest(dish_id=caprese.id)]),
            MenuSectionRequest(name="Plat", dishes=[MenuDishRequest(dish_id=margherita.id)]),
        ],
    ))
    summary = await get_menu_pricing(menu.id)
    log.info(f"Menu {summary.name}: {summary.price}, cost {summary.cost_range}, margin {summary.margin}")


async def main():
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    await init_db()
    await seed()
    await Tortoise.close_connections()

if __name__ == "__main__":
    asyncio.run(main())
