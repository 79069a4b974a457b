"""
Menu costing engine.

Pure functions over the read models in ``backoffice.schemas.costing``. Nothing
here reads or writes the database, so the same snapshot always yields the
same figures.

Undefined results are ``None``: a dish whose cost cannot be computed has
``cost=None`` (never 0), and margins are ``None`` unless both a positive cost
and a positive price exist.
"""
from decimal import Decimal
from typing import List, Optional

from backoffice.core.config import CURRENCY_SYMBOL
from backoffice.models.menu import PricingType
from backoffice.schemas.costing import (
    DishCosting,
    DishSnapshot,
    MenuCostRange,
    MenuDishSnapshot,
    MenuMargin,
    MenuPrice,
    MenuPricingSummary,
    MenuSnapshot,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

PRICING_TYPE_LABELS = {
    PricingType.PRIX_FIXE: "Fixed Price Menu",
    PricingType.CHOICE: "Choice Menu",
    PricingType.A_LA_CARTE: "À la carte",
}


def format_currency(amount: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{amount:.2f}"


# ----------- Dishes -----------

def calculate_dish_cost(dish: DishSnapshot) -> Optional[Decimal]:
    """
    Sum of quantity x unit price over the recipe lines.

    Returns None when the dish has no recipe lines or when any ingredient has
    no known price. A dish whose ingredients are all priced at 0 costs 0.
    """
    if not dish.ingredients:
        return None
    if any(line.unit_price is None for line in dish.ingredients):
        return None
    return sum((line.quantity * line.unit_price for line in dish.ingredients), ZERO)


def margin_percentage(price: Optional[Decimal], cost: Optional[Decimal]) -> Optional[Decimal]:
    """(price - cost) / price x 100, only defined for a positive price and a positive cost."""
    if price is None or cost is None:
        return None
    if price <= 0 or cost <= 0:
        return None
    return (price - cost) / price * HUNDRED


def calculate_dish_margin(dish: DishSnapshot, selling_price: Optional[Decimal] = None) -> Optional[Decimal]:
    price = selling_price if selling_price is not None else dish.selling_price
    return margin_percentage(price, calculate_dish_cost(dish))


def get_menu_dish_price(menu_dish: MenuDishSnapshot) -> Optional[Decimal]:
    """The price override wins over the dish's own selling price."""
    if menu_dish.price_override is not None:
        return menu_dish.price_override
    return menu_dish.dish.selling_price


def dish_costing(dish: DishSnapshot, selling_price: Optional[Decimal] = None) -> DishCosting:
    price = selling_price if selling_price is not None else dish.selling_price
    cost = calculate_dish_cost(dish)
    return DishCosting(
        dish_id=dish.id,
        name=dish.name,
        cost=cost,
        selling_price=price,
        margin=margin_percentage(price, cost),
        unpriced_ingredients=[
            line.item_name or str(line.item_id)
            for line in dish.ingredients
            if line.unit_price is None
        ],
    )


# ----------- Menus -----------

def _cost_or_zero(menu_dish: MenuDishSnapshot) -> Decimal:
    cost = calculate_dish_cost(menu_dish.dish)
    return cost if cost is not None else ZERO


def _all_dishes(menu: MenuSnapshot) -> List[MenuDishSnapshot]:
    return [md for section in menu.sections for md in section.dishes]


def calculate_menu_cost_range(menu: MenuSnapshot) -> MenuCostRange:
    """
    Cost bounds of one cover of the menu.

    Dishes whose cost is unknown count as 0 and flip ``complete`` to False.

    PRIX_FIXE: every dish is served, so min = max = average = total cost.
    CHOICE: min is the cheapest dish of each required section; max is the
    priciest dish of every section, optional ones included (a conservative
    bound that ignores min/max course counts); average is the plain mean of
    every dish cost on the menu.
    A_LA_CARTE: bounds of a single dish.
    """
    dishes = _all_dishes(menu)
    costs = [_cost_or_zero(md) for md in dishes]
    complete = all(calculate_dish_cost(md.dish) is not None for md in dishes)
    total = sum(costs, ZERO)
    average_dish_cost = total / len(costs) if costs else ZERO

    if menu.pricing_type == PricingType.PRIX_FIXE:
        return MenuCostRange(
            min_cost=total,
            max_cost=total,
            average_cost=total,
            average_dish_cost=average_dish_cost,
            complete=complete,
        )

    if menu.pricing_type == PricingType.A_LA_CARTE:
        return MenuCostRange(
            min_cost=min(costs) if costs else ZERO,
            max_cost=max(costs) if costs else ZERO,
            average_cost=average_dish_cost,
            average_dish_cost=average_dish_cost,
            complete=complete,
        )

    required = [s for s in menu.sections if s.is_required]
    optional = [s for s in menu.sections if s.is_optional or not s.is_required]

    min_cost = ZERO
    max_cost = ZERO
    for section in required:
        section_costs = [_cost_or_zero(md) for md in section.dishes]
        if section_costs:
            min_cost += min(section_costs)
            max_cost += max(section_costs)
    for section in optional:
        section_costs = [_cost_or_zero(md) for md in section.dishes]
        if section_costs:
            max_cost += max(section_costs)

    return MenuCostRange(
        min_cost=min_cost,
        max_cost=max_cost,
        average_cost=average_dish_cost,
        average_dish_cost=average_dish_cost,
        complete=complete,
    )


def _courses_text(menu: MenuSnapshot) -> Optional[str]:
    if menu.min_courses is None and menu.max_courses is None:
        return None
    if menu.min_courses is None or menu.max_courses is None:
        return f"{menu.min_courses if menu.min_courses is not None else menu.max_courses} courses"
    if menu.min_courses == menu.max_courses:
        return f"{menu.min_courses} courses"
    return f"{menu.min_courses}-{menu.max_courses} courses"


def calculate_menu_price(menu: MenuSnapshot) -> MenuPrice:
    if not menu.fixed_price:
        return MenuPrice(display_price="Price not set")

    display_price = format_currency(menu.fixed_price)
    if menu.pricing_type == PricingType.CHOICE:
        courses = _courses_text(menu)
        if courses:
            display_price = f"{display_price} ({courses})"

    return MenuPrice(
        min_price=menu.fixed_price,
        max_price=menu.fixed_price,
        display_price=display_price,
    )


def calculate_menu_margin(menu: MenuSnapshot, cost_range: Optional[MenuCostRange] = None) -> MenuMargin:
    """Worst/best case margins of the fixed price against the cost range."""
    if menu.pricing_type == PricingType.A_LA_CARTE:
        return MenuMargin(display_margin="N/A")

    costs = cost_range or calculate_menu_cost_range(menu)
    worst = margin_percentage(menu.fixed_price, costs.max_cost)
    best = margin_percentage(menu.fixed_price, costs.min_cost)
    average = None
    if menu.pricing_type == PricingType.PRIX_FIXE:
        average = margin_percentage(menu.fixed_price, costs.average_cost)

    if worst is not None and best is not None:
        display = f"{worst:.1f}% - {best:.1f}%"
    else:
        display = "N/A"

    return MenuMargin(
        min_margin=worst,
        max_margin=best,
        average_margin=average,
        display_margin=display,
    )


def get_menu_pricing_summary(menu: MenuSnapshot) -> MenuPricingSummary:
    costs = calculate_menu_cost_range(menu)
    pricing = calculate_menu_price(menu)
    margins = calculate_menu_margin(menu, costs)

    if menu.pricing_type == PricingType.PRIX_FIXE:
        cost_range = f"{format_currency(costs.min_cost)} (avg: {format_currency(costs.average_dish_cost)})"
    else:
        cost_range = f"{format_currency(costs.min_cost)} - {format_currency(costs.max_cost)}"

    return MenuPricingSummary(
        menu_id=menu.id,
        name=menu.name,
        pricing_type=PRICING_TYPE_LABELS[menu.pricing_type],
        price=pricing.display_price,
        margin=margins.display_margin,
        cost_range=cost_range,
        costs=costs,
        pricing=pricing,
        margins=margins,
    )
