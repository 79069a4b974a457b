from decimal import Decimal

from backoffice.models.menu import PricingType
from backoffice.schemas.costing import (
    DishSnapshot,
    IngredientLine,
    MenuDishSnapshot,
    MenuSnapshot,
    SectionSnapshot,
)
from backoffice.services import costing


def D(value) -> Decimal:
    return Decimal(str(value))


def dish_costing_exactly(cost, name="dish", selling_price=None):
    """A dish with a single ingredient line priced so that it costs `cost`."""
    return DishSnapshot(
        name=name,
        selling_price=selling_price,
        ingredients=[IngredientLine(item_name=f"{name}-ingredient", quantity=D(1), unit_price=D(cost))],
    )


def section(name, costs, required=True, optional=False):
    return SectionSnapshot(
        name=name,
        is_required=required,
        is_optional=optional,
        dishes=[MenuDishSnapshot(dish=dish_costing_exactly(c, f"{name}-{i}")) for i, c in enumerate(costs)],
    )


class TestDishCost:

    def test_cost_is_sum_of_quantity_times_price(self):
        dish = DishSnapshot(name="Salade Caprese", ingredients=[
            IngredientLine(item_name="Tomates", quantity=D("0.2"), unit_price=D("2.40")),
            IngredientLine(item_name="Mozzarella", quantity=D("0.125"), unit_price=D("9.80")),
        ])
        assert costing.calculate_dish_cost(dish) == D("1.705")

    def test_all_ingredients_priced_at_zero_cost_zero(self):
        dish = DishSnapshot(name="Eau", ingredients=[
            IngredientLine(item_name="Eau du robinet", quantity=D(1), unit_price=D(0)),
        ])
        assert costing.calculate_dish_cost(dish) == 0
        assert costing.calculate_dish_cost(dish) is not None

    def test_missing_price_is_not_computable(self):
        dish = DishSnapshot(name="Tarte", ingredients=[
            IngredientLine(item_name="Pommes", quantity=D(1), unit_price=D("3.00")),
            IngredientLine(item_name="Pâte", quantity=D(1), unit_price=None),
        ])
        assert costing.calculate_dish_cost(dish) is None
        assert costing.dish_costing(dish).unpriced_ingredients == ["Pâte"]

    def test_dish_without_recipe_is_not_computable(self):
        assert costing.calculate_dish_cost(DishSnapshot(name="Mystère")) is None

    def test_margin(self):
        dish = dish_costing_exactly("4.00", selling_price=D("10.00"))
        assert costing.calculate_dish_margin(dish) == D("60")

    def test_margin_undefined_without_price_or_cost(self):
        assert costing.calculate_dish_margin(dish_costing_exactly("4.00")) is None
        assert costing.calculate_dish_margin(dish_costing_exactly("0", selling_price=D(10))) is None
        assert costing.calculate_dish_margin(DishSnapshot(name="x", selling_price=D(10))) is None

    def test_menu_dish_price_override_wins(self):
        dish = dish_costing_exactly("4.00", selling_price=D("12.00"))
        assert costing.get_menu_dish_price(MenuDishSnapshot(dish=dish)) == D("12.00")
        assert costing.get_menu_dish_price(MenuDishSnapshot(dish=dish, price_override=D("9.50"))) == D("9.50")
        assert costing.get_menu_dish_price(MenuDishSnapshot(dish=dish_costing_exactly("1"))) is None

    def test_recomputing_gives_identical_results(self):
        dish = dish_costing_exactly("3.30", selling_price=D("8"))
        assert costing.dish_costing(dish) == costing.dish_costing(dish)


class TestMenuCosting:

    def test_fixed_price_margins(self):
        menu = MenuSnapshot(
            name="Menu dégustation",
            pricing_type=PricingType.PRIX_FIXE,
            fixed_price=D("25.00"),
            sections=[section("Entrée", ["4.00"]), section("Plat", ["6.50"])],
        )
        costs = costing.calculate_menu_cost_range(menu)
        assert costs.min_cost == costs.max_cost == costs.average_cost == D("10.50")
        assert costs.average_dish_cost == D("5.25")

        margins = costing.calculate_menu_margin(menu)
        assert margins.min_margin == D("58")
        assert margins.max_margin == D("58")
        assert margins.average_margin == D("58")
        assert margins.display_margin == "58.0% - 58.0%"

    def test_choice_menu_cost_range(self):
        menu = MenuSnapshot(
            name="Menu du midi",
            pricing_type=PricingType.CHOICE,
            fixed_price=D("20.00"),
            sections=[
                section("Plat", ["3", "5", "8"]),
                section("Dessert", ["2", "10"], required=False, optional=True),
            ],
        )
        costs = costing.calculate_menu_cost_range(menu)
        assert costs.min_cost == D(3)
        assert costs.max_cost == D(18)
        assert costs.average_cost == D("5.6")

        margins = costing.calculate_menu_margin(menu)
        assert margins.min_margin == D("10")   # (20 - 18) / 20
        assert margins.max_margin == D("85")   # (20 - 3) / 20
        assert margins.average_margin is None

    def test_choice_menu_empty_section_contributes_zero(self):
        menu = MenuSnapshot(
            name="Menu",
            pricing_type=PricingType.CHOICE,
            sections=[section("Plat", ["4"]), section("Fromage", [])],
        )
        costs = costing.calculate_menu_cost_range(menu)
        assert costs.min_cost == D(4)
        assert costs.max_cost == D(4)

    def test_unknown_dish_cost_marks_range_incomplete(self):
        menu = MenuSnapshot(
            name="Menu",
            pricing_type=PricingType.PRIX_FIXE,
            sections=[SectionSnapshot(name="Plat", dishes=[
                MenuDishSnapshot(dish=dish_costing_exactly("4")),
                MenuDishSnapshot(dish=DishSnapshot(name="Sans recette")),
            ])],
        )
        costs = costing.calculate_menu_cost_range(menu)
        assert costs.min_cost == D(4)
        assert costs.complete is False

    def test_margin_band_undefined_without_fixed_price(self):
        menu = MenuSnapshot(name="Menu", pricing_type=PricingType.CHOICE, sections=[section("Plat", ["4"])])
        margins = costing.calculate_menu_margin(menu)
        assert margins.min_margin is None
        assert margins.max_margin is None
        assert margins.display_margin == "N/A"

    def test_display_price(self):
        menu = MenuSnapshot(name="Menu", pricing_type=PricingType.CHOICE)
        assert costing.calculate_menu_price(menu).display_price == "Price not set"

        menu = MenuSnapshot(name="Menu", pricing_type=PricingType.PRIX_FIXE, fixed_price=D("32"))
        assert costing.calculate_menu_price(menu).display_price == "€32.00"

        menu = MenuSnapshot(name="Menu", pricing_type=PricingType.CHOICE, fixed_price=D("24.5"),
                            min_courses=2, max_courses=3)
        assert costing.calculate_menu_price(menu).display_price == "€24.50 (2-3 courses)"

        menu.max_courses = 2
        assert costing.calculate_menu_price(menu).display_price == "€24.50 (2 courses)"

    def test_a_la_carte_has_no_margin_band(self):
        menu = MenuSnapshot(
            name="Carte",
            pricing_type=PricingType.A_LA_CARTE,
            sections=[section("Plats", ["3", "7"])],
        )
        costs = costing.calculate_menu_cost_range(menu)
        assert (costs.min_cost, costs.max_cost, costs.average_cost) == (D(3), D(7), D(5))
        assert costing.calculate_menu_margin(menu).display_margin == "N/A"

    def test_pricing_summary_strings(self):
        menu = MenuSnapshot(
            name="Menu dégustation",
            pricing_type=PricingType.PRIX_FIXE,
            fixed_price=D("25.00"),
            sections=[section("Entrée", ["4.00"]), section("Plat", ["6.50"])],
        )
        summary = costing.get_menu_pricing_summary(menu)
        assert summary.pricing_type == "Fixed Price Menu"
        assert summary.price == "€25.00"
        assert summary.cost_range == "€10.50 (avg: €5.25)"
        assert summary.margin == "58.0% - 58.0%"
