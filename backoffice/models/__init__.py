# backoffice/models/__init__.py
from .inventory import Item, StockMovement, Unit, MovementType, LossReason
from .bill import Bill, BillStatus, Dispute, DisputeStatus, DisputeType, Supplier
from .menu import Dish, RecipeIngredient, Menu, MenuSection, MenuDish, PricingType, Sale
from .outbox import OutboxEvent

# Export all models
__all__ = [
    "Item",
    "StockMovement",
    "Unit",
    "MovementType",
    "LossReason",
    "Bill",
    "BillStatus",
    "Dispute",
    "DisputeStatus",
    "DisputeType",
    "Supplier",
    "Dish",
    "RecipeIngredient",
    "Menu",
    "MenuSection",
    "MenuDish",
    "PricingType",
    "Sale",
    "OutboxEvent",
]
