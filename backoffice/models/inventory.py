from enum import Enum
from tortoise import fields, models
import uuid


class Unit(str, Enum):
    # Mass
    KG = "KG"
    G = "G"
    # Volume
    L = "L"
    ML = "ML"
    CL = "CL"
    # Count
    PC = "PC"
    BUNCH = "BUNCH"
    CLOVE = "CLOVE"


class MovementType(str, Enum):
    IN = "IN"                  # Supplier delivery (bill confirmation)
    OUT = "OUT"                # Consumption (sale)
    ADJUSTMENT = "ADJUSTMENT"  # Manual correction or dispute resolution
    INITIAL = "INITIAL"        # Opening stock when an item is created


class LossReason(str, Enum):
    EXPIRED = "EXPIRED"
    DAMAGED = "DAMAGED"
    THEFT = "THEFT"
    SPILLAGE = "SPILLAGE"
    QUALITY_ISSUE = "QUALITY_ISSUE"
    MISSING = "MISSING"
    OTHER = "OTHER"


class Item(models.Model):
    """
    Inventory product. quantity/unit_price/total_value are a cache of the
    movement history and are only written by the ledger service.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    unit = fields.CharEnumField(Unit, default=Unit.PC)
    quantity = fields.DecimalField(max_digits=14, decimal_places=3, default=0)
    unit_price = fields.DecimalField(max_digits=12, decimal_places=4, null=True)
    total_value = fields.DecimalField(max_digits=21, decimal_places=7, null=True)  # quantity (3 places) x unit_price (4 places), exact
    trackable = fields.BooleanField(default=False)
    par_level = fields.DecimalField(max_digits=14, decimal_places=3, null=True)
    category = fields.CharField(max_length=128, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "items"
        indexes = [
            ("name",),
            ("category",),
        ]


class StockMovement(models.Model):
    """
    Append-only ledger entry. balance_after is a snapshot of the item quantity
    right after this movement and is never recomputed.
    """
    # Monotonic id orders movements recorded within the same instant
    id = fields.IntField(primary_key=True)
    item = fields.ForeignKeyField("models.Item", related_name="movements", on_delete=fields.CASCADE)
    movement_type = fields.CharEnumField(MovementType)
    quantity = fields.DecimalField(max_digits=14, decimal_places=3)
    balance_after = fields.DecimalField(max_digits=14, decimal_places=3)
    movement_date = fields.DatetimeField(auto_now_add=True)
    bill = fields.ForeignKeyField("models.Bill", related_name="stock_movements", null=True, on_delete=fields.SET_NULL)
    dispute = fields.ForeignKeyField("models.Dispute", related_name="stock_movements", null=True, on_delete=fields.SET_NULL)
    sale = fields.ForeignKeyField("models.Sale", related_name="stock_movements", null=True, on_delete=fields.SET_NULL)
    reason = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    loss_reason = fields.CharEnumField(LossReason, null=True)
    unit_price = fields.DecimalField(max_digits=12, decimal_places=4, null=True)
    total_value = fields.DecimalField(max_digits=21, decimal_places=7, null=True)

    class Meta:
        table = "stock_movements"
        indexes = [
            ("item_id",),
            ("movement_date",),
            ("bill_id",),
            ("item_id", "movement_date"),  # Composite: per-item history
        ]
