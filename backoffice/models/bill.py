from enum import Enum
from tortoise import fields, models
import uuid


class BillStatus(str, Enum):
    PENDING = "PENDING"      # Uploaded, waiting for the user to confirm lines
    PROCESSED = "PROCESSED"  # Confirmed, stock received
    DISPUTED = "DISPUTED"


class DisputeType(str, Enum):
    RETURN = "RETURN"
    COMPLAINT = "COMPLAINT"
    REFUND = "REFUND"


class DisputeStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class Supplier(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255, unique=True)
    contact_name = fields.CharField(max_length=255, null=True)
    email = fields.CharField(max_length=255, null=True)
    phone = fields.CharField(max_length=64, null=True)
    is_active = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "suppliers"
        indexes = [
            ("is_active",),
        ]


class Bill(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    filename = fields.CharField(max_length=255)
    supplier = fields.ForeignKeyField("models.Supplier", related_name="bills", null=True, on_delete=fields.SET_NULL)
    bill_date = fields.DateField(null=True)
    total_amount = fields.DecimalField(max_digits=14, decimal_places=2, null=True)
    raw_content = fields.TextField(null=True)
    status = fields.CharEnumField(BillStatus, default=BillStatus.PENDING)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "bills"
        indexes = [
            ("bill_date",),
            ("status",),
        ]


class Dispute(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    bill = fields.ForeignKeyField("models.Bill", related_name="disputes", on_delete=fields.CASCADE)
    type = fields.CharEnumField(DisputeType)
    status = fields.CharEnumField(DisputeStatus, default=DisputeStatus.OPEN)
    title = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    amount_disputed = fields.DecimalField(max_digits=14, decimal_places=2, null=True)
    resolved_at = fields.DatetimeField(null=True)
    resolution_notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "disputes"
        indexes = [
            ("bill_id",),
            ("status",),
        ]
