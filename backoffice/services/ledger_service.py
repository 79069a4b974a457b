"""
Stock ledger.

Every function that changes stock runs in one database transaction: the item
rows involved are locked, their cached quantity/price/value are rewritten and
one StockMovement per change is appended. Any error inside the block rolls
the whole operation back.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from tortoise import timezone
from tortoise.transactions import in_transaction

from backoffice.core.config import LOW_STOCK_ALERTS
from backoffice.core.exceptions import BackofficeError, LedgerError, NotFoundError, ValidationError
from backoffice.events.outbox_utility import create_outbox_event
from backoffice.models.bill import Bill, BillStatus, Dispute, DisputeStatus, Supplier
from backoffice.models.inventory import Item, LossReason, MovementType, StockMovement, Unit
from backoffice.models.menu import Dish, RecipeIngredient, Sale
from backoffice.schemas.bill import BillLine, DisputeAdjustment

log = logging.getLogger("backoffice.ledger")

# Decimal places stored by the Item and StockMovement columns
QUANTITY_PLACES = 3
PRICE_PLACES = 4
AMOUNT_PLACES = 2

REASON_BILL = "Bill confirmation"
REASON_DISPUTE = "Dispute resolution"
REASON_SALE = "Sale"
REASON_INITIAL = "Initial stock"


@dataclass
class LedgerResult:
    """Items touched by a ledger operation, in their post-operation state."""
    items: List[Item] = field(default_factory=list)
    movements: List[StockMovement] = field(default_factory=list)
    reference_id: Optional[UUID] = None  # bill, dispute or sale id

    def touch(self, item: Item):
        if all(existing.id != item.id for existing in self.items):
            self.items.append(item)


def compute_value(quantity: Decimal, unit_price: Optional[Decimal]) -> Optional[Decimal]:
    """Total value cache: quantity x unit price, None while the price is unknown."""
    if unit_price is None:
        return None
    return quantity * unit_price


def check_precision(value: Optional[Decimal], places: int, label: str):
    """
    Rejects values the database column would round. The in-memory item and
    the stored row must hold the same figures.
    """
    if value is None:
        return
    if not value.is_finite():
        raise ValidationError(f"{label} must be a finite number.")
    if value.normalize().as_tuple().exponent < -places:
        raise ValidationError(f"{label} allows at most {places} decimal places.")


@asynccontextmanager
async def ledger_transaction(operation: str):
    """
    Opens the transaction for one ledger operation.

    Domain errors propagate unchanged; anything else is re-raised as a
    LedgerError once the transaction has been rolled back.
    """
    try:
        async with in_transaction() as conn:
            yield conn
    except BackofficeError:
        raise
    except Exception as e:
        log.error(f"{operation} rolled back: {e}")
        raise LedgerError(
            f"{operation} failed and was rolled back.",
            details={"reason": str(e)},
        ) from e


async def lock_items(item_ids: Iterable[UUID], conn: Any) -> Dict[str, Item]:
    """Reads and row-locks the given items. Missing ids raise NotFoundError."""
    wanted = {str(item_id) for item_id in item_ids}
    if not wanted:
        return {}
    locked = await Item.filter(id__in=list(wanted)).using_db(conn).select_for_update()
    items = {str(item.id): item for item in locked}
    missing = sorted(wanted - set(items))
    if missing:
        raise NotFoundError(f"Item not found: {', '.join(missing)}", details={"item_ids": missing})
    return items


async def check_for_low_stock(item: Item, delta: Decimal, conn: Any, trigger: Dict[str, Any]):
    """
    Emits a low stock event when a movement that lowered the stock left the
    item below its par level. Deliveries that still fall short stay silent.
    """
    if not LOW_STOCK_ALERTS or not item.trackable or item.par_level is None:
        return
    if delta >= 0 or item.quantity >= item.par_level:
        return
    log.warning(f"Low stock for item {item.name} ({item.id}): {item.quantity} < par {item.par_level}")
    await create_outbox_event(
        aggregate_type="item",
        aggregate_id=item.id,
        event_type="inventory.low_stock_alert.v1",
        payload={
            "item_id": item.id,
            "name": item.name,
            "quantity": item.quantity,
            "par_level": item.par_level,
            "unit": item.unit.value,
            **trigger,
        },
        conn=conn,
    )


async def apply_movement(
    item: Item,
    movement_type: MovementType,
    delta: Decimal,
    conn: Any,
    reason: str,
    unit_price: Optional[Decimal] = None,
    bill: Optional[Bill] = None,
    dispute: Optional[Dispute] = None,
    sale: Optional[Sale] = None,
    description: Optional[str] = None,
    loss_reason: Optional[LossReason] = None,
) -> StockMovement:
    """
    Applies a signed delta to a locked item and appends the movement.

    A given unit_price replaces the item's current price. IN, OUT and INITIAL
    movements store the magnitude of the change (direction is implied by the
    type); ADJUSTMENT movements store the signed delta.
    """
    new_quantity = Decimal(item.quantity) + delta
    if unit_price is not None:
        item.unit_price = unit_price
    item.quantity = new_quantity
    item.total_value = compute_value(new_quantity, item.unit_price)
    await item.save(update_fields=["quantity", "unit_price", "total_value", "updated_at"], using_db=conn)

    recorded = delta if movement_type == MovementType.ADJUSTMENT else abs(delta)
    movement = await StockMovement.create(
        item=item,
        movement_type=movement_type,
        quantity=recorded,
        balance_after=new_quantity,
        bill=bill,
        dispute=dispute,
        sale=sale,
        reason=reason,
        description=description,
        loss_reason=loss_reason,
        unit_price=item.unit_price,
        total_value=compute_value(abs(delta), item.unit_price),
        using_db=conn,
    )

    trigger = {"movement_type": movement_type.value, "movement_id": movement.id}
    await check_for_low_stock(item, delta, conn, trigger)
    return movement


# ----------- Operations -----------

async def create_item(
    name: str,
    unit: Unit = Unit.PC,
    quantity: Decimal = Decimal("0"),
    unit_price: Optional[Decimal] = None,
    trackable: bool = True,
    par_level: Optional[Decimal] = None,
    category: Optional[str] = None,
) -> LedgerResult:
    """Creates an item; opening stock is recorded as an INITIAL movement."""
    if not name or not name.strip():
        raise ValidationError("Item name is required.")
    if quantity < 0:
        raise ValidationError("Initial quantity cannot be negative.")
    if unit_price is not None and unit_price < 0:
        raise ValidationError("Unit price cannot be negative.")
    check_precision(quantity, QUANTITY_PLACES, "Initial quantity")
    check_precision(unit_price, PRICE_PLACES, "Unit price")
    check_precision(par_level, QUANTITY_PLACES, "Par level")

    result = LedgerResult()
    async with ledger_transaction("Item creation") as conn:
        item = await Item.create(
            name=name.strip(),
            unit=unit,
            quantity=Decimal("0"),
            unit_price=unit_price,
            total_value=compute_value(Decimal("0"), unit_price),
            trackable=trackable,
            par_level=par_level,
            category=category,
            using_db=conn,
        )
        if quantity != 0:
            movement = await apply_movement(item, MovementType.INITIAL, quantity, conn, REASON_INITIAL)
            result.movements.append(movement)
        result.touch(item)
        result.reference_id = item.id

    log.info(f"Item {item.name} ({item.id}) created with {quantity} {unit.value}")
    return result


def _validate_bill_lines(lines: List[BillLine]):
    if not lines:
        raise ValidationError("Bill confirmation needs at least one line.")
    for index, line in enumerate(lines):
        if line.quantity <= 0:
            raise ValidationError(f"Line {index + 1}: quantity must be positive.")
        if line.unit_price < 0:
            raise ValidationError(f"Line {index + 1}: unit price cannot be negative.")
        check_precision(line.quantity, QUANTITY_PLACES, f"Line {index + 1}: quantity")
        check_precision(line.unit_price, PRICE_PLACES, f"Line {index + 1}: unit price")
        if line.item_id is None and not line.item_name.strip():
            raise ValidationError(f"Line {index + 1}: a new item needs a name.")


async def confirm_bill(
    bill_id: UUID,
    lines: List[BillLine],
    supplier_name: Optional[str] = None,
    bill_date=None,
    total_amount: Optional[Decimal] = None,
) -> LedgerResult:
    """
    Receives the stock of a supplier bill.

    Lines without an item id create a new trackable item at zero stock. Each
    line then adds its quantity, replaces the item's unit price and appends an
    IN movement linked to the bill. The bill is stamped with supplier, date
    and total and marked PROCESSED in the same transaction.
    """
    _validate_bill_lines(lines)
    check_precision(total_amount, AMOUNT_PLACES, "Bill total")

    result = LedgerResult(reference_id=bill_id)
    async with ledger_transaction(f"Bill {bill_id} confirmation") as conn:
        bill = await Bill.filter(id=bill_id).using_db(conn).select_for_update().first()
        if not bill:
            raise NotFoundError(f"Bill {bill_id} not found.")
        if bill.status != BillStatus.PENDING:
            raise ValidationError(f"Bill {bill_id} is already {bill.status.value} and cannot be confirmed again.")

        items = await lock_items([line.item_id for line in lines if line.item_id is not None], conn)

        for line in lines:
            if line.item_id is None:
                item = await Item.create(
                    name=line.item_name.strip(),
                    unit=line.unit,
                    quantity=Decimal("0"),
                    unit_price=line.unit_price,
                    total_value=Decimal("0"),
                    trackable=True,
                    using_db=conn,
                )
                log.info(f"Created item {item.name} ({item.id}) from bill {bill_id}")
            else:
                item = items[str(line.item_id)]

            movement = await apply_movement(
                item,
                MovementType.IN,
                line.quantity,
                conn,
                REASON_BILL,
                unit_price=line.unit_price,
                bill=bill,
            )
            result.movements.append(movement)
            result.touch(item)

        if supplier_name and supplier_name.strip():
            supplier = await Supplier.filter(name=supplier_name.strip()).using_db(conn).first()
            if not supplier:
                supplier = await Supplier.create(name=supplier_name.strip(), using_db=conn)
            bill.supplier = supplier
        if bill_date is not None:
            bill.bill_date = bill_date
        if total_amount is not None:
            bill.total_amount = total_amount
        bill.status = BillStatus.PROCESSED
        await bill.save(using_db=conn)

        await create_outbox_event(
            aggregate_type="bill",
            aggregate_id=bill.id,
            event_type="bill.confirmed.v1",
            payload={
                "bill_id": bill.id,
                "lines": [
                    {"item_id": m.item_id, "quantity": m.quantity, "balance_after": m.balance_after}
                    for m in result.movements
                ],
            },
            conn=conn,
        )

    log.info(f"Bill {bill_id} confirmed: {len(result.movements)} movements recorded")
    return result


async def resolve_dispute(
    dispute_id: UUID,
    resolution_notes: str,
    adjustments: Optional[List[DisputeAdjustment]] = None,
) -> LedgerResult:
    """
    Resolves a dispute and applies its stock adjustments.

    Each adjustment is a signed delta on one item (a product sent back to the
    supplier is negative) recorded as an ADJUSTMENT movement linked to the
    dispute.
    """
    if not resolution_notes or not resolution_notes.strip():
        raise ValidationError("Resolution notes are required.")
    adjustments = adjustments or []
    for adjustment in adjustments:
        if adjustment.delta == 0:
            raise ValidationError(f"Adjustment for item {adjustment.item_id} has a zero delta.")
        check_precision(adjustment.delta, QUANTITY_PLACES, f"Adjustment for item {adjustment.item_id}")

    result = LedgerResult(reference_id=dispute_id)
    async with ledger_transaction(f"Dispute {dispute_id} resolution") as conn:
        dispute = await Dispute.filter(id=dispute_id).using_db(conn).select_for_update().first()
        if not dispute:
            raise NotFoundError(f"Dispute {dispute_id} not found.")
        if dispute.status in [DisputeStatus.RESOLVED, DisputeStatus.CLOSED]:
            raise ValidationError(f"Dispute {dispute_id} is already {dispute.status.value}.")

        items = await lock_items([a.item_id for a in adjustments], conn)
        for adjustment in adjustments:
            item = items[str(adjustment.item_id)]
            movement = await apply_movement(
                item,
                MovementType.ADJUSTMENT,
                adjustment.delta,
                conn,
                f"{REASON_DISPUTE} - {dispute.type.value.lower()}",
                dispute=dispute,
                description=resolution_notes,
            )
            result.movements.append(movement)
            result.touch(item)

        dispute.status = DisputeStatus.RESOLVED
        dispute.resolved_at = timezone.now()
        dispute.resolution_notes = resolution_notes
        await dispute.save(using_db=conn)

        await create_outbox_event(
            aggregate_type="dispute",
            aggregate_id=dispute.id,
            event_type="dispute.resolved.v1",
            payload={
                "dispute_id": dispute.id,
                "bill_id": dispute.bill_id,
                "adjustments": [{"item_id": a.item_id, "delta": a.delta} for a in adjustments],
            },
            conn=conn,
        )

    log.info(f"Dispute {dispute_id} resolved with {len(result.movements)} adjustments")
    return result


async def adjust_stock(
    item_id: UUID,
    delta: Decimal,
    reason: str,
    loss_reason: Optional[LossReason] = None,
    description: Optional[str] = None,
) -> LedgerResult:
    """Manual correction (stock count, waste, breakage)."""
    if delta == 0:
        raise ValidationError("Adjustment delta must not be zero.")
    check_precision(delta, QUANTITY_PLACES, "Adjustment delta")
    if not reason or not reason.strip():
        raise ValidationError("Adjustment reason is required.")

    result = LedgerResult(reference_id=item_id)
    async with ledger_transaction(f"Adjustment of item {item_id}") as conn:
        items = await lock_items([item_id], conn)
        item = items[str(item_id)]
        movement = await apply_movement(
            item,
            MovementType.ADJUSTMENT,
            delta,
            conn,
            reason.strip(),
            description=description,
            loss_reason=loss_reason,
        )
        result.movements.append(movement)
        result.touch(item)

    log.info(f"Item {item_id} adjusted by {delta}: {reason}")
    return result


async def record_sale(dish_id: UUID, quantity_sold: int, notes: Optional[str] = None) -> LedgerResult:
    """
    Records a sale and deducts every ingredient of the dish.

    Each trackable ingredient loses recipe quantity x quantity sold through an
    OUT movement linked to the sale. Stock may go negative. Items that are
    not trackable are left untouched.
    """
    if quantity_sold is None or quantity_sold <= 0:
        raise ValidationError("Quantity sold must be a positive integer.")

    result = LedgerResult()
    async with ledger_transaction(f"Sale of dish {dish_id}") as conn:
        dish = await Dish.get_or_none(id=dish_id).using_db(conn)
        if not dish:
            raise NotFoundError(f"Dish {dish_id} not found.")

        recipe = await RecipeIngredient.filter(dish_id=dish.id).using_db(conn)
        sale = await Sale.create(dish=dish, quantity_sold=quantity_sold, notes=notes, using_db=conn)
        result.reference_id = sale.id

        items = await lock_items([line.item_id for line in recipe], conn)
        for line in recipe:
            item = items[str(line.item_id)]
            if not item.trackable:
                continue
            movement = await apply_movement(
                item,
                MovementType.OUT,
                -(Decimal(line.quantity_required) * quantity_sold),
                conn,
                REASON_SALE,
                sale=sale,
                description=notes,
            )
            result.movements.append(movement)
            result.touch(item)

        await create_outbox_event(
            aggregate_type="sale",
            aggregate_id=sale.id,
            event_type="sale.recorded.v1",
            payload={
                "sale_id": sale.id,
                "dish_id": dish.id,
                "dish_name": dish.name,
                "quantity_sold": quantity_sold,
            },
            conn=conn,
        )

    log.info(f"Sale {sale.id}: {quantity_sold} x {dish.name}, {len(result.movements)} ingredients deducted")
    return result
