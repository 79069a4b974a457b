import logging
from typing import Dict, Any
from uuid import UUID

log = logging.getLogger("alert_consumer")


async def handle_low_stock_alert(event_payload: Dict[str, Any], event_id: UUID):
    """
    Consumer logic for 'inventory.low_stock_alert.v1'.
    Stands in for the notification channel (kitchen screen, email).
    """
    log.warning(
        f"LOW STOCK: {event_payload.get('name')} at {event_payload.get('quantity')} "
        f"{event_payload.get('unit', '')} (par {event_payload.get('par_level')}), "
        f"after {event_payload.get('movement_type')} movement {event_payload.get('movement_id')} "
        f"[event {event_id}]"
    )


async def handle_ledger_notification(event_type: str, event_payload: Dict[str, Any], event_id: UUID):
    """Consumer logic for bill/dispute/sale events: audit log only."""
    if event_type == "bill.confirmed.v1":
        log.info(f"Bill {event_payload.get('bill_id')} confirmed with {len(event_payload.get('lines', []))} lines.")
    elif event_type == "dispute.resolved.v1":
        log.info(f"Dispute {event_payload.get('dispute_id')} resolved.")
    elif event_type == "sale.recorded.v1":
        log.info(
            f"Sale {event_payload.get('sale_id')}: "
            f"{event_payload.get('quantity_sold')} x {event_payload.get('dish_name')}."
        )
