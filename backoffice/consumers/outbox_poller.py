import asyncio
import logging

from backoffice.models.outbox import OutboxEvent
from backoffice.consumers.alert_consumer import handle_ledger_notification, handle_low_stock_alert
from backoffice.core.db import init_db, close_db
from backoffice.core.config import BATCH_SIZE, LOG_FORMAT, LOG_LEVEL, MAX_ATTEMPTS, POLLING_INTERVAL

log = logging.getLogger("outbox_poller")

LEDGER_EVENTS = {"bill.confirmed.v1", "dispute.resolved.v1", "sale.recorded.v1"}


async def dispatch_event(event: OutboxEvent) -> bool:
    """
    Routes an OutboxEvent to its handler. Returns False when no handler
    exists for the event type.
    """
    event_type = event.event_type
    log.debug(f"Poller DISPATCHING: {event_type} (ID: {event.id.hex[:8]}...)")

    if event_type == "inventory.low_stock_alert.v1":
        await handle_low_stock_alert(event.payload, event.id)
        return True

    if event_type in LEDGER_EVENTS:
        await handle_ledger_notification(event_type, event.payload, event.id)
        return True

    log.warning(f"No handler found for event type: {event_type}")
    return False


async def poll_outbox_for_new_events() -> int:
    """
    Dispatches one batch of unpublished events. Returns how many were published.

    Events whose dispatch fails or finds no handler stay unpublished and
    count one attempt.
    """
    # Select events that haven't been published and haven't exceeded max attempts
    events = await OutboxEvent.filter(published=False, attempts__lt=MAX_ATTEMPTS).limit(BATCH_SIZE).order_by('created_at')

    published = 0
    for event in events:
        try:
            if not await dispatch_event(event):
                # Unhandled type: retried until a handler ships or MAX_ATTEMPTS is hit
                event.attempts += 1
                await event.save(update_fields=['attempts'])
                continue
            event.published = True
            await event.save(update_fields=['published'])
            published += 1
        except Exception:
            event.attempts += 1
            await event.save(update_fields=['attempts'])
            log.exception(f"Dispatch of event {event.id} failed (attempt {event.attempts}/{MAX_ATTEMPTS})")
    return published


async def start_outbox_poller():
    """Main loop for the poller service."""
    await init_db(generate_schemas=False)
    log.info("--- Outbox Poller Service Started ---")

    try:
        while True:
            try:
                await poll_outbox_for_new_events()
            except Exception as e:
                log.error(f"Poller encountered a critical DB error: {e}.")

            await asyncio.sleep(POLLING_INTERVAL)
    finally:
        await close_db()

if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    try:
        asyncio.run(start_outbox_poller())
    except KeyboardInterrupt:
        log.info("Poller service stopped.")
