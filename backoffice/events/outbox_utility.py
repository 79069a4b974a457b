from decimal import Decimal
from typing import Dict, Any
from uuid import UUID

from backoffice.models.outbox import OutboxEvent


def _json_safe(value: Any) -> Any:
    """Decimals and UUIDs are stored as strings in the JSON payload."""
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


async def create_outbox_event(
    aggregate_type: str,
    aggregate_id: UUID,
    event_type: str,
    payload: Dict[str, Any],
    conn: Any = None
) -> None:
    """
    Creates a new Outbox event record using the provided database connection (transaction).

    Passing 'conn' ensures the event is created atomically with the ledger data.
    """
    await OutboxEvent.create(
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        event_type=event_type,
        payload=_json_safe(payload),
        published=False,
        attempts=0,
        using_db=conn
    )
