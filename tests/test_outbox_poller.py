import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from backoffice.consumers import outbox_poller
from backoffice.core.config import MAX_ATTEMPTS
from backoffice.events.outbox_utility import create_outbox_event
from backoffice.models.outbox import OutboxEvent


async def low_stock_event():
    await create_outbox_event(
        aggregate_type="item",
        aggregate_id=uuid.uuid4(),
        event_type="inventory.low_stock_alert.v1",
        payload={"name": "Beurre", "quantity": "0.500", "par_level": "2.000", "unit": "KG"},
    )


class TestDispatchEvent:
    @pytest.mark.asyncio
    async def test_low_stock_alert_routed(self):
        event = SimpleNamespace(
            id=uuid.uuid4(),
            event_type="inventory.low_stock_alert.v1",
            payload={"name": "Beurre"},
        )
        with patch('backoffice.consumers.outbox_poller.handle_low_stock_alert') as mock_handler:
            assert await outbox_poller.dispatch_event(event) is True
            mock_handler.assert_called_once_with({"name": "Beurre"}, event.id)

    @pytest.mark.asyncio
    async def test_ledger_events_routed(self):
        event = SimpleNamespace(id=uuid.uuid4(), event_type="sale.recorded.v1", payload={"sale_id": "x"})
        with patch('backoffice.consumers.outbox_poller.handle_ledger_notification') as mock_handler:
            assert await outbox_poller.dispatch_event(event) is True
            mock_handler.assert_called_once_with("sale.recorded.v1", {"sale_id": "x"}, event.id)

    @pytest.mark.asyncio
    async def test_unknown_event_type(self):
        event = SimpleNamespace(id=uuid.uuid4(), event_type="menu.archived.v1", payload={})
        assert await outbox_poller.dispatch_event(event) is False


class TestPollOutbox:
    @pytest.mark.asyncio
    async def test_events_marked_published(self, db):
        await low_stock_event()
        await low_stock_event()

        assert await outbox_poller.poll_outbox_for_new_events() == 2
        assert await OutboxEvent.filter(published=False).count() == 0
        assert await outbox_poller.poll_outbox_for_new_events() == 0

    @pytest.mark.asyncio
    async def test_failed_dispatch_counts_attempt(self, db):
        await low_stock_event()

        with patch(
            'backoffice.consumers.outbox_poller.handle_low_stock_alert',
            new_callable=AsyncMock,
            side_effect=RuntimeError("smtp down"),
        ):
            assert await outbox_poller.poll_outbox_for_new_events() == 0

        event = await OutboxEvent.first()
        assert event.published is False
        assert event.attempts == 1

    @pytest.mark.asyncio
    async def test_exhausted_events_are_skipped(self, db):
        await low_stock_event()
        await OutboxEvent.all().update(attempts=MAX_ATTEMPTS)

        assert await outbox_poller.poll_outbox_for_new_events() == 0
        assert (await OutboxEvent.first()).published is False

    @pytest.mark.asyncio
    async def test_unhandled_event_counts_attempt(self, db):
        await create_outbox_event(
            aggregate_type="menu",
            aggregate_id=uuid.uuid4(),
            event_type="menu.archived.v1",
            payload={},
        )

        assert await outbox_poller.poll_outbox_for_new_events() == 0

        event = await OutboxEvent.first()
        assert event.published is False
        assert event.attempts == 1
