"""Unit tests for Orders event handlers."""

from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from modules.orders.events import (
    OrderCreated,
    OrderFinalized,
    OrderReviewed,
    OrderStatusChanged,
    ReworkOrderCreated,
)
from modules.orders.handlers import (
    OrderCreatedHandler,
    OrderFinalizedHandler,
    OrderReviewedHandler,
    OrderStatusChangedHandler,
    ReworkOrderCreatedHandler,
    SUBSCRIPTIONS,
    order_created_handler,
    order_finalized_handler,
    order_status_changed_handler,
    register_handlers,
)
from shared.infrastructure.bus import InMemoryEventBus, event_bus

pytestmark = pytest.mark.unit


def _messages(caplog):
    return [record.getMessage() for record in caplog.records]


@pytest.mark.parametrize(
    "handler,event,log_event",
    [
        (
            OrderCreatedHandler(),
            OrderCreated(aggregate_id=uuid4(), display_id="TX-1", brand_id=uuid4()),
            "order.event.created",
        ),
        (
            OrderStatusChangedHandler(),
            OrderStatusChanged(
                aggregate_id=uuid4(),
                display_id="TX-1",
                old_status="EM_PRODUCAO",
                new_status="PRONTO",
                actor_role="SUPPLIER",
            ),
            "order.event.status_changed",
        ),
        (
            OrderFinalizedHandler(),
            OrderFinalized(aggregate_id=uuid4(), display_id="TX-1", brand_id=uuid4()),
            "order.event.finalized",
        ),
        (
            OrderReviewedHandler(),
            OrderReviewed(
                aggregate_id=uuid4(),
                display_id="TX-1",
                result="PARTIAL",
                approved_quantity=8,
                rejected_quantity=2,
                second_quality_quantity=0,
            ),
            "order.event.reviewed",
        ),
        (
            ReworkOrderCreatedHandler(),
            ReworkOrderCreated(
                aggregate_id=uuid4(),
                display_id="TX-1-R1",
                parent_id=uuid4(),
                revision_number=1,
            ),
            "order.event.rework_created",
        ),
    ],
)
def test_handler_logs_event(handler, event, log_event, caplog):
    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        handler.handle(event)

    assert any(log_event in message for message in _messages(caplog))
    assert any(event.display_id in message for message in _messages(caplog))


def test_app_ready_subscribes_handlers():
    created = OrderCreated(aggregate_id=uuid4(), display_id="TX-2", brand_id=uuid4())
    changed = OrderStatusChanged(
        aggregate_id=uuid4(),
        display_id="TX-2",
        old_status="PRONTO",
        new_status="EM_TRANSITO_PARA_MARCA",
        actor_role="BRAND",
    )

    assert order_created_handler in event_bus.handlers_for(created)
    assert order_status_changed_handler in event_bus.handlers_for(changed)
    assert order_created_handler not in event_bus.handlers_for(changed)


def test_register_handlers_is_idempotent():
    bus = InMemoryEventBus()
    register_handlers(bus)
    register_handlers(bus)

    event = OrderFinalized(aggregate_id=uuid4(), display_id="TX-3", brand_id=uuid4())
    assert bus.handlers_for(event) == [order_finalized_handler]
    assert len(SUBSCRIPTIONS) == 5
