"""Unit tests for domain events, the aggregate mixin and the in-memory bus."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from uuid import uuid4

import pytest

from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.models import Order
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class CapturingHandler:
    def __init__(self) -> None:
        self.handled = []

    def handle(self, event) -> None:
        self.handled.append(event)


def _created(order_id=None):
    return OrderCreated(
        aggregate_id=order_id or uuid4(), display_id="TX-20261001-0A1B", brand_id=uuid4()
    )


class TestDomainEvent:
    def test_event_name_is_class_name(self):
        assert _created().event_name == "OrderCreated"

    def test_is_immutable(self):
        event = _created()
        with pytest.raises(FrozenInstanceError):
            event.display_id = "other"

    def test_payload_excludes_envelope(self):
        brand_id = uuid4()
        event = OrderCreated(aggregate_id=uuid4(), display_id="TX-1", brand_id=brand_id)

        assert event.payload() == {
            "display_id": "TX-1",
            "brand_id": str(brand_id),
            "supplier_id": None,
        }


class TestDomainEventMixin:
    def test_order_collects_and_pulls_events(self):
        order = Order(product_name="Camiseta", quantity=1)
        assert order.domain_events == []

        event = _created(order.id)
        order.add_domain_event(event)
        assert order.domain_events == [event]

        assert order.pull_domain_events() == [event]
        assert order.domain_events == []

    def test_domain_events_returns_a_copy(self):
        order = Order(product_name="Camiseta", quantity=1)
        order.add_domain_event(_created(order.id))

        order.domain_events.clear()

        assert len(order.domain_events) == 1


class TestInMemoryEventBus:
    def test_routes_by_event_class(self):
        bus = InMemoryEventBus()
        handler = CapturingHandler()
        bus.subscribe(OrderCreated, handler)

        created = _created()
        bus.publish(created)
        bus.publish(
            OrderStatusChanged(
                aggregate_id=uuid4(),
                display_id="TX-1",
                old_status="PRONTO",
                new_status="EM_TRANSITO_PARA_MARCA",
                actor_role="BRAND",
            )
        )

        assert handler.handled == [created]

    def test_base_class_subscription_sees_subclasses(self):
        bus = InMemoryEventBus()
        handler = CapturingHandler()
        bus.subscribe(DomainEvent, handler)

        event = _created()
        bus.publish(event)

        assert handler.handled == [event]

    def test_duplicate_subscription_is_ignored(self):
        bus = InMemoryEventBus()
        handler = CapturingHandler()
        bus.subscribe(OrderCreated, handler)
        bus.subscribe(OrderCreated, handler)
        bus.subscribe(DomainEvent, handler)

        bus.publish(_created())

        assert len(handler.handled) == 1

    def test_publish_on_commit_waits_for_commit(
        self, django_capture_on_commit_callbacks
    ):
        bus = InMemoryEventBus()
        handler = CapturingHandler()
        bus.subscribe(OrderCreated, handler)

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            bus.publish_on_commit([_created()])

        assert handler.handled == []
        assert len(callbacks) == 1

        callbacks[0]()
        assert len(handler.handled) == 1

    def test_publish_on_commit_without_events_registers_nothing(
        self, django_capture_on_commit_callbacks
    ):
        bus = InMemoryEventBus()

        with django_capture_on_commit_callbacks() as callbacks:
            bus.publish_on_commit([])

        assert callbacks == []
