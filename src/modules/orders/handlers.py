"""Event handlers for Orders domain events.

Handlers only log for now; e-mail / WhatsApp delivery hooks in here.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderFinalized,
    OrderReviewed,
    OrderStatusChanged,
    ReworkOrderCreated,
)
from shared.domain.bus import IEventBus, IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            **event.payload(),
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            **event.payload(),
        )


class OrderFinalizedHandler(IEventHandler[OrderFinalized]):
    def handle(self, event: OrderFinalized) -> None:
        logger.info(
            "order.event.finalized",
            order_id=str(event.aggregate_id),
            **event.payload(),
        )


class OrderReviewedHandler(IEventHandler[OrderReviewed]):
    def handle(self, event: OrderReviewed) -> None:
        logger.info(
            "order.event.reviewed",
            order_id=str(event.aggregate_id),
            **event.payload(),
        )


class ReworkOrderCreatedHandler(IEventHandler[ReworkOrderCreated]):
    def handle(self, event: ReworkOrderCreated) -> None:
        logger.info(
            "order.event.rework_created",
            order_id=str(event.aggregate_id),
            **event.payload(),
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_finalized_handler = OrderFinalizedHandler()
order_reviewed_handler = OrderReviewedHandler()
rework_order_created_handler = ReworkOrderCreatedHandler()

SUBSCRIPTIONS = (
    (OrderCreated, order_created_handler),
    (OrderStatusChanged, order_status_changed_handler),
    (OrderFinalized, order_finalized_handler),
    (OrderReviewed, order_reviewed_handler),
    (ReworkOrderCreated, rework_order_created_handler),
)


def register_handlers(bus: IEventBus) -> None:
    for event_class, handler in SUBSCRIPTIONS:
        bus.subscribe(event_class, handler)
