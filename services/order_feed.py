"""
Order feed: where orders come from and where status changes go.

The real order store is remote; the application only depends on the
OrderFeed interface. InMemoryOrderFeed backs the operator API's order
intake and the tests.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from core.exceptions import OrderFeedError
from logging_config import get_logger
from models.order import PrintOrder

logger = get_logger(__name__)

OrdersCallback = Callable[[List[PrintOrder]], None]


class Subscription:
    """Handle for an active feed subscription."""

    def __init__(self, on_close: Callable[[], None]):
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._on_close()


class OrderFeed(ABC):
    """Source of orders and sink of order status changes."""

    @abstractmethod
    def subscribe(self, callback: OrdersCallback) -> Subscription:
        """
        Push the full order collection to `callback` now and on every change.

        Raises:
            OrderFeedError: if a subscription is already active
        """

    @abstractmethod
    def update_order_status(self, order_id: str, status: str) -> None:
        """
        Raises:
            OrderFeedError: if the order is unknown or the store rejects it
        """


class InMemoryOrderFeed(OrderFeed):
    """Order store held in process memory."""

    def __init__(self, orders: Optional[Iterable[PrintOrder]] = None):
        self._lock = threading.RLock()
        self._orders: Dict[str, PrintOrder] = {order.order_id: order for order in orders or ()}
        self._callback: Optional[OrdersCallback] = None
        self._subscription: Optional[Subscription] = None

    def subscribe(self, callback: OrdersCallback) -> Subscription:
        with self._lock:
            if self._subscription is not None and not self._subscription.closed:
                raise OrderFeedError("Order feed already has an active subscription")

            subscription = Subscription(lambda: self._unsubscribe(subscription))
            self._callback = callback
            self._subscription = subscription
            logger.info("Order feed subscription opened")

        self._push()
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if self._subscription is subscription:
                self._callback = None
                self._subscription = None
                logger.info("Order feed subscription closed")

    def orders(self) -> List[PrintOrder]:
        """All orders, newest first."""
        with self._lock:
            return sorted(self._orders.values(), key=lambda order: order.created_at, reverse=True)

    def get(self, order_id: str) -> Optional[PrintOrder]:
        with self._lock:
            return self._orders.get(order_id)

    def add_orders(self, orders: Iterable[PrintOrder]) -> int:
        """Insert or replace orders by id. Returns how many were stored."""
        count = 0
        with self._lock:
            for order in orders:
                if not order.order_id:
                    logger.warning("Ignoring order without an order id")
                    continue
                self._orders[order.order_id] = order
                count += 1
        if count:
            logger.info(f"Added {count} orders to feed")
            self._push()
        return count

    def upsert(self, order: PrintOrder) -> None:
        self.add_orders([order])

    def update_order_status(self, order_id: str, status: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderFeedError(f"Unknown order: {order_id}", {"status": status})
            self._orders[order_id] = replace(order, order_status=status, updated_at=now)
        logger.info(f"Order {order_id} status updated to {status}")
        self._push()

    def _push(self) -> None:
        with self._lock:
            callback = self._callback
            snapshot = sorted(self._orders.values(), key=lambda order: order.created_at, reverse=True)
        if callback is None:
            return
        try:
            callback(snapshot)
        except Exception as e:
            logger.error(f"Order feed subscriber failed: {e}", exc_info=True)
