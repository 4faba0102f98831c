"""Random order generation and order bookkeeping."""
from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Set

from config import ORDER_INTERVAL_MAX, ORDER_INTERVAL_MIN
from game.entities import Order, OrderPriority
from game.events import (
    EventBus,
    GameEnded,
    GamePaused,
    GameResumed,
    GameStarted,
    LogisticsEvent,
    OrderDelayed,
    OrderFulfilled,
    OrderPlaced,
    VehicleDispatched,
)
from game.scheduler import Scheduler, TimerHandle

logger = logging.getLogger("fleetline.orders")


class OrderManager:
    """Generates orders on a jittered timer and tracks their lifecycle.

    The generation interval is drawn uniformly from
    ``[ORDER_INTERVAL_MIN, ORDER_INTERVAL_MAX]`` and re-drawn after every
    firing, so inter-arrival times are independent uniform draws.
    """

    def __init__(self, bus: EventBus, scheduler: Scheduler, rng: random.Random) -> None:
        self.bus = bus
        self.scheduler = scheduler
        self.rng = rng
        self.active_orders: List[Order] = []
        self.assigned_orders: Dict[str, Order] = {}
        self.completed_orders: List[Order] = []
        self.delayed_order_ids: Set[str] = set()
        self._timer: Optional[TimerHandle] = None
        self._paused = False
        self._subscription = bus.subscribe(LogisticsEvent, self._handle_event)

    @property
    def generating(self) -> bool:
        return self._timer is not None and self._timer.active

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, OrderPlaced):
            if not self._knows(event.order.id):
                self.active_orders.append(event.order)
        elif isinstance(event, VehicleDispatched):
            for order in event.route.orders:
                active = self._pop_active(order.id)
                if active is not None:
                    self.assigned_orders[order.id] = active
        elif isinstance(event, OrderFulfilled):
            self._fulfil(event.order)
        elif isinstance(event, OrderDelayed):
            self.delayed_order_ids.add(event.order.id)
        elif isinstance(event, GameStarted) or (isinstance(event, GameResumed) and self._paused):
            self.start_generation()
        elif isinstance(event, GamePaused):
            self._paused = self._paused or self.generating
            self.stop_generation()
        elif isinstance(event, GameEnded):
            self._paused = False
            self.stop_generation()

    def _knows(self, order_id: str) -> bool:
        return (
            order_id in self.assigned_orders
            or any(o.id == order_id for o in self.active_orders)
            or any(o.id == order_id for o in self.completed_orders)
        )

    def _pop_active(self, order_id: str) -> Optional[Order]:
        for idx, order in enumerate(self.active_orders):
            if order.id == order_id:
                return self.active_orders.pop(idx)
        return None

    def _fulfil(self, order: Order) -> None:
        found = self.assigned_orders.pop(order.id, None) or self._pop_active(order.id)
        if found is None:
            return
        self.completed_orders.append(found)
        self.delayed_order_ids.discard(found.id)

    # ------------------------------------------------------------------
    # Generation timer
    # ------------------------------------------------------------------

    def _next_interval(self) -> float:
        return self.rng.uniform(ORDER_INTERVAL_MIN, ORDER_INTERVAL_MAX)

    def start_generation(self) -> None:
        self.stop_generation()
        self._paused = False
        self._timer = self.scheduler.call_every(self._next_interval(), self._on_timer)

    def stop_generation(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        if self._timer is not None:
            self._timer.interval = self._next_interval()
        self.generate_order()

    def generate_order(self) -> Order:
        order = Order.random(self.rng, self.scheduler.now)
        logger.debug("Generated order %s: %dx %s", order.id, order.quantity, order.product.name)
        self.bus.publish(OrderPlaced(order))
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_overdue_orders(self) -> List[Order]:
        now = self.scheduler.now
        return [order for order in self.active_orders if order.is_overdue(now)]

    def get_high_priority_orders(self) -> List[Order]:
        return [
            order
            for order in self.active_orders
            if order.priority in (OrderPriority.URGENT, OrderPriority.EXPRESS)
        ]

    def get_orders_by_priority(self) -> List[Order]:
        return sorted(self.active_orders, key=lambda o: (-o.priority.multiplier, o.deadline))

    def calculate_total_value(self) -> float:
        return sum(order.value for order in self.active_orders)

    def is_delayed(self, order_id: str) -> bool:
        return order_id in self.delayed_order_ids

    @property
    def total_orders(self) -> int:
        return len(self.active_orders) + len(self.assigned_orders) + len(self.completed_orders)
