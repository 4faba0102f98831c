"""The shared game store: fleet, warehouses, orders, budget and score."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from config import (
    EVENT_LOG_LIMIT,
    MAIN_WAREHOUSE_CAPACITY,
    MAIN_WAREHOUSE_LOCATION,
    MAIN_WAREHOUSE_NAME,
    SCORE_VALUE_DIVISOR,
    STARTING_BUDGET,
    STARTING_VEHICLE_TYPE,
    STATUS_GAME_OVER,
    STATUS_MENU,
    STATUS_PAUSED,
    STATUS_PLAYING,
    STATUS_TUTORIAL,
)
from game.entities import Location, Order, PerformanceMetrics, Vehicle, Warehouse
from game.events import (
    BudgetChanged,
    EventBus,
    GameEnded,
    GamePaused,
    GameResumed,
    GameStarted,
    LevelUp,
    LogisticsEvent,
    OrderFulfilled,
    OrderPlaced,
    PerformanceUpdated,
    ScoreIncreased,
    TutorialCompleted,
    TutorialStarted,
    VehicleDelayed,
    VehicleDispatched,
)

logger = logging.getLogger("fleetline.state")


class GameState:
    """Budget, score, fleet, warehouses and orders.

    ``orders`` is the pool of active orders waiting for a vehicle. Dispatch
    moves an order into ``assigned_orders``; fulfilment moves it into
    ``completed_orders``. An order id lives in exactly one of them.
    """

    def __init__(
        self,
        bus: EventBus,
        *,
        budget: float = STARTING_BUDGET,
        warehouses: Optional[List[Warehouse]] = None,
        vehicles: Optional[List[Vehicle]] = None,
    ) -> None:
        self.bus = bus
        self.status: str = STATUS_MENU
        self.budget: float = budget
        self.score: int = 0
        self.level: int = 1
        self.game_time: float = 0.0
        self.warehouses: List[Warehouse] = []
        self.vehicles: List[Vehicle] = []
        self.orders: List[Order] = []
        self.assigned_orders: Dict[str, Order] = {}
        self.completed_orders: List[Order] = []
        self.performance_metrics = PerformanceMetrics()
        self.event_log: List[str] = []
        self._status_before_pause: str = STATUS_PLAYING

        if warehouses is None and vehicles is None:
            self._initialize_starting_state()
        else:
            self.warehouses = list(warehouses or [])
            self.vehicles = list(vehicles or [])

        self._subscriptions = [
            bus.subscribe(LogisticsEvent, self._handle_event),
            bus.subscribe(TutorialStarted, self._handle_tutorial_started),
            bus.subscribe(TutorialCompleted, self._handle_tutorial_completed),
            bus.subscribe(LevelUp, self._handle_level_up),
        ]

    def _initialize_starting_state(self) -> None:
        main = Warehouse(
            name=MAIN_WAREHOUSE_NAME,
            location=Location(*MAIN_WAREHOUSE_LOCATION),
            capacity=MAIN_WAREHOUSE_CAPACITY,
        )
        self.warehouses.append(main)
        self.vehicles.append(Vehicle.of_type("truck-1", STARTING_VEHICLE_TYPE, main.location))

    def log_event(self, message: str) -> None:
        self.event_log.append(message)
        self.event_log = self.event_log[-EVENT_LOG_LIMIT:]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        return next((v for v in self.vehicles if v.id == vehicle_id), None)

    def find_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        return next((w for w in self.warehouses if w.id == warehouse_id), None)

    def find_active_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def knows_order(self, order_id: str) -> bool:
        return (
            order_id in self.assigned_orders
            or any(o.id == order_id for o in self.orders)
            or any(o.id == order_id for o in self.completed_orders)
        )

    @property
    def total_orders(self) -> int:
        return len(self.orders) + len(self.assigned_orders) + len(self.completed_orders)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, GameStarted):
            self.status = STATUS_PLAYING
            self.log_event("Game started")
        elif isinstance(event, GamePaused):
            if self.status in (STATUS_PLAYING, STATUS_TUTORIAL):
                self._status_before_pause = self.status
                self.status = STATUS_PAUSED
                self.log_event("Game paused")
        elif isinstance(event, GameResumed):
            if self.status == STATUS_PAUSED:
                self.status = self._status_before_pause
                self.log_event("Game resumed")
        elif isinstance(event, GameEnded):
            self.status = STATUS_GAME_OVER
            self.log_event("Game over")
        elif isinstance(event, OrderPlaced):
            if not self.knows_order(event.order.id):
                self.orders.append(event.order)
        elif isinstance(event, VehicleDispatched):
            self._assign_orders(event)
        elif isinstance(event, OrderFulfilled):
            self._complete_order(event.order)
        elif isinstance(event, BudgetChanged):
            self.budget = event.budget
        elif isinstance(event, PerformanceUpdated):
            self.performance_metrics = event.metrics
        elif isinstance(event, VehicleDelayed):
            self.log_event(f"{event.vehicle_id} slowed by weather")

    def _assign_orders(self, event: VehicleDispatched) -> None:
        for order in event.route.orders:
            active = self.find_active_order(order.id)
            if active is None:
                continue
            self.orders.remove(active)
            self.assigned_orders[order.id] = active
        self.log_event(f"{event.vehicle_id} dispatched with {len(event.route.orders)} order(s)")

    def _complete_order(self, order: Order) -> None:
        found = self.assigned_orders.pop(order.id, None)
        if found is None:
            found = self.find_active_order(order.id)
            if found is None:
                logger.debug("Ignoring fulfilment of unknown order %s", order.id)
                return
            self.orders.remove(found)
        self.completed_orders.append(found)
        self.budget += found.value
        increase = int(found.value / SCORE_VALUE_DIVISOR)
        self.score += increase
        self.log_event(f"Delivered {found.quantity}x {found.product.name} (+${found.value:.0f})")
        self.bus.publish(ScoreIncreased(increase=increase, total=self.score))

    def _handle_tutorial_started(self, event: TutorialStarted) -> None:
        if self.status in (STATUS_MENU, STATUS_PLAYING):
            self.status = STATUS_TUTORIAL

    def _handle_tutorial_completed(self, event: TutorialCompleted) -> None:
        if self.status == STATUS_TUTORIAL:
            self.status = STATUS_PLAYING
        elif self.status == STATUS_PAUSED and self._status_before_pause == STATUS_TUTORIAL:
            self._status_before_pause = STATUS_PLAYING

    def _handle_level_up(self, event: LevelUp) -> None:
        self.level = event.level
        self.log_event(f"Level up! Now level {event.level}")
