"""Game engine: owns the managers and runs the one-second economy tick."""
from __future__ import annotations

import dataclasses
import logging
import random
from typing import Optional, Set

from config import (
    DISPATCH_COST_PER_DISTANCE,
    GAME_TICK_INTERVAL,
    OPERATING_COST_PERIOD,
    OVERDUE_PENALTY_RATE,
    WEATHER_AFFECTS_SATISFACTION,
    WEATHER_AFFECTS_TRAVEL,
)
from game.entities import Order, Route, Vehicle, Warehouse
from game.events import (
    BudgetChanged,
    EventBus,
    GameEnded,
    GamePaused,
    GameResumed,
    GameStarted,
    LogisticsEvent,
    OrderDelayed,
    OrderFulfilled,
    OrderPlaced,
    PerformanceUpdated,
    VehicleAssignmentRequested,
    VehicleDispatched,
)
from game.orders import OrderManager
from game.scheduler import Scheduler, TimerHandle
from game.state import GameState
from game.vehicles import VehicleManager
from game.warehouses import WarehouseManager
from game.weather import WeatherManager

logger = logging.getLogger("fleetline.engine")


class GameEngine:
    """Coordinates orders, warehouses, vehicles and weather.

    Every second of game clock the engine charges penalties for overdue
    orders, deducts amortised operating costs and recomputes the on-time
    rate. New orders are assigned automatically: stock is allocated from the
    first warehouse that has it and the nearest idle vehicle to that
    warehouse carries it on a direct route.
    """

    def __init__(
        self,
        bus: EventBus,
        state: GameState,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
        *,
        stock_inventory: bool = True,
        weather_affects_travel: bool = WEATHER_AFFECTS_TRAVEL,
        weather_affects_satisfaction: bool = WEATHER_AFFECTS_SATISFACTION,
    ) -> None:
        self.bus = bus
        self.state = state
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.weather_affects_travel = weather_affects_travel
        self.weather_affects_satisfaction = weather_affects_satisfaction
        self.tick_count = 0
        self._tick_timer: Optional[TimerHandle] = None
        self._paused = False
        self._recorded_ids: Set[str] = set()

        self.order_manager = OrderManager(bus, scheduler, self.rng)
        self.warehouse_manager = WarehouseManager(bus, state)
        self.weather_manager = WeatherManager(bus, scheduler, self.rng)
        self.vehicle_manager = VehicleManager(bus, state, scheduler, speed_factor=self._travel_speed_factor)
        self._subscription = bus.subscribe(LogisticsEvent, self._handle_event)

        if stock_inventory:
            self.warehouse_manager.stock_initial_inventory(self.rng)

    @property
    def is_running(self) -> bool:
        return self._tick_timer is not None and self._tick_timer.active

    def _travel_speed_factor(self) -> float:
        if not self.weather_affects_travel:
            return 1.0
        return self.weather_manager.speed_multiplier

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, GameStarted) or (isinstance(event, GameResumed) and self._paused):
            self.start()
        elif isinstance(event, GamePaused):
            self._paused = self._paused or self.is_running
            self.stop()
        elif isinstance(event, GameEnded):
            self._paused = False
            self.stop()
        elif isinstance(event, OrderPlaced):
            self.try_auto_assign(event.order)
        elif isinstance(event, VehicleAssignmentRequested):
            self.assign(event.vehicle_id, event.order_id)
        elif isinstance(event, VehicleDispatched):
            self._charge_dispatch(event.route)
        elif isinstance(event, OrderFulfilled):
            self._record_delivery(event.order)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._cancel_tick()
        self._paused = False
        self._tick_timer = self.scheduler.call_every(GAME_TICK_INTERVAL, self.tick)
        self.vehicle_manager.resume_all()

    def stop(self) -> None:
        self._cancel_tick()
        self.vehicle_manager.suspend_all()

    def _cancel_tick(self) -> None:
        if self._tick_timer is not None:
            self._tick_timer.cancel()
            self._tick_timer = None

    def tick(self) -> None:
        self.tick_count += 1
        self.state.game_time = self.scheduler.now
        self.check_overdue_orders()
        self.apply_operating_costs()
        self.update_on_time_rate()

    def check_overdue_orders(self) -> None:
        for order in self.order_manager.get_overdue_orders():
            self.bus.publish(OrderDelayed(order))
            self.state.budget -= order.value * OVERDUE_PENALTY_RATE

    def operating_costs(self) -> float:
        warehouse_costs = sum(w.operating_cost for w in self.state.warehouses)
        vehicle_costs = sum(v.operating_cost for v in self.state.vehicles)
        return (warehouse_costs + vehicle_costs) / OPERATING_COST_PERIOD

    def apply_operating_costs(self) -> None:
        self.state.budget -= self.operating_costs()
        if self.state.budget <= 0:
            logger.warning("Budget exhausted (%.2f), ending game", self.state.budget)
            self.bus.publish(GameEnded())
        self.bus.publish(BudgetChanged(self.state.budget))

    def update_on_time_rate(self) -> None:
        metrics = self.state.performance_metrics
        total = self.order_manager.total_orders
        if total > 0:
            overdue = len(self.order_manager.get_overdue_orders())
            metrics.on_time_delivery_rate = (total - overdue) / total
        self.bus.publish(PerformanceUpdated(dataclasses.replace(metrics)))

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def try_auto_assign(self, order: Order) -> bool:
        if self.state.find_active_order(order.id) is None:
            return False
        warehouse = self.warehouse_manager.allocate_inventory(order)
        if warehouse is None:
            logger.debug("No warehouse stocks %dx %s", order.quantity, order.product.name)
            return False
        vehicle = self.vehicle_manager.find_nearest_available_vehicle(warehouse.location)
        if vehicle is None:
            self.warehouse_manager.release_allocation(warehouse, order.product, order.quantity)
            return False
        return self._dispatch(vehicle, warehouse, order)

    def assign(self, vehicle_id: str, order_id: str) -> bool:
        vehicle = self.state.find_vehicle(vehicle_id)
        order = self.state.find_active_order(order_id)
        if vehicle is None or order is None or not vehicle.is_available:
            return False
        warehouse = self.warehouse_manager.allocate_inventory(order)
        if warehouse is None:
            return False
        return self._dispatch(vehicle, warehouse, order)

    def _dispatch(self, vehicle: Vehicle, warehouse: Warehouse, order: Order) -> bool:
        route = Route.direct(warehouse.location, [order.destination], [order])
        if route.total_weight <= vehicle.available_capacity and self.vehicle_manager.dispatch(vehicle, route):
            return True
        self.warehouse_manager.release_allocation(warehouse, order.product, order.quantity)
        logger.debug("Order %s stays unassigned: %s cannot carry it", order.id, vehicle.id)
        return False

    def _charge_dispatch(self, route: Route) -> None:
        cost = route.total_distance * DISPATCH_COST_PER_DISTANCE
        self.state.budget -= cost
        self.state.performance_metrics.add_cost(cost)

    # ------------------------------------------------------------------
    # Delivery metrics
    # ------------------------------------------------------------------

    def _record_delivery(self, order: Order) -> None:
        if order.id in self._recorded_ids or not self.state.knows_order(order.id):
            return
        self._recorded_ids.add(order.id)
        now = self.scheduler.now
        metrics = self.state.performance_metrics
        multiplier = self.weather_manager.satisfaction_multiplier if self.weather_affects_satisfaction else 1.0
        metrics.update_delivery_metrics(
            delivery_time=now - order.placed_at,
            was_on_time=not order.is_overdue(now),
            satisfaction_multiplier=multiplier,
        )
        metrics.add_revenue(order.value)
        metrics.update_efficiency(
            self.vehicle_manager.get_vehicle_utilization(),
            self.warehouse_manager.average_utilization(),
        )
        self.bus.publish(PerformanceUpdated(dataclasses.replace(metrics)))
