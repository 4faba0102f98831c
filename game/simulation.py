"""LogisticsSim: the assembled, headless-compatible logistics game.

All gameplay constants are imported from ``config``. The simulation has no
pygame dependency and is safe to import in headless / test contexts.
"""
from __future__ import annotations

import random
from typing import Dict, List, Optional

from config import STATUS_GAME_OVER, STATUS_PAUSED
from game.achievements import AchievementManager
from game.engine import GameEngine
from game.entities import Location, Order, OrderPriority, Product, Vehicle
from game.events import (
    EventBus,
    GameEnded,
    GamePaused,
    GameResumed,
    GameStarted,
    OrderPlaced,
    ProgressResetRequested,
    TutorialAdvanceRequested,
    TutorialResetRequested,
    TutorialSkipRequested,
    VehicleAssignmentRequested,
)
from game.feedback import FeedbackManager
from game.levels import LevelSystem
from game.scheduler import Scheduler
from game.settings import MemorySettingsStore, SettingsStore
from game.state import GameState
from game.tutorial import TutorialSystem


class LogisticsSim:
    """Bus, clock, store and every manager wired together.

    Construction order is subscription order: the store sees each event
    before the engine and the observers do. Player actions are published as
    events; :meth:`tick` advances the game clock.
    """

    def __init__(
        self,
        seed: int = 7,
        settings: Optional[SettingsStore] = None,
        state: Optional[GameState] = None,
        *,
        stock_inventory: bool = True,
    ) -> None:
        self.rng = random.Random(seed)
        self.settings: SettingsStore = settings if settings is not None else MemorySettingsStore()
        self.bus = state.bus if state is not None else EventBus()
        self.scheduler = Scheduler()
        self.state = state if state is not None else GameState(self.bus)
        self.engine = GameEngine(self.bus, self.state, self.scheduler, self.rng, stock_inventory=stock_inventory)
        self.tutorial = TutorialSystem(self.bus, self.scheduler, self.settings, self.rng)
        self.levels = LevelSystem(self.bus, self.scheduler, self.settings)
        self.achievements = AchievementManager(self.bus, self.state, self.scheduler)
        self.feedback = FeedbackManager(self.bus, self.scheduler)

    # Shortcuts used by the UI and the headless runner.

    @property
    def orders(self):
        return self.engine.order_manager

    @property
    def vehicles(self):
        return self.engine.vehicle_manager

    @property
    def warehouses(self):
        return self.engine.warehouse_manager

    @property
    def weather(self):
        return self.engine.weather_manager

    @property
    def time(self) -> float:
        return self.scheduler.now

    @property
    def event_log(self) -> List[str]:
        return self.state.event_log

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.bus.publish(GameStarted())

    def pause(self) -> None:
        self.bus.publish(GamePaused())

    def resume(self) -> None:
        self.bus.publish(GameResumed())

    def toggle_pause(self) -> None:
        if self.state.status == STATUS_PAUSED:
            self.resume()
        else:
            self.pause()

    def end(self) -> None:
        self.bus.publish(GameEnded())

    def place_order(
        self,
        product: Product,
        quantity: int,
        destination: Location,
        priority: OrderPriority = OrderPriority.STANDARD,
        deadline_in: float = 3600.0,
    ) -> Order:
        now = self.scheduler.now
        order = Order(
            product=product,
            quantity=quantity,
            destination=destination,
            priority=priority,
            placed_at=now,
            deadline=now + deadline_in,
        )
        self.bus.publish(OrderPlaced(order))
        return order

    def request_assignment(self, vehicle_id: str, order_id: str) -> None:
        self.bus.publish(VehicleAssignmentRequested(vehicle_id, order_id))

    def add_vehicle(self, vehicle: Vehicle) -> None:
        self.vehicles.add_vehicle(vehicle)

    def advance_tutorial(self) -> None:
        self.bus.publish(TutorialAdvanceRequested())

    def skip_tutorial(self) -> None:
        self.bus.publish(TutorialSkipRequested())

    def reset_tutorial(self) -> None:
        self.bus.publish(TutorialResetRequested())

    def reset_progress(self) -> None:
        self.bus.publish(ProgressResetRequested())

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> int:
        return self.scheduler.advance(dt)

    @property
    def game_over(self) -> bool:
        return self.state.status == STATUS_GAME_OVER

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def ontime_rate(self) -> float:
        return self.state.performance_metrics.on_time_delivery_rate

    def summary(self) -> Dict[str, float | int | str]:
        metrics = self.state.performance_metrics
        return {
            "time": round(self.scheduler.now, 1),
            "status": self.state.status,
            "budget": round(self.state.budget, 2),
            "score": self.state.score,
            "level": self.levels.level,
            "experience": self.levels.experience,
            "active_orders": len(self.state.orders),
            "assigned_orders": len(self.state.assigned_orders),
            "completed_orders": len(self.state.completed_orders),
            "on_time_rate": round(metrics.on_time_delivery_rate, 3),
            "satisfaction": round(metrics.customer_satisfaction, 3),
            "profit": round(metrics.profit, 2),
            "weather": self.weather.current,
            "achievements": len(self.achievements.unlocked),
        }
