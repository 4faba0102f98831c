"""One-off achievements unlocked by gameplay milestones."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set

from config import (
    ACHIEVEMENT_POPUP_SECONDS,
    CONSISTENT_PERFORMER_ORDERS,
    EFFICIENCY_EXPERT_SECONDS,
    FLEET_COMMANDER_VEHICLES,
    HIGH_VALUE_ORDER,
    PROFITABLE_BUDGET,
    RAPID_GROWTH_WINDOW,
    SPEED_DEMON_DELIVERIES,
    SPEED_DEMON_WINDOW,
    VEHICLE_EN_ROUTE,
)
from game.entities import Order
from game.events import (
    AchievementUnlocked,
    BudgetChanged,
    DeliverySuccessful,
    EventBus,
    GameStarted,
    LogisticsEvent,
    OrderFulfilled,
    PerformanceUpdated,
    ScoreIncreased,
    VehicleAdded,
    VehicleDispatched,
)
from game.scheduler import Scheduler, TimerHandle
from game.state import GameState

logger = logging.getLogger("fleetline.achievements")


class AchievementType(Enum):
    FIRST_DELIVERY = "first_delivery"
    SPEED_DEMON = "speed_demon"
    EFFICIENCY_EXPERT = "efficiency_expert"
    HIGH_VALUE_HANDLER = "high_value_handler"
    FLEET_COMMANDER = "fleet_commander"
    MULTI_TASKER = "multi_tasker"
    CAPACITY_MASTER = "capacity_master"
    PROFITABLE = "profitable"
    RAPID_GROWTH = "rapid_growth"
    CONSISTENT_PERFORMER = "consistent_performer"

    @property
    def title(self) -> str:
        return ACHIEVEMENT_TEXT[self][0]

    @property
    def description(self) -> str:
        return ACHIEVEMENT_TEXT[self][1]


ACHIEVEMENT_TEXT: Dict[AchievementType, tuple[str, str]] = {
    AchievementType.FIRST_DELIVERY: ("First Delivery", "Complete your first order"),
    AchievementType.SPEED_DEMON: ("Speed Demon", "Complete 10 deliveries in 5 minutes"),
    AchievementType.EFFICIENCY_EXPERT: ("Efficiency Expert", "100% vehicle utilization for 10 minutes"),
    AchievementType.HIGH_VALUE_HANDLER: ("High Value Handler", "Complete $10,000+ order"),
    AchievementType.FLEET_COMMANDER: ("Fleet Commander", "Own 5 vehicles simultaneously"),
    AchievementType.MULTI_TASKER: ("Multi-tasker", "Have all vehicles active at once"),
    AchievementType.CAPACITY_MASTER: ("Capacity Master", "Fill a vehicle to 100% capacity"),
    AchievementType.PROFITABLE: ("Profitable", "Reach $100,000 budget"),
    AchievementType.RAPID_GROWTH: ("Rapid Growth", "Double your score in 5 minutes"),
    AchievementType.CONSISTENT_PERFORMER: ("Consistent Performer", "Complete 50 orders without failure"),
}


@dataclass(frozen=True)
class Achievement:
    type: AchievementType
    unlocked_at: float


class AchievementManager:
    """Watches logistics events and unlocks each achievement at most once.

    Time windows use the scheduler clock, so "10 deliveries in 5 minutes"
    means five minutes of game time.
    """

    def __init__(self, bus: EventBus, state: GameState, scheduler: Scheduler) -> None:
        self.bus = bus
        self.state = state
        self.scheduler = scheduler
        self.unlocked: Set[AchievementType] = set()
        self.history: List[Achievement] = []
        self.popup: Optional[Achievement] = None
        self._popup_timer: Optional[TimerHandle] = None

        self.delivery_count = 0
        self.completed_orders_count = 0
        self._recent_deliveries: List[float] = []
        self._game_started_at: Optional[float] = None
        self._initial_score = 0
        self._full_utilization_since: Optional[float] = None

        self._subscription = bus.subscribe(LogisticsEvent, self._handle_event)

    def is_unlocked(self, achievement: AchievementType) -> bool:
        return achievement in self.unlocked

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, GameStarted):
            self._game_started_at = self.scheduler.now
            self._initial_score = self.state.score
        elif isinstance(event, DeliverySuccessful):
            self._handle_delivery(event.order)
        elif isinstance(event, OrderFulfilled):
            self.completed_orders_count += 1
            if self.completed_orders_count >= CONSISTENT_PERFORMER_ORDERS:
                self.unlock(AchievementType.CONSISTENT_PERFORMER)
        elif isinstance(event, VehicleDispatched):
            self._check_multi_tasker()
        elif isinstance(event, VehicleAdded):
            if len(self.state.vehicles) >= FLEET_COMMANDER_VEHICLES:
                self.unlock(AchievementType.FLEET_COMMANDER)
        elif isinstance(event, BudgetChanged):
            if event.budget >= PROFITABLE_BUDGET:
                self.unlock(AchievementType.PROFITABLE)
        elif isinstance(event, ScoreIncreased):
            self._check_rapid_growth(event.total)
        elif isinstance(event, PerformanceUpdated):
            self._check_efficiency_expert()

    def _handle_delivery(self, order: Order) -> None:
        now = self.scheduler.now
        self.delivery_count += 1
        self._recent_deliveries.append(now)
        self._recent_deliveries = [t for t in self._recent_deliveries if t >= now - SPEED_DEMON_WINDOW]

        if self.delivery_count == 1:
            self.unlock(AchievementType.FIRST_DELIVERY)
        if len(self._recent_deliveries) >= SPEED_DEMON_DELIVERIES:
            self.unlock(AchievementType.SPEED_DEMON)
        if order.value >= HIGH_VALUE_ORDER:
            self.unlock(AchievementType.HIGH_VALUE_HANDLER)
        if any(v.capacity > 0 and v.current_load >= v.capacity for v in self.state.vehicles):
            self.unlock(AchievementType.CAPACITY_MASTER)

    def _check_multi_tasker(self) -> None:
        vehicles = self.state.vehicles
        if len(vehicles) > 1 and all(v.status == VEHICLE_EN_ROUTE for v in vehicles):
            self.unlock(AchievementType.MULTI_TASKER)

    def _check_rapid_growth(self, total_score: int) -> None:
        if self._game_started_at is None:
            return
        if self.scheduler.now - self._game_started_at < RAPID_GROWTH_WINDOW:
            return
        growth = total_score - self._initial_score
        if self._initial_score > 0 and growth >= self._initial_score:
            self.unlock(AchievementType.RAPID_GROWTH)

    def _check_efficiency_expert(self) -> None:
        vehicles = self.state.vehicles
        capacity = sum(v.capacity for v in vehicles)
        utilization = sum(v.current_load for v in vehicles) / capacity if capacity > 0 else 0.0
        if utilization < 1.0:
            self._full_utilization_since = None
            return
        if self._full_utilization_since is None:
            self._full_utilization_since = self.scheduler.now
        elif self.scheduler.now - self._full_utilization_since >= EFFICIENCY_EXPERT_SECONDS:
            self.unlock(AchievementType.EFFICIENCY_EXPERT)

    def unlock(self, achievement: AchievementType) -> bool:
        if achievement in self.unlocked:
            return False
        self.unlocked.add(achievement)
        record = Achievement(achievement, self.scheduler.now)
        self.history.append(record)
        self._show_popup(record)
        logger.info("Achievement unlocked: %s", achievement.title)
        self.bus.publish(AchievementUnlocked(achievement.value))
        return True

    def _show_popup(self, record: Achievement) -> None:
        if self._popup_timer is not None:
            self._popup_timer.cancel()
        self.popup = record
        self._popup_timer = self.scheduler.call_later(ACHIEVEMENT_POPUP_SECONDS, lambda: self._hide_popup(record))

    def _hide_popup(self, record: Achievement) -> None:
        if self.popup is record:
            self.popup = None
        self._popup_timer = None
