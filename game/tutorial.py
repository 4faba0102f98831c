"""Guided first-game tutorial."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional

from config import TUTORIAL_COMPLETED_KEY, TUTORIAL_FINISH_DELAY, TUTORIAL_PERFORMANCE_DELAY
from game.entities import ELECTRONICS, Location, Order, OrderPriority
from game.events import (
    EventBus,
    GameStarted,
    OrderFulfilled,
    OrderPlaced,
    PerformanceUpdated,
    TutorialAdvanceRequested,
    TutorialCompleted,
    TutorialEvent,
    TutorialResetRequested,
    TutorialSkipRequested,
    TutorialStarted,
    TutorialStepChanged,
    VehicleDispatched,
)
from game.scheduler import Scheduler, TimerHandle
from game.settings import SettingsStore

logger = logging.getLogger("fleetline.tutorial")


class TutorialStep(IntEnum):
    WELCOME = 0
    UNDERSTAND_DASHBOARD = 1
    VIEW_FIRST_ORDER = 2
    ASSIGN_VEHICLE = 3
    WATCH_DELIVERY = 4
    CHECK_PERFORMANCE = 5
    COMPLETED = 6


@dataclass(frozen=True)
class StepInfo:
    title: str
    description: str
    highlight: Optional[str]
    can_auto_advance: bool


STEP_INFO: Dict[TutorialStep, StepInfo] = {
    TutorialStep.WELCOME: StepInfo(
        "Welcome to Supply Chain Manager!",
        "Let's learn the basics of managing your logistics network. Press any key to continue.",
        None,
        True,
    ),
    TutorialStep.UNDERSTAND_DASHBOARD: StepInfo(
        "Understanding Your Dashboard",
        "The dashboard shows your budget, score, and key metrics. Keep an eye on your budget - don't let it run out!",
        "dashboard",
        True,
    ),
    TutorialStep.VIEW_FIRST_ORDER: StepInfo(
        "Your First Order",
        "Look at the Orders panel. You should see your first customer order waiting to be fulfilled.",
        "orders_panel",
        True,
    ),
    TutorialStep.ASSIGN_VEHICLE: StepInfo(
        "Assign a Vehicle",
        "Select an order, then an available vehicle to assign it. A route is created automatically.",
        "orders_panel",
        False,
    ),
    TutorialStep.WATCH_DELIVERY: StepInfo(
        "Watch the Delivery",
        "Watch your vehicle travel on the map. It collects goods from the warehouse and delivers to the customer.",
        "map",
        False,
    ),
    TutorialStep.CHECK_PERFORMANCE: StepInfo(
        "Check Your Performance",
        "Great! Check your updated score and performance metrics. Faster deliveries mean better performance!",
        "dashboard",
        False,
    ),
    TutorialStep.COMPLETED: StepInfo(
        "Tutorial Complete!",
        "You can now manage multiple vehicles, handle complex orders, and grow your logistics empire.",
        None,
        True,
    ),
}


class TutorialSystem:
    """Walks a new player through one delivery.

    Gated steps wait for the matching game event: a dispatch, a fulfilled
    order and a performance update after that delivery.
    """

    def __init__(
        self,
        bus: EventBus,
        scheduler: Scheduler,
        settings: SettingsStore,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.bus = bus
        self.scheduler = scheduler
        self.settings = settings
        self.rng = rng or random.Random()
        self.is_active = False
        self.show_overlay = False
        self.current_step = TutorialStep.WELCOME
        self.has_assigned_vehicle = False
        self.has_completed_delivery = False
        self.has_checked_performance = False
        self._pending: List[TimerHandle] = []
        self._subscriptions = [
            bus.subscribe(GameStarted, self._handle_game_started),
            bus.subscribe(VehicleDispatched, self._handle_dispatch),
            bus.subscribe(OrderFulfilled, self._handle_fulfilled),
            bus.subscribe(PerformanceUpdated, self._handle_performance),
            bus.subscribe(TutorialEvent, self._handle_request),
        ]

    @property
    def step_info(self) -> StepInfo:
        return STEP_INFO[self.current_step]

    def has_completed_tutorial(self) -> bool:
        return self.settings.get_bool(TUTORIAL_COMPLETED_KEY, False)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _handle_game_started(self, event: GameStarted) -> None:
        if not self.is_active and not self.has_completed_tutorial():
            self.start_tutorial()

    def _handle_dispatch(self, event: VehicleDispatched) -> None:
        if not self.is_active:
            return
        self.has_assigned_vehicle = True
        if self.current_step == TutorialStep.ASSIGN_VEHICLE:
            self._advance_to(TutorialStep.WATCH_DELIVERY)

    def _handle_fulfilled(self, event: OrderFulfilled) -> None:
        if not self.is_active:
            return
        self.has_completed_delivery = True
        if self.current_step == TutorialStep.WATCH_DELIVERY:
            self._advance_to(TutorialStep.CHECK_PERFORMANCE)

    def _handle_performance(self, event: PerformanceUpdated) -> None:
        if not self.is_active or self.has_checked_performance:
            return
        if self.current_step == TutorialStep.CHECK_PERFORMANCE and self.has_completed_delivery:
            self.has_checked_performance = True
            self._later(TUTORIAL_PERFORMANCE_DELAY, lambda: self._advance_to(TutorialStep.COMPLETED))

    def _handle_request(self, event: TutorialEvent) -> None:
        if isinstance(event, TutorialAdvanceRequested):
            self.next_step()
        elif isinstance(event, TutorialSkipRequested):
            self.skip_tutorial()
        elif isinstance(event, TutorialResetRequested):
            self.reset_tutorial()

    # ------------------------------------------------------------------
    # Flow
    # ------------------------------------------------------------------

    def start_tutorial(self) -> None:
        self._cancel_pending()
        self.is_active = True
        self.current_step = TutorialStep.WELCOME
        self.show_overlay = True
        self.has_assigned_vehicle = False
        self.has_completed_delivery = False
        self.has_checked_performance = False
        logger.info("Tutorial started")
        self.bus.publish(TutorialStarted())
        self.bus.publish(OrderPlaced(self._seed_order()))

    def _seed_order(self) -> Order:
        now = self.scheduler.now
        return Order(
            product=ELECTRONICS,
            quantity=1,
            destination=Location.random(self.rng),
            priority=OrderPriority.STANDARD,
            placed_at=now,
            deadline=now + 3600.0,
        )

    def can_advance_current_step(self) -> bool:
        if self.current_step == TutorialStep.ASSIGN_VEHICLE:
            return self.has_assigned_vehicle
        if self.current_step == TutorialStep.WATCH_DELIVERY:
            return self.has_completed_delivery
        if self.current_step == TutorialStep.CHECK_PERFORMANCE:
            return self.has_checked_performance
        return True

    def next_step(self) -> None:
        if not self.is_active or not self.can_advance_current_step():
            return
        if self.current_step == TutorialStep.COMPLETED:
            self.complete_tutorial()
            return
        self._advance_to(TutorialStep(self.current_step + 1))

    def _advance_to(self, step: TutorialStep) -> None:
        if not self.is_active:
            return
        self.current_step = step
        self.bus.publish(TutorialStepChanged(int(step)))
        if step == TutorialStep.COMPLETED:
            self._later(TUTORIAL_FINISH_DELAY, self.complete_tutorial)

    def skip_tutorial(self) -> None:
        if self.is_active:
            self.complete_tutorial()
        else:
            self.settings.set_bool(TUTORIAL_COMPLETED_KEY, True)

    def complete_tutorial(self) -> None:
        if not self.is_active:
            return
        self._cancel_pending()
        self.is_active = False
        self.show_overlay = False
        self.settings.set_bool(TUTORIAL_COMPLETED_KEY, True)
        logger.info("Tutorial completed")
        self.bus.publish(TutorialCompleted())

    def reset_tutorial(self) -> None:
        self._cancel_pending()
        self.settings.set_bool(TUTORIAL_COMPLETED_KEY, False)
        self.is_active = False
        self.show_overlay = False
        self.current_step = TutorialStep.WELCOME

    def _later(self, delay: float, callback) -> None:
        self._pending = [handle for handle in self._pending if handle.active]
        self._pending.append(self.scheduler.call_later(delay, callback))

    def _cancel_pending(self) -> None:
        for handle in self._pending:
            handle.cancel()
        self._pending = []
