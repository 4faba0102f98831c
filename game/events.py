"""Typed game events and the synchronous event bus.

Each topic is a base class (``LogisticsEvent``, ``TutorialEvent`` ...) and
each concrete event is a frozen dataclass deriving from exactly one topic.
Subscribing to a topic receives every variant of it; subscribing to a
variant receives only that variant. Topics never leak into each other.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type, TypeVar

from game.entities import Location, Order, PerformanceMetrics, Product, Route

logger = logging.getLogger("fleetline.events")


class GameEvent:
    """Marker base for everything that travels over the bus."""


# ---------------------------------------------------------------------------
# Logistics topic
# ---------------------------------------------------------------------------


class LogisticsEvent(GameEvent):
    pass


@dataclass(frozen=True)
class GameStarted(LogisticsEvent):
    pass


@dataclass(frozen=True)
class GamePaused(LogisticsEvent):
    pass


@dataclass(frozen=True)
class GameResumed(LogisticsEvent):
    pass


@dataclass(frozen=True)
class GameEnded(LogisticsEvent):
    pass


@dataclass(frozen=True)
class OrderPlaced(LogisticsEvent):
    order: Order


@dataclass(frozen=True)
class OrderFulfilled(LogisticsEvent):
    order: Order


@dataclass(frozen=True)
class OrderDelayed(LogisticsEvent):
    order: Order


@dataclass(frozen=True)
class DeliverySuccessful(LogisticsEvent):
    order: Order
    location: Location


@dataclass(frozen=True)
class VehicleAdded(LogisticsEvent):
    vehicle_id: str


@dataclass(frozen=True)
class VehicleAssignmentRequested(LogisticsEvent):
    vehicle_id: str
    order_id: str


@dataclass(frozen=True)
class VehicleDispatched(LogisticsEvent):
    vehicle_id: str
    route: Route


@dataclass(frozen=True)
class VehicleArrived(LogisticsEvent):
    vehicle_id: str
    location: Location


@dataclass(frozen=True)
class VehicleDelayed(LogisticsEvent):
    vehicle_id: str


@dataclass(frozen=True)
class InventoryLow(LogisticsEvent):
    product: Product
    warehouse_id: str


@dataclass(frozen=True)
class InventoryReplenished(LogisticsEvent):
    product: Product
    warehouse_id: str
    quantity: int


@dataclass(frozen=True)
class BudgetChanged(LogisticsEvent):
    budget: float


@dataclass(frozen=True)
class ScoreIncreased(LogisticsEvent):
    increase: int
    total: int


@dataclass(frozen=True)
class PerformanceUpdated(LogisticsEvent):
    metrics: PerformanceMetrics


# ---------------------------------------------------------------------------
# Tutorial topic
# ---------------------------------------------------------------------------


class TutorialEvent(GameEvent):
    pass


@dataclass(frozen=True)
class TutorialStarted(TutorialEvent):
    pass


@dataclass(frozen=True)
class TutorialStepChanged(TutorialEvent):
    step: int


@dataclass(frozen=True)
class TutorialCompleted(TutorialEvent):
    pass


@dataclass(frozen=True)
class TutorialAdvanceRequested(TutorialEvent):
    pass


@dataclass(frozen=True)
class TutorialSkipRequested(TutorialEvent):
    pass


@dataclass(frozen=True)
class TutorialResetRequested(TutorialEvent):
    pass


# ---------------------------------------------------------------------------
# Level topic
# ---------------------------------------------------------------------------


class LevelEvent(GameEvent):
    pass


@dataclass(frozen=True)
class ExperienceGained(LevelEvent):
    amount: int


@dataclass(frozen=True)
class LevelUp(LevelEvent):
    level: int


@dataclass(frozen=True)
class ProgressResetRequested(LevelEvent):
    pass


# ---------------------------------------------------------------------------
# Weather / achievement topics
# ---------------------------------------------------------------------------


class WeatherEvent(GameEvent):
    pass


@dataclass(frozen=True)
class WeatherChanged(WeatherEvent):
    condition: str
    intensity: float


class AchievementEvent(GameEvent):
    pass


@dataclass(frozen=True)
class AchievementUnlocked(AchievementEvent):
    achievement: str


# ---------------------------------------------------------------------------
# Bus
# ---------------------------------------------------------------------------

E = TypeVar("E", bound=GameEvent)
Handler = Callable[[GameEvent], None]


class Subscription:
    def __init__(self, bus: EventBus, event_type: type, handler: Handler) -> None:
        self._bus = bus
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._bus._remove(self)


class EventBus:
    """In-process publish/subscribe.

    ``publish`` runs every matching handler synchronously on the caller's
    stack, in subscription order. A handler that raises is logged and the
    remaining handlers still run.
    """

    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []
        self.published: Dict[str, int] = {}

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Subscription:
        if not (isinstance(event_type, type) and issubclass(event_type, GameEvent)):
            raise TypeError(f"{event_type!r} is not a GameEvent type")
        subscription = Subscription(self, event_type, handler)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, event: GameEvent) -> None:
        name = type(event).__name__
        self.published[name] = self.published.get(name, 0) + 1
        for subscription in list(self._subscriptions):
            if not subscription.active or not isinstance(event, subscription.event_type):
                continue
            try:
                subscription.handler(event)
            except Exception:
                logger.exception("Handler %r failed on %s", subscription.handler, name)

    def subscriber_count(self, event_type: Optional[type] = None) -> int:
        if event_type is None:
            return len(self._subscriptions)
        return sum(1 for s in self._subscriptions if issubclass(event_type, s.event_type))
