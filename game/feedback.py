"""Short-lived on-screen popups for deliveries and score gains."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from config import DELIVERY_FEEDBACK_SECONDS, SCORE_FEEDBACK_SECONDS
from game.entities import Location, Order, new_id
from game.events import DeliverySuccessful, EventBus, LogisticsEvent, ScoreIncreased
from game.scheduler import Scheduler


@dataclass(frozen=True)
class DeliveryFeedback:
    order: Order
    location: Location
    created_at: float
    fade_delay: float = DELIVERY_FEEDBACK_SECONDS
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class ScoreFeedback:
    increase: int
    total: int
    created_at: float
    fade_delay: float = SCORE_FEEDBACK_SECONDS
    id: str = field(default_factory=new_id)


class FeedbackManager:
    def __init__(self, bus: EventBus, scheduler: Scheduler) -> None:
        self.scheduler = scheduler
        self.delivery_feedbacks: List[DeliveryFeedback] = []
        self.score_feedbacks: List[ScoreFeedback] = []
        self._subscription = bus.subscribe(LogisticsEvent, self._handle_event)

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, DeliverySuccessful):
            self.show_delivery(event.order, event.location)
        elif isinstance(event, ScoreIncreased):
            self.show_score(event.increase, event.total)

    def show_delivery(self, order: Order, location: Location) -> DeliveryFeedback:
        popup = DeliveryFeedback(order=order, location=location, created_at=self.scheduler.now)
        self.delivery_feedbacks.append(popup)
        self.scheduler.call_later(popup.fade_delay, lambda: self._dismiss_delivery(popup.id))
        return popup

    def show_score(self, increase: int, total: int) -> ScoreFeedback:
        popup = ScoreFeedback(increase=increase, total=total, created_at=self.scheduler.now)
        self.score_feedbacks.append(popup)
        self.scheduler.call_later(popup.fade_delay, lambda: self._dismiss_score(popup.id))
        return popup

    def _dismiss_delivery(self, popup_id: str) -> None:
        self.delivery_feedbacks = [p for p in self.delivery_feedbacks if p.id != popup_id]

    def _dismiss_score(self, popup_id: str) -> None:
        self.score_feedbacks = [p for p in self.score_feedbacks if p.id != popup_id]
