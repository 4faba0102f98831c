"""Experience points, player levels and feature unlocks."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from config import (
    LEVEL_UP_POPUP_SECONDS,
    PERFORMANCE_XP_BONUS,
    PERFORMANCE_XP_THRESHOLD,
    PLAYER_EXPERIENCE_KEY,
    PLAYER_LEVEL_KEY,
)
from game.events import (
    EventBus,
    ExperienceGained,
    LevelUp,
    LogisticsEvent,
    OrderFulfilled,
    PerformanceUpdated,
    ProgressResetRequested,
    ScoreIncreased,
)
from game.scheduler import Scheduler, TimerHandle
from game.settings import SettingsStore
from level_catalog import load_level_catalog

logger = logging.getLogger("fleetline.levels")

LEVELS: List[Dict] = load_level_catalog()


@dataclass(frozen=True)
class PlayerLevel:
    level: int
    experience: int
    levels: List[Dict] = field(default_factory=lambda: LEVELS, compare=False, repr=False)

    @property
    def requirements(self) -> Dict:
        return _level_entry(self.levels, self.level) or self.levels[0]

    @property
    def title(self) -> str:
        return str(self.requirements["title"])

    @property
    def unlocked_features(self) -> FrozenSet[str]:
        unlocked = set()
        for entry in self.levels:
            if entry["level"] <= self.level:
                unlocked.update(entry["unlocks"])
        return frozenset(unlocked)

    @property
    def progress_to_next(self) -> float:
        following = _level_entry(self.levels, self.level + 1)
        if following is None:
            return 1.0
        current_req = self.requirements["experience_required"]
        next_req = following["experience_required"]
        progress = (self.experience - current_req) / (next_req - current_req)
        return max(0.0, min(1.0, progress))

    @property
    def experience_to_next(self) -> int:
        following = _level_entry(self.levels, self.level + 1)
        if following is None:
            return 0
        return max(0, following["experience_required"] - self.experience)

    @property
    def is_max_level(self) -> bool:
        return self.level >= len(self.levels)


def _level_entry(levels: List[Dict], level: int) -> Optional[Dict]:
    return next((entry for entry in levels if entry["level"] == level), None)


class LevelSystem:
    """Awards experience from deliveries and keeps it persisted.

    Experience sources: a fulfilled order gives a tenth of its value, a
    score increase gives a tenth of the increase, and a performance update
    with an on-time rate of at least 95% gives a flat bonus.
    """

    def __init__(
        self,
        bus: EventBus,
        scheduler: Scheduler,
        settings: SettingsStore,
        levels: Optional[List[Dict]] = None,
    ) -> None:
        self.bus = bus
        self.scheduler = scheduler
        self.settings = settings
        self.levels = levels or LEVELS
        saved_level = max(1, min(settings.get_int(PLAYER_LEVEL_KEY, 1), len(self.levels)))
        saved_experience = max(0, settings.get_int(PLAYER_EXPERIENCE_KEY, 0))
        self.current = PlayerLevel(saved_level, saved_experience, self.levels)
        self.notification: Optional[Dict] = None
        self._notification_timer: Optional[TimerHandle] = None
        self._subscriptions = [
            bus.subscribe(LogisticsEvent, self._handle_event),
            bus.subscribe(ProgressResetRequested, lambda _event: self.reset_progress()),
        ]

    @property
    def level(self) -> int:
        return self.current.level

    @property
    def experience(self) -> int:
        return self.current.experience

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, OrderFulfilled):
            self.add_experience(int(event.order.value / 10))
        elif isinstance(event, ScoreIncreased):
            self.add_experience(event.increase // 10)
        elif isinstance(event, PerformanceUpdated):
            if event.metrics.on_time_delivery_rate >= PERFORMANCE_XP_THRESHOLD:
                self.add_experience(PERFORMANCE_XP_BONUS)

    def add_experience(self, amount: int) -> None:
        if amount <= 0:
            return
        experience = self.current.experience + amount
        self.bus.publish(ExperienceGained(amount))
        self._check_for_level_up(experience)
        self.save_progress()

    def _check_for_level_up(self, experience: int) -> None:
        level = self.current.level
        while True:
            following = _level_entry(self.levels, level + 1)
            if following is None or experience < following["experience_required"]:
                break
            level += 1
            self._show_notification(following)
            logger.info("Reached level %d (%s)", level, following["title"])
            self.bus.publish(LevelUp(level))
        self.current = PlayerLevel(level, experience, self.levels)

    def _show_notification(self, entry: Dict) -> None:
        if self._notification_timer is not None:
            self._notification_timer.cancel()
        self.notification = entry
        self._notification_timer = self.scheduler.call_later(
            LEVEL_UP_POPUP_SECONDS, lambda: self._dismiss_notification(entry)
        )

    def _dismiss_notification(self, entry: Dict) -> None:
        if self.notification is entry:
            self.notification = None
        self._notification_timer = None

    def save_progress(self) -> None:
        self.settings.set_int(PLAYER_LEVEL_KEY, self.current.level)
        self.settings.set_int(PLAYER_EXPERIENCE_KEY, self.current.experience)

    def is_feature_unlocked(self, unlock: str) -> bool:
        return unlock in self.current.unlocked_features

    def reset_progress(self) -> None:
        self.current = PlayerLevel(1, 0, self.levels)
        self.save_progress()
        logger.info("Player progress reset")
