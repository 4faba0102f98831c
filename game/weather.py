"""Random weather changes and their advisory multipliers."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from config import (
    WEATHER_CHANGE_MAX,
    WEATHER_CHANGE_MIN,
    WEATHER_COUNTDOWN_INTERVAL,
    WEATHER_DURATION_MAX,
    WEATHER_DURATION_MIN,
    WEATHER_INTENSITY_MAX,
    WEATHER_INTENSITY_MIN,
    WEATHER_RESCHEDULE_DELAY,
)
from game.events import EventBus, GameEnded, GamePaused, GameResumed, GameStarted, LogisticsEvent, WeatherChanged
from game.scheduler import Scheduler, TimerHandle

logger = logging.getLogger("fleetline.weather")

CLEAR = "clear"
RAIN = "rain"
SNOW = "snow"
FOG = "fog"


@dataclass(frozen=True)
class WeatherCondition:
    key: str
    title: str
    description: str
    speed_multiplier: float
    satisfaction_multiplier: float


WEATHER_CONDITIONS: Dict[str, WeatherCondition] = {
    CLEAR: WeatherCondition(CLEAR, "Clear", "Perfect delivery conditions", 1.0, 1.1),
    RAIN: WeatherCondition(RAIN, "Rain", "Slower speeds, reduced satisfaction", 0.8, 0.95),
    SNOW: WeatherCondition(SNOW, "Snow", "Significantly reduced performance", 0.7, 0.85),
    FOG: WeatherCondition(FOG, "Fog", "Limited visibility affects deliveries", 0.9, 0.90),
}

WEATHER_PROBABILITIES: List[Tuple[str, float]] = [
    (CLEAR, 0.4),
    (RAIN, 0.2),
    (SNOW, 0.2),
    (FOG, 0.2),
]


class WeatherManager:
    """Changes the weather every two to five minutes of game time.

    ``time_until_change`` counts down once per second for the UI. The
    multipliers are advisory; the engine decides whether to apply them.
    """

    def __init__(self, bus: EventBus, scheduler: Scheduler, rng: random.Random) -> None:
        self.bus = bus
        self.scheduler = scheduler
        self.rng = rng
        self.current: str = CLEAR
        self.intensity: float = 0.0
        self.time_until_change: float = 0.0
        self.condition_duration: float = 0.0
        self._change_timer: Optional[TimerHandle] = None
        self._countdown: Optional[TimerHandle] = None
        self._paused = False
        self._subscription = bus.subscribe(LogisticsEvent, self._handle_event)

    @property
    def condition(self) -> WeatherCondition:
        return WEATHER_CONDITIONS[self.current]

    @property
    def speed_multiplier(self) -> float:
        return self.condition.speed_multiplier

    @property
    def satisfaction_multiplier(self) -> float:
        return self.condition.satisfaction_multiplier

    @property
    def running(self) -> bool:
        return self._change_timer is not None and self._change_timer.active

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, GameStarted) or (isinstance(event, GameResumed) and self._paused):
            self.start()
        elif isinstance(event, GamePaused):
            self._paused = self._paused or self.running
            self.stop()
        elif isinstance(event, GameEnded):
            self._paused = False
            self.stop()

    def start(self) -> None:
        self._paused = False
        self.schedule_next_change()

    def stop(self) -> None:
        for handle in (self._change_timer, self._countdown):
            if handle is not None:
                handle.cancel()
        self._change_timer = None
        self._countdown = None

    def schedule_next_change(self) -> None:
        self.stop()
        interval = self.rng.uniform(WEATHER_CHANGE_MIN, WEATHER_CHANGE_MAX)
        self.time_until_change = interval
        self._change_timer = self.scheduler.call_later(interval, self.change_weather)
        self._countdown = self.scheduler.call_every(WEATHER_COUNTDOWN_INTERVAL, self._count_down)

    def _count_down(self) -> None:
        if self.time_until_change > 0:
            self.time_until_change = max(0.0, self.time_until_change - WEATHER_COUNTDOWN_INTERVAL)
        elif self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def pick_next_condition(self) -> str:
        previous = self.current
        roll = self.rng.uniform(0.0, 1.0)
        cumulative = 0.0
        for key, probability in WEATHER_PROBABILITIES:
            cumulative += probability
            if roll <= cumulative and key != previous:
                return key
        others = [key for key in WEATHER_CONDITIONS if key != previous]
        return self.rng.choice(others)

    def change_weather(self) -> None:
        self.change_to(self.pick_next_condition())
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        self._change_timer = self.scheduler.call_later(WEATHER_RESCHEDULE_DELAY, self.schedule_next_change)

    def change_to(self, key: str) -> None:
        self.current = key
        self.intensity = 0.0 if key == CLEAR else self.rng.uniform(WEATHER_INTENSITY_MIN, WEATHER_INTENSITY_MAX)
        self.condition_duration = self.rng.uniform(WEATHER_DURATION_MIN, WEATHER_DURATION_MAX)
        logger.info("Weather changed to %s (intensity %.2f)", key, self.intensity)
        self.bus.publish(WeatherChanged(condition=key, intensity=self.intensity))
