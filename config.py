"""Centralised configuration constants for Fleetline."""
from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# Map / display
# ---------------------------------------------------------------------------
MAP_W: int = 900
MAP_H: int = 600
PANEL_H: int = 190

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
SETTINGS_FILE: Path = Path("fleetline_settings.json")
VEHICLE_TYPES_FILE: Path = Path("data/vehicle_types.json")
LEVELS_FILE: Path = Path("data/levels.json")

# ---------------------------------------------------------------------------
# Persisted setting keys
# ---------------------------------------------------------------------------
TUTORIAL_COMPLETED_KEY: str = "tutorial_completed"
PLAYER_LEVEL_KEY: str = "player_level"
PLAYER_EXPERIENCE_KEY: str = "player_experience"

# ---------------------------------------------------------------------------
# Game status values
# ---------------------------------------------------------------------------
STATUS_MENU: str = "menu"
STATUS_TUTORIAL: str = "tutorial"
STATUS_PLAYING: str = "playing"
STATUS_PAUSED: str = "paused"
STATUS_GAME_OVER: str = "game_over"

# ---------------------------------------------------------------------------
# Vehicle status values
# ---------------------------------------------------------------------------
VEHICLE_IDLE: str = "idle"
VEHICLE_EN_ROUTE: str = "en_route"
# Reserved statuses: the UI colours them, no code path enters them yet.
VEHICLE_LOADING: str = "loading"
VEHICLE_MAINTENANCE: str = "maintenance"

# ---------------------------------------------------------------------------
# Timers (seconds of game clock)
# ---------------------------------------------------------------------------
GAME_TICK_INTERVAL: float = 1.0
VEHICLE_UPDATE_INTERVAL: float = 0.5
ORDER_INTERVAL_MIN: float = 5.0
ORDER_INTERVAL_MAX: float = 15.0

# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
ORDER_QUANTITY_MIN: int = 1
ORDER_QUANTITY_MAX: int = 10
ORDER_DEADLINE_MIN: float = 300.0
ORDER_DEADLINE_MAX: float = 3600.0
OVERDUE_PENALTY_RATE: float = 0.1      # fraction of order value charged per overdue tick
SCORE_VALUE_DIVISOR: float = 10.0      # score gained = order value / divisor

# ---------------------------------------------------------------------------
# Economy
# ---------------------------------------------------------------------------
STARTING_BUDGET: float = 50000.0
WAREHOUSE_OPERATING_COST: float = 1000.0
OPERATING_COST_PERIOD: float = 3600.0  # operating costs are amortised per second over this period
DISPATCH_COST_PER_DISTANCE: float = 0.1
ROUTE_SECONDS_PER_DISTANCE: float = 60.0

# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------
LOW_STOCK_THRESHOLD: int = 10
REORDER_MIN_QUANTITY: int = 50
REORDER_CAPACITY_DIVISOR: int = 10
INITIAL_STOCK_MIN: int = 20
INITIAL_STOCK_MAX: int = 50

# ---------------------------------------------------------------------------
# Starting world
# ---------------------------------------------------------------------------
MAIN_WAREHOUSE_NAME: str = "Main Warehouse"
MAIN_WAREHOUSE_LOCATION: tuple[float, float] = (0.5, 0.5)
MAIN_WAREHOUSE_CAPACITY: int = 1000
STARTING_VEHICLE_TYPE: str = "truck"

# ---------------------------------------------------------------------------
# Performance metrics
# ---------------------------------------------------------------------------
SATISFACTION_SCALE: float = 1.2
SATISFACTION_OFFSET: float = 0.2

# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------
WEATHER_CHANGE_MIN: float = 120.0
WEATHER_CHANGE_MAX: float = 300.0
WEATHER_DURATION_MIN: float = 60.0
WEATHER_DURATION_MAX: float = 180.0
WEATHER_RESCHEDULE_DELAY: float = 1.0
WEATHER_COUNTDOWN_INTERVAL: float = 1.0
WEATHER_INTENSITY_MIN: float = 0.3
WEATHER_INTENSITY_MAX: float = 0.8

# Whether the weather multipliers are applied to dispatch durations and to
# customer satisfaction. Off keeps weather purely advisory.
WEATHER_AFFECTS_TRAVEL: bool = False
WEATHER_AFFECTS_SATISFACTION: bool = False

# ---------------------------------------------------------------------------
# Tutorial / notifications
# ---------------------------------------------------------------------------
TUTORIAL_PERFORMANCE_DELAY: float = 2.0
TUTORIAL_FINISH_DELAY: float = 3.0
LEVEL_UP_POPUP_SECONDS: float = 4.0
ACHIEVEMENT_POPUP_SECONDS: float = 4.0
DELIVERY_FEEDBACK_SECONDS: float = 2.0
SCORE_FEEDBACK_SECONDS: float = 3.0
PERFORMANCE_XP_THRESHOLD: float = 0.95
PERFORMANCE_XP_BONUS: int = 5

# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------
SPEED_DEMON_WINDOW: float = 300.0
SPEED_DEMON_DELIVERIES: int = 10
EFFICIENCY_EXPERT_SECONDS: float = 600.0
HIGH_VALUE_ORDER: float = 10000.0
FLEET_COMMANDER_VEHICLES: int = 5
PROFITABLE_BUDGET: float = 100000.0
RAPID_GROWTH_WINDOW: float = 300.0
CONSISTENT_PERFORMER_ORDERS: int = 50

# ---------------------------------------------------------------------------
# Event log
# ---------------------------------------------------------------------------
EVENT_LOG_LIMIT: int = 12
