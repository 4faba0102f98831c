from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from config import LEVELS_FILE

UNLOCK_ID_RE = re.compile(r"^[a-z][a-z0-9_]*$")


@dataclass(frozen=True)
class LevelDefinition:
    level: int
    experience_required: int
    title: str
    description: str
    unlocks: Tuple[str, ...] = ()

    def to_runtime_dict(self) -> Dict[str, int | str | list[str]]:
        return {
            "level": self.level,
            "experience_required": self.experience_required,
            "title": self.title,
            "description": self.description,
            "unlocks": list(self.unlocks),
        }


UNLOCK_NAMES: Dict[str, str] = {
    "van_vehicles": "Van Vehicles",
    "truck_vehicles": "Truck Vehicles",
    "drone_vehicles": "Drone Vehicles",
    "basic_features": "Basic Features",
    "multi_stop_routes": "Multi-Stop Routes",
    "advanced_analytics": "Advanced Analytics",
    "warehouse_upgrades": "Warehouse Upgrades",
    "contract_system": "Contract System",
    "emergency_orders": "Emergency Orders",
    "weather_prediction": "Weather Prediction",
    "automated_dispatching": "Auto-Dispatching",
    "cross_docking": "Cross-Docking",
    "ai_optimization": "AI Route Optimization",
    "dynamic_pricing": "Dynamic Pricing",
    "multi_regional_operations": "Multi-Regional Ops",
    "advanced_contracts": "Advanced Contracts",
    "quantum_optimization": "Quantum Optimization",
    "predictive_analytics": "Predictive Analytics",
    "all_features": "All Features",
    "master_mode": "Master Mode",
}

DEFAULT_LEVELS: Dict[int, LevelDefinition] = {
    1: LevelDefinition(1, 0, "Logistics Apprentice", "Starting your logistics journey", ("van_vehicles", "basic_features")),
    2: LevelDefinition(2, 500, "Route Manager", "Learning efficient delivery routes", ("truck_vehicles", "multi_stop_routes")),
    3: LevelDefinition(3, 1200, "Fleet Coordinator", "Managing multiple vehicles", ("drone_vehicles", "advanced_analytics")),
    4: LevelDefinition(4, 2000, "Operations Specialist", "Optimizing warehouse operations", ("warehouse_upgrades", "contract_system")),
    5: LevelDefinition(5, 3000, "Supply Chain Expert", "Mastering complex logistics networks", ("emergency_orders", "weather_prediction")),
    6: LevelDefinition(6, 4500, "Logistics Director", "Leading large-scale operations", ("automated_dispatching", "cross_docking")),
    7: LevelDefinition(7, 6500, "Industry Pioneer", "Innovation in logistics technology", ("ai_optimization", "dynamic_pricing")),
    8: LevelDefinition(8, 9000, "Global Operations Chief", "Managing worldwide supply chains", ("multi_regional_operations", "advanced_contracts")),
    9: LevelDefinition(9, 12500, "Logistics Visionary", "Shaping the future of logistics", ("quantum_optimization", "predictive_analytics")),
    10: LevelDefinition(10, 17000, "Supply Chain Master", "Ultimate logistics mastery achieved", ("all_features", "master_mode")),
}


def _coerce_unlocks(value: Any) -> Tuple[str, ...] | None:
    if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
        return None
    if any(not UNLOCK_ID_RE.fullmatch(unlock) for unlock in value):
        return None
    if len(set(value)) != len(value):
        return None
    return tuple(value)


def _parse_level_entry(key: str, entry: Dict[str, Any]) -> LevelDefinition | None:
    try:
        level = int(key)
    except (TypeError, ValueError):
        return None
    if level < 1:
        return None

    experience_required = entry.get("experience_required")
    title = entry.get("title")
    description = entry.get("description", "")
    unlocks = entry.get("unlocks", [])

    if isinstance(experience_required, bool) or not isinstance(experience_required, int):
        return None
    if experience_required < 0:
        return None
    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(description, str):
        return None

    parsed_unlocks = _coerce_unlocks(unlocks)
    if parsed_unlocks is None:
        return None

    return LevelDefinition(
        level=level,
        experience_required=experience_required,
        title=title.strip(),
        description=description.strip(),
        unlocks=parsed_unlocks,
    )


def _is_progression(levels: List[LevelDefinition]) -> bool:
    # Levels must run 1..N with strictly increasing thresholds starting at 0.
    if [entry.level for entry in levels] != list(range(1, len(levels) + 1)):
        return False
    if levels[0].experience_required != 0:
        return False
    thresholds = [entry.experience_required for entry in levels]
    return all(a < b for a, b in zip(thresholds, thresholds[1:]))


def _ordered_runtime_catalog(levels: Iterable[LevelDefinition]) -> List[Dict[str, int | str | list[str]]]:
    ordered = sorted(levels, key=lambda entry: entry.level)
    return [entry.to_runtime_dict() for entry in ordered]


def load_level_catalog(path: Path = LEVELS_FILE) -> List[Dict[str, int | str | list[str]]]:
    defaults = _ordered_runtime_catalog(DEFAULT_LEVELS.values())
    if not path.exists():
        return defaults

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return defaults

    if not isinstance(raw, dict):
        return defaults

    parsed: Dict[int, LevelDefinition] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        level = _parse_level_entry(key, entry)
        if level is None:
            continue
        parsed[level.level] = level

    if not parsed:
        return defaults

    ordered = sorted(parsed.values(), key=lambda entry: entry.level)
    if not _is_progression(ordered):
        return defaults

    return _ordered_runtime_catalog(ordered)


def unlock_display_name(unlock: str) -> str:
    return UNLOCK_NAMES.get(unlock, unlock.replace("_", " ").title())
