from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

from config import VEHICLE_TYPES_FILE


@dataclass(frozen=True)
class VehicleTypeDefinition:
    key: str
    display_name: str
    capacity: int
    speed: float
    operating_cost: float

    def to_runtime_dict(self) -> Dict[str, str | int | float]:
        return {
            "display_name": self.display_name,
            "capacity": self.capacity,
            "speed": self.speed,
            "operating_cost": self.operating_cost,
        }


DEFAULT_VEHICLE_TYPES: Dict[str, VehicleTypeDefinition] = {
    "van": VehicleTypeDefinition(
        key="van",
        display_name="Van",
        capacity=200,
        speed=50.0,
        operating_cost=0.5,
    ),
    "truck": VehicleTypeDefinition(
        key="truck",
        display_name="Truck",
        capacity=500,
        speed=60.0,
        operating_cost=1.0,
    ),
    "drone": VehicleTypeDefinition(
        key="drone",
        display_name="Drone",
        capacity=10,
        speed=100.0,
        operating_cost=2.0,
    ),
}


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _parse_vehicle_type_entry(key: str, entry: Dict[str, Any]) -> VehicleTypeDefinition | None:
    if not isinstance(key, str) or not key:
        return None

    display_name = entry.get("display_name")
    capacity = entry.get("capacity")
    speed = entry.get("speed")
    operating_cost = entry.get("operating_cost", 0.0)

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        return None
    if not _is_positive_number(speed):
        return None
    if isinstance(operating_cost, bool) or not isinstance(operating_cost, (int, float)):
        return None
    if not math.isfinite(operating_cost) or operating_cost < 0:
        return None

    return VehicleTypeDefinition(
        key=key,
        display_name=display_name.strip(),
        capacity=capacity,
        speed=float(speed),
        operating_cost=float(operating_cost),
    )


def _ordered_runtime_catalog(vehicle_types: Iterable[VehicleTypeDefinition]) -> Dict[str, Dict[str, str | int | float]]:
    ordered = sorted(vehicle_types, key=lambda vehicle_type: vehicle_type.capacity, reverse=True)
    return {vehicle_type.key: vehicle_type.to_runtime_dict() for vehicle_type in ordered}


def load_vehicle_catalog(path: Path = VEHICLE_TYPES_FILE) -> Dict[str, Dict[str, str | int | float]]:
    if not path.exists():
        return _ordered_runtime_catalog(DEFAULT_VEHICLE_TYPES.values())

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return _ordered_runtime_catalog(DEFAULT_VEHICLE_TYPES.values())

    if not isinstance(raw, dict):
        return _ordered_runtime_catalog(DEFAULT_VEHICLE_TYPES.values())

    vehicle_types: Dict[str, VehicleTypeDefinition] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        vehicle_type = _parse_vehicle_type_entry(key, entry)
        if vehicle_type is None:
            continue
        vehicle_types[key] = vehicle_type

    if not vehicle_types:
        return _ordered_runtime_catalog(DEFAULT_VEHICLE_TYPES.values())

    return _ordered_runtime_catalog(vehicle_types.values())
