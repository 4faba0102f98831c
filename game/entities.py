"""Core dataclasses for the Fleetline simulation."""
from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from config import (
    ORDER_DEADLINE_MAX,
    ORDER_DEADLINE_MIN,
    ORDER_QUANTITY_MAX,
    ORDER_QUANTITY_MIN,
    ROUTE_SECONDS_PER_DISTANCE,
    SATISFACTION_OFFSET,
    SATISFACTION_SCALE,
    VEHICLE_EN_ROUTE,
    VEHICLE_IDLE,
    WAREHOUSE_OPERATING_COST,
)
from vehicle_catalog import load_vehicle_catalog

VEHICLE_TYPES = load_vehicle_catalog()


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def new_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Location:
    """A point on the unit-square map."""

    x: float
    y: float

    def distance_to(self, other: Location) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def lerp(self, other: Location, t: float) -> Location:
        return Location(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)

    @classmethod
    def random(cls, rng: random.Random) -> Location:
        return cls(rng.uniform(0.0, 1.0), rng.uniform(0.0, 1.0))


@dataclass(frozen=True)
class Product:
    """A catalog product. Two products are the same product if they share a name."""

    name: str
    weight: float = field(compare=False)
    value: float = field(compare=False)


ELECTRONICS = Product("Electronics", weight=2.0, value=100.0)
FURNITURE = Product("Furniture", weight=50.0, value=500.0)
CLOTHING = Product("Clothing", weight=1.0, value=50.0)
BOOKS = Product("Books", weight=0.5, value=20.0)

ALL_PRODUCTS: Tuple[Product, ...] = (ELECTRONICS, FURNITURE, CLOTHING, BOOKS)


class OrderPriority(Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    URGENT = "urgent"

    @property
    def multiplier(self) -> float:
        return _PRIORITY_MULTIPLIERS[self]


_PRIORITY_MULTIPLIERS: Dict[OrderPriority, float] = {
    OrderPriority.STANDARD: 1.0,
    OrderPriority.EXPRESS: 1.5,
    OrderPriority.URGENT: 2.0,
}


@dataclass(frozen=True)
class Order:
    """A customer order.

    ``placed_at`` and ``deadline`` are game-clock seconds, so an order only
    becomes overdue as the simulation advances.
    """

    product: Product
    quantity: int
    destination: Location
    priority: OrderPriority
    placed_at: float
    deadline: float
    id: str = field(default_factory=new_id)

    @property
    def value(self) -> float:
        return self.quantity * self.product.value * self.priority.multiplier

    @property
    def total_weight(self) -> float:
        return self.quantity * self.product.weight

    def is_overdue(self, now: float) -> bool:
        return now > self.deadline

    @classmethod
    def random(cls, rng: random.Random, now: float) -> Order:
        product = rng.choice(ALL_PRODUCTS)
        priority = rng.choice(list(OrderPriority))
        quantity = rng.randint(ORDER_QUANTITY_MIN, ORDER_QUANTITY_MAX)
        destination = Location.random(rng)
        deadline = now + rng.uniform(ORDER_DEADLINE_MIN, ORDER_DEADLINE_MAX)
        return cls(
            product=product,
            quantity=quantity,
            destination=destination,
            priority=priority,
            placed_at=now,
            deadline=deadline,
        )


@dataclass(frozen=True)
class Route:
    """Straight-line legs between waypoints, starting at the origin."""

    waypoints: Tuple[Location, ...]
    orders: Tuple[Order, ...] = ()

    @classmethod
    def direct(cls, origin: Location, destinations: List[Location], orders: List[Order]) -> Route:
        return cls(waypoints=(origin, *destinations), orders=tuple(orders))

    @property
    def origin(self) -> Location:
        return self.waypoints[0]

    @property
    def destination(self) -> Location:
        return self.waypoints[-1]

    @property
    def total_distance(self) -> float:
        return sum(a.distance_to(b) for a, b in zip(self.waypoints, self.waypoints[1:]))

    @property
    def estimated_duration(self) -> float:
        return self.total_distance * ROUTE_SECONDS_PER_DISTANCE

    @property
    def total_weight(self) -> float:
        return sum(order.total_weight for order in self.orders)

    @property
    def total_value(self) -> float:
        return sum(order.value for order in self.orders)

    def location_at(self, fraction: float) -> Location:
        fraction = clamp(fraction, 0.0, 1.0)
        total = self.total_distance
        if total == 0 or fraction >= 1.0:
            return self.destination
        remaining = total * fraction
        for a, b in zip(self.waypoints, self.waypoints[1:]):
            leg = a.distance_to(b)
            if remaining <= leg and leg > 0:
                return a.lerp(b, remaining / leg)
            remaining -= leg
        return self.destination


@dataclass
class Vehicle:
    """A fleet vehicle. ``route`` is only set while the vehicle is en route."""

    id: str
    vehicle_type: str
    capacity: int
    speed: float
    location: Location
    status: str = VEHICLE_IDLE
    current_load: int = 0
    route: Optional[Route] = None

    @classmethod
    def of_type(
        cls,
        vehicle_id: str,
        vehicle_type: str,
        location: Location,
        capacity: Optional[int] = None,
        speed: Optional[float] = None,
    ) -> Vehicle:
        defaults = VEHICLE_TYPES[vehicle_type]
        return cls(
            id=vehicle_id,
            vehicle_type=vehicle_type,
            capacity=int(defaults["capacity"]) if capacity is None else capacity,
            speed=float(defaults["speed"]) if speed is None else speed,
            location=location,
        )

    @property
    def operating_cost(self) -> float:
        return float(VEHICLE_TYPES.get(self.vehicle_type, {}).get("operating_cost", 0.0))

    @property
    def available_capacity(self) -> int:
        return self.capacity - self.current_load

    @property
    def is_available(self) -> bool:
        return self.status == VEHICLE_IDLE

    def begin_route(self, route: Route) -> None:
        self.status = VEHICLE_EN_ROUTE
        self.route = route
        self.current_load = int(route.total_weight)

    def set_status(self, status: str) -> None:
        self.status = status
        if status != VEHICLE_EN_ROUTE:
            self.route = None

    def reset(self, location: Location) -> None:
        self.set_status(VEHICLE_IDLE)
        self.current_load = 0
        self.location = location


@dataclass
class Warehouse:
    """A stocked warehouse. Total stored units never exceed ``capacity``."""

    name: str
    location: Location
    capacity: int
    inventory: Dict[Product, int] = field(default_factory=dict)
    operating_cost: float = WAREHOUSE_OPERATING_COST
    id: str = field(default_factory=new_id)

    @property
    def total_stored(self) -> int:
        return sum(self.inventory.values())

    @property
    def available_capacity(self) -> int:
        return self.capacity - self.total_stored

    @property
    def utilization_rate(self) -> float:
        return 0.0 if self.capacity <= 0 else self.total_stored / self.capacity

    def stock_of(self, product: Product) -> int:
        return self.inventory.get(product, 0)

    def has_stock(self, product: Product, quantity: int) -> bool:
        return self.stock_of(product) >= quantity

    def add_stock(self, product: Product, quantity: int) -> bool:
        if quantity <= 0 or self.available_capacity < quantity:
            return False
        self.inventory[product] = self.stock_of(product) + quantity
        return True

    def remove_stock(self, product: Product, quantity: int) -> bool:
        if quantity <= 0 or not self.has_stock(product, quantity):
            return False
        remaining = self.inventory[product] - quantity
        if remaining == 0:
            del self.inventory[product]
        else:
            self.inventory[product] = remaining
        return True


@dataclass
class PerformanceMetrics:
    average_delivery_time: float = 0.0
    on_time_delivery_rate: float = 1.0
    customer_satisfaction: float = 1.0
    total_costs: float = 0.0
    total_revenue: float = 0.0
    efficiency: float = 1.0

    @property
    def profit(self) -> float:
        return self.total_revenue - self.total_costs

    @property
    def profit_margin(self) -> float:
        if self.total_revenue <= 0:
            return 0.0
        return self.profit / self.total_revenue

    def update_delivery_metrics(
        self, delivery_time: float, was_on_time: bool, satisfaction_multiplier: float = 1.0
    ) -> None:
        self.average_delivery_time = (self.average_delivery_time + delivery_time) / 2
        self.on_time_delivery_rate = (self.on_time_delivery_rate + (1.0 if was_on_time else 0.0)) / 2
        self.update_customer_satisfaction(satisfaction_multiplier)

    def update_customer_satisfaction(self, multiplier: float = 1.0) -> None:
        base = self.on_time_delivery_rate * SATISFACTION_SCALE - SATISFACTION_OFFSET
        self.customer_satisfaction = min(1.0, base * multiplier)

    def add_cost(self, cost: float) -> None:
        self.total_costs += cost

    def add_revenue(self, revenue: float) -> None:
        self.total_revenue += revenue

    def update_efficiency(self, vehicle_utilization: float, warehouse_utilization: float) -> None:
        self.efficiency = (vehicle_utilization + warehouse_utilization) / 2
