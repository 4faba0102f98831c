"""Fleet ownership, dispatch and travel simulation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from config import VEHICLE_UPDATE_INTERVAL
from game.entities import Location, Route, Vehicle, clamp
from game.events import (
    DeliverySuccessful,
    EventBus,
    LogisticsEvent,
    OrderFulfilled,
    VehicleAdded,
    VehicleArrived,
    VehicleDelayed,
    VehicleDispatched,
)
from game.scheduler import Scheduler, TimerHandle
from game.state import GameState

logger = logging.getLogger("fleetline.vehicles")


@dataclass
class Trip:
    """Travel progress of one dispatched vehicle."""

    route: Route
    duration: float
    elapsed: float = 0.0
    ticker: Optional[TimerHandle] = None

    @property
    def fraction(self) -> float:
        if self.duration <= 0:
            return 1.0
        return clamp(self.elapsed / self.duration, 0.0, 1.0)


class VehicleManager:
    """Moves dispatched vehicles along their routes.

    Each trip has its own ticker that advances ``elapsed`` by
    ``VEHICLE_UPDATE_INTERVAL`` and places the vehicle at the matching
    fraction of the route. ``speed_factor`` scales every new trip's duration
    (a factor of 0.8 makes the trip take 1.25 times as long) and a slowed
    trip is announced with ``VehicleDelayed``.
    """

    def __init__(
        self,
        bus: EventBus,
        state: GameState,
        scheduler: Scheduler,
        speed_factor: Optional[Callable[[], float]] = None,
    ) -> None:
        self.bus = bus
        self.state = state
        self.scheduler = scheduler
        self.speed_factor: Callable[[], float] = speed_factor or (lambda: 1.0)
        self.trips: Dict[str, Trip] = {}
        self.suspended = False
        self._subscription = bus.subscribe(LogisticsEvent, self._handle_event)

    @property
    def vehicles(self) -> List[Vehicle]:
        return self.state.vehicles

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, VehicleArrived):
            self._handle_arrival(event)

    # ------------------------------------------------------------------
    # Fleet
    # ------------------------------------------------------------------

    def add_vehicle(self, vehicle: Vehicle) -> None:
        self.vehicles.append(vehicle)
        self.bus.publish(VehicleAdded(vehicle.id))

    def remove_vehicle(self, vehicle_id: str) -> None:
        self._end_trip(vehicle_id)
        self.state.vehicles = [v for v in self.vehicles if v.id != vehicle_id]

    def get_available_vehicles(self) -> List[Vehicle]:
        return [v for v in self.vehicles if v.is_available]

    def find_nearest_available_vehicle(self, origin: Location) -> Optional[Vehicle]:
        available = self.get_available_vehicles()
        if not available:
            return None
        return min(available, key=lambda v: v.location.distance_to(origin))

    def get_vehicle_utilization(self) -> float:
        total_capacity = sum(v.capacity for v in self.vehicles)
        if total_capacity <= 0:
            return 0.0
        return sum(v.current_load for v in self.vehicles) / total_capacity

    # ------------------------------------------------------------------
    # Dispatch and travel
    # ------------------------------------------------------------------

    def dispatch(self, vehicle: Vehicle, route: Route) -> bool:
        """Send ``vehicle`` along ``route``. Returns False if it did not apply."""
        if self.state.find_vehicle(vehicle.id) is not vehicle:
            return False
        if not vehicle.is_available:
            return False
        if route.total_weight > vehicle.available_capacity:
            logger.debug(
                "Rejected dispatch of %s: %.1f kg exceeds %d available",
                vehicle.id, route.total_weight, vehicle.available_capacity,
            )
            return False

        factor = self.speed_factor()
        duration = route.estimated_duration / factor if factor > 0 else route.estimated_duration
        vehicle.begin_route(route)
        vehicle.location = route.origin
        trip = Trip(route=route, duration=duration)
        self.trips[vehicle.id] = trip
        if not self.suspended:
            self._start_ticker(vehicle.id, trip)
        self.bus.publish(VehicleDispatched(vehicle.id, route))
        if factor < 1.0:
            self.bus.publish(VehicleDelayed(vehicle.id))
        return True

    def _start_ticker(self, vehicle_id: str, trip: Trip) -> None:
        trip.ticker = self.scheduler.call_every(
            VEHICLE_UPDATE_INTERVAL, lambda: self._update_position(vehicle_id)
        )

    def _update_position(self, vehicle_id: str) -> None:
        trip = self.trips.get(vehicle_id)
        vehicle = self.state.find_vehicle(vehicle_id)
        if trip is None or vehicle is None:
            self._end_trip(vehicle_id)
            return
        trip.elapsed += VEHICLE_UPDATE_INTERVAL
        fraction = trip.fraction
        vehicle.location = trip.route.location_at(fraction)
        if fraction >= 1.0:
            self._end_trip(vehicle_id)
            self.bus.publish(VehicleArrived(vehicle_id, trip.route.destination))

    def _end_trip(self, vehicle_id: str) -> None:
        trip = self.trips.pop(vehicle_id, None)
        if trip is not None and trip.ticker is not None:
            trip.ticker.cancel()

    def _handle_arrival(self, event: VehicleArrived) -> None:
        vehicle = self.state.find_vehicle(event.vehicle_id)
        if vehicle is None:
            return
        self._end_trip(vehicle.id)
        # The route is only reachable while en route, so read it before the reset.
        route = vehicle.route
        if route is not None:
            for order in route.orders:
                self.bus.publish(OrderFulfilled(order))
                self.bus.publish(DeliverySuccessful(order, event.location))
        vehicle.reset(event.location)

    def suspend_all(self) -> None:
        self.suspended = True
        for trip in self.trips.values():
            if trip.ticker is not None:
                trip.ticker.cancel()
                trip.ticker = None

    def resume_all(self) -> None:
        self.suspended = False
        for vehicle_id, trip in self.trips.items():
            if trip.ticker is None:
                self._start_ticker(vehicle_id, trip)

    def trip_progress(self, vehicle_id: str) -> float:
        trip = self.trips.get(vehicle_id)
        return 0.0 if trip is None else trip.fraction
