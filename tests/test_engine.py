"""Tests for the economy tick, assignment and the end-to-end delivery flow."""
from __future__ import annotations

import random

import pytest

from config import STATUS_GAME_OVER
from game.engine import GameEngine
from game.entities import ELECTRONICS, FURNITURE, Location, Order, OrderPriority, Vehicle, Warehouse
from game.events import (
    BudgetChanged,
    EventBus,
    GameEnded,
    GamePaused,
    GameResumed,
    GameStarted,
    LogisticsEvent,
    OrderDelayed,
    OrderFulfilled,
    OrderPlaced,
    PerformanceUpdated,
    VehicleAssignmentRequested,
    VehicleDelayed,
    VehicleDispatched,
)
from game.scheduler import Scheduler
from game.state import GameState
from game.weather import RAIN

DEPOT = Location(0.5, 0.5)
CUSTOMER = Location(0.5, 0.8)


def make_order(product=ELECTRONICS, quantity=1, deadline=3600.0, placed_at=0.0):
    return Order(product, quantity, CUSTOMER, OrderPriority.STANDARD, placed_at=placed_at, deadline=deadline)


def build(stock=None, vehicles=None, **engine_kwargs):
    bus = EventBus()
    warehouse = Warehouse("Main Warehouse", DEPOT, 1000, inventory=dict(stock or {}))
    if vehicles is None:
        vehicles = [Vehicle.of_type("truck-1", "truck", DEPOT)]
    state = GameState(bus, warehouses=[warehouse], vehicles=vehicles)
    scheduler = Scheduler()
    engine = GameEngine(bus, state, scheduler, random.Random(4), stock_inventory=False, **engine_kwargs)
    events = []
    bus.subscribe(LogisticsEvent, events.append)
    return bus, state, scheduler, engine, warehouse, events


def of_type(events, kind):
    return [e for e in events if isinstance(e, kind)]


def test_single_delivery_end_to_end():
    bus, state, scheduler, engine, warehouse, events = build(stock={ELECTRONICS: 50})
    truck = state.vehicles[0]
    order = make_order()

    bus.publish(OrderPlaced(order))

    assert state.orders == []
    assert state.assigned_orders == {order.id: order}
    assert warehouse.stock_of(ELECTRONICS) == 49
    dispatch_cost = 0.3 * 0.1
    assert state.budget == pytest.approx(50000.0 - dispatch_cost)

    scheduler.advance(20.0)

    assert state.completed_orders == [order]
    assert state.assigned_orders == {}
    assert state.score == 10
    assert state.budget == pytest.approx(50000.0 - dispatch_cost + 100.0)
    metrics = state.performance_metrics
    assert metrics.total_revenue == pytest.approx(100.0)
    assert metrics.total_costs == pytest.approx(dispatch_cost)
    assert metrics.on_time_delivery_rate == 1.0
    assert truck.location == CUSTOMER
    assert truck.is_available
    assert of_type(events, PerformanceUpdated)


def test_auto_assign_without_stock_leaves_order_waiting():
    bus, state, _, _, _, events = build(stock={})
    order = make_order()
    bus.publish(OrderPlaced(order))

    assert state.orders == [order]
    assert of_type(events, VehicleDispatched) == []


def test_auto_assign_without_vehicle_releases_stock():
    bus, state, _, _, warehouse, _ = build(stock={ELECTRONICS: 50}, vehicles=[])
    bus.publish(OrderPlaced(make_order(quantity=5)))

    assert warehouse.stock_of(ELECTRONICS) == 50
    assert len(state.orders) == 1


def test_overweight_order_is_dropped_and_stock_released():
    bus, state, _, _, warehouse, events = build(stock={FURNITURE: 50})
    order = make_order(FURNITURE, 12)
    bus.publish(OrderPlaced(order))

    assert warehouse.stock_of(FURNITURE) == 50
    assert state.orders == [order]
    assert state.vehicles[0].is_available
    assert of_type(events, VehicleDispatched) == []


def test_manual_assignment_request():
    bus, state, _, engine, warehouse, events = build(stock={ELECTRONICS: 50}, vehicles=[])
    order = make_order()
    bus.publish(OrderPlaced(order))
    van = Vehicle.of_type("van-1", "van", Location(0.1, 0.1))
    state.vehicles.append(van)

    bus.publish(VehicleAssignmentRequested("van-1", order.id))

    assert order.id in state.assigned_orders
    assert van.location == DEPOT
    assert warehouse.stock_of(ELECTRONICS) == 49
    assert not engine.assign("van-1", order.id)


def test_operating_costs_are_amortised_per_tick():
    _, state, _, engine, _, events = build()
    engine.tick()

    expected = 50000.0 - (1000.0 + 1.0) / 3600.0
    assert state.budget == pytest.approx(expected)
    assert of_type(events, BudgetChanged)[-1].budget == pytest.approx(expected)


def test_overdue_orders_are_penalised_each_tick():
    bus, state, scheduler, engine, _, events = build(stock={})
    order = make_order(deadline=5.0)
    bus.publish(OrderPlaced(order))
    scheduler.advance(10.0)

    engine.tick()

    assert of_type(events, OrderDelayed) == [OrderDelayed(order)]
    expected = 50000.0 - 10.0 - 1001.0 / 3600.0
    assert state.budget == pytest.approx(expected)
    assert engine.order_manager.is_delayed(order.id)
    performance = of_type(events, PerformanceUpdated)[-1]
    assert performance.metrics.on_time_delivery_rate == 0.0


def test_budget_exhaustion_ends_game_before_reporting_budget():
    _, state, _, engine, _, events = build()
    state.budget = 0.1

    engine.tick()

    kinds = [type(e) for e in events]
    assert kinds.index(GameEnded) < kinds.index(BudgetChanged)
    assert state.status == STATUS_GAME_OVER
    assert not engine.is_running


def test_lifecycle_controls_tick_timer():
    bus, _, scheduler, engine, _, _ = build()
    bus.publish(GameStarted())
    assert engine.is_running
    scheduler.advance(3.0)
    assert engine.tick_count == 3

    bus.publish(GamePaused())
    assert not engine.is_running
    assert engine.vehicle_manager.suspended
    scheduler.advance(10.0)
    assert engine.tick_count == 3


def test_weather_slows_travel_when_enabled():
    bus, state, _, engine, _, _ = build(stock={ELECTRONICS: 50}, weather_affects_travel=True)
    engine.weather_manager.change_to(RAIN)
    bus.publish(OrderPlaced(make_order()))

    trip = engine.vehicle_manager.trips[state.vehicles[0].id]
    assert trip.duration == pytest.approx(18.0 / 0.8)


def test_weather_is_advisory_by_default():
    bus, state, _, engine, _, _ = build(stock={ELECTRONICS: 50})
    engine.weather_manager.change_to(RAIN)
    bus.publish(OrderPlaced(make_order()))

    trip = engine.vehicle_manager.trips[state.vehicles[0].id]
    assert trip.duration == pytest.approx(18.0)


def test_republished_order_is_dispatched_once():
    trucks = [Vehicle.of_type("truck-1", "truck", DEPOT), Vehicle.of_type("truck-2", "truck", DEPOT)]
    bus, state, scheduler, _, warehouse, events = build(stock={ELECTRONICS: 50}, vehicles=trucks)
    order = make_order()

    bus.publish(OrderPlaced(order))
    bus.publish(OrderPlaced(order))

    assert len(of_type(events, VehicleDispatched)) == 1
    assert warehouse.stock_of(ELECTRONICS) == 49
    assert sum(t.is_available for t in trucks) == 1

    scheduler.advance(30.0)

    assert state.completed_orders == [order]
    assert state.performance_metrics.total_revenue == pytest.approx(100.0)
    assert state.budget == pytest.approx(50000.0 - 0.3 * 0.1 + 100.0)


def test_repeated_fulfilment_is_recorded_once():
    bus, state, scheduler, _, _, _ = build(stock={ELECTRONICS: 50})
    order = make_order()
    bus.publish(OrderPlaced(order))
    scheduler.advance(20.0)

    bus.publish(OrderFulfilled(order))

    assert state.performance_metrics.total_revenue == pytest.approx(100.0)
    assert state.score == 10


def test_unknown_fulfilment_is_not_recorded():
    bus, state, _, _, _, _ = build()
    bus.publish(OrderFulfilled(make_order()))
    assert state.performance_metrics.total_revenue == 0.0


def test_resume_after_game_over_stays_stopped():
    bus, state, scheduler, engine, _, _ = build()
    bus.publish(GameStarted())
    bus.publish(GameEnded())
    bus.publish(GameResumed())
    scheduler.advance(5.0)

    assert state.status == STATUS_GAME_OVER
    assert not engine.is_running
    assert engine.tick_count == 0
    assert not engine.order_manager.generating
    assert not engine.weather_manager.running
    assert engine.vehicle_manager.suspended


def test_resume_without_running_game_is_ignored():
    bus, _, scheduler, engine, _, _ = build()
    bus.publish(GameResumed())
    scheduler.advance(3.0)

    assert engine.tick_count == 0
    assert not engine.order_manager.generating


def test_double_pause_still_resumes():
    bus, _, scheduler, engine, _, _ = build()
    bus.publish(GameStarted())
    bus.publish(GamePaused())
    bus.publish(GamePaused())
    bus.publish(GameResumed())
    scheduler.advance(2.0)

    assert engine.is_running
    assert engine.tick_count == 2
    assert engine.order_manager.generating
    assert engine.weather_manager.running


def test_slowed_trip_is_reported():
    bus, state, _, engine, _, events = build(stock={ELECTRONICS: 50}, weather_affects_travel=True)
    engine.weather_manager.change_to(RAIN)
    bus.publish(OrderPlaced(make_order()))

    assert of_type(events, VehicleDelayed) == [VehicleDelayed("truck-1")]
    assert state.event_log[-1] == "truck-1 slowed by weather"


def test_clear_weather_trip_is_not_reported():
    bus, _, _, _, _, events = build(stock={ELECTRONICS: 50}, weather_affects_travel=True)
    bus.publish(OrderPlaced(make_order()))

    assert of_type(events, VehicleDelayed) == []
