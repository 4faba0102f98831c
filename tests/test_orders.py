from __future__ import annotations

import random

from game.entities import BOOKS, ELECTRONICS, Location, Order, OrderPriority, Route
from game.events import (
    EventBus,
    GameEnded,
    GamePaused,
    GameResumed,
    GameStarted,
    OrderDelayed,
    OrderFulfilled,
    OrderPlaced,
    VehicleDispatched,
)
from game.orders import OrderManager
from game.scheduler import Scheduler


def make_order(priority=OrderPriority.STANDARD, deadline=600.0, product=ELECTRONICS, quantity=1):
    return Order(product, quantity, Location(0.2, 0.2), priority, placed_at=0.0, deadline=deadline)


def build():
    bus = EventBus()
    scheduler = Scheduler()
    manager = OrderManager(bus, scheduler, random.Random(5))
    placed = []
    bus.subscribe(OrderPlaced, placed.append)
    return bus, scheduler, manager, placed


def test_generate_order_publishes_and_tracks():
    bus, scheduler, manager, placed = build()
    order = manager.generate_order()

    assert placed == [OrderPlaced(order)]
    assert manager.active_orders == [order]
    assert manager.total_orders == 1


def test_duplicate_placement_is_ignored():
    bus, _, manager, _ = build()
    order = make_order()
    bus.publish(OrderPlaced(order))
    bus.publish(OrderPlaced(order))

    assert manager.active_orders == [order]


def test_generation_follows_game_lifecycle():
    bus, scheduler, manager, placed = build()
    scheduler.advance(60.0)
    assert placed == []

    bus.publish(GameStarted())
    assert manager.generating
    scheduler.advance(15.0)
    assert len(placed) >= 1

    bus.publish(GamePaused())
    assert not manager.generating
    count = len(placed)
    scheduler.advance(120.0)
    assert len(placed) == count


def test_generation_intervals_stay_in_bounds():
    bus, scheduler, manager, placed = build()
    bus.publish(GameStarted())
    scheduler.advance(600.0)

    times = [0.0] + [event.order.placed_at for event in placed]
    gaps = [b - a for a, b in zip(times, times[1:])]
    assert gaps
    assert all(5.0 - 1e-9 <= gap <= 15.0 + 1e-9 for gap in gaps)


def test_dispatch_then_fulfilment_moves_order_through_lifecycle():
    bus, _, manager, _ = build()
    order = make_order()
    bus.publish(OrderPlaced(order))

    route = Route.direct(Location(0.5, 0.5), [order.destination], [order])
    bus.publish(VehicleDispatched("truck-1", route))
    assert manager.active_orders == []
    assert manager.assigned_orders == {order.id: order}

    bus.publish(OrderFulfilled(order))
    bus.publish(OrderFulfilled(order))
    assert manager.assigned_orders == {}
    assert manager.completed_orders == [order]


def test_overdue_orders_follow_game_clock():
    bus, scheduler, manager, _ = build()
    order = make_order(deadline=300.0)
    bus.publish(OrderPlaced(order))

    scheduler.advance(300.0)
    assert manager.get_overdue_orders() == []
    scheduler.advance(1.0)
    assert manager.get_overdue_orders() == [order]


def test_delayed_orders_are_remembered():
    bus, _, manager, _ = build()
    order = make_order()
    bus.publish(OrderPlaced(order))
    bus.publish(OrderDelayed(order))

    assert manager.is_delayed(order.id)


def test_priority_queries():
    bus, _, manager, _ = build()
    standard = make_order(OrderPriority.STANDARD, deadline=100.0)
    urgent = make_order(OrderPriority.URGENT, deadline=900.0)
    express_late = make_order(OrderPriority.EXPRESS, deadline=800.0)
    express_soon = make_order(OrderPriority.EXPRESS, deadline=200.0)
    for order in (standard, urgent, express_late, express_soon):
        bus.publish(OrderPlaced(order))

    assert manager.get_orders_by_priority() == [urgent, express_soon, express_late, standard]
    assert set(o.id for o in manager.get_high_priority_orders()) == {urgent.id, express_late.id, express_soon.id}


def test_total_value_of_active_orders():
    bus, _, manager, _ = build()
    bus.publish(OrderPlaced(make_order(OrderPriority.URGENT)))
    bus.publish(OrderPlaced(make_order(product=BOOKS, quantity=5)))

    assert manager.calculate_total_value() == 200.0 + 100.0


def test_resume_only_restarts_a_paused_generator():
    bus, scheduler, manager, placed = build()
    bus.publish(GameStarted())
    bus.publish(GameEnded())
    bus.publish(GameResumed())
    scheduler.advance(60.0)

    assert not manager.generating
    assert placed == []

    bus.publish(GameStarted())
    bus.publish(GamePaused())
    bus.publish(GameResumed())
    assert manager.generating
