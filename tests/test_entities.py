"""Tests for the core logistics dataclasses."""
from __future__ import annotations

import random
import unittest

from config import ORDER_DEADLINE_MAX, ORDER_DEADLINE_MIN, VEHICLE_EN_ROUTE, VEHICLE_IDLE
from game.entities import (
    ALL_PRODUCTS,
    BOOKS,
    ELECTRONICS,
    FURNITURE,
    Location,
    Order,
    OrderPriority,
    PerformanceMetrics,
    Product,
    Route,
    Vehicle,
    Warehouse,
)


def make_order(product=ELECTRONICS, quantity=1, priority=OrderPriority.STANDARD, deadline=3600.0):
    return Order(
        product=product,
        quantity=quantity,
        destination=Location(1.0, 0.0),
        priority=priority,
        placed_at=0.0,
        deadline=deadline,
    )


class TestLocation(unittest.TestCase):
    def test_distance(self):
        self.assertAlmostEqual(Location(0, 0).distance_to(Location(3, 4)), 5.0)

    def test_lerp_midpoint(self):
        self.assertEqual(Location(0, 0).lerp(Location(1, 2), 0.5), Location(0.5, 1.0))

    def test_random_stays_on_map(self):
        rng = random.Random(3)
        for _ in range(50):
            loc = Location.random(rng)
            self.assertTrue(0.0 <= loc.x <= 1.0 and 0.0 <= loc.y <= 1.0)


class TestProductAndOrder(unittest.TestCase):
    def test_products_compare_by_name(self):
        self.assertEqual(Product("Electronics", 9.0, 9.0), ELECTRONICS)
        self.assertEqual(len(ALL_PRODUCTS), 4)

    def test_priority_multipliers(self):
        self.assertEqual(OrderPriority.STANDARD.multiplier, 1.0)
        self.assertEqual(OrderPriority.EXPRESS.multiplier, 1.5)
        self.assertEqual(OrderPriority.URGENT.multiplier, 2.0)

    def test_value_and_weight(self):
        order = make_order(quantity=2, priority=OrderPriority.EXPRESS)
        self.assertAlmostEqual(order.value, 300.0)
        self.assertAlmostEqual(order.total_weight, 4.0)

    def test_overdue_is_strictly_after_deadline(self):
        order = make_order(deadline=10.0)
        self.assertFalse(order.is_overdue(10.0))
        self.assertTrue(order.is_overdue(10.01))

    def test_random_order_bounds(self):
        rng = random.Random(11)
        for _ in range(100):
            order = Order.random(rng, now=50.0)
            self.assertTrue(1 <= order.quantity <= 10)
            self.assertIn(order.product, ALL_PRODUCTS)
            self.assertEqual(order.placed_at, 50.0)
            self.assertTrue(50.0 + ORDER_DEADLINE_MIN <= order.deadline <= 50.0 + ORDER_DEADLINE_MAX)

    def test_orders_get_distinct_ids(self):
        self.assertNotEqual(make_order().id, make_order().id)


class TestRoute(unittest.TestCase):
    def test_direct_route_metrics(self):
        order = make_order(quantity=3)
        route = Route.direct(Location(0, 0), [Location(1, 0)], [order])
        self.assertEqual(route.origin, Location(0, 0))
        self.assertEqual(route.destination, Location(1, 0))
        self.assertAlmostEqual(route.total_distance, 1.0)
        self.assertAlmostEqual(route.estimated_duration, 60.0)
        self.assertAlmostEqual(route.total_weight, 6.0)
        self.assertAlmostEqual(route.total_value, 300.0)

    def test_location_at_interpolates_along_legs(self):
        route = Route.direct(Location(0, 0), [Location(1, 0), Location(1, 1)], [])
        self.assertEqual(route.location_at(0.0), Location(0, 0))
        mid = route.location_at(0.75)
        self.assertAlmostEqual(mid.x, 1.0)
        self.assertAlmostEqual(mid.y, 0.5)
        self.assertEqual(route.location_at(1.0), Location(1, 1))
        self.assertEqual(route.location_at(2.0), Location(1, 1))

    def test_zero_length_route(self):
        route = Route.direct(Location(0.2, 0.2), [Location(0.2, 0.2)], [])
        self.assertEqual(route.total_distance, 0.0)
        self.assertEqual(route.location_at(0.3), Location(0.2, 0.2))


class TestVehicle(unittest.TestCase):
    def test_of_type_uses_catalog(self):
        truck = Vehicle.of_type("t", "truck", Location(0, 0))
        self.assertEqual(truck.capacity, 500)
        self.assertEqual(truck.status, VEHICLE_IDLE)
        self.assertTrue(truck.is_available)
        self.assertEqual(truck.operating_cost, 1.0)

    def test_begin_route_and_reset(self):
        van = Vehicle.of_type("v", "van", Location(0, 0))
        route = Route.direct(Location(0, 0), [Location(1, 0)], [make_order(quantity=5)])
        van.begin_route(route)
        self.assertEqual(van.status, VEHICLE_EN_ROUTE)
        self.assertEqual(van.current_load, 10)
        self.assertEqual(van.available_capacity, 190)
        self.assertFalse(van.is_available)

        van.reset(Location(1, 0))
        self.assertEqual(van.status, VEHICLE_IDLE)
        self.assertIsNone(van.route)
        self.assertEqual(van.current_load, 0)
        self.assertEqual(van.location, Location(1, 0))


class TestWarehouse(unittest.TestCase):
    def setUp(self):
        self.warehouse = Warehouse(name="W", location=Location(0, 0), capacity=100)

    def test_add_stock_respects_capacity(self):
        self.assertTrue(self.warehouse.add_stock(ELECTRONICS, 60))
        self.assertFalse(self.warehouse.add_stock(BOOKS, 41))
        self.assertTrue(self.warehouse.add_stock(BOOKS, 40))
        self.assertEqual(self.warehouse.total_stored, 100)
        self.assertAlmostEqual(self.warehouse.utilization_rate, 1.0)

    def test_add_stock_rejects_non_positive(self):
        self.assertFalse(self.warehouse.add_stock(ELECTRONICS, 0))
        self.assertFalse(self.warehouse.add_stock(ELECTRONICS, -3))
        self.assertEqual(self.warehouse.inventory, {})

    def test_remove_stock_failure_does_not_mutate(self):
        self.warehouse.add_stock(FURNITURE, 5)
        self.assertFalse(self.warehouse.remove_stock(FURNITURE, 6))
        self.assertEqual(self.warehouse.stock_of(FURNITURE), 5)

    def test_remove_to_zero_drops_entry(self):
        self.warehouse.add_stock(FURNITURE, 5)
        self.assertTrue(self.warehouse.remove_stock(FURNITURE, 5))
        self.assertNotIn(FURNITURE, self.warehouse.inventory)
        self.assertEqual(self.warehouse.stock_of(FURNITURE), 0)


class TestPerformanceMetrics(unittest.TestCase):
    def test_defaults(self):
        m = PerformanceMetrics()
        self.assertEqual(m.on_time_delivery_rate, 1.0)
        self.assertEqual(m.profit_margin, 0.0)

    def test_late_delivery_halves_rate_and_recomputes_satisfaction(self):
        m = PerformanceMetrics()
        m.update_delivery_metrics(delivery_time=10.0, was_on_time=False)
        self.assertAlmostEqual(m.average_delivery_time, 5.0)
        self.assertAlmostEqual(m.on_time_delivery_rate, 0.5)
        self.assertAlmostEqual(m.customer_satisfaction, 0.4)

    def test_satisfaction_capped_at_one(self):
        m = PerformanceMetrics()
        m.update_customer_satisfaction(multiplier=1.1)
        self.assertEqual(m.customer_satisfaction, 1.0)

    def test_profit(self):
        m = PerformanceMetrics()
        m.add_revenue(200.0)
        m.add_cost(50.0)
        self.assertAlmostEqual(m.profit, 150.0)
        self.assertAlmostEqual(m.profit_margin, 0.75)

    def test_efficiency_is_mean_utilization(self):
        m = PerformanceMetrics()
        m.update_efficiency(0.4, 0.8)
        self.assertAlmostEqual(m.efficiency, 0.6)


if __name__ == "__main__":
    unittest.main()
