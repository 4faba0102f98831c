"""Warehouse inventory: allocation against orders and replenishment."""
from __future__ import annotations

import logging
import random
from typing import List, Optional

from config import (
    INITIAL_STOCK_MAX,
    INITIAL_STOCK_MIN,
    LOW_STOCK_THRESHOLD,
    REORDER_CAPACITY_DIVISOR,
    REORDER_MIN_QUANTITY,
)
from game.entities import ALL_PRODUCTS, Location, Order, Product, Warehouse
from game.events import EventBus, InventoryLow, InventoryReplenished, LogisticsEvent
from game.state import GameState

logger = logging.getLogger("fleetline.warehouses")


class WarehouseManager:
    def __init__(self, bus: EventBus, state: GameState) -> None:
        self.bus = bus
        self.state = state
        self._subscription = bus.subscribe(LogisticsEvent, self._handle_event)

    @property
    def warehouses(self) -> List[Warehouse]:
        return self.state.warehouses

    def _handle_event(self, event: LogisticsEvent) -> None:
        if isinstance(event, InventoryLow):
            self._handle_low_inventory(event)
        elif isinstance(event, InventoryReplenished):
            self._replenish(event)

    def add_warehouse(self, warehouse: Warehouse) -> None:
        self.warehouses.append(warehouse)

    def remove_warehouse(self, warehouse_id: str) -> None:
        self.state.warehouses = [w for w in self.warehouses if w.id != warehouse_id]

    def find_nearest_warehouse(self, location: Location) -> Optional[Warehouse]:
        if not self.warehouses:
            return None
        return min(self.warehouses, key=lambda w: w.location.distance_to(location))

    def find_warehouse_with_stock(self, product: Product, quantity: int) -> Optional[Warehouse]:
        return next((w for w in self.warehouses if w.has_stock(product, quantity)), None)

    def stock_initial_inventory(self, rng: random.Random) -> None:
        for warehouse in self.warehouses:
            for product in ALL_PRODUCTS:
                quantity = rng.randint(INITIAL_STOCK_MIN, INITIAL_STOCK_MAX)
                if not warehouse.add_stock(product, quantity):
                    logger.warning("%s has no room for %d %s", warehouse.name, quantity, product.name)

    def average_utilization(self) -> float:
        if not self.warehouses:
            return 0.0
        return sum(w.utilization_rate for w in self.warehouses) / len(self.warehouses)

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def allocate_inventory(self, order: Order) -> Optional[Warehouse]:
        """Take the order's stock from the first warehouse that has enough.

        Warehouses are tried in list order, not by distance.
        """
        warehouse = self.find_warehouse_with_stock(order.product, order.quantity)
        if warehouse is None:
            return None
        if not warehouse.remove_stock(order.product, order.quantity):
            return None
        if warehouse.stock_of(order.product) < LOW_STOCK_THRESHOLD:
            self.bus.publish(InventoryLow(order.product, warehouse.id))
        return warehouse

    def release_allocation(self, warehouse: Warehouse, product: Product, quantity: int) -> bool:
        returned = warehouse.add_stock(product, quantity)
        if not returned:
            logger.warning("Could not return %d %s to %s", quantity, product.name, warehouse.name)
        return returned

    # ------------------------------------------------------------------
    # Replenishment
    # ------------------------------------------------------------------

    def reorder_quantity(self, warehouse: Warehouse) -> int:
        return max(REORDER_MIN_QUANTITY, warehouse.capacity // REORDER_CAPACITY_DIVISOR)

    def _handle_low_inventory(self, event: InventoryLow) -> None:
        warehouse = self.state.find_warehouse(event.warehouse_id)
        if warehouse is None:
            return
        quantity = self.reorder_quantity(warehouse)
        logger.info("Low stock of %s at %s, reordering %d", event.product.name, warehouse.name, quantity)
        self.bus.publish(InventoryReplenished(event.product, warehouse.id, quantity))

    def _replenish(self, event: InventoryReplenished) -> None:
        warehouse = self.state.find_warehouse(event.warehouse_id)
        if warehouse is None:
            return
        if warehouse.add_stock(event.product, event.quantity):
            self.state.log_event(f"Restocked {event.quantity} {event.product.name} at {warehouse.name}")
        else:
            logger.info("%s is full, dropped restock of %s", warehouse.name, event.product.name)
