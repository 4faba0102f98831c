"""Fleetline game package.

Public API:
    from game import LogisticsSim, EventBus, Scheduler, GameState, Order, Vehicle, Warehouse
"""
from game.entities import Location, Order, OrderPriority, Product, Route, Vehicle, Warehouse
from game.events import EventBus
from game.scheduler import Scheduler
from game.simulation import LogisticsSim
from game.state import GameState

__all__ = [
    "EventBus",
    "GameState",
    "Location",
    "LogisticsSim",
    "Order",
    "OrderPriority",
    "Product",
    "Route",
    "Scheduler",
    "Vehicle",
    "Warehouse",
]
