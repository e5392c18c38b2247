"""
MODULE OVERVIEW:
This module provides the core primitives for the internal catalog change bus.

WHAT IS HAPPENING HERE:
The catalog store does not know who listens to it. After every accepted mutation it
publishes a `CatalogChange` here, and the broadcast dispatcher (or a test) subscribes.
In a multi-node deployment this would be Redis Pub/Sub or Kafka; the checkout backend
runs on a single event loop, so an in-memory list of callbacks is enough.

The catalog publishes here -> the dispatcher subscribes here.
"""

from typing import Callable, List, Literal

from loguru import logger
from pydantic import BaseModel

from smart_checkout.shared.models import Product


class CatalogChange(BaseModel):
    kind: Literal["created", "updated", "deleted"]
    name: str
    revision: int
    view: list[Product]


class CatalogChangeBus:
    """
    A minimal synchronous pub/sub bus between the catalog store and its listeners.
    """
    def __init__(self):
        self._subscribers: List[Callable[[CatalogChange], None]] = []

    def subscribe(self, callback: Callable[[CatalogChange], None]):
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[CatalogChange], None]):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, change: CatalogChange):
        # A failing listener must never fail the mutation that triggered it.
        for sub in list(self._subscribers):
            try:
                sub(change)
            except Exception as e:
                logger.error(f"Error in catalog listener during publish: {e}")
