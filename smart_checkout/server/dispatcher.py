"""
MODULE OVERVIEW:
The broadcast fan-out from the catalog to every live terminal.

WHAT IS HAPPENING HERE:
One catalog change comes in, the valid view is serialized exactly once, and the same
payload is queued for every registered subscriber with `put_nowait`. Nothing here ever
awaits a terminal: a subscriber whose queue is full (it stopped reading) or already
closed is a write failure, it gets dropped from the registry, and the fan-out simply
moves on to the next one.
"""

import asyncio

from loguru import logger

from smart_checkout.server.connection_manager import Subscriber, SubscriberRegistry
from smart_checkout.shared.errors import SubscriberWriteFailure
from smart_checkout.shared.events import CatalogChange
from smart_checkout.shared.models import Broadcast, Product, ProductList


def serialize_view(view: list[Product]) -> str:
    return ProductList.dump_json(view).decode()


class BroadcastDispatcher:
    def __init__(self, registry: SubscriberRegistry):
        self.registry = registry
        self.broadcasts_sent = 0
        self.subscribers_dropped = 0

    def on_catalog_change(self, change: CatalogChange):
        self.publish(change.view, change.revision)

    def publish(self, view: list[Product], revision: int = 0) -> int:
        """Queue the view for every subscriber. Returns how many received it."""
        broadcast = Broadcast(revision=revision, payload=serialize_view(view))
        self.broadcasts_sent += 1

        delivered = 0
        for subscriber in self.registry.snapshot():
            try:
                self._write(subscriber, broadcast)
                delivered += 1
            except SubscriberWriteFailure as e:
                logger.warning(f"client_id={subscriber.client_id} subscriber={e.subscriber_id} protocol={subscriber.protocol} event=dropped reason={e.reason}")
                self.subscribers_dropped += 1
                self.registry.unregister(e.subscriber_id)
        return delivered

    def sync(self, subscriber: Subscriber, view: list[Product], revision: int = 0):
        """Initial push of the current view to a subscriber that just registered."""
        try:
            self._write(subscriber, Broadcast(revision=revision, payload=serialize_view(view)))
        except SubscriberWriteFailure as e:
            logger.warning(f"client_id={subscriber.client_id} subscriber={e.subscriber_id} protocol={subscriber.protocol} event=dropped reason={e.reason}")
            self.registry.unregister(e.subscriber_id)

    @staticmethod
    def _write(subscriber: Subscriber, broadcast: Broadcast):
        try:
            subscriber.offer(broadcast)
        except asyncio.QueueFull:
            raise SubscriberWriteFailure(subscriber.id, "queue_full")
        except ConnectionError as e:
            raise SubscriberWriteFailure(subscriber.id, str(e))
