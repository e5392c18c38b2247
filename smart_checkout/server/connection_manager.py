"""
MODULE OVERVIEW:
The registry of live checkout terminals.

WHAT IS HAPPENING HERE:
Every open SSE stream or WebSocket is represented by a `Subscriber`: a bounded
asyncio.Queue of serialized catalog snapshots plus a little bookkeeping. The registry
only adds and removes subscribers; it never writes to them. Writers (the dispatcher)
take a `snapshot()` of the current set, so a terminal that disconnects in the middle
of a fan-out cannot disturb the iteration.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Dict, Literal

from loguru import logger

from smart_checkout.shared.models import Broadcast

Protocol = Literal["sse", "websocket"]


class Subscriber:
    def __init__(self, client_id: str, protocol: Protocol, maxsize: int = 32):
        # client_id is the label the terminal sent; id is the handle minted by the registry
        self.client_id = client_id
        self.id: str | None = None
        self.protocol = protocol
        # None is the end-of-stream marker pushed by close()
        self.queue: asyncio.Queue[Broadcast | None] = asyncio.Queue(maxsize=maxsize)
        self.connected_at = datetime.now(timezone.utc)
        self.delivered = 0
        self.closed = False

    def offer(self, broadcast: Broadcast):
        """Non-blocking write. Raises asyncio.QueueFull for a terminal that stopped reading."""
        if self.closed:
            raise ConnectionError("subscriber closed")
        self.queue.put_nowait(broadcast)
        self.delivered += 1

    def close(self):
        if self.closed:
            return
        self.closed = True
        # Make room for the end marker; a closed stream has no use for pending snapshots.
        while not self.queue.empty():
            self.queue.get_nowait()
        self.queue.put_nowait(None)


class SubscriberRegistry:
    def __init__(self, queue_maxsize: int = 32):
        self.queue_maxsize = queue_maxsize
        self._subscribers: Dict[str, Subscriber] = {}

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber_id: str) -> bool:
        return subscriber_id in self._subscribers

    def create(self, client_id: str, protocol: Protocol) -> Subscriber:
        return Subscriber(client_id, protocol, maxsize=self.queue_maxsize)

    def register(self, subscriber: Subscriber) -> str:
        """Returns the handle to unregister with; terminals may share a client_id."""
        subscriber.id = f"{subscriber.client_id}-{uuid.uuid4().hex[:6]}"
        self._subscribers[subscriber.id] = subscriber
        logger.info(f"client_id={subscriber.client_id} subscriber={subscriber.id} protocol={subscriber.protocol} event=connect reason=subscribed")
        return subscriber.id

    def unregister(self, subscriber_id: str) -> bool:
        """Idempotent: returns False when the subscriber was already gone."""
        subscriber = self._subscribers.pop(subscriber_id, None)
        if subscriber is None:
            return False
        subscriber.close()
        logger.info(f"client_id={subscriber.client_id} subscriber={subscriber_id} protocol={subscriber.protocol} event=disconnect reason=cleanup")
        return True

    def get(self, subscriber_id: str) -> Subscriber | None:
        return self._subscribers.get(subscriber_id)

    def snapshot(self) -> list[Subscriber]:
        return list(self._subscribers.values())

    def count(self, protocol: Protocol) -> int:
        return sum(1 for s in self._subscribers.values() if s.protocol == protocol)

    def close_all(self):
        for subscriber_id in list(self._subscribers):
            self.unregister(subscriber_id)
