from abc import ABC, abstractmethod
import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable

from smart_checkout.shared.client_utils import make_terminal_stats, with_reconnect
from smart_checkout.shared.models import Product, ProductList


class BaseTerminalClient(ABC):
    """A checkout terminal: holds the latest basket pushed by the server."""

    protocol_name: str = "unknown"

    def __init__(self, client_id: str, server_base_url: str):
        self.client_id = client_id
        self.server_base_url = server_base_url.rstrip('/')

        self.on_snapshot_callback: Callable[[list[Product]], Awaitable[None]] | None = None
        self.on_status_change_callback: Callable[[str], Awaitable[None]] | None = None

        self.basket: list[Product] = []
        self.stats = make_terminal_stats()

    @property
    def snapshots_received(self) -> int:
        return self.stats["snapshots_received"]

    @property
    def reconnect_count(self) -> int:
        return self.stats["reconnect_count"]

    @property
    def total(self) -> float:
        return round(sum(p.price for p in self.basket), 2)

    def set_callbacks(self, on_snapshot, on_status_change):
        self.on_snapshot_callback = on_snapshot
        self.on_status_change_callback = on_status_change

    async def _emit_status(self, status: str):
        if self.on_status_change_callback:
            await self.on_status_change_callback(status)

    async def on_payload(self, payload: str):
        """Decode one broadcast (a JSON array of products) and replace the basket."""
        self.basket = ProductList.validate_json(payload)
        self.stats["snapshots_received"] += 1
        self.stats["bytes_received"] += len(payload)
        self.stats["last_snapshot_at"] = datetime.now(timezone.utc).isoformat()
        if self.on_snapshot_callback:
            await self.on_snapshot_callback(self.basket)

    def on_heartbeat(self):
        self.stats["heartbeats"] += 1

    @abstractmethod
    async def connect(self) -> None:
        """The actual protocol loop runs here."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    async def run(self, duration_s: float = 60.0) -> None:
        try:
            await with_reconnect(
                self.connect,
                self.stats,
                duration_s,
                protocol=self.protocol_name,
                client_id=self.client_id
            )
        except asyncio.CancelledError:
            pass
        finally:
            await self.disconnect()
            await self._emit_status("CLOSED")
