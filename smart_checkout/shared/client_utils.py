import asyncio
import random
from datetime import datetime, timezone
from typing import Awaitable, Callable

import httpx
import websockets
from loguru import logger


def make_terminal_stats() -> dict:
    """
    Returns a fresh stats dictionary with zeroed counters.
    Every terminal client calls this once in __init__.
    Keys: snapshots_received, heartbeats, reconnect_count,
          bytes_received, last_snapshot_at, connected_at.
    """
    return {
        "snapshots_received": 0,
        "heartbeats": 0,
        "reconnect_count": 0,
        "bytes_received": 0,
        "last_snapshot_at": None,
        "connected_at": datetime.now(timezone.utc).isoformat(),
    }


def backoff_delay(attempt: int, base_delay_s: float = 1.0, max_delay_s: float = 32.0) -> float:
    """Exponential backoff with up to 10% jitter."""
    delay = min(base_delay_s * (2 ** attempt), max_delay_s)
    return delay + random.uniform(0, delay * 0.1)


async def with_reconnect(
    connect_fn: Callable[[], Awaitable[None]],
    stats: dict,
    duration_s: float,
    base_delay_s: float = 1.0,
    max_delay_s: float = 32.0,
    protocol: str = "unknown",
    client_id: str = "unknown",
) -> None:
    """
    Keeps a terminal attached to the stream for `duration_s` seconds,
    reconnecting with exponential backoff whenever the server drops it.
    A fresh connection always starts with the full current basket, so nothing
    has to be replayed after a reconnect.
    """
    loop = asyncio.get_running_loop()
    attempt = 0
    start_time = loop.time()

    while True:
        remaining = duration_s - (loop.time() - start_time)
        if remaining <= 0:
            break

        try:
            await asyncio.wait_for(connect_fn(), timeout=remaining)
            # Server closed the stream cleanly (e.g. shutdown)
            attempt = 0
            delay = base_delay_s
        except asyncio.TimeoutError:
            break
        except (ConnectionError, OSError, websockets.WebSocketException, httpx.HTTPError) as e:
            attempt += 1
            delay = backoff_delay(attempt, base_delay_s, max_delay_s)
            stats["reconnect_count"] += 1
            logger.warning(
                f"protocol={protocol} client_id={client_id} attempt={attempt} "
                f"delay={delay:.2f}s error='{e}'"
            )

        remaining = duration_s - (loop.time() - start_time)
        if remaining <= 0:
            break
        try:
            await asyncio.wait_for(asyncio.sleep(delay), timeout=remaining)
        except asyncio.TimeoutError:
            break
