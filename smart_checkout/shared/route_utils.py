import asyncio
import uuid
from typing import AsyncGenerator

from loguru import logger

from smart_checkout.shared.models import Broadcast


def extract_client_id(client_id: str | None) -> str:
    """
    If the terminal provided a client_id, use it.
    If not, generate a short readable one like 'terminal-a3f2'.
    """
    if client_id:
        return client_id
    return f"terminal-{str(uuid.uuid4())[:4]}"


def log_connection(protocol: str, client_id: str, extra: dict | None = None) -> None:
    """
    Single structured log entry for a stream connect or disconnect.
    """
    log_str = f"protocol={protocol} client_id={client_id}"
    for k, v in (extra or {}).items():
        log_str += f" {k}={v}"
    logger.info(log_str)


async def iter_broadcasts(
    queue: asyncio.Queue,
    heartbeat_interval_s: float = 15.0,
) -> AsyncGenerator[Broadcast | None, None]:
    """
    The universal server-side stream loop shared by SSE and WebSocket routes.

      1. Waits for the next broadcast queued for one subscriber.
      2. If `heartbeat_interval_s` seconds pass with nothing queued, yields None
         so the route can emit its transport's heartbeat.
      3. Ends on the end-of-stream marker (None) pushed when the subscriber closes.
    """
    while True:
        try:
            broadcast = await asyncio.wait_for(queue.get(), timeout=heartbeat_interval_s)
        except asyncio.TimeoutError:
            yield None
            continue
        if broadcast is None:
            return
        yield broadcast
