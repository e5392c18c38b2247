"""
MODULE OVERVIEW:
The WebSocket variant of the live product stream.

WHAT IS HAPPENING HERE:
Same contract as `/stream-products`: the current view first, then every broadcast.
A background task relays the subscriber's queue to the socket while the handler itself
keeps reading, because a read is the only way to notice that the terminal hung up.
Idle periods are filled with a JSON `{"type": "ping"}` so proxies keep the socket open.
"""
import asyncio
import json

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from loguru import logger

from smart_checkout.server.connection_manager import Subscriber
from smart_checkout.server.context import CheckoutContext, get_context
from smart_checkout.shared.route_utils import extract_client_id, iter_broadcasts, log_connection

router = APIRouter()

PING = json.dumps({"type": "ping"})


async def relay(websocket: WebSocket, subscriber: Subscriber, heartbeat_interval_s: float) -> None:
    async for broadcast in iter_broadcasts(subscriber.queue, heartbeat_interval_s):
        await websocket.send_text(PING if broadcast is None else broadcast.payload)
    # The stream only ends when the dispatcher dropped this terminal.
    await websocket.close(code=1011, reason="subscriber dropped")


async def stop_relay(task: asyncio.Task) -> None:
    """Cancels the relay and collects its outcome so no task exception goes unretrieved."""
    task.cancel()
    await asyncio.wait([task])
    if not task.cancelled() and task.exception() is not None:
        e = task.exception()
        logger.debug(f"WS relay ended with {type(e).__name__}: {e}")


@router.websocket("/ws/products")
async def websocket_products(
    websocket: WebSocket,
    client_id: str | None = Query(None),
    ctx: CheckoutContext = Depends(get_context),
):
    cid = extract_client_id(client_id)
    await websocket.accept()

    subscriber = ctx.registry.create(cid, "websocket")
    handle = ctx.registry.register(subscriber)
    ctx.dispatcher.sync(subscriber, ctx.catalog.valid_view(), ctx.catalog.revision)
    log_connection("websocket:connect", cid, {"subscriber": handle})

    relay_task = asyncio.create_task(relay(websocket, subscriber, ctx.settings.WS_HEARTBEAT_INTERVAL_S))

    try:
        while True:
            text_data = await websocket.receive_text()
            logger.debug(f"WS terminal {cid} sent: {text_data}")
    except WebSocketDisconnect:
        pass
    finally:
        ctx.registry.unregister(handle)
        log_connection("websocket:disconnect", cid, {"subscriber": handle, "delivered": subscriber.delivered})
        await stop_relay(relay_task)
