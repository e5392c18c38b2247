"""
MODULE OVERVIEW:
The Server-Sent Events stream checkout terminals listen on.

WHAT IS HAPPENING HERE:
Registration and the initial sync happen synchronously inside the handler, before the
response starts, so no broadcast can slip in between them. The stream then relays the
subscriber's queue. When the terminal goes away, sse-starlette cancels the generator
and runs the response's background task, which unregisters the subscriber.
"""
import asyncio
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Query
from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask

from smart_checkout.server.context import CheckoutContext, get_context
from smart_checkout.shared.route_utils import extract_client_id, iter_broadcasts, log_connection

router = APIRouter()


async def sse_events(queue: asyncio.Queue, heartbeat_interval_s: float) -> AsyncGenerator[dict, None]:
    async for broadcast in iter_broadcasts(queue, heartbeat_interval_s):
        if broadcast is None:
            yield {"event": "heartbeat", "data": "{}"}
        else:
            yield {"id": str(broadcast.revision), "data": broadcast.payload}


@router.get("/stream-products")
async def stream_products(client_id: str | None = Query(None), ctx: CheckoutContext = Depends(get_context)):
    cid = extract_client_id(client_id)
    subscriber = ctx.registry.create(cid, "sse")
    handle = ctx.registry.register(subscriber)
    ctx.dispatcher.sync(subscriber, ctx.catalog.valid_view(), ctx.catalog.revision)
    log_connection("sse:connect", cid, {"subscriber": handle})

    async def on_close():
        ctx.registry.unregister(handle)
        log_connection("sse:disconnect", cid, {"subscriber": handle, "delivered": subscriber.delivered})

    return EventSourceResponse(
        sse_events(subscriber.queue, ctx.settings.SSE_HEARTBEAT_INTERVAL_S),
        background=BackgroundTask(on_close),
    )
