"""
MODULE OVERVIEW:
The FastAPI application factory.

WHAT IS HAPPENING HERE:
`create_app()` wires one `CheckoutContext` (catalog, subscribers, dispatcher, receipt and
feedback collaborators) into a FastAPI app. The `lifespan` context manager logs startup
and, on shutdown, closes every live subscriber so open streams end instead of hanging
until the process dies. Tests call `create_app(build_context(...))` to get an isolated
server; uvicorn imports the module-level `app`.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from smart_checkout.server.context import CheckoutContext, build_context
from smart_checkout.server.middleware import TimingMiddleware
from smart_checkout.server.routes import checkout, products, sse, websocket
from smart_checkout.shared.config import settings
from smart_checkout.shared.errors import CheckoutError
from smart_checkout.shared.models import CatalogStats


@asynccontextmanager
async def lifespan(app: FastAPI):
    # STARTUP
    ctx: CheckoutContext = app.state.context
    logger.info(
        f"Smart checkout server starting up: weight_threshold={ctx.catalog.weight_threshold:g}g "
        f"min_visible_weight={ctx.catalog.min_visible_weight:g}g "
        f"reject_negative={ctx.catalog.reject_negative} mailer_configured={ctx.mailer.configured}"
    )

    yield

    # SHUTDOWN
    logger.info(f"Server shutting down. Closing {len(ctx.registry)} live subscribers...")
    ctx.registry.close_all()
    logger.info("Shutdown complete.")


async def checkout_error_handler(request: Request, exc: CheckoutError):
    logger.debug(f"{request.method} {request.url.path} rejected status={exc.status_code} reason='{exc.message}'")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies (non-numeric weight, NaN, not JSON) are request-format errors
    details = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]
    logger.debug(f"{request.method} {request.url.path} rejected status=400 reason=validation")
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


def create_app(context: CheckoutContext | None = None) -> FastAPI:
    ctx = context or build_context(settings)

    app = FastAPI(
        title="Smart Checkout",
        description="Real-time product catalog for autonomous checkout terminals",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.context = ctx

    # Add Middlewares
    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ctx.settings.CORS_ALLOW_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CheckoutError, checkout_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Route registrations
    app.include_router(products.router, tags=["Catalog"])
    app.include_router(sse.router, tags=["Streams"])
    app.include_router(websocket.router, tags=["Streams"])
    app.include_router(checkout.router, tags=["Checkout"])

    @app.get("/healthz", tags=["Ops"])
    async def health_check():
        return {"status": "ok"}

    @app.get("/stats", tags=["Ops"], response_model=CatalogStats)
    async def get_stats():
        return ctx.stats()

    return app


app = create_app()
