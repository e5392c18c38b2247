"""
MODULE OVERVIEW:
Ingestion, query and deletion of catalog products.

WHAT IS HAPPENING HERE:
These handlers are deliberately thin: validate the request shape, call the catalog,
translate the result into a response. Broadcasting happens inside the catalog's change
bus, so no route ever talks to the subscribers directly. All handlers are coroutines:
the catalog is only ever touched from the event loop thread.
"""
from fastapi import APIRouter, Depends

from smart_checkout.server.context import CheckoutContext, get_context
from smart_checkout.shared.errors import ProductNotFound, RequestFormatError
from smart_checkout.shared.models import (
    MessageResponse,
    Product,
    ProductReading,
    RemoveResult,
    UpsertResponse,
    UpsertResult,
)

router = APIRouter()

UPSERT_MESSAGES = {
    UpsertResult.CREATED: "Product data received successfully",
    UpsertResult.UPDATED: "Product updated successfully",
    UpsertResult.UNCHANGED: "No significant change in weight",
}


@router.post("/product", response_model=UpsertResponse)
async def upsert_product(reading: ProductReading, ctx: CheckoutContext = Depends(get_context)):
    if not reading.name or reading.weight is None or reading.price is None or not reading.freshness:
        raise RequestFormatError("Missing required fields")

    result = ctx.catalog.upsert(reading.name, reading.weight, reading.price, reading.freshness)
    return UpsertResponse(message=UPSERT_MESSAGES[result], result=result)


@router.get("/products", response_model=list[Product])
async def list_products(ctx: CheckoutContext = Depends(get_context)):
    return ctx.catalog.valid_view()


@router.delete("/product/{name}", response_model=MessageResponse)
async def delete_product(name: str, ctx: CheckoutContext = Depends(get_context)):
    if ctx.catalog.remove(name) is RemoveResult.NOT_FOUND:
        raise ProductNotFound(f"Product {name} not found.")
    return MessageResponse(message=f"Product {name} deleted successfully.")
