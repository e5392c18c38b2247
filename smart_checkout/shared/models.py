"""
MODULE OVERVIEW:
Strictly typed data structures shared by the checkout server and the terminal clients,
powered by Pydantic v2.

WHAT IS HAPPENING HERE:
`Product` is the single record shape used everywhere: in the catalog, in every
broadcast payload, in `GET /products` and in receipts. Terminals decode stream payloads
with the same model the server encodes them with.
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Product(BaseModel):
    name: str
    weight: float
    price: float
    freshness: str


# A broadcast payload is a bare JSON array of products, the shape terminals render.
ProductList = TypeAdapter(list[Product])


class Broadcast(BaseModel):
    """One serialized valid view, queued identically for every subscriber."""

    model_config = ConfigDict(frozen=True)

    revision: int
    payload: str


class UpsertResult(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class RemoveResult(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"


# WHAT IS HAPPENING HERE:
# Every field is optional on purpose. A missing field is a request-format problem the
# route reports itself ("Missing required fields"), whereas a present but non-numeric
# weight is rejected by Pydantic before the route runs.
class ProductReading(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str | None = None
    weight: float | None = None
    price: float | None = None
    freshness: str | None = None


class UpsertResponse(BaseModel):
    message: str
    result: UpsertResult


class MessageResponse(BaseModel):
    message: str


class PaymentConfirmation(BaseModel):
    email: str | None = None


class PaymentResponse(BaseModel):
    message: str
    redirectUrl: str


RATINGS: tuple[str, ...] = ("😞", "😐", "😊")


class RatingSubmission(BaseModel):
    rating: str | None = None


class ReceiptLine(BaseModel):
    name: str
    weight: float
    price: float


class Receipt(BaseModel):
    lines: list[ReceiptLine]
    total: float
    currency: str


class CatalogStats(BaseModel):
    products_stored: int
    products_visible: int
    catalog_revision: int
    active_sse: int
    active_ws: int
    broadcasts_sent: int
    subscribers_dropped: int
    ratings: dict[str, int] = Field(default_factory=dict)
    uptime_s: float
    server_time: datetime
