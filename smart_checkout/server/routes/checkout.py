"""
MODULE OVERVIEW:
Payment confirmation with an emailed receipt, and customer satisfaction ratings.

WHAT IS HAPPENING HERE:
Both routes are collaborators of the catalog, never writers: the receipt is built from
a snapshot of the valid view at the moment the payment is confirmed.
"""
from fastapi import APIRouter, Depends

from smart_checkout.server.context import CheckoutContext, get_context
from smart_checkout.server.receipt import build_receipt, render_receipt_html
from smart_checkout.shared.errors import RequestFormatError
from smart_checkout.shared.models import (
    RATINGS,
    MessageResponse,
    PaymentConfirmation,
    PaymentResponse,
    RatingSubmission,
)

router = APIRouter()


@router.post("/confirm-payment", response_model=PaymentResponse)
async def confirm_payment(body: PaymentConfirmation, ctx: CheckoutContext = Depends(get_context)):
    if not body.email:
        raise RequestFormatError("Email is required for receipt.")

    receipt = build_receipt(ctx.catalog.valid_view(), ctx.settings.CURRENCY_SYMBOL)
    await ctx.mailer.send(body.email, ctx.settings.RECEIPT_SUBJECT, render_receipt_html(receipt))

    return PaymentResponse(
        message="Payment confirmed, receipt sent.",
        redirectUrl=ctx.settings.PAYMENT_SUCCESS_URL,
    )


@router.post("/submit-rating", response_model=MessageResponse)
async def submit_rating(body: RatingSubmission, ctx: CheckoutContext = Depends(get_context)):
    if not body.rating or body.rating not in RATINGS:
        raise RequestFormatError("Invalid rating.")
    ctx.feedback.record(body.rating)
    return MessageResponse(message="Rating stored successfully.")
