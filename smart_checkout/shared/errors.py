"""
Error taxonomy of the checkout backend.

Each error raised towards an HTTP caller carries the status code it maps to; the
application registers a single handler for `CheckoutError`.
"""


class CheckoutError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"error": self.message}


class RequestFormatError(CheckoutError):
    """A required field is absent or the body could not be parsed."""

    status_code = 400


class InvalidValue(CheckoutError):
    """Negative weight or price."""

    status_code = 400


class ProductNotFound(CheckoutError):
    status_code = 404


class ReceiptDeliveryError(CheckoutError):
    status_code = 500

    def to_body(self) -> dict:
        return {"error": "Error sending receipt", "details": self.message}


class SubscriberWriteFailure(Exception):
    """A push to one live subscriber failed. Never surfaced to a mutation caller."""

    def __init__(self, subscriber_id: str, reason: str):
        super().__init__(f"subscriber {subscriber_id}: {reason}")
        self.subscriber_id = subscriber_id
        self.reason = reason
