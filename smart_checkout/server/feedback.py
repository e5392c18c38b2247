from collections import Counter
from datetime import datetime, timezone

from loguru import logger

from smart_checkout.shared.models import RATINGS


class FeedbackLog:
    """In-memory satisfaction ratings; long-term storage lives outside this service."""

    def __init__(self):
        self.entries: list[tuple[datetime, str]] = []

    def record(self, rating: str) -> None:
        if rating not in RATINGS:
            raise ValueError(f"unknown rating {rating!r}")
        self.entries.append((datetime.now(timezone.utc), rating))
        logger.info(f"Received rating: {rating}")

    def counts(self) -> dict[str, int]:
        counter = Counter(rating for _, rating in self.entries)
        return {rating: counter.get(rating, 0) for rating in RATINGS}
