"""
MODULE OVERVIEW:
The in-memory product catalog fed by the scale pipeline.

WHAT IS HAPPENING HERE:
The store keeps the last accepted reading per product name and applies the acceptance
policy. A reading for a known product only replaces the stored record when its weight
moved by more than the threshold, so a noisy scale does not re-broadcast on every
fluctuation. Checkout terminals never see the raw catalog, only the valid view: records
light enough to be "lifted off the scale" or carrying a negative price stay stored but
hidden.

Every accepted mutation bumps the revision and publishes a `CatalogChange` on the bus.
"""

from typing import Dict

from loguru import logger

from smart_checkout.shared.errors import InvalidValue, RequestFormatError
from smart_checkout.shared.events import CatalogChange, CatalogChangeBus
from smart_checkout.shared.models import Product, RemoveResult, UpsertResult


class CatalogStore:
    def __init__(
        self,
        bus: CatalogChangeBus | None = None,
        weight_threshold: float = 5.0,
        min_visible_weight: float = 2.0,
        reject_negative: bool = True,
    ):
        self.bus = bus or CatalogChangeBus()
        self.weight_threshold = weight_threshold
        self.min_visible_weight = min_visible_weight
        self.reject_negative = reject_negative

        # dict keeps insertion order, which is the order of the valid view.
        # Replacing an existing key keeps its position.
        self._products: Dict[str, Product] = {}
        self.revision = 0

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, name: str) -> bool:
        return name in self._products

    def get(self, name: str) -> Product | None:
        return self._products.get(name)

    def upsert(self, name: str, weight: float, price: float, freshness: str) -> UpsertResult:
        if not name:
            raise RequestFormatError("Product name is required")
        if not freshness:
            raise RequestFormatError("Freshness is required")
        if self.reject_negative and (weight < 0 or price < 0):
            raise InvalidValue("Weight and price must be non-negative")

        existing = self._products.get(name)
        if existing is not None:
            delta = abs(weight - existing.weight)
            if delta <= self.weight_threshold:
                logger.debug(f"product={name} event=unchanged delta={delta:g}")
                return UpsertResult.UNCHANGED
            result = UpsertResult.UPDATED
        else:
            result = UpsertResult.CREATED

        self._products[name] = Product(name=name, weight=weight, price=price, freshness=freshness)
        logger.info(f"product={name} event={result.value} weight={weight:g} price={price:g}")
        self._commit(result.value, name)
        return result

    def remove(self, name: str) -> RemoveResult:
        if name not in self._products:
            return RemoveResult.NOT_FOUND
        del self._products[name]
        logger.info(f"product={name} event=deleted")
        self._commit("deleted", name)
        return RemoveResult.DELETED

    def valid_view(self) -> list[Product]:
        """Products a checkout terminal may show, in catalog insertion order."""
        return [
            product.model_copy()
            for product in self._products.values()
            if product.weight >= self.min_visible_weight and product.price >= 0
        ]

    def _commit(self, kind: str, name: str):
        self.revision += 1
        self.bus.publish(
            CatalogChange(kind=kind, name=name, revision=self.revision, view=self.valid_view())
        )
