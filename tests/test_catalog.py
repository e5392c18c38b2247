import pytest

from smart_checkout.server.catalog import CatalogStore
from smart_checkout.shared.errors import InvalidValue, RequestFormatError
from smart_checkout.shared.events import CatalogChangeBus
from smart_checkout.shared.models import Product, RemoveResult, UpsertResult


@pytest.fixture
def changes():
    return []


@pytest.fixture
def store(changes) -> CatalogStore:
    bus = CatalogChangeBus()
    bus.subscribe(changes.append)
    return CatalogStore(bus)


def names(view: list[Product]) -> list[str]:
    return [p.name for p in view]


class TestUpsert:
    def test_new_product_is_created_and_broadcast(self, store, changes):
        assert store.upsert("apple", 10, 2.5, "fresh") is UpsertResult.CREATED

        assert store.get("apple") == Product(name="apple", weight=10, price=2.5, freshness="fresh")
        assert len(store) == 1
        assert len(changes) == 1
        assert changes[0].kind == "created"
        assert changes[0].view == [Product(name="apple", weight=10, price=2.5, freshness="fresh")]

    @pytest.mark.parametrize("new_weight", [10, 12, 15, 5, 7.5])
    def test_small_weight_change_is_ignored(self, store, changes, new_weight):
        store.upsert("apple", 10, 2.5, "fresh")

        assert store.upsert("apple", new_weight, 9.99, "stale") is UpsertResult.UNCHANGED
        assert store.get("apple") == Product(name="apple", weight=10, price=2.5, freshness="fresh")
        assert len(changes) == 1

    @pytest.mark.parametrize("new_weight", [15.5, 20, 4.9, 0])
    def test_large_weight_change_replaces_record(self, store, changes, new_weight):
        store.upsert("apple", 10, 2.5, "fresh")

        assert store.upsert("apple", new_weight, 3.0, "ripe") is UpsertResult.UPDATED
        assert store.get("apple") == Product(name="apple", weight=new_weight, price=3.0, freshness="ripe")
        assert len(changes) == 2
        assert changes[1].kind == "updated"

    def test_price_only_change_does_not_propagate(self, store, changes):
        store.upsert("apple", 10, 2.5, "fresh")
        assert store.upsert("apple", 10, 1.0, "fresh") is UpsertResult.UNCHANGED
        assert store.get("apple").price == 2.5

    @pytest.mark.parametrize("weight,price", [(-1, 2.0), (10, -0.01), (-5, -5)])
    def test_negative_values_are_rejected(self, store, changes, weight, price):
        with pytest.raises(InvalidValue):
            store.upsert("apple", weight, price, "fresh")
        assert len(store) == 0
        assert changes == []
        assert store.revision == 0

    def test_negative_values_can_be_stored_but_stay_hidden(self, changes):
        store = CatalogStore(reject_negative=False)
        assert store.upsert("apple", 10, -1, "fresh") is UpsertResult.CREATED
        assert "apple" in store
        assert store.valid_view() == []

    def test_empty_name_is_a_format_error(self, store):
        with pytest.raises(RequestFormatError):
            store.upsert("", 10, 1, "fresh")

    @pytest.mark.parametrize("freshness", ["", None])
    def test_empty_freshness_is_a_format_error(self, store, changes, freshness):
        with pytest.raises(RequestFormatError, match="Freshness"):
            store.upsert("apple", 10, 1, freshness)
        assert len(store) == 0
        assert changes == []

    def test_update_keeps_view_position(self, store):
        store.upsert("apple", 10, 1, "fresh")
        store.upsert("banana", 50, 1, "ripe")
        store.upsert("apple", 100, 1, "fresh")
        assert names(store.valid_view()) == ["apple", "banana"]


class TestRemove:
    def test_remove_present_product(self, store, changes):
        store.upsert("apple", 10, 1, "fresh")
        store.upsert("rice", 500, 2, "dry")

        assert store.remove("apple") is RemoveResult.DELETED
        assert "apple" not in store
        assert names(store.valid_view()) == ["rice"]
        assert changes[-1].kind == "deleted"
        assert names(changes[-1].view) == ["rice"]

    def test_remove_absent_product(self, store, changes):
        store.upsert("apple", 10, 1, "fresh")

        assert store.remove("pear") is RemoveResult.NOT_FOUND
        assert len(store) == 1
        assert len(changes) == 1


class TestValidView:
    def test_light_products_are_stored_but_hidden(self, store, changes):
        assert store.upsert("rice", 1, 5, "dry") is UpsertResult.CREATED
        assert "rice" in store
        assert store.valid_view() == []
        assert changes[0].view == []

        store.upsert("rice", 500, 5, "dry")
        assert names(store.valid_view()) == ["rice"]

    def test_floor_is_inclusive(self, store):
        store.upsert("apple", 2, 0, "fresh")
        assert names(store.valid_view()) == ["apple"]

    def test_view_never_contains_invalid_entries(self):
        store = CatalogStore(reject_negative=False)
        readings = [
            ("a", 1.9, 1), ("b", 2, -1), ("c", 30, 1), ("a", 20, 1),
            ("c", 0, 1), ("d", 8, 0), ("b", 40, 2), ("d", -8, 1),
        ]
        for name, weight, price in readings:
            store.upsert(name, weight, price, "fresh")
            assert all(p.weight >= 2 and p.price >= 0 for p in store.valid_view())

    def test_view_is_a_copy(self, store):
        store.upsert("apple", 10, 1, "fresh")
        store.valid_view()[0].price = 99
        assert store.get("apple").price == 1


def test_checkout_scenario(store, changes):
    apple = lambda w, p: Product(name="apple", weight=w, price=p, freshness="fresh")

    assert store.upsert("apple", 10, 2.5, "fresh") is UpsertResult.CREATED
    assert store.valid_view() == [apple(10, 2.5)]

    assert store.upsert("apple", 12, 2.5, "fresh") is UpsertResult.UNCHANGED
    assert store.valid_view() == [apple(10, 2.5)]

    assert store.upsert("apple", 20, 3.0, "fresh") is UpsertResult.UPDATED
    assert store.valid_view() == [apple(20, 3.0)]

    assert store.remove("apple") is RemoveResult.DELETED
    assert store.valid_view() == []

    assert [c.kind for c in changes] == ["created", "updated", "deleted"]
    assert [c.revision for c in changes] == [1, 2, 3]
    assert store.revision == 3


def test_failing_listener_does_not_fail_mutation(store):
    def broken(change):
        raise RuntimeError("listener exploded")

    store.bus.subscribe(broken)
    assert store.upsert("apple", 10, 1, "fresh") is UpsertResult.CREATED
    assert "apple" in store
