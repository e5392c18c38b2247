import asyncio
import json

import pytest

from smart_checkout.server.routes.websocket import stop_relay


def post_product(client, **body):
    return client.post("/product", json=body)


class TestUpsertRoute:
    def test_create(self, client):
        resp = post_product(client, name="apple", weight=10, price=2.5, freshness="fresh")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Product data received successfully", "result": "created"}
        assert "X-Process-Time-Ms" in resp.headers

    def test_unchanged_then_updated(self, client):
        post_product(client, name="apple", weight=10, price=2.5, freshness="fresh")

        resp = post_product(client, name="apple", weight=12, price=2.5, freshness="fresh")
        assert resp.status_code == 200
        assert resp.json() == {"message": "No significant change in weight", "result": "unchanged"}

        resp = post_product(client, name="apple", weight=20, price=3.0, freshness="fresh")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Product updated successfully", "result": "updated"}

    @pytest.mark.parametrize("body", [
        {"weight": 10, "price": 1, "freshness": "fresh"},
        {"name": "", "weight": 10, "price": 1, "freshness": "fresh"},
        {"name": "apple", "price": 1, "freshness": "fresh"},
        {"name": "apple", "weight": 10, "freshness": "fresh"},
        {"name": "apple", "weight": 10, "price": 1},
        {"name": "apple", "weight": 10, "price": 1, "freshness": ""},
    ])
    def test_missing_fields(self, client, context, body):
        resp = client.post("/product", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing required fields"}
        assert len(context.catalog) == 0

    def test_zero_weight_is_not_missing(self, client):
        resp = post_product(client, name="apple", weight=0, price=0, freshness="fresh")
        assert resp.status_code == 200

    @pytest.mark.parametrize("weight,price", [(-1, 1), (10, -1)])
    def test_negative_values(self, client, context, weight, price):
        resp = post_product(client, name="apple", weight=weight, price=price, freshness="fresh")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Weight and price must be non-negative"}
        assert context.catalog.revision == 0

    def test_non_numeric_weight(self, client, context):
        resp = post_product(client, name="apple", weight="heavy", price=1, freshness="fresh")
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Invalid request body"
        assert body["details"][0]["loc"] == ["body", "weight"]
        assert len(context.catalog) == 0

    def test_not_json(self, client):
        resp = client.post("/product", content=b"name=apple", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400


class TestListRoute:
    def test_empty(self, client):
        resp = client.get("/products")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_filtered_and_ordered(self, client):
        post_product(client, name="banana", weight=120, price=1, freshness="ripe")
        post_product(client, name="rice", weight=1, price=5, freshness="dry")
        post_product(client, name="apple", weight=10, price=2.5, freshness="fresh")

        assert client.get("/products").json() == [
            {"name": "banana", "weight": 120.0, "price": 1.0, "freshness": "ripe"},
            {"name": "apple", "weight": 10.0, "price": 2.5, "freshness": "fresh"},
        ]


class TestDeleteRoute:
    def test_delete_present(self, client, context):
        post_product(client, name="apple", weight=10, price=2.5, freshness="fresh")

        resp = client.delete("/product/apple")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Product apple deleted successfully."}
        assert client.get("/products").json() == []

    def test_delete_absent(self, client, context):
        resp = client.delete("/product/pear")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Product pear not found."}
        assert context.dispatcher.broadcasts_sent == 0


class TestOps:
    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}

    def test_stats(self, client):
        post_product(client, name="apple", weight=10, price=2.5, freshness="fresh")
        post_product(client, name="rice", weight=1, price=5, freshness="dry")
        client.post("/submit-rating", json={"rating": "😊"})

        stats = client.get("/stats").json()
        assert stats["products_stored"] == 2
        assert stats["products_visible"] == 1
        assert stats["catalog_revision"] == 2
        assert stats["broadcasts_sent"] == 2
        assert stats["active_sse"] == 0
        assert stats["active_ws"] == 0
        assert stats["ratings"] == {"😞": 0, "😐": 0, "😊": 1}


class TestWebSocketStream:
    def test_initial_view_then_broadcasts(self, client, context):
        post_product(client, name="apple", weight=10, price=2.5, freshness="fresh")

        with client.websocket_connect("/ws/products?client_id=lane-1") as ws:
            assert json.loads(ws.receive_text()) == [
                {"name": "apple", "weight": 10.0, "price": 2.5, "freshness": "fresh"}
            ]
            assert context.registry.count("websocket") == 1

            post_product(client, name="apple", weight=12, price=2.5, freshness="fresh")
            post_product(client, name="rice", weight=500, price=2, freshness="dry")
            assert [p["name"] for p in json.loads(ws.receive_text())] == ["apple", "rice"]

            client.delete("/product/apple")
            assert [p["name"] for p in json.loads(ws.receive_text())] == ["rice"]

    def test_every_terminal_gets_the_same_payload(self, client):
        with client.websocket_connect("/ws/products?client_id=lane-1") as ws1, \
                client.websocket_connect("/ws/products?client_id=lane-2") as ws2:
            assert ws1.receive_text() == "[]"
            assert ws2.receive_text() == "[]"

            post_product(client, name="apple", weight=10, price=2.5, freshness="fresh")
            assert ws1.receive_text() == ws2.receive_text()

    def test_terminals_sharing_a_client_id_are_independent(self, client, context):
        with client.websocket_connect("/ws/products?client_id=cli_websocket") as ws1:
            assert ws1.receive_text() == "[]"
            with client.websocket_connect("/ws/products?client_id=cli_websocket") as ws2:
                assert ws2.receive_text() == "[]"
                assert len(context.registry) == 2

            # closing the second terminal must not take the first one down
            assert len(context.registry) == 1
            post_product(client, name="apple", weight=10, price=2.5, freshness="fresh")
            assert [p["name"] for p in json.loads(ws1.receive_text())] == ["apple"]


class TestStopRelay:
    @pytest.mark.asyncio
    async def test_collects_a_failed_relay(self):
        async def failing():
            raise RuntimeError("socket already closed")

        task = asyncio.create_task(failing())
        await asyncio.sleep(0)
        await stop_relay(task)
        assert task.done()
        assert isinstance(task.exception(), RuntimeError)

    @pytest.mark.asyncio
    async def test_cancels_a_running_relay(self):
        task = asyncio.create_task(asyncio.sleep(60))
        await stop_relay(task)
        assert task.cancelled()
