"""
MODULE OVERVIEW:
A fake sensor/scale pipeline that feeds the checkout server.

WHAT IS HAPPENING HERE:
In the store, readings come from load cells and a camera classifier. Here an infinite
async generator produces the same traffic: mostly jitter of a few grams (which the
server must ignore), sometimes a real change (more produce added), and sometimes an
item lifted off the scale, whose weight drops under the checkout visibility floor.
`run_scale` posts every reading to `POST /product` with HTTPX.
"""

import asyncio
import random

import httpx
from loguru import logger

from smart_checkout.shared.models import ProductReading

# name -> (base weight g, price per gram, freshness)
SHELF = {
    "apple": (180.0, 0.012, "fresh"),
    "banana": (120.0, 0.008, "ripe"),
    "tomato": (90.0, 0.015, "fresh"),
    "rice": (500.0, 0.004, "dry"),
    "spinach": (60.0, 0.03, "wilting"),
}


async def scale_reading_generator(
    shelf: dict[str, tuple[float, float, str]] = SHELF,
    interval_s: tuple[float, float] = (0.5, 2.0),
    rng: random.Random | None = None,
):
    """Emits readings forever, sleeping a random interval between them."""
    rng = rng or random.Random()
    weights = {name: base for name, (base, _, _) in shelf.items()}

    while True:
        name = rng.choice(list(shelf))
        _, per_gram, freshness = shelf[name]
        roll = rng.random()

        if roll < 0.6:
            # Noise: a few grams either way
            weights[name] = max(0.0, weights[name] + rng.uniform(-3.0, 3.0))
        elif roll < 0.9:
            # Another piece put on the scale
            weights[name] += rng.uniform(20.0, 150.0)
        else:
            # Lifted off: residual reading under the visibility floor
            weights[name] = rng.uniform(0.0, 1.5)

        weight = round(weights[name], 1)
        yield ProductReading(
            name=name,
            weight=weight,
            price=round(weight * per_gram, 2),
            freshness=freshness,
        )
        await asyncio.sleep(rng.uniform(*interval_s))


async def run_scale(base_url: str, duration_s: float = 60.0, interval_s: tuple[float, float] = (0.5, 2.0)) -> dict:
    """Posts readings until `duration_s` elapses. Returns a count per server result."""
    results: dict[str, int] = {"created": 0, "updated": 0, "unchanged": 0, "rejected": 0}

    async def pump(client: httpx.AsyncClient):
        async for reading in scale_reading_generator(interval_s=interval_s):
            try:
                resp = await client.post("/product", json=reading.model_dump())
            except httpx.HTTPError as e:
                logger.warning(f"scale post failed product={reading.name} error='{e}'")
                continue
            if resp.status_code == 200:
                result = resp.json()["result"]
                results[result] += 1
                logger.debug(f"product={reading.name} weight={reading.weight:g} result={result}")
            else:
                results["rejected"] += 1
                logger.warning(f"product={reading.name} status={resp.status_code} body={resp.text[:120]}")

    async with httpx.AsyncClient(base_url=base_url, timeout=5.0) as client:
        try:
            await asyncio.wait_for(pump(client), timeout=duration_s)
        except asyncio.TimeoutError:
            pass

    return results
