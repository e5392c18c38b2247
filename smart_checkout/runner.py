"""
CLI entrypoint for the smart checkout backend.
"""
import asyncio
import sys

import httpx
import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from smart_checkout.client.scale_simulator import run_scale
from smart_checkout.client.sse_client import SSETerminalClient
from smart_checkout.client.visualizer import Visualizer
from smart_checkout.client.websocket_client import WebSocketTerminalClient
from smart_checkout.shared.config import settings

app = typer.Typer(help="Smart Checkout CLI Manager")
console = Console()


def base_url() -> str:
    return f"http://127.0.0.1:{settings.PORT}"


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@app.command()
def server():
    """Start the FastAPI backend server using Uvicorn."""
    import uvicorn
    configure_logging(settings.LOG_LEVEL)
    typer.echo(f"Starting server on port {settings.PORT}...")
    uvicorn.run("smart_checkout.server.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


@app.command()
def terminal(
    protocol: str = typer.Option("sse", help="Stream to attach to: sse, websocket"),
    duration: float = typer.Option(300.0, help="How long the terminal stays attached, in seconds"),
    client_id: str = typer.Option(None, help="Terminal id reported to the server"),
):
    """Run a checkout terminal with the rich basket dashboard."""
    cid = client_id or f"cli_{protocol}"

    if protocol == "sse":
        c = SSETerminalClient(cid, base_url())
    elif protocol == "websocket":
        c = WebSocketTerminalClient(cid, base_url())
    else:
        typer.echo("Invalid protocol.")
        raise typer.Exit(1)

    # Keep log lines from tearing through the live dashboard
    configure_logging("ERROR")
    visualizer = Visualizer(c, settings.CURRENCY_SYMBOL)
    try:
        asyncio.run(visualizer.run(duration))
    except KeyboardInterrupt:
        pass


@app.command()
def scale(
    duration: float = typer.Option(60.0, help="How long to feed readings, in seconds"),
    min_interval: float = typer.Option(0.5, help="Shortest pause between readings"),
    max_interval: float = typer.Option(2.0, help="Longest pause between readings"),
):
    """Feed simulated scale readings into the server."""
    configure_logging(settings.LOG_LEVEL)
    try:
        results = asyncio.run(run_scale(base_url(), duration, (min_interval, max_interval)))
    except KeyboardInterrupt:
        return
    typer.echo(results)


@app.command()
def products():
    """Print the products currently visible to checkout terminals."""
    resp = httpx.get(f"{base_url()}/products")
    resp.raise_for_status()

    table = Table(title="Checkout view")
    table.add_column("Product", style="cyan")
    table.add_column("Weight (g)", justify="right")
    table.add_column(f"Price ({settings.CURRENCY_SYMBOL})", justify="right")
    table.add_column("Freshness")
    for p in resp.json():
        table.add_row(p["name"], f"{p['weight']:g}", f"{p['price']:.2f}", p["freshness"])
    console.print(table)


@app.command()
def stats():
    """Query the server for live catalog and connection stats."""
    resp = httpx.get(f"{base_url()}/stats")
    typer.echo(resp.json())


if __name__ == "__main__":
    app()
