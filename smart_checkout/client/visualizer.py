"""
MODULE OVERVIEW:
The Rich terminal dashboard of a checkout terminal.

WHAT IS HAPPENING HERE:
It runs the terminal client in the background and redraws the basket, the running
total and the connection timeline every time the client reports something.
"""

import asyncio
from collections import deque
from datetime import datetime

from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from smart_checkout.client.base_client import BaseTerminalClient
from smart_checkout.shared.models import Product


class Visualizer:
    def __init__(self, client: BaseTerminalClient, currency: str = "₹"):
        self.client = client
        self.currency = currency
        self.status = "INITIALIZING"
        self.timeline = deque(maxlen=8)

    def on_status_change(self, status: str):
        self.status = status
        ts = datetime.now().strftime("%H:%M:%S")
        self.timeline.appendleft(f"[{ts}] State: {status}")

    def on_snapshot(self, basket: list[Product]):
        ts = datetime.now().strftime("%H:%M:%S")
        self.timeline.appendleft(f"[{ts}] Basket: {len(basket)} items")

    def basket_table(self) -> Table:
        table = Table(title="Basket", expand=True)
        table.add_column("Product", style="cyan", no_wrap=True)
        table.add_column("Weight (g)", justify="right", style="magenta")
        table.add_column(f"Price ({self.currency})", justify="right", style="green")
        table.add_column("Freshness", style="blue")

        for p in self.client.basket:
            table.add_row(p.name, f"{p.weight:g}", f"{p.price:.2f}", p.freshness)
        table.add_section()
        table.add_row("[bold]Total[/]", "", f"[bold]{self.client.total:.2f}[/]", "")
        return table

    def generate_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main")
        )
        layout["main"].split_row(
            Layout(name="left", ratio=2),
            Layout(name="right", ratio=1)
        )
        layout["right"].split_column(
            Layout(name="stats"),
            Layout(name="timeline")
        )

        color = "green" if self.status == "ACTIVE" else "yellow" if self.status == "INITIALIZING" else "red"
        layout["header"].update(Panel(
            f"[{color} bold]Terminal: {self.client.client_id} | {self.client.protocol_name} | Status: {self.status}[/]",
            style=color,
        ))

        layout["left"].update(Panel(self.basket_table(), title="Checkout"))

        stats_text = (
            f"Snapshots: {self.client.snapshots_received}\n"
            f"Heartbeats: {self.client.stats['heartbeats']}\n"
            f"Reconnects: {self.client.reconnect_count}\n"
            f"Bytes: {self.client.stats['bytes_received']}"
        )
        layout["stats"].update(Panel(stats_text, title="Connection Stats"))
        layout["timeline"].update(Panel("\n".join(self.timeline), title="Timeline"))

        return layout

    async def run(self, duration_s: float):
        # Bridge the client hooks
        async def snapshot_hook(basket): self.on_snapshot(basket)
        async def status_hook(s): self.on_status_change(s)

        self.client.set_callbacks(snapshot_hook, status_hook)

        client_task = asyncio.create_task(self.client.run(duration_s))

        with Live(self.generate_layout(), refresh_per_second=4) as live:
            while not client_task.done():
                live.update(self.generate_layout())
                await asyncio.sleep(0.25)
            live.update(self.generate_layout())
