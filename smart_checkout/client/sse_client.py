"""
MODULE OVERVIEW:
The Server-Sent Events checkout terminal.

WHAT IS HAPPENING HERE:
We use HTTPX `stream()` to keep the body of `/stream-products` open and split it into
SSE blocks ourselves, exactly what a browser's EventSource does. Unnamed events carry a
full basket snapshot; `heartbeat` events only prove the server is alive.
"""
import httpx

from smart_checkout.client.base_client import BaseTerminalClient


def parse_sse_block(block: str) -> tuple[str, str]:
    """Returns (event_type, data) for one SSE block; comment lines are ignored."""
    event_type = "message"
    data_lines = []

    for line in block.strip().split("\n"):
        line = line.rstrip("\r")
        if line.startswith("event:"):
            event_type = line.split(":", 1)[1].strip()
        elif line.startswith("data:"):
            data_lines.append(line.split(":", 1)[1].strip())

    return event_type, "\n".join(data_lines)


class SSETerminalClient(BaseTerminalClient):
    protocol_name: str = "sse"

    def __init__(self, client_id: str, server_base_url: str):
        super().__init__(client_id, server_base_url)
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=None))

    async def disconnect(self) -> None:
        await self.client.aclose()

    async def connect(self) -> None:
        url = f"{self.server_base_url}/stream-products"

        async with self.client.stream(
            "GET", url,
            params={"client_id": self.client_id},
            headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
        ) as response:
            response.raise_for_status()
            await self._emit_status("ACTIVE")

            buffer = ""
            async for chunk in response.aiter_text():
                buffer += chunk.replace("\r\n", "\n")
                while "\n\n" in buffer:
                    block, buffer = buffer.split("\n\n", 1)
                    await self._handle_block(block)

    async def _handle_block(self, block: str):
        event_type, data = parse_sse_block(block)
        if event_type == "heartbeat":
            self.on_heartbeat()
        elif event_type == "message" and data:
            await self.on_payload(data)
