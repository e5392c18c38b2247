"""
MODULE OVERVIEW:
The WebSocket checkout terminal.

WHAT IS HAPPENING HERE:
We use the `websockets` library against `/ws/products`. Frames are either a JSON array
(a basket snapshot) or a JSON object `{"type": "ping"}` sent by the server when idle.
"""

import json

import websockets

from smart_checkout.client.base_client import BaseTerminalClient


class WebSocketTerminalClient(BaseTerminalClient):
    protocol_name: str = "websocket"

    def __init__(self, client_id: str, server_base_url: str):
        super().__init__(client_id, server_base_url)
        ws_base = self.server_base_url.replace('http://', 'ws://').replace('https://', 'wss://')
        self.ws_url = f"{ws_base}/ws/products?client_id={self.client_id}"

    async def disconnect(self) -> None:
        pass

    async def connect(self) -> None:
        async with websockets.connect(self.ws_url) as ws:
            await self._emit_status("ACTIVE")

            async for message in ws:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    continue
                if isinstance(data, dict) and data.get("type") == "ping":
                    self.on_heartbeat()
                else:
                    await self.on_payload(message)
