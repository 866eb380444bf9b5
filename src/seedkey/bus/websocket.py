from __future__ import annotations
import asyncio
from typing import Any, Optional

from ..errors import ErrorCode, SeedKeyError
from ..logs import get_logger
from ..protocol.validation import json_dumps_sorted, parse_bus_frame
from .base import EventBus

logger = get_logger("Bus")


class WebSocketEventBus(EventBus):
    """Bus carried over a relay websocket; every peer on the relay sees every frame."""

    def __init__(self, url: str):
        super().__init__()
        self.url = url.rstrip("/")
        self.ws = None
        self._rx_task: Optional[asyncio.Task] = None
        self._running = False

    async def connect(self) -> None:
        import websockets
        from websockets.exceptions import WebSocketException
        ws_url = self.url if self.url.endswith("/bus") else f"{self.url}/bus"
        try:
            self.ws = await websockets.connect(ws_url)
        except (OSError, WebSocketException) as e:
            raise SeedKeyError(ErrorCode.NETWORK_ERROR, f"Relay unreachable: {e}") from e
        self._running = True
        self._rx_task = asyncio.create_task(self._recv_loop())
        logger.info("bus_connected", url=ws_url)

    async def _recv_loop(self) -> None:
        while self._running and self.ws:
            try:
                raw = await self.ws.recv()
            except Exception as e:
                if self._running:
                    logger.error("recv_loop_error", error=str(e))
                break
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="replace")
            try:
                frame = parse_bus_frame(raw)
            except ValueError as e:
                logger.warning("frame_dropped", error=str(e))
                continue
            self._dispatch(frame["topic"], frame.get("detail"))

    async def publish(self, topic: str, detail: Any) -> None:
        if not self.ws:
            raise SeedKeyError(ErrorCode.NETWORK_ERROR, "Relay not connected")
        await self.ws.send(json_dumps_sorted({"topic": topic, "detail": detail}))

    async def close(self) -> None:
        self._running = False
        if self._rx_task:
            self._rx_task.cancel()
            try:
                await self._rx_task
            except asyncio.CancelledError:
                pass
            self._rx_task = None
        if self.ws:
            try:
                await self.ws.close()
            except Exception as e:
                logger.debug("close_failed", error=str(e))
            self.ws = None

    async def __aenter__(self) -> "WebSocketEventBus":
        await self.connect()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
