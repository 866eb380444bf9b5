"""Broadcast relay that lets the channel topics cross process boundaries.

The relay is untrusted plumbing: it checks frame shape and size, then
forwards each frame to every other connected peer.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, List, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from .logs import get_logger
from .protocol.constants import MAX_CONNECTIONS_PER_IP, MAX_MSG_BYTES, SDK_VERSION
from .protocol.validation import json_dumps_sorted, parse_bus_frame

logger = get_logger("Relay")

CONNECTION_RATE_LIMIT = 5


class RateLimiter:
    def __init__(self):
        self.connections: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def allow_connection(self, ip: str) -> bool:
        with self._lock:
            t = time.time()
            conns = [ts for ts in self.connections.get(ip, []) if t - ts < 60]

            if len(conns) >= MAX_CONNECTIONS_PER_IP:
                logger.warning("dos_protection", reason="max_connections_per_ip", ip=ip)
                self.connections[ip] = conns
                return False

            if len([ts for ts in conns if t - ts < 1]) >= CONNECTION_RATE_LIMIT:
                logger.warning("dos_protection", reason="connection_rate_limit", ip=ip)
                self.connections[ip] = conns
                return False

            conns.append(t)
            self.connections[ip] = conns
            return True


class HealthResp(BaseModel):
    status: str
    peers: int
    frames: int
    dropped: int


def build_relay_app() -> FastAPI:
    app = FastAPI(title="SeedKey Channel Relay", version=SDK_VERSION)
    peers: Set[WebSocket] = set()
    rate_limiter = RateLimiter()
    stats = {"frames": 0, "dropped": 0}

    async def _send_error(ws: WebSocket, error: str):
        await ws.send_text(json_dumps_sorted({"error": error}))

    async def _broadcast(sender: WebSocket, frame: Dict[str, Any]):
        raw = json_dumps_sorted(frame)
        for peer in list(peers):
            if peer is sender:
                continue
            try:
                await peer.send_text(raw)
            except Exception as e:
                logger.warning("peer_send_failed", error=str(e))
                peers.discard(peer)

    @app.get("/health", response_model=HealthResp)
    def health():
        return HealthResp(status="ok", peers=len(peers), **stats)

    @app.websocket("/bus")
    async def bus(websocket: WebSocket):
        client_ip = websocket.client.host if websocket.client else "unknown"
        if not rate_limiter.allow_connection(client_ip):
            await websocket.close(code=1008)
            return

        await websocket.accept()
        peers.add(websocket)
        logger.info("peer_connected", ip=client_ip, peers=len(peers))

        try:
            while True:
                raw = await websocket.receive_text()
                if len(raw.encode("utf-8")) > MAX_MSG_BYTES:
                    stats["dropped"] += 1
                    await _send_error(websocket, "message too large")
                    continue
                try:
                    frame = parse_bus_frame(raw)
                except ValueError as e:
                    stats["dropped"] += 1
                    await _send_error(websocket, f"invalid frame: {e}")
                    continue
                stats["frames"] += 1
                await _broadcast(websocket, {"topic": frame["topic"], "detail": frame.get("detail")})
        except WebSocketDisconnect:
            logger.info("peer_disconnected", ip=client_ip)
        finally:
            peers.discard(websocket)

    return app
