from __future__ import annotations
import asyncio
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..bus.base import EventBus
from ..errors import (
    ErrorCode,
    ExtensionNotConfiguredError,
    ExtensionNotFoundError,
    SeedKeyError,
    destroyed_error,
)
from ..logs import get_logger
from ..models import ExtensionStatus
from ..protocol.constants import (
    DEFAULT_TIMEOUT_S,
    STATUS_TIMEOUT_S,
    REQUEST_EVENT,
    RESPONSE_EVENT,
    SDK_VERSION,
    SeedKeyAction,
)
from ..protocol.envelope import build_request, parse_response

logger = get_logger("Transport")

TIMEOUT_MESSAGE = "Request timed out. Make sure SeedKey extension is installed."


@dataclass
class PendingRequest:
    request_id: str
    action: str
    future: asyncio.Future
    timer: Optional[asyncio.TimerHandle] = None


class CorrelatedTransport:
    """Awaitable request/response pairs over the broadcast custodian channel.

    Every request is keyed by a unique id in ``_pending``. Whichever of
    response, timeout or destroy pops the entry first settles the caller;
    the others find nothing and do nothing.
    """

    def __init__(self, bus: EventBus, origin: str, timeout: float = DEFAULT_TIMEOUT_S):
        self.bus = bus
        self.origin = origin
        self.timeout = timeout
        self._pending: Dict[str, PendingRequest] = {}
        self._destroyed = False
        self._unsubscribe = bus.subscribe(RESPONSE_EVENT, self._handle_response)
        logger.debug("listener_attached", topic=RESPONSE_EVENT)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _new_request_id(self) -> str:
        while True:
            request_id = f"req_{int(time.time() * 1000)}_{secrets.token_hex(8)}"
            if request_id not in self._pending:
                return request_id

    async def send(self, action: SeedKeyAction, payload: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> Any:
        if self._destroyed:
            raise destroyed_error()

        request_id = self._new_request_id()
        budget = timeout or self.timeout
        loop = asyncio.get_running_loop()

        entry = PendingRequest(request_id=request_id, action=action, future=loop.create_future())
        self._pending[request_id] = entry
        entry.timer = loop.call_later(budget, self._expire, request_id, budget)

        envelope = build_request(action, request_id, self.origin, payload)
        logger.debug("request_sent", action=action, request_id=request_id, timeout=budget, version=SDK_VERSION)

        try:
            try:
                await self.bus.publish(REQUEST_EVENT, envelope)
            except SeedKeyError as e:
                self._settle(request_id, error=e)
            except Exception as e:
                self._settle(request_id, error=ExtensionNotFoundError(f"Failed to reach SeedKey extension: {e}"))
            return await entry.future
        finally:
            self._forget(request_id)

    def _settle(self, request_id: str, result: Any = None, error: Optional[SeedKeyError] = None) -> bool:
        entry = self._pending.pop(request_id, None)
        if entry is None:
            return False
        if entry.timer:
            entry.timer.cancel()
        if entry.future.done():
            return False
        if error is not None:
            entry.future.set_exception(error)
        else:
            entry.future.set_result(result)
        return True

    def _forget(self, request_id: str) -> None:
        # caller cancelled: drop the entry and its timer without settling
        entry = self._pending.pop(request_id, None)
        if entry and entry.timer:
            entry.timer.cancel()

    def _expire(self, request_id: str, budget: float) -> None:
        entry = self._pending.get(request_id)
        if self._settle(request_id, error=ExtensionNotFoundError(TIMEOUT_MESSAGE)):
            logger.error("request_timed_out", action=entry.action, request_id=request_id, timeout=budget)

    def _handle_response(self, detail: Any) -> None:
        response = parse_response(detail)
        if response is None:
            return

        logger.debug(
            "response_received",
            request_id=response.request_id,
            success=response.success,
            has_error=response.error is not None,
        )

        if response.request_id not in self._pending:
            logger.warning("unknown_request", request_id=response.request_id)
            return

        if response.success:
            self._settle(response.request_id, result=response.result)
        else:
            err = response.error
            self._settle(
                response.request_id,
                error=SeedKeyError(
                    (err.code if err else None) or ErrorCode.SERVER_ERROR,
                    (err.message if err else None) or "Extension error",
                ),
            )

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._unsubscribe()
        logger.info("transport_destroyed", pending_requests=len(self._pending))
        for request_id in list(self._pending):
            if self._settle(request_id, error=destroyed_error()):
                logger.debug("request_cancelled", request_id=request_id)
        self._pending.clear()

    # =============================
    # Status checks
    # =============================

    async def is_available(self) -> bool:
        try:
            response = await self.send("check_available", {}, timeout=STATUS_TIMEOUT_S)
        except Exception as e:
            logger.warning("extension_not_found", error=str(e))
            return False
        available = isinstance(response, dict) and response.get("available") is True
        logger.info("extension_available", available=available)
        return available

    async def is_initialized(self) -> bool:
        try:
            response = await self.send("is_initialized", {}, timeout=STATUS_TIMEOUT_S)
        except Exception as e:
            logger.warning("initialization_check_failed", error=str(e))
            return False
        initialized = isinstance(response, dict) and response.get("initialized") is True
        logger.info("extension_initialized", initialized=initialized)
        return initialized

    async def check_extension(self) -> ExtensionStatus:
        if not await self.is_available():
            logger.error("extension_not_installed")
            raise ExtensionNotFoundError()
        if not await self.is_initialized():
            logger.error("extension_not_configured")
            raise ExtensionNotConfiguredError()
        logger.info("extension_ready")
        return ExtensionStatus(installed=True, initialized=True)
