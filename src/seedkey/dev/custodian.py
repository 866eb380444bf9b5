from __future__ import annotations
import asyncio
import inspect
from typing import Any, Callable, Dict, Optional, Set
from urllib.parse import urlparse

from ..bus.base import EventBus
from ..errors import ErrorCode
from ..logs import get_logger
from ..protocol.constants import REQUEST_EVENT, RESPONSE_EVENT
from ..protocol.envelope import SeedKeyRequest, build_response, parse_request
from .keys import DomainKeyring, challenge_bytes

logger = get_logger("Custodian")

REQUIRED_CHALLENGE_FIELDS = ("nonce", "timestamp", "domain", "action", "expiresAt")

Approver = Callable[[str, Dict[str, Any]], Any]


class CustodianError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class DevCustodian:
    """Development stand-in for the identity extension.

    Answers the channel protocol with keys from a DomainKeyring. ``approve``
    is consulted before every signature and may be sync or async.
    """

    def __init__(
        self,
        bus: EventBus,
        keyring: Optional[DomainKeyring] = None,
        approve: Optional[Approver] = None,
        locked: bool = False,
        delay: float = 0.0,
        silent_actions: Optional[Set[str]] = None,
    ):
        self.bus = bus
        self.keyring = keyring or DomainKeyring.generate()
        self.approve = approve
        self.locked = locked
        self.delay = delay
        self.silent_actions = set(silent_actions or ())
        self.handled = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> "DevCustodian":
        if self._unsubscribe is None:
            self._unsubscribe = self.bus.subscribe(REQUEST_EVENT, self._on_request)
            logger.info("custodian_started", initialized=self.keyring.initialized)
        return self

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info("custodian_stopped", handled=self.handled)

    async def _on_request(self, detail: Any) -> None:
        request = parse_request(detail)
        if request is None:
            return
        if request.action in self.silent_actions:
            logger.debug("request_ignored", action=request.action, request_id=request.request_id)
            return
        if self.delay:
            await asyncio.sleep(self.delay)

        try:
            result = await self._dispatch(request)
            response = build_response(request.request_id, result=result)
        except CustodianError as e:
            logger.warning("request_refused", action=request.action, code=e.code)
            response = build_response(request.request_id, error_code=e.code, error_message=e.message)

        self.handled += 1
        await self.bus.publish(RESPONSE_EVENT, response)

    def _domain(self, request: SeedKeyRequest) -> str:
        payload = request.payload or {}
        origin_host = urlparse(request.origin).hostname or request.origin
        domain = payload.get("domain") or origin_host
        if domain != origin_host:
            raise CustodianError(ErrorCode.DOMAIN_MISMATCH.value, f"Domain {domain} does not match origin {origin_host}")
        return domain

    def _require_identity(self) -> None:
        if not self.keyring.initialized:
            raise CustodianError(ErrorCode.NOT_INITIALIZED.value, "Identity is not initialized")
        if self.locked:
            raise CustodianError(ErrorCode.LOCKED.value, "Extension is locked")

    async def _approved(self, action: str, payload: Dict[str, Any]) -> None:
        if self.approve is None:
            return
        decision = self.approve(action, payload)
        if inspect.isawaitable(decision):
            decision = await decision
        if not decision:
            raise CustodianError(ErrorCode.USER_REJECTED.value, "User rejected the request")

    async def _dispatch(self, request: SeedKeyRequest) -> Dict[str, Any]:
        action = request.action
        payload = request.payload or {}

        if action == "check_available":
            return {"available": True}
        if action == "is_initialized":
            return {"initialized": self.keyring.initialized}

        self._require_identity()
        domain = self._domain(request)

        if action == "get_public_key":
            return {"publicKey": self.keyring.public_key(domain), "domain": domain}

        if action == "sign_challenge":
            challenge = payload.get("challenge")
            if not isinstance(challenge, dict) or any(k not in challenge for k in REQUIRED_CHALLENGE_FIELDS):
                raise CustodianError(ErrorCode.INVALID_CHALLENGE.value, "Challenge is missing required fields")
            if challenge["domain"] != domain:
                raise CustodianError(ErrorCode.DOMAIN_MISMATCH.value, "Challenge was issued for another domain")
            await self._approved(action, payload)
            signature = self.keyring.sign(domain, challenge_bytes(challenge))
            return {"signature": signature, "publicKey": self.keyring.public_key(domain)}

        if action == "sign_message":
            message = payload.get("message")
            if not isinstance(message, str):
                raise CustodianError(ErrorCode.INVALID_CHALLENGE.value, "Message must be a string")
            await self._approved(action, payload)
            signature = self.keyring.sign(domain, message.encode("utf-8"))
            return {"signature": signature, "publicKey": self.keyring.public_key(domain), "message": message}

        raise CustodianError(ErrorCode.SERVER_ERROR.value, f"Unsupported action: {action}")
