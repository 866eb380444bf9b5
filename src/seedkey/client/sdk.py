"""Registration and login flows over the custodian channel and the backend.

Each flow is a fixed sequence:

    register:      get_public_key -> POST /challenge (register)     -> sign_challenge -> POST /register
    authenticate:  get_public_key -> POST /challenge (authenticate) -> sign_challenge -> POST /verify
    auth:          authenticate, and on USER_NOT_FOUND only, register

Callers see a complete AuthResult or a SeedKeyError, nothing in between.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..bus.base import EventBus
from ..config import SeedKeyOptions
from ..errors import ErrorCode, SeedKeyError
from ..logs import enable_debug, get_logger
from ..models import (
    AuthOptions,
    AuthResult,
    ChallengePayload,
    ChallengeResponse,
    ExtensionStatus,
    PublicKeyResult,
    SignChallengeResult,
    SignMessageResult,
    TokenInfo,
    UserProfile,
)
from ..protocol.constants import EXTENSION_DOWNLOAD_URL, SDK_VERSION, ChallengeAction
from .api import ApiClient, decode_payload
from .device import device_name
from .result import Err, attempt
from .transport import CorrelatedTransport

logger = get_logger("SDK")

EXTENSION_MALFORMED = "Malformed response from extension"


def _short(key: str) -> str:
    return f"{key[:16]}..."


class SeedKey:
    def __init__(
        self,
        options: SeedKeyOptions,
        bus: EventBus,
        api: Optional[ApiClient] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.options = options
        if options.debug:
            enable_debug()
        self.transport = CorrelatedTransport(bus, origin=options.origin, timeout=options.timeout)
        self.api = api or ApiClient(options.backend_url, timeout=options.http_timeout, http=http)
        logger.info("sdk_initialized", version=SDK_VERSION, backend_url=options.backend_url, timeout=options.timeout)

    def destroy(self) -> None:
        logger.info("sdk_destroying", pending_requests=self.transport.pending_count)
        self.transport.destroy()

    async def aclose(self) -> None:
        self.destroy()
        await self.api.aclose()

    async def __aenter__(self) -> "SeedKey":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # =============================
    # Extension status
    # =============================

    async def is_available(self) -> bool:
        return await self.transport.is_available()

    async def is_initialized(self) -> bool:
        return await self.transport.is_initialized()

    async def check_extension(self) -> ExtensionStatus:
        return await self.transport.check_extension()

    async def get_extension_status(self) -> ExtensionStatus:
        """Like check_extension, but reports instead of raising."""
        if not await self.is_available():
            return ExtensionStatus(installed=False, initialized=False, download_url=EXTENSION_DOWNLOAD_URL)
        return ExtensionStatus(installed=True, initialized=await self.is_initialized())

    def get_download_url(self) -> str:
        return EXTENSION_DOWNLOAD_URL

    def get_version(self) -> str:
        return SDK_VERSION

    # =============================
    # Custodian calls
    # =============================

    async def get_public_key(self) -> str:
        response = await self.transport.send("get_public_key", {"domain": self.options.domain})
        result = decode_payload(PublicKeyResult, response, "get_public_key", EXTENSION_MALFORMED)
        logger.info("public_key_received", public_key=_short(result.public_key))
        return result.public_key

    async def sign_challenge(self, challenge: Optional[ChallengePayload]) -> SignChallengeResult:
        """Ask the custodian to sign the challenge exactly as the backend issued it."""
        logger.debug("challenge_sign_requested", action=(challenge or {}).get("action"))
        response = await self.transport.send("sign_challenge", {"challenge": challenge, "domain": self.options.domain})
        result = decode_payload(SignChallengeResult, response, "sign_challenge", EXTENSION_MALFORMED)
        logger.info("challenge_signed", signature_length=len(result.signature))
        return result

    async def sign_message(self, message: str) -> SignMessageResult:
        logger.debug("message_sign_requested", message_length=len(message))
        response = await self.transport.send("sign_message", {"message": message, "domain": self.options.domain})
        result = decode_payload(SignMessageResult, response, "sign_message", EXTENSION_MALFORMED)
        logger.info("message_signed", signature_length=len(result.signature))
        return result

    # =============================
    # Backend calls
    # =============================

    async def request_challenge(self, public_key: str, action: ChallengeAction) -> ChallengeResponse:
        logger.debug("challenge_requested", action=action)
        return await self.api.request_challenge(public_key, action)

    async def get_user(self, access_token: str) -> Optional[UserProfile]:
        return await self.api.get_user(access_token)

    async def logout(self, access_token: str) -> bool:
        return await self.api.logout(access_token)

    async def refresh_token(self, refresh_token: str) -> TokenInfo:
        return await self.api.refresh_token(refresh_token)

    # =============================
    # Flows
    # =============================

    def _metadata(self, opts: Optional[AuthOptions]) -> Dict[str, Any]:
        name = opts.metadata.device_name if opts and opts.metadata else None
        return {"deviceName": name or device_name(self.options.user_agent), "sdkVersion": SDK_VERSION}

    async def register(self, opts: Optional[AuthOptions] = None) -> AuthResult:
        logger.info("registration_started")
        try:
            public_key = await self.get_public_key()
            issued = await self.request_challenge(public_key, "register")
            signed = await self.sign_challenge(issued.challenge)
            result = await self.api.register(public_key, issued.challenge, signed.signature, self._metadata(opts))
        except SeedKeyError as e:
            logger.error("registration_failed", code=str(e.code), message=e.message)
            raise

        logger.info("registration_successful", user_id=result.user.id if result.user else None)
        return result.model_copy(update={"action": "register"})

    async def authenticate(self) -> AuthResult:
        logger.info("authentication_started")
        try:
            public_key = await self.get_public_key()
            issued = await self.request_challenge(public_key, "authenticate")
            signed = await self.sign_challenge(issued.challenge)
            result = await self.api.verify(issued.challenge_id, issued.challenge, signed.signature, public_key)
        except SeedKeyError as e:
            logger.error("authentication_failed", code=str(e.code), message=e.message)
            raise

        logger.info("authentication_successful", user_id=result.user.id if result.user else None)
        return result.model_copy(update={"action": "login"})

    async def auth(self, opts: Optional[AuthOptions] = None) -> AuthResult:
        """Log in, registering first-time users. Only USER_NOT_FOUND triggers the fallback."""
        outcome = await attempt(self.authenticate)
        if not isinstance(outcome, Err):
            return outcome.value
        if outcome.code != ErrorCode.USER_NOT_FOUND:
            raise outcome.error
        logger.info("user_not_found_registering")
        return await self.register(opts)
