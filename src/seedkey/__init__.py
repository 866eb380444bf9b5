"""SeedKey passwordless authentication client.

    from seedkey import SeedKey, SeedKeyOptions, LocalEventBus

    async with SeedKey(SeedKeyOptions(backend_url="https://api.example.com"), bus) as sdk:
        result = await sdk.auth()
"""

from .bus import EventBus, LocalEventBus, WebSocketEventBus
from .client.api import ApiClient
from .client.result import Err, Ok
from .client.sdk import SeedKey
from .client.transport import CorrelatedTransport
from .config import SeedKeyOptions
from .errors import ErrorCode, ExtensionNotConfiguredError, ExtensionNotFoundError, SeedKeyError
from .logs import configure_logging, disable_debug, enable_debug, get_logger
from .models import (
    AuthOptions,
    AuthResult,
    Challenge,
    ChallengeResponse,
    ExtensionStatus,
    PublicKeyInfo,
    PublicKeyResult,
    SignChallengeResult,
    SignMessageResult,
    TokenInfo,
    UserInfo,
    UserProfile,
)
from .protocol.constants import (
    EXTENSION_DOWNLOAD_URL,
    REQUEST_EVENT,
    RESPONSE_EVENT,
    SDK_VERSION,
)
from .registry import get_api_client, get_seedkey, reset_api_client, reset_seedkey
from .storage import JsonFileStore, MemoryStore, Session, SessionLedger


def get_request_event_name() -> str:
    return REQUEST_EVENT


def get_response_event_name() -> str:
    return RESPONSE_EVENT


__all__ = [
    "ApiClient",
    "AuthOptions",
    "AuthResult",
    "Challenge",
    "ChallengeResponse",
    "CorrelatedTransport",
    "Err",
    "ErrorCode",
    "EventBus",
    "EXTENSION_DOWNLOAD_URL",
    "ExtensionNotConfiguredError",
    "ExtensionNotFoundError",
    "ExtensionStatus",
    "JsonFileStore",
    "LocalEventBus",
    "MemoryStore",
    "Ok",
    "PublicKeyInfo",
    "PublicKeyResult",
    "REQUEST_EVENT",
    "RESPONSE_EVENT",
    "SDK_VERSION",
    "SeedKey",
    "SeedKeyError",
    "SeedKeyOptions",
    "Session",
    "SessionLedger",
    "SignChallengeResult",
    "SignMessageResult",
    "TokenInfo",
    "UserInfo",
    "UserProfile",
    "WebSocketEventBus",
    "configure_logging",
    "disable_debug",
    "enable_debug",
    "get_api_client",
    "get_logger",
    "get_request_event_name",
    "get_response_event_name",
    "get_seedkey",
    "reset_api_client",
    "reset_seedkey",
]
