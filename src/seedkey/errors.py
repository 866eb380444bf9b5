from __future__ import annotations
from enum import Enum
from typing import Any, Dict, Optional, Union

from .protocol.constants import EXTENSION_DOWNLOAD_URL


class ErrorCode(str, Enum):
    # custodian reachability
    EXTENSION_NOT_FOUND = "EXTENSION_NOT_FOUND"
    EXTENSION_NOT_CONFIGURED = "EXTENSION_NOT_CONFIGURED"
    NOT_INITIALIZED = "NOT_INITIALIZED"
    LOCKED = "LOCKED"
    TIMEOUT = "TIMEOUT"

    # user decision
    USER_REJECTED = "USER_REJECTED"
    BIOMETRIC_FAILED = "BIOMETRIC_FAILED"

    # custodian-side validation
    DOMAIN_MISMATCH = "DOMAIN_MISMATCH"
    INVALID_CHALLENGE = "INVALID_CHALLENGE"

    # transport
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"

    # challenge lifecycle
    CHALLENGE_EXPIRED = "CHALLENGE_EXPIRED"
    NONCE_REUSED = "NONCE_REUSED"

    # account state
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_EXISTS = "USER_EXISTS"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_TOKEN = "INVALID_TOKEN"

    def __str__(self) -> str:
        return self.value


def normalize_code(code: Union[ErrorCode, str, None], default: ErrorCode = ErrorCode.SERVER_ERROR) -> Union[ErrorCode, str]:
    """Map a wire code onto the taxonomy; unknown codes are kept verbatim."""
    if not code:
        return default
    if isinstance(code, ErrorCode):
        return code
    try:
        return ErrorCode(code)
    except ValueError:
        return str(code)


class SeedKeyError(Exception):
    """Every failure surfaced to callers. Dispatch on ``code``."""

    def __init__(
        self,
        code: Union[ErrorCode, str],
        message: str,
        hint: Optional[str] = None,
        download_url: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = normalize_code(code)
        self.message = message
        self.hint = hint
        self.download_url = download_url

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": str(self.code), "message": self.message}
        if self.hint is not None:
            out["hint"] = self.hint
        if self.download_url is not None:
            out["downloadUrl"] = self.download_url
        return out

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={str(self.code)!r}, message={self.message!r})"


class ExtensionNotFoundError(SeedKeyError):
    def __init__(self, message: str = "SeedKey extension not found. Please install it."):
        super().__init__(
            ErrorCode.EXTENSION_NOT_FOUND,
            message,
            hint="Install SeedKey browser extension",
            download_url=EXTENSION_DOWNLOAD_URL,
        )


class ExtensionNotConfiguredError(SeedKeyError):
    def __init__(self, message: str = "SeedKey extension is not configured. Please set up your identity."):
        super().__init__(
            ErrorCode.EXTENSION_NOT_CONFIGURED,
            message,
            hint="Open SeedKey extension and create your identity",
        )


def destroyed_error() -> SeedKeyError:
    return SeedKeyError(ErrorCode.TIMEOUT, "SDK destroyed")
