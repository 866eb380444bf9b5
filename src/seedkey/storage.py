"""Token persistence over a string key-value store."""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from .logs import get_logger
from .models import TokenInfo
from .protocol.constants import SESSION_EXPIRY_BUFFER_MS

logger = get_logger("Storage")

ACCESS_TOKEN_KEY = "seedkey_access_token"
REFRESH_TOKEN_KEY = "seedkey_refresh_token"
EXPIRES_AT_KEY = "seedkey_expires_at"
USER_ID_KEY = "seedkey_user_id"

MANAGED_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, EXPIRES_AT_KEY, USER_ID_KEY)


def now_ms() -> int:
    return int(time.time() * 1000)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """One JSON object of string keys in a file, rewritten on every change."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._ensure_file()

    def _ensure_file(self) -> None:
        if not os.path.exists(self.path):
            self._save({})

    def _load(self) -> Dict[str, str]:
        with open(self.path, "r", encoding="utf-8") as handle:
            try:
                payload = json.load(handle)
            except ValueError as e:
                logger.warning("store_unreadable", path=self.path, error=str(e))
                return {}
        return payload if isinstance(payload, dict) else {}

    def _save(self, payload: Dict[str, str]) -> None:
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        payload = self._load()
        payload[key] = value
        self._save(payload)

    def remove(self, key: str) -> None:
        payload = self._load()
        if key in payload:
            del payload[key]
            self._save(payload)


@dataclass(frozen=True)
class Session:
    access_token: Optional[str]
    refresh_token: Optional[str]
    user_id: Optional[str]
    is_expired: bool


class SessionLedger:
    def __init__(self, store: KeyValueStore, clock: Callable[[], int] = now_ms) -> None:
        self.store = store
        self.clock = clock

    def save(self, tokens: TokenInfo, user_id: Optional[str] = None) -> Optional[int]:
        """Persist tokens; the absolute expiry is fixed here and never recomputed.

        Fields the backend left out are not written. Without ``expires_in``
        no expiry is stored and the session reads as expired.
        """
        if tokens.access_token is not None:
            self.store.set(ACCESS_TOKEN_KEY, tokens.access_token)
        if tokens.refresh_token is not None:
            self.store.set(REFRESH_TOKEN_KEY, tokens.refresh_token)
        expires_at = None
        if tokens.expires_in is not None:
            expires_at = self.clock() + tokens.expires_in * 1000
            self.store.set(EXPIRES_AT_KEY, str(expires_at))
        else:
            self.store.remove(EXPIRES_AT_KEY)
        if user_id:
            self.store.set(USER_ID_KEY, user_id)
        logger.info("tokens_saved", expires_at=expires_at, has_user_id=bool(user_id))
        return expires_at

    def get_access_token(self) -> Optional[str]:
        return self.store.get(ACCESS_TOKEN_KEY)

    def get_refresh_token(self) -> Optional[str]:
        return self.store.get(REFRESH_TOKEN_KEY)

    def get_user_id(self) -> Optional[str]:
        return self.store.get(USER_ID_KEY)

    def has_token(self) -> bool:
        return bool(self.get_access_token())

    def expires_at(self) -> Optional[int]:
        raw = self.store.get(EXPIRES_AT_KEY)
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("invalid_expiry", value=raw)
            return None

    def is_expired(self) -> bool:
        # expired 5 minutes ahead of the real expiry
        expires_at = self.expires_at()
        if expires_at is None:
            logger.debug("no_expiration_time")
            return True
        remaining = expires_at - self.clock() - SESSION_EXPIRY_BUFFER_MS
        logger.debug("expiry_checked", expired=remaining < 0, remaining_ms=remaining)
        return remaining < 0

    def clear(self) -> None:
        logger.info("tokens_cleared")
        for key in MANAGED_KEYS:
            self.store.remove(key)

    def get_session(self) -> Session:
        return Session(
            access_token=self.get_access_token(),
            refresh_token=self.get_refresh_token(),
            user_id=self.get_user_id(),
            is_expired=self.is_expired(),
        )
