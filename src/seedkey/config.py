from __future__ import annotations
import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

from .protocol.constants import DEFAULT_TIMEOUT_S, HTTP_TIMEOUT_S


class SeedKeyOptions(BaseModel):
    backend_url: str
    timeout: float = DEFAULT_TIMEOUT_S
    origin: str = "http://localhost"
    user_agent: Optional[str] = None
    debug: bool = False
    http_timeout: float = HTTP_TIMEOUT_S

    @field_validator("backend_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("timeout", "http_timeout")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @property
    def domain(self) -> str:
        return urlparse(self.origin).hostname or self.origin

    @classmethod
    def from_env(cls, **overrides) -> "SeedKeyOptions":
        values = {}
        if os.environ.get("SEEDKEY_BACKEND_URL"):
            values["backend_url"] = os.environ["SEEDKEY_BACKEND_URL"]
        if os.environ.get("SEEDKEY_TIMEOUT"):
            values["timeout"] = float(os.environ["SEEDKEY_TIMEOUT"])
        if os.environ.get("SEEDKEY_ORIGIN"):
            values["origin"] = os.environ["SEEDKEY_ORIGIN"]
        if os.environ.get("SEEDKEY_DEBUG"):
            values["debug"] = os.environ["SEEDKEY_DEBUG"].lower() in ("1", "true", "yes")
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
