"""Process-wide default instances.

Construct once with options, reuse afterwards; ``reset_*`` tears the
instance down and allows a fresh construction. The classes themselves do
not depend on this module.
"""

from __future__ import annotations

from typing import Callable, Dict, Generic, Optional, TypeVar

from .bus.base import EventBus
from .bus.local import LocalEventBus
from .client.api import ApiClient
from .client.sdk import SeedKey
from .config import SeedKeyOptions

T = TypeVar("T")


class DefaultInstance(Generic[T]):
    def __init__(self, name: str, teardown: Optional[Callable[[T], None]] = None) -> None:
        self.name = name
        self._teardown = teardown
        self._instance: Optional[T] = None

    def get(self, factory: Optional[Callable[[], T]] = None) -> T:
        if self._instance is None and factory is not None:
            self._instance = factory()
        if self._instance is None:
            raise RuntimeError(f"{self.name} not initialized. Call get with options first.")
        return self._instance

    def reset(self) -> None:
        instance, self._instance = self._instance, None
        if instance is not None and self._teardown is not None:
            self._teardown(instance)

    @property
    def initialized(self) -> bool:
        return self._instance is not None


_registry: Dict[str, DefaultInstance] = {
    "seedkey": DefaultInstance("SeedKey SDK", teardown=lambda sdk: sdk.destroy()),
    # the http client is closed by its owner, not here; reset only forgets it
    "api": DefaultInstance("ApiClient"),
}


def get_seedkey(options: Optional[SeedKeyOptions] = None, bus: Optional[EventBus] = None) -> SeedKey:
    factory = None
    if options is not None:
        factory = lambda: SeedKey(options, bus or LocalEventBus())  # noqa: E731
    return _registry["seedkey"].get(factory)


def reset_seedkey() -> None:
    _registry["seedkey"].reset()


def get_api_client(base_url: Optional[str] = None) -> ApiClient:
    factory = (lambda: ApiClient(base_url)) if base_url else None
    return _registry["api"].get(factory)


def reset_api_client() -> None:
    _registry["api"].reset()
