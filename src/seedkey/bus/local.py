from __future__ import annotations
from typing import Any

from ..protocol.validation import json_copy
from .base import EventBus


class LocalEventBus(EventBus):
    """In-process bus. Delivery happens inside ``publish``, before it returns."""

    async def publish(self, topic: str, detail: Any) -> None:
        self._dispatch(topic, json_copy(detail))
