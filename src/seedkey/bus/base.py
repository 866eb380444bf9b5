from __future__ import annotations
import asyncio
import inspect
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable, Dict, List, Set

from ..logs import get_logger

logger = get_logger("Bus")

Handler = Callable[[Any], Any]


class EventBus(ABC):
    """Broadcast publish/subscribe port with named topics and JSON-serialisable details."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)
        self._tasks: Set[asyncio.Task] = set()

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, []))

    def _dispatch(self, topic: str, detail: Any) -> None:
        """Deliver to every subscriber; one failing handler does not stop the rest."""
        # copy: handlers may unsubscribe while being called
        for handler in list(self._handlers.get(topic, [])):
            try:
                result = handler(detail)
            except Exception as e:
                logger.error("handler_failed", topic=topic, error=str(e))
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(lambda t, topic=topic: self._task_done(topic, t))

    def _task_done(self, topic: str, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("handler_failed", topic=topic, error=str(error))

    async def drain(self) -> None:
        """Wait for handler tasks scheduled so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @abstractmethod
    async def publish(self, topic: str, detail: Any) -> None:
        ...
