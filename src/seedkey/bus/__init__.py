from .base import EventBus, Handler
from .local import LocalEventBus
from .websocket import WebSocketEventBus

__all__ = ["EventBus", "Handler", "LocalEventBus", "WebSocketEventBus"]
