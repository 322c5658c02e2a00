"""HTTP and WebSocket routes served on the extension port."""

from .health import health_routes
from .websocket import websocket_routes

__all__ = [
    "health_routes",
    "websocket_routes",
]
