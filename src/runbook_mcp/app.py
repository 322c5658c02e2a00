"""Extension-facing ASGI application.

Creates the Starlette application served on the extension port:
- / - WebSocket endpoint for the browser extension
- /health - Health check with connection state
"""

from starlette.applications import Starlette
from starlette.routing import Route, WebSocketRoute

from .bridge import ExtensionBridge
from .routes import health_routes, websocket_routes


def create_app(bridge: ExtensionBridge) -> Starlette:
    """Create the application for ``bridge``.

    Args:
        bridge: The bridge shared with the MCP server

    Returns:
        Configured Starlette application
    """
    routes: list[Route | WebSocketRoute] = []
    routes.extend(health_routes)
    routes.extend(websocket_routes)

    app = Starlette(routes=routes)
    app.state.bridge = bridge
    return app
