"""WebSocket endpoint for the browser extension.

The extension connects here and stays connected while the side panel is
open with MCP enabled. Only one extension may be connected at a time.
"""

from __future__ import annotations

import logging

from starlette.routing import WebSocketRoute
from starlette.websockets import WebSocket

from ..bridge import ExtensionBridge
from ..transport.websocket import (
    ALREADY_CONNECTED_REASON,
    POLICY_VIOLATION_CODE,
    PeerConnection,
)

logger = logging.getLogger(__name__)


class PeerConnectionHandler:
    """Handles one extension WebSocket connection.

    Manages the connection lifecycle:
    - Accepts the handshake and claims the bridge's peer slot
    - Closes with 1008 if another extension already holds the slot
    - Feeds every received frame to the bridge's message router
    - Releases the slot on disconnect
    """

    def __init__(self, websocket: WebSocket, bridge: ExtensionBridge):
        self.bridge = bridge
        self.connection = PeerConnection(websocket)

    async def handle(self) -> None:
        """Main handler for the WebSocket connection."""
        await self.connection.accept()

        if not self.bridge.slot.attach(self.connection):
            await self.connection.close(code=POLICY_VIOLATION_CODE, reason=ALREADY_CONNECTED_REASON)
            return

        try:
            async for data in self.connection.receive_texts():
                await self.bridge.router.dispatch(data)
        except Exception as e:
            logger.exception(f"Extension WebSocket error: {e}")
        finally:
            self.bridge.slot.detach(self.connection)
            await self.connection.close()


async def extension_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint for the browser extension.

    URL: /

    Protocol:
    1. Extension connects; a second concurrent extension is closed with 1008
    2. Bridge sends task-request / task-cancellation
    3. Extension sends task-update (progress) and task-response (terminal)
    """
    bridge: ExtensionBridge = websocket.app.state.bridge
    handler = PeerConnectionHandler(websocket, bridge)
    await handler.handle()


# Route definitions
websocket_routes = [
    WebSocketRoute("/", extension_endpoint),
]
