"""WebSocket transport for the browser extension.

The extension is the only WebSocket client the bridge talks to. This
module wraps a Starlette WebSocket as a ``PeerConnection`` and provides
the ``PeerSlot`` that holds at most one live connection at a time.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any, Protocol

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)

# Close code and reason used when a second extension tries to connect
POLICY_VIOLATION_CODE = 1008
ALREADY_CONNECTED_REASON = "Another client is already connected"


class Peer(Protocol):
    """What the bridge needs from a connected extension."""

    @property
    def is_open(self) -> bool: ...

    async def send_json(self, payload: dict[str, Any]) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class PeerConnection:
    """Server-side handle for one extension WebSocket."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket
        self._send_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        """Check if both sides of the WebSocket are still connected."""
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def accept(self) -> None:
        """Complete the WebSocket handshake."""
        await self._websocket.accept()

    async def send_json(self, payload: dict[str, Any]) -> None:
        """Send one JSON object as a text frame."""
        async with self._send_lock:
            await self._websocket.send_text(json.dumps(payload))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        """Close the WebSocket if it is still open."""
        if self.is_open:
            await self._websocket.close(code=code, reason=reason)

    async def receive_texts(self) -> AsyncIterator[str | bytes]:
        """Yield raw frames until the extension disconnects."""
        try:
            while True:
                message = await self._websocket.receive()
                if message["type"] == "websocket.disconnect":
                    return
                data = message.get("text")
                if data is None:
                    data = message.get("bytes")
                if data is not None:
                    yield data
        except WebSocketDisconnect:
            return


class PeerSlot:
    """Holds the at-most-one active extension connection.

    A candidate is accepted only while no open peer is held. A close
    notification for a handle that is no longer the active one is ignored,
    so a stale connection can never clear a newer peer.
    """

    def __init__(
        self,
        on_connected: Callable[[Peer], None] | None = None,
        on_disconnected: Callable[[Peer], None] | None = None,
    ) -> None:
        self._peer: Peer | None = None
        self._on_connected = on_connected
        self._on_disconnected = on_disconnected

    @property
    def active(self) -> Peer | None:
        """The connected peer, or None if there is no open peer."""
        if self._peer is not None and self._peer.is_open:
            return self._peer
        return None

    @property
    def is_connected(self) -> bool:
        return self.active is not None

    def attach(self, candidate: Peer) -> bool:
        """Try to make ``candidate`` the active peer.

        Returns:
            True if accepted, False if another open peer is already held.
        """
        if self.active is not None:
            logger.warning("Rejecting new extension connection - already connected")
            return False

        self._peer = candidate
        logger.info("Browser extension connected")
        if self._on_connected:
            self._on_connected(candidate)
        return True

    def detach(self, peer: Peer) -> bool:
        """Clear the slot if ``peer`` is the active one.

        Returns:
            True if the slot was cleared, False for a stale handle.
        """
        if self._peer is not peer:
            return False

        self._peer = None
        logger.info("Browser extension disconnected")
        if self._on_disconnected:
            self._on_disconnected(peer)
        return True
