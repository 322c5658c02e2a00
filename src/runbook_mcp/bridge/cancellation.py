"""Best-effort cancellation forwarding to the browser extension."""

from __future__ import annotations

import asyncio
import logging

from ..protocol.messages import TaskCancellation
from ..transport.websocket import Peer, PeerSlot

logger = logging.getLogger(__name__)


class CancellationForwarder:
    """Sends ``task-cancellation`` without waiting for anything.

    Cancellation is advisory: the extension is expected to stop and still
    answer through the normal ``task-response`` path. The pending call is
    never touched here.
    """

    def __init__(self, slot: PeerSlot) -> None:
        self._slot = slot
        self._tasks: set[asyncio.Task[None]] = set()

    def cancel(self) -> bool:
        """Schedule a cancellation message.

        Returns:
            True if a message was scheduled, False if no peer is connected.
        """
        peer = self._slot.active
        if peer is None:
            return False

        task = asyncio.get_running_loop().create_task(self._send(peer))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _send(self, peer: Peer) -> None:
        try:
            await peer.send_json(TaskCancellation().to_wire())
            logger.info("Sent task cancellation to extension")
        except Exception as e:
            logger.warning(f"Failed to send task cancellation: {e}")
