"""Extension bridge facade.

Wires the peer slot, message router, correlator, progress relay and
cancellation forwarder into the single object the MCP layer and the
WebSocket route share.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..protocol.messages import InboundMessage
from ..protocol.router import MessageRouter
from ..transport.websocket import Peer, PeerSlot
from .cancellation import CancellationForwarder
from .correlator import (
    DEFAULT_TASK_TIMEOUT,
    DISCONNECTED_MESSAGE,
    FailureKind,
    RequestCorrelator,
    TaskOutcome,
)
from .progress import ProgressNotification, ProgressRelay, ProgressToken

logger = logging.getLogger(__name__)

ProgressNotifier = Callable[[ProgressNotification], Awaitable[None]]


class ExtensionBridge:
    """Single-peer bridge to the browser extension.

    Usage:
        bridge = ExtensionBridge()
        bridge.set_progress_token(token, notify)
        outcome = await bridge.invoke_task("runHeadlessTask", {"prompt": "..."})
    """

    def __init__(
        self,
        *,
        task_timeout: float = DEFAULT_TASK_TIMEOUT,
        fail_pending_on_disconnect: bool = True,
    ) -> None:
        """Initialize the bridge.

        Args:
            task_timeout: Seconds to wait for a terminal response
            fail_pending_on_disconnect: Fail a pending call as soon as the
                extension disconnects instead of waiting for the timeout
        """
        self.fail_pending_on_disconnect = fail_pending_on_disconnect
        self.slot = PeerSlot(on_disconnected=self._handle_disconnected)
        self.correlator = RequestCorrelator(self.slot, timeout=task_timeout)
        self.progress = ProgressRelay()
        self.cancellation = CancellationForwarder(self.slot)
        self.router = MessageRouter(
            on_response=self.correlator.resolve,
            on_progress=self._relay_progress,
            on_unhandled=self._handle_unhandled,
        )
        self._notify: ProgressNotifier | None = None

    @property
    def is_connected(self) -> bool:
        return self.slot.is_connected

    @property
    def has_pending_call(self) -> bool:
        return self.correlator.has_pending

    async def invoke_task(self, name: str, args: dict[str, Any]) -> TaskOutcome:
        """Run a capability on the extension and wait for its outcome."""
        return await self.correlator.invoke(name, args)

    def set_progress_token(
        self,
        token: ProgressToken | None,
        notify: ProgressNotifier | None = None,
    ) -> None:
        """Scope progress to ``token`` and deliver notifications via ``notify``."""
        self.progress.set_context(token)
        self._notify = notify if token is not None else None

    def cancel(self) -> bool:
        """Forward a cancellation to the extension (fire-and-forget)."""
        return self.cancellation.cancel()

    async def _relay_progress(self, update: dict[str, Any]) -> None:
        notification = self.progress.on_progress_event(update)
        if notification is None or self._notify is None:
            return
        await self._notify(notification)

    def _handle_disconnected(self, peer: Peer) -> None:
        if self.fail_pending_on_disconnect:
            self.correlator.fail_pending(FailureKind.DISCONNECTED, DISCONNECTED_MESSAGE)

    def _handle_unhandled(self, message: InboundMessage) -> None:
        logger.debug(f"Ignoring extension message with command {message.command!r}")
