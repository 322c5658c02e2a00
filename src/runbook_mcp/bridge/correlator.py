"""Request/response correlation with the browser extension.

Turns the event-driven extension connection into an awaitable call:

1. ``invoke()`` sends a ``task-request`` to the active peer
2. The next ``task-response`` routed to ``resolve()`` completes the call
3. If none arrives before the deadline the call fails with a timeout

Only one call is outstanding at a time. Serializing calls is the caller's
job (see ``runbook_mcp.guard``); this class assumes single-flight usage.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..protocol.messages import TaskRequest
from ..transport.websocket import PeerSlot

logger = logging.getLogger(__name__)

# Five minutes
DEFAULT_TASK_TIMEOUT = 300.0

NOT_CONNECTED_MESSAGE = (
    "Browser extension not connected. Please ensure the Chrome extension "
    "is running and connected to the WebSocket server."
)
DISCONNECTED_MESSAGE = "Browser extension disconnected before the task completed"
UNKNOWN_PEER_ERROR = "Unknown error from browser extension"


class FailureKind(str, Enum):
    """Why a call did not succeed."""

    NOT_CONNECTED = "not_connected"
    PEER_ERROR = "peer_error"
    TIMEOUT = "timeout"
    DISCONNECTED = "disconnected"


@dataclass
class TaskOutcome:
    """Result of a task invocation.

    Attributes:
        success: Whether the extension completed the task
        result: Response body without the ``command`` field (on success)
        error: Human-readable error message (on failure)
        kind: Failure category (on failure)
    """

    success: bool = True
    result: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    kind: FailureKind | None = None

    @classmethod
    def ok(cls, result: dict[str, Any]) -> TaskOutcome:
        return cls(success=True, result=result)

    @classmethod
    def failure(cls, kind: FailureKind, error: str) -> TaskOutcome:
        return cls(success=False, error=error, kind=kind)


@dataclass
class PendingCall:
    """The single outstanding request."""

    name: str
    future: asyncio.Future[TaskOutcome]


def format_timeout(seconds: float) -> str:
    """Render a timeout for messages (300.0 -> "300", 0.5 -> "0.5")."""
    return f"{seconds:g}"


def outcome_from_response(body: dict[str, Any]) -> TaskOutcome:
    """Map a ``task-response`` body to an outcome."""
    error = body.get("error")
    if error:
        message = body.get("message") or (error if isinstance(error, str) else UNKNOWN_PEER_ERROR)
        return TaskOutcome.failure(FailureKind.PEER_ERROR, str(message))
    return TaskOutcome.ok(dict(body))


class RequestCorrelator:
    """Issues one call to the extension and waits for its terminal response."""

    def __init__(self, slot: PeerSlot, timeout: float = DEFAULT_TASK_TIMEOUT) -> None:
        self._slot = slot
        self.timeout = timeout
        self._pending: PendingCall | None = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    async def invoke(self, name: str, args: dict[str, Any]) -> TaskOutcome:
        """Run a capability on the extension.

        Args:
            name: Capability name (e.g. "runHeadlessTask")
            args: Argument mapping forwarded verbatim

        Returns:
            The outcome. Peer-facing failures are returned, never raised.
        """
        peer = self._slot.active
        if peer is None:
            return TaskOutcome.failure(FailureKind.NOT_CONNECTED, NOT_CONNECTED_MESSAGE)

        future: asyncio.Future[TaskOutcome] = asyncio.get_running_loop().create_future()
        pending = PendingCall(name=name, future=future)
        self._pending = pending

        try:
            try:
                await peer.send_json(TaskRequest(name=name, args=args).to_wire())
            except Exception as e:
                logger.warning(f"Failed to send task to extension: {e}")
                return TaskOutcome.failure(
                    FailureKind.DISCONNECTED, f"Failed to send task to browser extension: {e}"
                )

            logger.debug(f"Task {name!r} sent, waiting up to {format_timeout(self.timeout)}s")
            try:
                return await asyncio.wait_for(future, timeout=self.timeout)
            except TimeoutError:
                logger.warning(f"Task {name!r} timed out after {format_timeout(self.timeout)}s")
                return TaskOutcome.failure(
                    FailureKind.TIMEOUT,
                    f"Tool invocation timeout after {format_timeout(self.timeout)} seconds",
                )
        finally:
            self._release(pending)

    def resolve(self, body: dict[str, Any]) -> bool:
        """Deliver a terminal response to the pending call.

        Returns:
            True if a pending call was resolved, False if the response was
            late or unsolicited and has been ignored.
        """
        pending = self._pending
        if pending is None or pending.future.done():
            logger.debug("Ignoring task-response with no pending call")
            return False

        outcome = outcome_from_response(body)
        logger.debug(f"Task {pending.name!r} answered (success={outcome.success})")
        pending.future.set_result(outcome)
        self._release(pending)
        return True

    def fail_pending(self, kind: FailureKind, message: str) -> bool:
        """Fail the pending call, if any."""
        pending = self._pending
        if pending is None or pending.future.done():
            return False

        logger.warning(f"Task {pending.name!r} failed ({kind.value}): {message}")
        pending.future.set_result(TaskOutcome.failure(kind, message))
        self._release(pending)
        return True

    def _release(self, pending: PendingCall) -> None:
        """Deregister ``pending``; later calls for the same call are no-ops."""
        if self._pending is pending:
            self._pending = None
