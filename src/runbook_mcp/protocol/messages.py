"""Message definitions for the extension wire protocol.

The extension and the bridge exchange whole JSON objects over the
WebSocket. Every message carries a ``command`` discriminator:

- Bridge -> extension: ``task-request`` and ``task-cancellation``
- Extension -> bridge: ``task-response`` (terminal) and ``task-update``
  (progress)

Example exchange:
    -> {"command": "task-request", "name": "runHeadlessTask", "args": {"prompt": "..."}}
    <- {"command": "task-update", "taskUpdate": {"role": "assistant", "data": "Opening page"}}
    <- {"command": "task-response", "result": {"taskResult": {"result": "done"}}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class PeerCommand(str, Enum):
    """Values of the ``command`` discriminator."""

    # Bridge -> extension
    TASK_REQUEST = "task-request"
    TASK_CANCELLATION = "task-cancellation"

    # Extension -> bridge
    TASK_RESPONSE = "task-response"
    TASK_UPDATE = "task-update"


class MessageKind(str, Enum):
    """How an inbound message is routed."""

    RESPONSE = "response"
    PROGRESS = "progress"
    OTHER = "other"


_KIND_BY_COMMAND = {
    PeerCommand.TASK_RESPONSE.value: MessageKind.RESPONSE,
    PeerCommand.TASK_UPDATE.value: MessageKind.PROGRESS,
}


class TaskRequest(BaseModel):
    """Ask the extension to run a capability."""

    command: Literal["task-request"] = PeerCommand.TASK_REQUEST.value
    name: str
    args: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


class TaskCancellation(BaseModel):
    """Ask the extension to stop the running task."""

    command: Literal["task-cancellation"] = PeerCommand.TASK_CANCELLATION.value

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


class _PeerEnvelope(BaseModel):
    """Loose envelope used only to validate inbound JSON objects."""

    model_config = ConfigDict(extra="allow")

    command: str | None = None


@dataclass(frozen=True)
class InboundMessage:
    """A parsed message received from the extension.

    Attributes:
        kind: Routing class derived from ``command``
        command: The raw discriminator value (None if absent)
        body: Every field of the message except ``command``
    """

    kind: MessageKind
    command: str | None
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, raw: str | bytes) -> InboundMessage:
        """Parse a raw frame.

        Raises:
            ValueError: If the frame is not a JSON object (pydantic's
                ValidationError is a ValueError subclass).
        """
        envelope = _PeerEnvelope.model_validate_json(raw)
        command = envelope.command
        return cls(
            kind=_KIND_BY_COMMAND.get(command or "", MessageKind.OTHER),
            command=command,
            body=dict(envelope.model_extra or {}),
        )

    @property
    def task_update(self) -> dict[str, Any]:
        """The ``taskUpdate`` object of a progress message (empty if missing)."""
        update = self.body.get("taskUpdate")
        return update if isinstance(update, dict) else {}
