"""Extension wire protocol.

Defines the JSON messages exchanged with the browser extension and the
router that classifies inbound messages by their ``command`` field.
"""

from .messages import (
    InboundMessage,
    MessageKind,
    PeerCommand,
    TaskCancellation,
    TaskRequest,
)
from .router import MessageRouter

__all__ = [
    "InboundMessage",
    "MessageKind",
    "PeerCommand",
    "TaskCancellation",
    "TaskRequest",
    "MessageRouter",
]
