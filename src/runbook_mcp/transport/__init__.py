"""Transport layer for the browser extension connection."""

from .websocket import (
    ALREADY_CONNECTED_REASON,
    POLICY_VIOLATION_CODE,
    Peer,
    PeerConnection,
    PeerSlot,
)

__all__ = [
    "ALREADY_CONNECTED_REASON",
    "POLICY_VIOLATION_CODE",
    "Peer",
    "PeerConnection",
    "PeerSlot",
]
