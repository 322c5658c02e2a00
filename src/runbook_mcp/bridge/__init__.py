"""Correlation engine between MCP tool calls and the browser extension.

- RequestCorrelator: one outstanding task, resolved by response or timeout
- ProgressRelay: task updates -> numbered progress notifications
- CancellationForwarder: fire-and-forget task cancellation
- ExtensionBridge: facade wiring them to the peer slot and router
"""

from .cancellation import CancellationForwarder
from .correlator import (
    DEFAULT_TASK_TIMEOUT,
    FailureKind,
    RequestCorrelator,
    TaskOutcome,
)
from .extension import ExtensionBridge, ProgressNotifier
from .progress import ProgressNotification, ProgressRelay, ProgressToken

__all__ = [
    "CancellationForwarder",
    "DEFAULT_TASK_TIMEOUT",
    "FailureKind",
    "RequestCorrelator",
    "TaskOutcome",
    "ExtensionBridge",
    "ProgressNotifier",
    "ProgressNotification",
    "ProgressRelay",
    "ProgressToken",
]
