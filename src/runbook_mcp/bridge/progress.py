"""Progress relay from extension task updates to MCP progress notifications.

The extension emits ``task-update`` messages while a task runs. When the
MCP client supplied a progress token with its tool call, each update is
turned into a numbered notification scoped to that token.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

ProgressToken = str | int

# Task update roles with special handling
TOOL_CALL_ROLE = "tool-call"
TOOL_RESPONSE_ROLE = "tool-response"


@dataclass(frozen=True)
class ProgressNotification:
    """One progress notification ready to send to the MCP client."""

    token: ProgressToken
    sequence: int
    message: str


def describe_tool_call(data: Any) -> str:
    """Human-readable text for a tool-call update.

    Prefers the call's ``arguments.description`` and falls back to its name.
    """
    if not isinstance(data, dict):
        return render_data(data)
    arguments = data.get("arguments")
    if isinstance(arguments, dict) and arguments.get("description"):
        return str(arguments["description"])
    return str(data.get("name") or "")


def render_data(data: Any) -> str:
    """Render an update's ``data`` field as text."""
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return json.dumps(data, ensure_ascii=False, default=str)


class ProgressRelay:
    """Maps task updates onto an increasing progress sequence.

    The sequence restarts at 1 each time a token is set. While no token is
    set, updates produce nothing.
    """

    def __init__(self) -> None:
        self._token: ProgressToken | None = None
        self._count = 0

    @property
    def token(self) -> ProgressToken | None:
        return self._token

    @property
    def count(self) -> int:
        return self._count

    def set_context(self, token: ProgressToken | None) -> None:
        """Scope subsequent notifications to ``token`` (None disables)."""
        self._token = token
        self._count = 0

    def on_progress_event(self, update: dict[str, Any]) -> ProgressNotification | None:
        """Turn one ``taskUpdate`` payload into a notification.

        Returns:
            The notification, or None if relaying is disabled or the update
            is a suppressed tool-response.
        """
        if self._token is None:
            return None

        role = update.get("role")
        if role == TOOL_RESPONSE_ROLE:
            return None

        data = update.get("data")
        message = describe_tool_call(data) if role == TOOL_CALL_ROLE else render_data(data)

        self._count += 1
        return ProgressNotification(token=self._token, sequence=self._count, message=message)
