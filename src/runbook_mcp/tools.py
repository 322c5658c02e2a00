"""The ``browser-agent`` MCP tool.

Validates tool arguments, forwards the prompt to the extension as a
``runHeadlessTask`` capability call and renders the outcome as MCP text
content. Every failure is rendered as ``"Error: ..."`` text so the client
can always show something to the user.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import mcp.types as types

from .bridge import ExtensionBridge, ProgressNotifier, ProgressToken, TaskOutcome
from .guard import CallGuard, CallInProgressError

logger = logging.getLogger(__name__)

TOOL_NAME = "browser-agent"
HEADLESS_TASK_CAPABILITY = "runHeadlessTask"

BROWSER_AGENT_TOOL = types.Tool(
    name=TOOL_NAME,
    description="Run a task in Chrome browser with AI and automation capabilities",
    inputSchema={
        "type": "object",
        "properties": {
            "prompt": {
                "type": "string",
                "description": "The task prompt for the AI agent to execute",
            },
        },
        "required": ["prompt"],
    },
)

EXTENSION_NOT_CONNECTED = (
    "Browser extension not connected. Please ensure the extension side panel "
    "is open with MCP enabled."
)
CALL_IN_PROGRESS = "Another tool call is already in progress. Please wait for it to complete."
UNEXPECTED_RESPONSE = "Unexpected response format from browser extension"


def text_result(text: str) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=text)]


def error_result(message: str) -> list[types.TextContent]:
    return text_result(f"Error: {message}")


def extract_task_result(result: dict[str, Any]) -> str | None:
    """Pull ``result.taskResult.result`` out of a runHeadlessTask response."""
    inner = result.get("result")
    if not isinstance(inner, dict):
        return None
    task_result = inner.get("taskResult")
    if not isinstance(task_result, dict):
        return None
    text = task_result.get("result")
    return str(text) if text else None


def render_outcome(outcome: TaskOutcome) -> list[types.TextContent]:
    """Render a task outcome as MCP text content."""
    if not outcome.success:
        return error_result(outcome.error or "Unknown error")

    text = extract_task_result(outcome.result)
    if text is None:
        return error_result(UNEXPECTED_RESPONSE)
    return text_result(text)


class BrowserAgentTool:
    """Runs ``browser-agent`` tool calls through the extension bridge."""

    def __init__(self, bridge: ExtensionBridge, guard: CallGuard | None = None) -> None:
        self._bridge = bridge
        self._guard = guard or CallGuard()
        self._tasks: set[asyncio.Task[TaskOutcome]] = set()

    @property
    def guard(self) -> CallGuard:
        return self._guard

    async def call(
        self,
        name: str,
        arguments: dict[str, Any] | None,
        *,
        progress_token: ProgressToken | None = None,
        notify: ProgressNotifier | None = None,
    ) -> list[types.TextContent]:
        """Handle one tools/call request.

        Args:
            name: Requested tool name
            arguments: Tool arguments from the client
            progress_token: Token from the request's ``_meta``, if any
            notify: Async callback that sends a progress notification

        Returns:
            MCP text content (errors rendered as text)
        """
        if name != TOOL_NAME:
            return error_result(f"Unknown tool: {name}")

        if not isinstance(arguments, dict):
            return error_result("Invalid arguments")

        prompt = arguments.get("prompt")
        if not prompt or not isinstance(prompt, str):
            return error_result("Prompt is required and must be a string")

        if not self._bridge.is_connected:
            return error_result(EXTENSION_NOT_CONNECTED)

        try:
            self._guard.acquire()
        except CallInProgressError:
            logger.warning("Rejected tool call: another call is in progress")
            return error_result(CALL_IN_PROGRESS)

        # The task owns the guard and the pending call. Cancelling the tool
        # call only stops waiting for it.
        task = asyncio.get_running_loop().create_task(
            self._run(prompt, progress_token, notify)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        try:
            outcome = await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.done():
                logger.info("Tool call cancelled, forwarding cancellation to extension")
                self._bridge.set_progress_token(None)
                self._bridge.cancel()
            raise

        return render_outcome(outcome)

    async def _run(
        self,
        prompt: str,
        progress_token: ProgressToken | None,
        notify: ProgressNotifier | None,
    ) -> TaskOutcome:
        """Run the task while holding the guard; releases it when the task ends."""
        try:
            self._bridge.set_progress_token(progress_token, notify)
            outcome = await self._bridge.invoke_task(
                HEADLESS_TASK_CAPABILITY, {"prompt": prompt}
            )
            if not outcome.success:
                logger.info(f"Task ended without success ({outcome.kind}): {outcome.error}")
            return outcome
        finally:
            self._bridge.set_progress_token(None)
            self._guard.release()
