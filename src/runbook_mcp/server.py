"""MCP server exposing the browser-agent tool over stdio.

Two transports run in one event loop:
- MCP JSON-RPC over stdin/stdout for the tool-calling client
- A WebSocket listener (uvicorn + Starlette) for the browser extension

CRITICAL: stdout belongs to the MCP protocol. Nothing else may write to
it; all logging goes to stderr (see ``cli.configure_stdio_logging``).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

import mcp.types as types
import uvicorn
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from . import __version__
from .app import create_app
from .bridge import ExtensionBridge, ProgressNotification
from .config import BridgeSettings
from .tools import BROWSER_AGENT_TOOL, BrowserAgentTool

logger = logging.getLogger(__name__)

SERVER_NAME = "runbook-ai-mcp"


def create_server(bridge: ExtensionBridge, tool: BrowserAgentTool | None = None) -> Server:
    """Create the MCP server for ``bridge``.

    Args:
        bridge: The extension bridge that executes tasks
        tool: Optional pre-built tool (tests share its guard)

    Returns:
        Low-level MCP server with tools/list and tools/call handlers
    """
    server: Server = Server(SERVER_NAME, version=__version__)
    browser_agent = tool or BrowserAgentTool(bridge)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [BROWSER_AGENT_TOOL]

    # Argument errors are rendered as text by the tool, like the rest of its errors
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        ctx = server.request_context
        progress_token = ctx.meta.progressToken if ctx.meta else None

        async def notify(notification: ProgressNotification) -> None:
            await ctx.session.send_progress_notification(
                progress_token=notification.token,
                progress=notification.sequence,
                message=notification.message,
                related_request_id=ctx.request_id,
            )

        return await browser_agent.call(
            name, arguments, progress_token=progress_token, notify=notify
        )

    return server


def create_extension_listener(bridge: ExtensionBridge, settings: BridgeSettings) -> uvicorn.Server:
    """Create the uvicorn server hosting the extension WebSocket."""
    config = uvicorn.Config(
        create_app(bridge),
        host=settings.host,
        port=settings.port,
        lifespan="off",
        # Inherit the stderr-only logging configuration
        log_config=None,
        access_log=False,
    )
    return uvicorn.Server(config)


async def run_bridge(settings: BridgeSettings) -> None:
    """Run the MCP stdio server and the extension listener until stdin closes."""
    bridge = ExtensionBridge(
        task_timeout=settings.task_timeout,
        fail_pending_on_disconnect=settings.fail_pending_on_disconnect,
    )
    listener = create_extension_listener(bridge, settings)
    listener_task = asyncio.create_task(listener.serve())

    server = create_server(bridge)
    logger.info(f"Runbook AI MCP server started (v{__version__})")
    logger.info(f"Connect your Chrome extension to: {settings.websocket_url}")

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        listener.should_exit = True
        with contextlib.suppress(asyncio.CancelledError):
            await listener_task
