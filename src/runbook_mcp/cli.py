"""Runbook AI MCP CLI.

Runs the MCP server on stdio and the browser extension listener on a
WebSocket port.

Usage:
    runbook-ai-mcp                         # Serve MCP on stdio, extension on :9003
    runbook-ai-mcp --port 9010             # Custom extension port
    runbook-ai-mcp --task-timeout 600      # Allow ten-minute tasks
    runbook-ai-mcp --health                # Check a running bridge and exit
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import click
import httpx

from .bridge import DEFAULT_TASK_TIMEOUT
from .config import DEFAULT_HOST, DEFAULT_LOG_LEVEL, DEFAULT_PORT, BridgeSettings

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# Transport libraries that are chatty below WARNING
NOISY_LOGGERS = ("websockets", "uvicorn.error", "httpx")


def configure_stdio_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Send every log record to stderr; stdout carries MCP JSON-RPC.

    Handlers attached by already-imported libraries are dropped and their
    loggers propagate to root instead. Unless ``level`` is DEBUG the
    transport libraries only report warnings.
    """
    level = level.upper()
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [stderr_handler]
    root_logger.setLevel(level)

    for existing in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(existing, logging.PlaceHolder):
            continue
        existing.handlers.clear()
        existing.propagate = True

    library_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


@click.command()
@click.option("--host", default=DEFAULT_HOST, envvar="WS_HOST", help="Interface for the extension listener")
@click.option("--port", default=DEFAULT_PORT, envvar="WS_PORT", type=int, help="Port for the extension listener")
@click.option(
    "--task-timeout",
    default=DEFAULT_TASK_TIMEOUT,
    envvar="RUNBOOK_TASK_TIMEOUT",
    type=float,
    help="Seconds to wait for the extension to finish a task",
)
@click.option(
    "--keep-pending-on-disconnect",
    is_flag=True,
    help="Let a running task ride out its timeout when the extension disconnects",
)
@click.option(
    "--log-level",
    default=DEFAULT_LOG_LEVEL,
    envvar="RUNBOOK_LOG_LEVEL",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (logs go to stderr)",
)
@click.option("--health", "health_check", is_flag=True, help="Check a running bridge and exit")
@click.option("--health-url", default=None, help="Health URL (default: derived from --host/--port)")
def main(
    host: str,
    port: int,
    task_timeout: float,
    keep_pending_on_disconnect: bool,
    log_level: str,
    health_check: bool,
    health_url: str | None,
) -> None:
    """Runbook AI MCP - run browser tasks from any MCP client.

    Serves the browser-agent tool over stdio and waits for the Chrome
    extension to connect over WebSocket.
    """
    try:
        settings = BridgeSettings(
            host=host,
            port=port,
            task_timeout=task_timeout,
            fail_pending_on_disconnect=not keep_pending_on_disconnect,
            log_level=log_level,
        )
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if health_check:
        _do_health_check(health_url or settings.health_url)
        return

    configure_stdio_logging(settings.log_level)
    _run_bridge(settings)


def format_health(data: dict[str, Any]) -> str:
    """One-line summary of a /health payload."""
    extension = "connected" if data.get("extension_connected") else "not connected"
    task = "running" if data.get("call_in_progress") else "idle"
    return f"Bridge is up: extension {extension}, task {task}"


async def _fetch_health(url: str) -> dict[str, Any]:
    async with httpx.AsyncClient(timeout=5.0) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()


def _do_health_check(url: str) -> None:
    """Query a running bridge's /health endpoint; exit 1 unless it answers."""
    try:
        data = asyncio.run(_fetch_health(url))
    except httpx.HTTPStatusError as e:
        click.echo(f"Bridge at {url} returned {e.response.status_code}", err=True)
        sys.exit(1)
    except httpx.TransportError as e:
        click.echo(f"Cannot reach bridge at {url}: {e}", err=True)
        sys.exit(1)

    click.echo(format_health(data))


def _run_bridge(settings: BridgeSettings) -> None:
    """Run the bridge until stdin closes or Ctrl+C."""
    from .server import run_bridge

    click.echo(f"WebSocket server listening on port {settings.port}", err=True)

    try:
        asyncio.run(run_bridge(settings))
    except KeyboardInterrupt:
        click.echo("\nShutting down", err=True)


if __name__ == "__main__":
    main()
