"""Runbook AI MCP - bridge between MCP clients and the Runbook AI browser extension.

The bridge exposes a single ``browser-agent`` tool over MCP stdio and
executes it inside the Chrome extension connected over WebSocket.
"""

__version__ = "0.1.0"
