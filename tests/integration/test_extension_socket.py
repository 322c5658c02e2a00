"""Integration tests over a real WebSocket.

Starts the extension listener on an ephemeral port and drives it with a
``websockets`` client playing the browser extension.
"""

from __future__ import annotations

import asyncio
import contextlib
import json

import pytest
import pytest_asyncio
import websockets

from runbook_mcp.bridge import ExtensionBridge, FailureKind
from runbook_mcp.config import BridgeSettings
from runbook_mcp.server import create_extension_listener


async def wait_for_state(condition, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not condition():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


@pytest_asyncio.fixture
async def listener():
    """Run the extension listener; yields (bridge, url)."""
    bridge = ExtensionBridge(task_timeout=2)
    server = create_extension_listener(bridge, BridgeSettings(port=0))
    task = asyncio.create_task(server.serve())
    await wait_for_state(lambda: server.started)

    port = server.servers[0].sockets[0].getsockname()[1]
    yield bridge, f"ws://127.0.0.1:{port}"

    server.should_exit = True
    with contextlib.suppress(asyncio.CancelledError):
        await task


class TestRoundTrip:
    """Tests for calls through the socket."""

    @pytest.mark.asyncio
    async def test_task_request_and_response(self, listener) -> None:
        """The extension receives the request and its response resolves the call."""
        bridge, url = listener
        async with websockets.connect(url) as ws:
            await wait_for_state(lambda: bridge.is_connected)
            call = asyncio.create_task(bridge.invoke_task("runHeadlessTask", {"prompt": "hi"}))

            request = json.loads(await ws.recv())
            assert request == {
                "command": "task-request",
                "name": "runHeadlessTask",
                "args": {"prompt": "hi"},
            }

            await ws.send(json.dumps({"command": "task-response", "result": {"done": True}}))
            outcome = await call

        assert outcome.success is True
        assert outcome.result == {"result": {"done": True}}

    @pytest.mark.asyncio
    async def test_malformed_frame_is_ignored(self, listener) -> None:
        """A non-JSON frame neither fails the call nor drops the connection."""
        bridge, url = listener
        async with websockets.connect(url) as ws:
            await wait_for_state(lambda: bridge.is_connected)
            call = asyncio.create_task(bridge.invoke_task("runHeadlessTask", {"prompt": "hi"}))
            await ws.recv()

            await ws.send("not json at all")
            await ws.send(json.dumps({"command": "task-response", "value": 7}))
            outcome = await call

            assert bridge.is_connected is True

        assert outcome.result == {"value": 7}

    @pytest.mark.asyncio
    async def test_cancellation_reaches_extension(self, listener) -> None:
        """bridge.cancel() sends a task-cancellation frame."""
        bridge, url = listener
        async with websockets.connect(url) as ws:
            await wait_for_state(lambda: bridge.is_connected)

            assert bridge.cancel() is True

            assert json.loads(await ws.recv()) == {"command": "task-cancellation"}


class TestConnectionLifecycle:
    """Tests for admission and disconnects."""

    @pytest.mark.asyncio
    async def test_second_extension_closed_with_policy_violation(self, listener) -> None:
        """Only one extension may be connected."""
        bridge, url = listener
        async with websockets.connect(url) as first:
            await wait_for_state(lambda: bridge.is_connected)

            async with websockets.connect(url) as second:
                await second.wait_closed()
                assert second.close_code == 1008

            call = asyncio.create_task(bridge.invoke_task("runHeadlessTask", {"prompt": "x"}))
            assert json.loads(await first.recv())["command"] == "task-request"
            await first.send(json.dumps({"command": "task-response", "ok": 1}))
            assert (await call).success is True

    @pytest.mark.asyncio
    async def test_disconnect_fails_pending_call(self, listener) -> None:
        """Closing the extension mid-call fails the call without waiting for the timeout."""
        bridge, url = listener
        async with websockets.connect(url) as ws:
            await wait_for_state(lambda: bridge.is_connected)
            call = asyncio.create_task(bridge.invoke_task("runHeadlessTask", {"prompt": "x"}))
            await ws.recv()

        outcome = await asyncio.wait_for(call, timeout=1)

        assert outcome.kind == FailureKind.DISCONNECTED
        await wait_for_state(lambda: not bridge.is_connected)
