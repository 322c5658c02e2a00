"""Unit tests for cancellation forwarding."""

from __future__ import annotations

import asyncio

import pytest

from runbook_mcp.bridge import CancellationForwarder
from runbook_mcp.transport import PeerSlot


class TestCancellationForwarder:
    """Tests for fire-and-forget task cancellation."""

    @pytest.mark.asyncio
    async def test_no_peer_is_silent_noop(self) -> None:
        """Cancelling with no peer sends nothing and changes nothing."""
        slot = PeerSlot()
        forwarder = CancellationForwarder(slot)

        assert forwarder.cancel() is False
        assert slot.is_connected is False

    @pytest.mark.asyncio
    async def test_sends_cancellation(self, bridge, peer) -> None:
        """A connected peer receives a task-cancellation message."""
        assert bridge.cancel() is True
        await asyncio.sleep(0)

        assert peer.sent == [{"command": "task-cancellation"}]

    @pytest.mark.asyncio
    async def test_does_not_resolve_pending_call(self, bridge, peer) -> None:
        """Cancellation leaves the pending call waiting for its response."""
        task = asyncio.create_task(bridge.invoke_task("runHeadlessTask", {"prompt": "x"}))
        await asyncio.sleep(0)

        bridge.cancel()
        await asyncio.sleep(0.01)

        assert not task.done()
        assert bridge.has_pending_call is True

        bridge.correlator.resolve({"error": True, "message": "Task cancelled"})
        outcome = await task
        assert outcome.error == "Task cancelled"
        assert peer.commands == ["task-request", "task-cancellation"]

    @pytest.mark.asyncio
    async def test_send_failure_is_logged(self, bridge, peer, caplog) -> None:
        """A failing send is logged, not raised."""
        peer.fail_sends = True

        assert bridge.cancel() is True
        await asyncio.sleep(0)

        assert "Failed to send task cancellation" in caplog.text
