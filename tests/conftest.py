"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from runbook_mcp.bridge import ExtensionBridge


class FakePeer:
    """In-memory stand-in for a connected extension.

    Records every JSON object sent to it. If ``reply`` is set, it is called
    with each sent payload and may return a response body that is delivered
    to ``bridge`` on the next loop iteration.
    """

    def __init__(
        self,
        bridge: ExtensionBridge | None = None,
        reply: Callable[[dict[str, Any]], dict[str, Any] | None] | None = None,
    ) -> None:
        self.is_open = True
        self.sent: list[dict[str, Any]] = []
        self.closed_with: tuple[int, str | None] | None = None
        self.fail_sends = False
        self._bridge = bridge
        self._reply = reply

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.fail_sends:
            raise ConnectionError("socket closed")
        self.sent.append(payload)
        if self._reply and self._bridge:
            body = self._reply(payload)
            if body is not None:
                asyncio.get_running_loop().call_soon(self._bridge.correlator.resolve, body)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.is_open = False
        self.closed_with = (code, reason)

    @property
    def commands(self) -> list[str]:
        return [payload.get("command") for payload in self.sent]


@pytest.fixture
def bridge() -> ExtensionBridge:
    """A bridge with a short task timeout."""
    return ExtensionBridge(task_timeout=0.2)


@pytest.fixture
def make_peer(bridge: ExtensionBridge) -> Callable[..., FakePeer]:
    """Factory for fake extensions bound to ``bridge``."""

    def _make(
        reply: Callable[[dict[str, Any]], dict[str, Any] | None] | None = None,
        attach: bool = True,
    ) -> FakePeer:
        fake = FakePeer(bridge, reply=reply)
        if attach:
            assert bridge.slot.attach(fake)
        return fake

    return _make


@pytest.fixture
def peer(make_peer: Callable[..., FakePeer]) -> FakePeer:
    """A fake extension attached to ``bridge``."""
    return make_peer()
