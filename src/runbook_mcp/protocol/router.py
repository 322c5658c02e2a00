"""Routing of inbound extension messages.

Each frame received from the extension is parsed and handed to exactly
one sink based on its ``command``. Malformed frames are dropped here so
they can never fail an unrelated pending call.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .messages import InboundMessage, MessageKind

logger = logging.getLogger(__name__)

ResponseSink = Callable[[dict[str, Any]], Any]
ProgressSink = Callable[[dict[str, Any]], Awaitable[None]]
UnhandledSink = Callable[[InboundMessage], None]


class MessageRouter:
    """Classifies extension messages and forwards them.

    - ``task-response`` bodies go to the response sink (the correlator)
    - ``task-update`` payloads go to the progress sink
    - anything else goes to the unhandled sink, if one is set
    """

    def __init__(
        self,
        on_response: ResponseSink,
        on_progress: ProgressSink,
        on_unhandled: UnhandledSink | None = None,
    ) -> None:
        self._on_response = on_response
        self._on_progress = on_progress
        self._on_unhandled = on_unhandled

    async def dispatch(self, raw: str | bytes) -> MessageKind | None:
        """Route one raw frame.

        Returns:
            The kind the message was routed as, or None if it was dropped.
        """
        try:
            message = InboundMessage.parse(raw)
        except ValueError as e:
            logger.warning(f"Dropping malformed message from extension: {e}")
            return None

        if message.kind == MessageKind.RESPONSE:
            self._on_response(message.body)

        elif message.kind == MessageKind.PROGRESS:
            try:
                await self._on_progress(message.task_update)
            except Exception as e:
                logger.warning(f"Progress relay failed: {e}")

        else:
            logger.debug(f"Unhandled extension message: {message.command!r}")
            if self._on_unhandled:
                self._on_unhandled(message)

        return message.kind
