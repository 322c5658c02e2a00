"""Single-call guard for tool invocations.

The extension runs one task at a time. The guard rejects a second tool
call while one is outstanding instead of queuing it.

A cancelled tool call keeps the guard until the extension has answered
or the task has timed out.
"""

from __future__ import annotations


class CallInProgressError(RuntimeError):
    """Raised when a tool call arrives while another one is running."""


class CallGuard:
    """Mutual exclusion over the single outstanding task.

    Usage:
        guard.acquire()
        try:
            outcome = await bridge.invoke_task(...)
        finally:
            guard.release()
    """

    def __init__(self) -> None:
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def acquire(self) -> None:
        """Take the guard.

        Raises:
            CallInProgressError: If the guard is already held.
        """
        if self._busy:
            raise CallInProgressError("Another tool call is already in progress")
        self._busy = True

    def release(self) -> None:
        """Give the guard back. Releasing a free guard is a no-op."""
        self._busy = False
