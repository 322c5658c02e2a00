"""Bridge configuration.

Settings come from CLI options, which fall back to these environment
variables:

- WS_HOST: interface the extension listener binds to (default 127.0.0.1)
- WS_PORT: extension listener port (default 9003)
- RUNBOOK_TASK_TIMEOUT: seconds to wait for a task response (default 300)
- RUNBOOK_LOG_LEVEL: logging level for stderr logs (default INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .bridge import DEFAULT_TASK_TIMEOUT

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9003
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class BridgeSettings:
    """Runtime settings for the bridge."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    task_timeout: float = DEFAULT_TASK_TIMEOUT
    fail_pending_on_disconnect: bool = True
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        """Validate the settings."""
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Port must be between 0 and 65535, got {self.port}")
        if self.task_timeout <= 0:
            raise ValueError(f"Task timeout must be positive, got {self.task_timeout}")
        self.log_level = self.log_level.upper()

    @property
    def websocket_url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    @property
    def health_url(self) -> str:
        return f"http://{self.host}:{self.port}/health"

    @classmethod
    def from_env(cls) -> BridgeSettings:
        """Build settings from environment variables."""
        return cls(
            host=os.environ.get("WS_HOST", DEFAULT_HOST),
            port=int(os.environ.get("WS_PORT", DEFAULT_PORT)),
            task_timeout=float(os.environ.get("RUNBOOK_TASK_TIMEOUT", DEFAULT_TASK_TIMEOUT)),
            log_level=os.environ.get("RUNBOOK_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
