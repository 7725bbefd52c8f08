"""
Runner base — the protocol contract between services and the host.

Services never call ``subprocess`` directly: every external command
goes through a CommandRunner and comes back as a Receipt. This keeps
the host boundary in one place and lets tests swap in a MockRunner.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from cclocal.core.models.receipt import Receipt


class CommandRunner(ABC):
    """Abstract base class for command runners.

    Runners execute external commands and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def is_available(self, program: str) -> bool:
        """Check if ``program`` can be executed. Fast, never raises."""

    @abstractmethod
    def run(
        self,
        cmd: list[str],
        *,
        timeout: int | None = 300,
        cwd: Path | None = None,
        stream: bool = False,
        env_overrides: dict[str, str] | None = None,
    ) -> Receipt:
        """Run ``cmd`` to completion.

        ``stream=True`` lets output go straight to the terminal
        (long transfers with progress bars) instead of capturing it.
        ``timeout=None`` waits indefinitely.
        """

    @abstractmethod
    def spawn(self, cmd: list[str]) -> Receipt:
        """Start ``cmd`` detached in the background and return at once."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
