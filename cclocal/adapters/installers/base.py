"""
Install strategy base — one route for putting a tool on the host.

Strategies are tried in a fixed priority order by the package
installer. Like runners, they NEVER raise: every failure comes back
as a Receipt whose ``metadata["kind"]`` names the failure class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from cclocal.adapters.base import CommandRunner
from cclocal.core.data.tools import ToolSpec
from cclocal.core.models.host import HostPlatform
from cclocal.core.models.receipt import Receipt


class InstallStrategy(ABC):
    """Abstract base class for install routes.

    To add a route:
        1. Subclass InstallStrategy
        2. Implement name, is_available, install
        3. Register it in ``StrategyRegistry.default``
    """

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    @property
    @abstractmethod
    def name(self) -> str:
        """The strategy identifier (e.g., 'package-manager')."""

    @abstractmethod
    def is_available(self, spec: ToolSpec, host: HostPlatform) -> bool:
        """Whether this route can install ``spec`` on ``host`` at all.

        Should be fast and never raise.
        """

    @abstractmethod
    def install(self, spec: ToolSpec, host: HostPlatform, install_dir: Path) -> Receipt:
        """Install ``spec``. MUST never raise."""

    @property
    def writes_install_dir(self) -> bool:
        """Whether this route places files into ``install_dir``."""
        return True

    def _fail(self, spec: ToolSpec, error: str, kind: str, **kwargs) -> Receipt:
        metadata = kwargs.pop("metadata", {})
        metadata["kind"] = kind
        return Receipt.failure(
            strategy=self.name,
            target=spec.name,
            error=error,
            metadata=metadata,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
