"""
Strategy registry — the ordered set of install routes.

Registration order IS the fallback priority: the package installer
walks ``available_for()`` front to back and stops at the first route
that succeeds.
"""

from __future__ import annotations

import logging
from typing import Any

from cclocal.adapters.base import CommandRunner
from cclocal.adapters.installers.base import InstallStrategy
from cclocal.adapters.installers.binary_download import BinaryDownloadStrategy
from cclocal.adapters.installers.bootstrap import BootstrapScriptStrategy
from cclocal.adapters.installers.package_manager import PackageManagerStrategy
from cclocal.core.data.tools import ToolSpec
from cclocal.core.models.host import HostPlatform

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Ordered registry of install strategies."""

    def __init__(self, strategies: list[InstallStrategy] | None = None):
        self._strategies: dict[str, InstallStrategy] = {}
        for strategy in strategies or ():
            self.register(strategy)

    @classmethod
    def default(cls, runner: CommandRunner) -> StrategyRegistry:
        """package-manager → binary-download → bootstrap-script."""
        return cls([
            PackageManagerStrategy(runner),
            BinaryDownloadStrategy(runner),
            BootstrapScriptStrategy(runner),
        ])

    def register(self, strategy: InstallStrategy) -> None:
        """Append a strategy at the lowest priority."""
        name = strategy.name
        if name in self._strategies:
            logger.warning("Overwriting existing strategy: %s", name)
        self._strategies[name] = strategy
        logger.debug("Registered strategy: %s", name)

    def unregister(self, name: str) -> None:
        self._strategies.pop(name, None)

    def get(self, name: str) -> InstallStrategy | None:
        return self._strategies.get(name)

    def list_strategies(self) -> list[str]:
        """Strategy names in priority order."""
        return list(self._strategies.keys())

    def available_for(self, spec: ToolSpec, host: HostPlatform) -> list[InstallStrategy]:
        """Strategies that can install ``spec`` here, in priority order."""
        available = []
        for strategy in self._strategies.values():
            try:
                ok = strategy.is_available(spec, host)
            except Exception as e:
                # is_available must not raise; treat a bug as "unavailable"
                logger.error("Strategy %s raised in is_available: %s", strategy.name, e)
                ok = False
            if ok:
                available.append(strategy)
        return available

    def strategy_status(self, spec: ToolSpec, host: HostPlatform) -> dict[str, dict[str, Any]]:
        """Availability of every registered strategy for ``spec``."""
        usable = {s.name for s in self.available_for(spec, host)}
        return {
            name: {
                "name": name,
                "available": name in usable,
                "type": strategy.__class__.__name__,
            }
            for name, strategy in self._strategies.items()
        }
