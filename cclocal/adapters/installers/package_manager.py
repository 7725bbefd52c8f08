"""
Package-manager strategy — install through Homebrew.

Homebrew is the only manager used: it installs into a user-owned
prefix, so no elevated privileges are ever needed. The route is
skipped when the prefix is not writable by the current user.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from cclocal.adapters.installers.base import InstallStrategy
from cclocal.core.data.tools import ToolSpec
from cclocal.core.models.host import HostPlatform
from cclocal.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


class PackageManagerStrategy(InstallStrategy):
    """``brew install <formula>`` / ``brew install --cask <cask>``."""

    @property
    def name(self) -> str:
        return "package-manager"

    @property
    def writes_install_dir(self) -> bool:
        # brew installs under its own prefix
        return False

    def is_available(self, spec: ToolSpec, host: HostPlatform) -> bool:
        if not (spec.brew_formula or spec.brew_cask):
            return False
        # Casks are macOS-only
        if not spec.brew_formula and host.os != "macos":
            return False
        if not self._runner.is_available("brew"):
            return False
        return self._prefix_writable()

    def _prefix_writable(self) -> bool:
        r = self._runner.run(["brew", "--prefix"], timeout=15)
        if not r.ok or not r.output.strip():
            return False
        prefix = Path(r.output.strip())
        writable = os.access(prefix, os.W_OK)
        if not writable:
            logger.info("Homebrew prefix %s is not writable; skipping brew route", prefix)
        return writable

    def install_command(self, spec: ToolSpec) -> list[str]:
        if spec.brew_formula:
            return ["brew", "install", spec.brew_formula]
        return ["brew", "install", "--cask", spec.brew_cask]

    def install(self, spec: ToolSpec, host: HostPlatform, install_dir: Path) -> Receipt:
        cmd = self.install_command(spec)
        r = self._runner.run(cmd, timeout=None, stream=True)
        if not r.ok:
            return self._fail(
                spec,
                f"{' '.join(cmd)} failed: {r.error}",
                "StrategyFailed",
                return_code=r.return_code,
                metadata={"command": cmd},
            )
        return Receipt.success(
            strategy=self.name,
            target=spec.name,
            output=f"Installed {spec.label} with Homebrew",
            metadata={"command": cmd},
        )
