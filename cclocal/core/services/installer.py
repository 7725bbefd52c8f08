"""
Package Installer — make sure one external tool is on the host.

Probe first (no double install), then walk the available install
strategies in priority order, falling back on each failure, and
finally re-probe: an installer's exit status is never taken as proof
that the tool is usable.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

from cclocal.adapters.registry import StrategyRegistry
from cclocal.core.data.tools import get_tool_spec
from cclocal.core.errors import InstallError, InstallErrorKind, PrerequisiteMissing
from cclocal.core.models.host import HostPlatform
from cclocal.core.models.receipt import Receipt
from cclocal.core.services.probe import CapabilityProbe

logger = logging.getLogger(__name__)


def default_fallback_dirs() -> list[Path]:
    """Where freshly installed binaries land before PATH knows them."""
    home = Path.home()
    return [
        home / ".local" / "bin",
        home / ".claude",
        home / ".claude" / "local",
        Path("/opt/homebrew/bin"),
        Path("/usr/local/bin"),
    ]


class PackageInstaller:
    """``ensure_installed`` over an ordered strategy registry."""

    def __init__(
        self,
        probe: CapabilityProbe,
        registry: StrategyRegistry,
        host: HostPlatform,
        *,
        fallback_dirs: Sequence[Path] | None = None,
    ):
        self._probe = probe
        self._registry = registry
        self._host = host
        self._fallback_dirs = list(fallback_dirs) if fallback_dirs is not None else default_fallback_dirs()

    def search_dirs(self, install_dir: Path) -> list[Path]:
        """``install_dir`` first, then the fallback locations."""
        return [install_dir, *self._fallback_dirs]

    def ensure_installed(self, tool_name: str, install_dir: Path) -> Path:
        """Return the tool's path, installing it if needed.

        Routes that write into ``install_dir`` are skipped with a
        ``PermissionDenied`` failure when it is not writable; routes
        that do not (the package manager) still run.

        Raises:
            PrerequisiteMissing: No install route exists on this host.
            InstallError: Every route failed, or the tool is still absent
                afterwards (``kind=VerificationFailed``).
        """
        spec = get_tool_spec(tool_name)
        presence = self._probe.probe(tool_name, extra_dirs=self.search_dirs(install_dir))
        if presence.found and presence.path:
            logger.info("%s already present at %s", spec.label, presence.path)
            return Path(presence.path)

        strategies = self._registry.available_for(spec, self._host)
        if not strategies:
            logger.debug("Strategy status for %s: %s", tool_name, self._registry.strategy_status(spec, self._host))
            raise PrerequisiteMissing(
                tool_name,
                f"{spec.label} is not installed and no install route is available "
                f"on {self._host.os}/{self._host.arch or 'unknown'}",
                remediation=spec.manual_hint,
            )

        dir_error: str | None = None
        dir_checked = False
        failures: list[Receipt] = []
        for strategy in strategies:
            if strategy.writes_install_dir:
                if not dir_checked:
                    dir_error = self._install_dir_error(install_dir)
                    dir_checked = True
                if dir_error:
                    logger.warning("Skipping %s for %s: %s", strategy.name, spec.label, dir_error)
                    failures.append(Receipt.failure(
                        strategy=strategy.name,
                        target=spec.name,
                        error=dir_error,
                        metadata={"kind": InstallErrorKind.PERMISSION_DENIED.value},
                    ))
                    continue

            logger.info("Installing %s via %s", spec.label, strategy.name)
            receipt = strategy.install(spec, self._host, install_dir)
            if receipt.ok:
                logger.info("%s: %s", strategy.name, receipt.output)
                break
            logger.warning("%s route failed for %s: %s", strategy.name, spec.label, receipt.error)
            failures.append(receipt)
        else:
            last = failures[-1]
            kind = InstallErrorKind(last.metadata.get("kind", InstallErrorKind.STRATEGY_FAILED.value))
            detail = "; ".join(f"{r.strategy}: {r.error}" for r in failures)
            remediation = spec.manual_hint
            if dir_error and last.error == dir_error:
                remediation = f"sudo chown -R $(id -u):$(id -g) {install_dir.parent}"
            raise InstallError(
                tool_name,
                kind,
                f"Could not install {spec.label} ({detail})",
                command=last.metadata.get("command"),
                exit_status=last.return_code,
                remediation=remediation,
            )

        presence = self._probe.probe(tool_name, extra_dirs=self.search_dirs(install_dir))
        if not presence.found or not presence.path:
            raise InstallError(
                tool_name,
                InstallErrorKind.VERIFICATION_FAILED,
                f"{spec.label} installer finished but '{spec.cli}' is still not found",
                remediation=spec.manual_hint,
            )
        return Path(presence.path)

    @staticmethod
    def _install_dir_error(install_dir: Path) -> str | None:
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return f"Cannot create {install_dir}: {e}"
        if not os.access(install_dir, os.W_OK):
            return f"{install_dir} is not writable by the current user"
        return None
