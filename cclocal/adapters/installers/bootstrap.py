"""
Bootstrap-script strategy — run the upstream install script.

The script is fetched over HTTPS into a temporary file and executed
with the shell, never piped straight from the network. Upstream
scripts may ask for sudo themselves; that prompt is theirs and is
shown to the operator as-is.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from cclocal.adapters.installers.base import InstallStrategy
from cclocal.adapters.installers.download import DownloadError, download_file
from cclocal.core.data.tools import ToolSpec
from cclocal.core.models.host import HostPlatform
from cclocal.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


class BootstrapScriptStrategy(InstallStrategy):
    """Fetch ``spec.bootstrap_url`` and run it with bash (or sh)."""

    @property
    def name(self) -> str:
        return "bootstrap-script"

    def _shell(self) -> str | None:
        for shell in ("bash", "sh"):
            if self._runner.is_available(shell):
                return shell
        return None

    def is_available(self, spec: ToolSpec, host: HostPlatform) -> bool:
        return bool(spec.bootstrap_url) and host.supported and self._shell() is not None

    def install(self, spec: ToolSpec, host: HostPlatform, install_dir: Path) -> Receipt:
        shell = self._shell() or "sh"
        with tempfile.TemporaryDirectory(prefix=f"ccl-{spec.name}-") as tmp:
            script = Path(tmp) / "install.sh"
            try:
                download_file(spec.bootstrap_url, script)
            except DownloadError as e:
                return self._fail(spec, str(e), "DownloadFailed")

            logger.warning(
                "Running upstream installer for %s; it may ask for your password",
                spec.label,
            )
            cmd = [shell, str(script), *spec.bootstrap_args]
            r = self._runner.run(cmd, timeout=None, stream=True)

        if not r.ok:
            return self._fail(
                spec,
                f"Bootstrap installer exited with {r.return_code}: {r.error}",
                "StrategyFailed",
                return_code=r.return_code,
                metadata={"command": cmd},
            )
        return Receipt.success(
            strategy=self.name,
            target=spec.name,
            output=f"Ran {spec.bootstrap_url}",
            metadata={"command": cmd},
        )
