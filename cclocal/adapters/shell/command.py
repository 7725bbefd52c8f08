"""
Shell command runner — execute external commands on the host.

This is the SINGLE PLACE where ``subprocess`` is called for install
operations. All logging and error capture is centralised here.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from cclocal.adapters.base import CommandRunner
from cclocal.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

# Keep receipts small; installers can be chatty.
_OUTPUT_TAIL = 2000


class ShellCommandRunner(CommandRunner):
    """Run commands with ``subprocess`` and capture their outcome."""

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self, program: str) -> bool:
        return shutil.which(program) is not None

    def run(
        self,
        cmd: list[str],
        *,
        timeout: int | None = 300,
        cwd: Path | None = None,
        stream: bool = False,
        env_overrides: dict[str, str] | None = None,
    ) -> Receipt:
        command = " ".join(cmd)
        env = os.environ.copy()
        if env_overrides:
            env.update(env_overrides)

        logger.debug("Executing: %s (cwd=%s)", command, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=not stream,
                text=True,
                timeout=timeout,
                env=env,
            )
        except FileNotFoundError:
            return Receipt.failure(
                strategy=self.name,
                target=command,
                error=f"Command not found: {cmd[0]}",
                return_code=127,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                strategy=self.name,
                target=command,
                error=f"Command timed out after {timeout}s",
                metadata={"timeout": timeout},
            )
        except OSError as e:
            logger.exception("Subprocess error: %s", command)
            return Receipt.failure(
                strategy=self.name,
                target=command,
                error=f"Command execution error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = (result.stdout or "")[-_OUTPUT_TAIL:]
        stderr = (result.stderr or "")[-_OUTPUT_TAIL:]

        if result.returncode == 0:
            return Receipt.success(
                strategy=self.name,
                target=command,
                output=stdout,
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"stderr": stderr},
            )

        return Receipt.failure(
            strategy=self.name,
            target=command,
            error=stderr.strip() or f"Command exited with code {result.returncode}",
            output=stdout,
            duration_ms=elapsed_ms,
            return_code=result.returncode,
        )

    def spawn(self, cmd: list[str]) -> Receipt:
        command = " ".join(cmd)
        logger.debug("Spawning: %s", command)
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            return Receipt.failure(
                strategy=self.name,
                target=command,
                error=f"Could not start: {e}",
            )
        return Receipt.success(
            strategy=self.name,
            target=command,
            output=f"started pid {proc.pid}",
            metadata={"pid": proc.pid},
        )
