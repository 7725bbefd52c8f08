"""
Runtime readiness — make sure the model server answers.

``ollama serve`` is started fire-and-forget when the health endpoint
is silent and no runtime process exists yet, then polled a bounded number of times with a fixed sleep.
This is a best-effort check: after the last attempt the caller gets
``False`` and decides what to tell the operator.
"""

from __future__ import annotations

import logging
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from pathlib import Path

from cclocal.adapters.base import CommandRunner
from cclocal.core.data.constants import DEFAULT_RUNTIME_URL

logger = logging.getLogger(__name__)


def http_health(url: str, timeout: float = 3.0) -> bool:
    """Whether ``url`` answers with a 2xx status."""
    try:
        with urllib.request.urlopen(url, timeout=timeout) as resp:
            return 200 <= resp.status < 300
    except (urllib.error.URLError, OSError, ValueError):
        return False


class RuntimeService:
    """Start-and-poll for the local model server."""

    def __init__(
        self,
        runner: CommandRunner,
        *,
        cli: str = "ollama",
        url: str = DEFAULT_RUNTIME_URL,
        attempts: int = 2,
        interval: float = 3.0,
        health_check: Callable[[str], bool] = http_health,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._runner = runner
        self._cli = cli
        self._url = url.rstrip("/") + "/"
        self._attempts = attempts
        self._interval = interval
        self._health_check = health_check
        self._sleep = sleep

    @property
    def url(self) -> str:
        return self._url

    def is_running(self) -> bool:
        return self._health_check(self._url)

    def process_running(self) -> bool:
        """Whether a runtime process (desktop app or CLI server) already exists."""
        if not self._runner.is_available("pgrep"):
            return False
        patterns = (["-x", "Ollama"], ["-f", rf"\b{Path(self._cli).name}\b"])
        return any(self._runner.run(["pgrep", *args], timeout=5).ok for args in patterns)

    def ensure_running(self) -> bool:
        """Return True once the server answers, False after giving up."""
        if self.is_running():
            logger.info("Runtime is responding on %s", self._url)
            return True

        if self.process_running():
            logger.info("Runtime process found but not answering yet, waiting for it")
        else:
            logger.info("Runtime not responding, starting '%s serve' in the background", self._cli)
            spawned = self._runner.spawn([self._cli, "serve"])
            if not spawned.ok:
                logger.warning("Could not start runtime: %s", spawned.error)
                return False

        for attempt in range(1, self._attempts + 1):
            self._sleep(self._interval)
            if self.is_running():
                logger.info("Runtime up after %d check(s)", attempt)
                return True
            logger.debug("Runtime health check %d/%d failed", attempt, self._attempts)

        return False
