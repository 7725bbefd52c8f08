"""
Assistant CLI — point the installed assistant at the local model.

Older assistant releases have no ``--model`` option on ``install``;
the help text is checked first and the caller is told when the model
has to be configured by hand.
"""

from __future__ import annotations

import logging

from cclocal.adapters.base import CommandRunner
from cclocal.core.errors import InstallerError

logger = logging.getLogger(__name__)


class AssistantCli:
    """Best-effort configuration through the assistant's own CLI."""

    def __init__(self, runner: CommandRunner, cli: str = "claude"):
        self._runner = runner
        self._cli = cli

    def accepts_model_flag(self) -> bool:
        r = self._runner.run([self._cli, "help", "install"], timeout=30)
        # Help goes to stderr on some releases
        return "--model" in f"{r.output}\n{r.error or ''}"

    def set_default_model(self, model: str) -> bool:
        """Run ``<cli> install --model <model>``.

        Returns:
            False when this assistant release cannot take a model.

        Raises:
            InstallerError: The command ran and failed.
        """
        if not self.accepts_model_flag():
            logger.info("'%s install' has no --model option", self._cli)
            return False

        cmd = [self._cli, "install", "--model", model]
        r = self._runner.run(cmd, timeout=120)
        if not r.ok:
            raise InstallerError(
                f"Failed to set the assistant's default model to {model}: {r.error}",
                command=cmd,
                exit_status=r.return_code,
                remediation=" ".join(cmd),
            )
        return True
