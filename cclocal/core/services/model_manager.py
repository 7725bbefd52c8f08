"""
Model Manager — pull, import, list and remove models.

Models are owned by the runtime; this service only observes and
mutates them through the runtime CLI. Pulls are long transfers and
are never retried here: a failure is reported verbatim and the
operator may re-run.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from pathlib import Path

from cclocal.adapters.base import CommandRunner
from cclocal.core.data.constants import RUNTIME_TOOL
from cclocal.core.data.tools import get_tool_spec
from cclocal.core.errors import ModelError, ModelErrorKind
from cclocal.core.models.host import ModelRecord

logger = logging.getLogger(__name__)

# Exit status the runner reports when the executable does not exist
_NOT_FOUND = 127


def normalize_model_name(name: str) -> str:
    """``demo`` and ``demo:latest`` name the same model."""
    name = name.strip()
    return name[: -len(":latest")] if name.endswith(":latest") else name


class ModelManager:
    """Runtime-CLI-backed model operations."""

    def __init__(self, runner: CommandRunner, cli: str = "ollama"):
        self._runner = runner
        self._cli = cli

    def _missing_runtime(self, name: str, cmd: list[str]) -> ModelError:
        return ModelError(
            name,
            ModelErrorKind.RUNTIME_MISSING,
            f"'{self._cli}' is not installed or not on PATH",
            command=cmd,
            exit_status=_NOT_FOUND,
            remediation=get_tool_spec(RUNTIME_TOOL).manual_hint,
        )

    def pull(self, name: str) -> None:
        cmd = [self._cli, "pull", name]
        logger.info("Pulling model %s", name)
        r = self._runner.run(cmd, timeout=None, stream=True)
        if not r.ok:
            if r.return_code == _NOT_FOUND:
                raise self._missing_runtime(name, cmd)
            raise ModelError(
                name,
                ModelErrorKind.PULL_FAILED,
                f"Pull of '{name}' failed: {r.error}",
                command=cmd,
                exit_status=r.return_code,
                remediation=" ".join(cmd),
            )

    def remove(self, name: str) -> None:
        cmd = [self._cli, "rm", name]
        r = self._runner.run(cmd, timeout=60)
        if not r.ok:
            if r.return_code == _NOT_FOUND:
                raise self._missing_runtime(name, cmd)
            raise ModelError(
                name,
                ModelErrorKind.REMOVE_FAILED,
                f"Removal of '{name}' failed: {r.error}",
                command=cmd,
                exit_status=r.return_code,
                remediation=" ".join(cmd),
            )

    def list(self) -> Iterator[str]:
        """Yield installed model names.

        Every call queries the runtime afresh, so the result can be
        iterated again after a pull. Yields nothing if the runtime
        cannot be queried.
        """
        r = self._runner.run([self._cli, "list"], timeout=30)
        if not r.ok:
            logger.debug("'%s list' failed: %s", self._cli, r.error)
            return
        for line in r.output.splitlines()[1:]:
            fields = line.split()
            if fields:
                yield fields[0]

    def has_model(self, name: str) -> bool:
        wanted = normalize_model_name(name)
        return any(normalize_model_name(m) == wanted for m in self.list())

    def record(self, name: str) -> ModelRecord:
        return ModelRecord(name=name, present=self.has_model(name))

    def handle_import(self, local_file_path: Path, desired_name: str | None = None) -> str:
        """Build a runtime model from a local GGUF file.

        The source is checked before anything is created: a missing or
        unreadable file fails with ``SourceNotFound`` and leaves no
        scratch directory behind. The scratch directory is always
        removed afterwards.

        Returns:
            The name the model was created under.
        """
        source = Path(local_file_path).expanduser()
        name = desired_name or source.stem.lower()
        if not source.is_file() or not os.access(source, os.R_OK):
            raise ModelError(
                name,
                ModelErrorKind.SOURCE_NOT_FOUND,
                f"Model file not found or not readable: {source}",
            )

        scratch = Path(tempfile.mkdtemp(prefix="ccl-import-"))
        try:
            shutil.copy2(source, scratch / source.name)
            (scratch / "Modelfile").write_text(f"FROM ./{source.name}\n", encoding="utf-8")
            cmd = [self._cli, "create", name, "-f", "Modelfile"]
            logger.info("Importing %s as %s", source, name)
            r = self._runner.run(cmd, timeout=None, cwd=scratch, stream=True)
        except OSError as e:
            raise ModelError(
                name,
                ModelErrorKind.IMPORT_FAILED,
                f"Could not stage {source} for import: {e}",
            ) from e
        finally:
            shutil.rmtree(scratch, ignore_errors=True)

        if not r.ok:
            if r.return_code == _NOT_FOUND:
                raise self._missing_runtime(name, cmd)
            raise ModelError(
                name,
                ModelErrorKind.IMPORT_FAILED,
                f"Import of {source.name} as '{name}' failed: {r.error}",
                command=cmd,
                exit_status=r.return_code,
            )
        return name
