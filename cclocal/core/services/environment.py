"""
Environment Reconciler — wrapper script, env file and rc hook.

The only host files this tool owns. Wrapper and env file are always
fully overwritten with content derived from their inputs, so writing
twice is a no-op in effect. Shell rc files are only ever appended to,
guarded by an exact-line containment check.

Known limitation: the guard compares whole lines textually. A line
that is equivalent but differs in whitespace or quoting is not
recognised and will be appended again.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from cclocal.core.data.constants import (
    RC_CANDIDATES,
    RC_MARKER,
    WRAPPER_NAME,
    env_file_path,
)
from cclocal.core.models.install import EnvFileRecord, ReconcileOutcome, WrapperScript

logger = logging.getLogger(__name__)

# rc files are user-owned and may hold non-UTF-8 bytes; round-trip them untouched.
_RC_ERRORS = "surrogateescape"


def default_rc_file(home: Path, shell: str | None = None) -> Path:
    """``~/.zshrc`` for zsh users, ``~/.bashrc`` for everyone else."""
    shell = shell if shell is not None else os.environ.get("SHELL", "")
    return home / (".zshrc" if "zsh" in shell else ".bashrc")


def _write_if_changed(path: Path, content: str) -> bool:
    """Overwrite ``path``; return False when it already held ``content``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        unchanged = path.read_text(encoding="utf-8") == content
    except (FileNotFoundError, UnicodeDecodeError):
        unchanged = False
    path.write_text(content, encoding="utf-8")
    return not unchanged


class EnvironmentReconciler:
    """Idempotent ensure/remove for the tool's host artifacts."""

    def __init__(self, install_dir: Path, home: Path | None = None, shell: str | None = None):
        self.home = home or Path.home()
        self.install_dir = install_dir
        self.wrapper_path = install_dir / WRAPPER_NAME
        self.env_path = env_file_path(self.home)
        self.rc_path = default_rc_file(self.home, shell)

    @property
    def source_line(self) -> str:
        """The rc line that loads the env file, tagged with the marker."""
        return f'[ -f "{self.env_path}" ] && . "{self.env_path}"  {RC_MARKER}'

    def default_env_vars(self, model: str, context: int, runtime_url: str) -> dict[str, str]:
        """Variables the assistant CLI needs to talk to the local runtime."""
        base = runtime_url.rstrip("/")
        return {
            "PATH": f"{self.install_dir}:$PATH",
            "OLLAMA_CONTEXT_LENGTH": str(context),
            "ANTHROPIC_BASE_URL": base,
            "ANTHROPIC_API_URL": base,
            "ANTHROPIC_API_BASE": base,
            "ANTHROPIC_MODEL": model,
        }

    # ── Ensure ─────────────────────────────────────────────────

    def ensure_wrapper(self, model: str, context: int) -> Path:
        """Write the wrapper for ``(model, context)`` and make it executable."""
        record = WrapperScript(path=self.wrapper_path, target_model=model, context_tokens=context)
        changed = _write_if_changed(record.path, record.content)
        mode = record.path.stat().st_mode
        record.path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.info("Wrapper %s: %s", "written" if changed else "unchanged", record.path)
        return record.path

    def ensure_env_file(self, variables: dict[str, str]) -> Path:
        """Overwrite the env file with one export line per variable."""
        record = EnvFileRecord(path=self.env_path, exported_vars=variables)
        changed = _write_if_changed(record.path, record.content)
        logger.info("Env file %s: %s", "written" if changed else "unchanged", record.path)
        return record.path

    def ensure_rc_sourced(self, rc_path: Path | None = None, source_line: str | None = None) -> bool:
        """Append ``source_line`` to ``rc_path`` unless that exact line is there.

        Returns:
            True if the line was appended, False if it was already present.
        """
        rc_path = rc_path or self.rc_path
        line = source_line or self.source_line

        existing = ""
        if rc_path.exists():
            existing = rc_path.read_text(encoding="utf-8", errors=_RC_ERRORS)
            if line in existing.splitlines():
                logger.info("%s already sources the env file", rc_path)
                return False

        rc_path.parent.mkdir(parents=True, exist_ok=True)
        with open(rc_path, "a", encoding="utf-8", errors=_RC_ERRORS) as f:
            if existing and not existing.endswith("\n"):
                f.write("\n")
            f.write(line + "\n")
        logger.info("Appended env hook to %s", rc_path)
        return True

    # ── Remove ─────────────────────────────────────────────────

    def rc_candidates(self) -> list[Path]:
        return [self.home / name for name in RC_CANDIDATES]

    def remove_all(self) -> list[ReconcileOutcome]:
        """Delete wrapper and env file, strip marked rc lines.

        Absent artifacts are reported as ``action="absent"``, never as
        errors, so running this twice is safe.
        """
        outcomes = [
            self._remove_file("wrapper", self.wrapper_path),
            self._remove_file("env_file", self.env_path),
        ]

        stripped = [path for path in self.rc_candidates() if self._strip_marked_lines(path)]
        if stripped:
            outcomes.extend(
                ReconcileOutcome(artifact="rc_file", path=path, action="removed") for path in stripped
            )
        else:
            outcomes.append(ReconcileOutcome(artifact="rc_file", path=self.rc_path, action="absent"))
        return outcomes

    def _remove_file(self, artifact: str, path: Path) -> ReconcileOutcome:
        try:
            path.unlink()
        except FileNotFoundError:
            return ReconcileOutcome(artifact=artifact, path=path, action="absent")
        logger.info("Removed %s", path)
        return ReconcileOutcome(artifact=artifact, path=path, action="removed")

    def _strip_marked_lines(self, rc_path: Path) -> bool:
        """Drop every line carrying the marker; True if any was dropped."""
        if not rc_path.is_file():
            return False
        lines = rc_path.read_text(encoding="utf-8", errors=_RC_ERRORS).splitlines(keepends=True)
        kept = [line for line in lines if RC_MARKER not in line]
        if len(kept) == len(lines):
            return False
        rc_path.write_text("".join(kept), encoding="utf-8", errors=_RC_ERRORS)
        logger.info("Removed env hook from %s", rc_path)
        return True
