"""
Installation models — configuration and the generated artifacts.

The artifact models render their own file content so that the
content is a pure function of the model's fields: writing the same
record twice yields byte-identical files.
"""

from __future__ import annotations

import shlex
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cclocal.core.data.constants import (
    DEFAULT_MODEL,
    DEFAULT_RUNTIME_URL,
    RC_MARKER,
    default_install_dir,
)


class InstallMode(str, Enum):
    """How the orchestrator drives a run."""

    RECOMMENDED = "recommended"
    CUSTOM = "custom"
    NON_INTERACTIVE = "non-interactive"
    UNINSTALL = "uninstall"

    @property
    def interactive(self) -> bool:
        return self in (InstallMode.RECOMMENDED, InstallMode.CUSTOM)


class InstallConfig(BaseModel):
    """Everything one run needs. Frozen once built."""

    model_config = ConfigDict(frozen=True)

    mode: InstallMode = InstallMode.NON_INTERACTIVE
    model_name: str = DEFAULT_MODEL
    context_tokens: int | None = None       # None = derive from VRAM
    install_dir: Path = Field(default_factory=default_install_dir)
    remove_model_on_uninstall: bool = False
    gguf_import_path: Path | None = None
    runtime_url: str = DEFAULT_RUNTIME_URL


class WrapperScript(BaseModel):
    """Executable that pins the context length and launches the assistant."""

    path: Path
    target_model: str
    context_tokens: int

    @property
    def content(self) -> str:
        return (
            "#!/bin/sh\n"
            f"{RC_MARKER}: generated wrapper, rewritten on every install\n"
            f"export OLLAMA_CONTEXT_LENGTH={self.context_tokens}\n"
            f'exec ollama launch claude --model {shlex.quote(self.target_model)} "$@"\n'
        )


def _dquote(value: str) -> str:
    """Double-quote for POSIX sh, leaving ``$VAR`` expansion intact."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("`", "\\`")
    return f'"{escaped}"'


class EnvFileRecord(BaseModel):
    """The environment file: one export line per variable."""

    path: Path
    exported_vars: dict[str, str] = Field(default_factory=dict)

    @property
    def content(self) -> str:
        return "".join(
            f"export {name}={_dquote(value)}\n"
            for name, value in self.exported_vars.items()
        )


class ReconcileOutcome(BaseModel):
    """What the environment reconciler did to one artifact."""

    artifact: Literal["wrapper", "env_file", "rc_file"]
    path: Path
    action: Literal["written", "unchanged", "appended", "removed", "absent"]

    @property
    def absent(self) -> bool:
        return self.action == "absent"
