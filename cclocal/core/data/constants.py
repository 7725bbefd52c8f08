"""
Static constants — paths, markers, defaults, context thresholds.
"""

from __future__ import annotations

from pathlib import Path

PROJECT_SLUG = "claude-code-local"

# Every line this tool appends to a shell rc file ends with this marker,
# and uninstall strips exactly the lines that carry it.
RC_MARKER = f"# {PROJECT_SLUG}"

DEFAULT_MODEL = "gpt-oss"
DEFAULT_RUNTIME_URL = "http://127.0.0.1:11434"

WRAPPER_NAME = "claude-local"
RUNTIME_TOOL = "ollama"
ASSISTANT_TOOL = "claude"

# (minimum VRAM in GB, context tokens), checked from the top.
CONTEXT_THRESHOLDS: tuple[tuple[int, int], ...] = (
    (48, 262144),
    (24, 32768),
    (0, 4096),
)

# Shell startup files uninstall inspects for marked lines.
RC_CANDIDATES: tuple[str, ...] = (
    ".bashrc",
    ".zshrc",
    ".profile",
    ".bash_profile",
)


def default_install_dir() -> Path:
    """User-local binary directory (``~/.local/bin``)."""
    return Path.home() / ".local" / "bin"


def config_dir(home: Path | None = None) -> Path:
    """Per-user config directory for this tool."""
    return (home or Path.home()) / ".config" / PROJECT_SLUG


def env_file_path(home: Path | None = None) -> Path:
    """The single environment file sourced from the rc hook."""
    return config_dir(home) / "env"


def default_config_file() -> Path:
    """Optional YAML settings file."""
    return config_dir() / "config.yml"


# Architecture name normalization (Go-style: amd64/arm64). Tools whose
# release assets use other names declare an ``arch_map`` in the catalog.
ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "AMD64": "amd64",      # Windows / WSL2
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",      # macOS (Darwin reports arm64)
}
