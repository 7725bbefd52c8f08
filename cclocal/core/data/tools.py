"""
Tool catalog — the external tools this installer can provision.

Pure data. Each entry names the CLI, how to read its version, and the
install routes it supports on each OS. Download URLs may contain
``{os}``, ``{arch}`` and ``{version}`` placeholders; ``{arch}`` goes
through the tool's ``arch_map`` first.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DownloadSpec(BaseModel):
    """Direct-download route for one OS."""

    url: str
    archive: bool = True            # tarball (True) or a raw executable
    member: str = ""                # path of the executable inside the archive
    extract_all: bool = False       # unpack the whole tree next to install_dir
    version_url: str = ""           # fetched to fill ``{version}``
    manifest_url: str = ""          # JSON with per-platform sha256 checksums
    post_install: list[str] = Field(default_factory=list)  # "{binary}" = downloaded file


class ToolSpec(BaseModel):
    """One installable external tool."""

    name: str
    label: str
    cli: str
    version_command: list[str] = Field(default_factory=list)
    version_pattern: str = r"(\d+\.\d+\.\d+)"
    brew_formula: str = ""
    brew_cask: str = ""
    arch_map: dict[str, str] = Field(default_factory=dict)
    os_map: dict[str, str] = Field(default_factory=dict)
    downloads: dict[str, DownloadSpec] = Field(default_factory=dict)   # keyed by HostPlatform.os
    bootstrap_url: str = ""
    bootstrap_args: list[str] = Field(default_factory=list)
    manual_hint: str = ""


_CLAUDE_BUCKET = (
    "https://storage.googleapis.com/claude-code-dist-86c565f3-f756-42ad-8dfa-d59b1c096819"
    "/claude-code-releases"
)

_CLAUDE_DOWNLOAD = DownloadSpec(
    url=f"{_CLAUDE_BUCKET}/{{version}}/{{os}}-{{arch}}/claude",
    archive=False,
    version_url=f"{_CLAUDE_BUCKET}/latest",
    manifest_url=f"{_CLAUDE_BUCKET}/{{version}}/manifest.json",
    post_install=["{binary}", "install", "latest"],
)


TOOL_SPECS: dict[str, ToolSpec] = {

    # ── Model runtime ───────────────────────────────────────────

    "ollama": ToolSpec(
        name="ollama",
        label="Ollama",
        cli="ollama",
        version_command=["ollama", "--version"],
        version_pattern=r"version is\s+(\d+\.\d+\.\d+)",
        brew_formula="ollama",
        downloads={
            "linux": DownloadSpec(
                url="https://ollama.com/download/ollama-linux-{arch}.tgz",
                member="bin/ollama",
                extract_all=True,
            ),
            "macos": DownloadSpec(
                url="https://github.com/ollama/ollama/releases/latest/download/ollama-darwin.tgz",
                member="ollama",
            ),
        },
        bootstrap_url="https://ollama.com/install.sh",
        manual_hint="curl -fsSL https://ollama.com/install.sh | sh",
    ),

    # ── Assistant CLI ───────────────────────────────────────────

    "claude": ToolSpec(
        name="claude",
        label="Claude Code CLI",
        cli="claude",
        version_command=["claude", "--version"],
        brew_cask="claude-code",
        arch_map={"amd64": "x64", "arm64": "arm64"},
        os_map={"macos": "darwin", "linux": "linux"},
        downloads={"linux": _CLAUDE_DOWNLOAD, "macos": _CLAUDE_DOWNLOAD},
        bootstrap_url="https://claude.ai/install.sh",
        bootstrap_args=["latest"],
        manual_hint="curl -fsSL https://claude.ai/install.sh | bash -s -- latest",
    ),
}


def get_tool_spec(name: str) -> ToolSpec:
    """Look up a catalog entry; unknown names get a bare PATH-only spec."""
    spec = TOOL_SPECS.get(name)
    if spec is None:
        return ToolSpec(name=name, label=name, cli=name)
    return spec
