"""
Host facts — what the Capability Probe observes.

None of these are persisted: they are recomputed on every run.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

OSName = Literal["macos", "linux", "windows", "unknown"]


class HostPlatform(BaseModel):
    """The OS/arch tag, detected once at startup."""

    os: OSName = "unknown"
    arch: str = ""              # normalised: amd64, arm64, or raw machine()

    @property
    def supported(self) -> bool:
        """Whether the automated install path handles this OS."""
        return self.os in ("macos", "linux")


class ToolPresence(BaseModel):
    """Whether an executable is reachable, and where."""

    name: str
    found: bool = False
    path: str | None = None
    version: str | None = None


class ModelRecord(BaseModel):
    """A model as seen through the runtime CLI."""

    name: str
    present: bool = False
