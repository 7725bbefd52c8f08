"""
Capability Probe — read-only host detection.

Answers "is tool X present", "how much GPU memory is there" and
"what OS/arch is this". Nothing here raises: absence is a valid,
expected answer (``found=False``, ``0`` GB).
"""

from __future__ import annotations

import logging
import os
import platform
import re
import shutil
from collections.abc import Iterable
from pathlib import Path

from cclocal.adapters.base import CommandRunner
from cclocal.core.data.constants import ARCH_MAP
from cclocal.core.data.tools import get_tool_spec
from cclocal.core.models.host import HostPlatform, ToolPresence

logger = logging.getLogger(__name__)

_OS_MAP = {"darwin": "macos", "linux": "linux", "windows": "windows"}


def detect_platform() -> HostPlatform:
    """Tag the host once: ``{macos, linux, windows, unknown}`` + arch."""
    system = platform.system().lower()
    machine = platform.machine()
    return HostPlatform(
        os=_OS_MAP.get(system, "unknown"),
        arch=ARCH_MAP.get(machine, machine.lower()),
    )


class CapabilityProbe:
    """Probe tools and hardware through a command runner."""

    def __init__(self, runner: CommandRunner, host: HostPlatform):
        self._runner = runner
        self._host = host

    # ── Tools ──────────────────────────────────────────────────

    def probe(self, tool_name: str, extra_dirs: Iterable[Path] = ()) -> ToolPresence:
        """Locate ``tool_name`` on PATH, then in ``extra_dirs``.

        ``extra_dirs`` covers install locations that are not on the
        PATH of this process yet (e.g. a fresh ``~/.local/bin``).
        """
        spec = get_tool_spec(tool_name)
        path = shutil.which(spec.cli)
        if path is None:
            for directory in extra_dirs:
                candidate = Path(directory) / spec.cli
                if candidate.is_file() and os.access(candidate, os.X_OK):
                    path = str(candidate)
                    break

        if path is None:
            logger.debug("%s not found", tool_name)
            return ToolPresence(name=tool_name, found=False)

        return ToolPresence(
            name=tool_name,
            found=True,
            path=path,
            version=self._version(tool_name, path),
        )

    def _version(self, tool_name: str, path: str) -> str | None:
        """Best-effort version string; any failure yields ``None``."""
        spec = get_tool_spec(tool_name)
        if not spec.version_command:
            return None
        cmd = [path] + spec.version_command[1:]
        receipt = self._runner.run(cmd, timeout=10)
        # Some tools print their version on stderr
        text = receipt.output + (receipt.error or "") + receipt.metadata.get("stderr", "")
        match = re.search(spec.version_pattern, text)
        return match.group(1) if match else None

    # ── GPU memory ─────────────────────────────────────────────

    def probe_vram(self) -> int:
        """Usable GPU memory in whole GB, ``0`` when undetectable."""
        if self._host.os == "linux":
            return self._nvidia_vram() or self._rocm_vram()
        if self._host.os == "macos":
            return self._mac_vram()
        if self._host.os == "windows":
            return self._nvidia_vram()
        return 0

    def _nvidia_vram(self) -> int:
        if not self._runner.is_available("nvidia-smi"):
            return 0
        r = self._runner.run(
            ["nvidia-smi", "--query-gpu=memory.total", "--format=csv,noheader,nounits"],
            timeout=5,
        )
        if not r.ok:
            return 0
        sizes_mib = [int(m) for m in re.findall(r"^\s*(\d+)", r.output, re.MULTILINE)]
        return round(max(sizes_mib) / 1024) if sizes_mib else 0

    def _rocm_vram(self) -> int:
        if not self._runner.is_available("rocm-smi"):
            return 0
        r = self._runner.run(["rocm-smi", "--showmeminfo", "vram", "--csv"], timeout=5)
        if not r.ok:
            return 0
        sizes = [int(b) for b in re.findall(r"^card\d+,(\d+)", r.output, re.MULTILINE)]
        return round(max(sizes) / 2**30) if sizes else 0

    def _mac_vram(self) -> int:
        r = self._runner.run(["system_profiler", "SPDisplaysDataType"], timeout=10)
        if r.ok:
            m = re.search(r"VRAM[^:]*:\s*(\d+)\s*(GB|MB)", r.output)
            if m:
                size = int(m.group(1))
                return size if m.group(2) == "GB" else round(size / 1024)
        # Apple Silicon has unified memory and no VRAM line
        if self._host.arch == "arm64":
            r = self._runner.run(["sysctl", "-n", "hw.memsize"], timeout=5)
            if r.ok and r.output.strip().isdigit():
                return round(int(r.output.strip()) / 2**30)
        return 0
