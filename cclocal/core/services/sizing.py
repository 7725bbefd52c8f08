"""
Context sizing — map detected GPU memory to a context window.
"""

from __future__ import annotations

from cclocal.core.data.constants import CONTEXT_THRESHOLDS


def context_for_vram(vram_gb: int) -> int:
    """Suggested context tokens for ``vram_gb`` of GPU memory.

    <24 GB → 4096, 24–47 GB → 32768, ≥48 GB → 262144.
    """
    for minimum, tokens in CONTEXT_THRESHOLDS:
        if vram_gb >= minimum:
            return tokens
    return CONTEXT_THRESHOLDS[-1][1]


def resolve_context(explicit: int | None, vram_gb: int) -> int:
    """An explicit value always wins over the VRAM suggestion."""
    if explicit is not None:
        return explicit
    return context_for_vram(vram_gb)
