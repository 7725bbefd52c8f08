"""
Download helpers — HTTPS fetches and checksum verification.

Shared by the binary-download and bootstrap-script strategies.
These raise ``DownloadError``; the strategies turn it into a Receipt.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from cclocal import __version__

logger = logging.getLogger(__name__)

_USER_AGENT = f"claude-code-local/{__version__}"


class DownloadError(Exception):
    """A fetch failed or returned something unusable."""


def _open(url: str, timeout: int):
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    return urllib.request.urlopen(req, timeout=timeout)


def fetch_text(url: str, *, timeout: int = 30) -> str:
    """GET ``url`` and return the body as stripped text."""
    try:
        with _open(url, timeout) as resp:
            return resp.read().decode("utf-8").strip()
    except (urllib.error.URLError, OSError, UnicodeDecodeError) as e:
        raise DownloadError(f"Failed to fetch {url}: {e}") from e


def fetch_json(url: str, *, timeout: int = 30) -> dict[str, Any]:
    """GET ``url`` and parse a JSON object."""
    text = fetch_text(url, timeout=timeout)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DownloadError(f"Invalid JSON from {url}: {e}") from e
    if not isinstance(data, dict):
        raise DownloadError(f"Expected a JSON object from {url}")
    return data


def download_file(url: str, dest: Path, *, timeout: int = 60) -> Path:
    """Stream ``url`` into ``dest`` and return it."""
    logger.info("Downloading %s", url)
    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        with _open(url, timeout) as resp, open(dest, "wb") as f:
            shutil.copyfileobj(resp, f)
    except (urllib.error.URLError, OSError) as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e
    logger.debug("Downloaded %s (%d bytes)", dest, dest.stat().st_size)
    return dest


def verify_checksum(path: Path, expected: str, algo: str = "sha256") -> bool:
    """Whether ``path`` hashes to ``expected`` (hex digest)."""
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest() == expected.lower()
