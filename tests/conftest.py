"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from cclocal.adapters.mock import MockRunner
from cclocal.core.models.host import HostPlatform


@pytest.fixture
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An empty HOME with a bash login shell and no CI/config overrides."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("SHELL", "/bin/bash")
    monkeypatch.delenv("CI", raising=False)
    monkeypatch.delenv("CCL_CONFIG", raising=False)
    monkeypatch.delenv("CCL_LOG_LEVEL", raising=False)
    monkeypatch.delenv("CCL_LOG_FILE", raising=False)
    return home


@pytest.fixture
def install_dir(fake_home: Path) -> Path:
    return fake_home / ".local" / "bin"


@pytest.fixture
def runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def linux_host() -> HostPlatform:
    return HostPlatform(os="linux", arch="amd64")


@pytest.fixture
def mac_host() -> HostPlatform:
    return HostPlatform(os="macos", arch="arm64")
