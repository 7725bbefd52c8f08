"""
Configuration loader — flags, environment and an optional YAML file.

Builds the frozen InstallConfig for one run. Precedence, highest
first: CLI flag > config file > built-in default. ``CI`` in the
environment forces non-interactive mode.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from cclocal.core.data.constants import (
    DEFAULT_MODEL,
    DEFAULT_RUNTIME_URL,
    default_config_file,
    default_install_dir,
)
from cclocal.core.models.install import InstallConfig, InstallMode

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CCL_CONFIG"

_FALSY = {"", "0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when configuration is invalid or unreadable."""


class FileSettings(BaseModel):
    """Keys accepted in ``config.yml``. All optional."""

    model_config = ConfigDict(extra="forbid")

    model: str | None = None
    context: int | None = None
    install_dir: Path | None = None
    runtime_url: str | None = None


def is_truthy(value: str | None) -> bool:
    """Shell-style truthiness for environment flags like ``CI``."""
    return value is not None and value.strip().lower() not in _FALSY


def find_config_file(explicit: Path | None = None) -> Path | None:
    """Resolve the settings file: explicit path, ``$CCL_CONFIG``, default.

    An explicit or env-provided path must exist; the default location
    is optional.
    """
    if explicit is not None:
        return explicit
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    default = default_config_file()
    return default if default.is_file() else None


def load_settings(path: Path | None) -> FileSettings:
    """Read and validate a settings file (``None`` → empty settings).

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        return FileSettings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return FileSettings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return FileSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e


def resolve_mode(
    *,
    uninstall: bool,
    assume_yes: bool,
    interactive_default: InstallMode = InstallMode.RECOMMENDED,
) -> InstallMode:
    """Pick the run mode from flags and the ``CI`` variable."""
    if uninstall:
        return InstallMode.UNINSTALL
    if assume_yes or is_truthy(os.environ.get("CI")):
        return InstallMode.NON_INTERACTIVE
    return interactive_default


def build_install_config(
    *,
    mode: InstallMode,
    settings: FileSettings | None = None,
    model: str | None = None,
    context: int | None = None,
    install_dir: Path | None = None,
    gguf: Path | None = None,
    name: str | None = None,
    remove_model: bool = False,
) -> InstallConfig:
    """Merge flags over file settings over defaults.

    With ``--gguf`` the model name is ``--name``, then ``--model``,
    then the file stem, since that is what the import creates.
    """
    settings = settings or FileSettings()

    if context is None:
        context = settings.context
    if context is not None and context <= 0:
        raise ConfigError(f"Context size must be a positive number of tokens, got {context}")

    model_name = model or settings.model or DEFAULT_MODEL
    if gguf is not None:
        model_name = name or model or gguf.stem.lower()

    return InstallConfig(
        mode=mode,
        model_name=model_name,
        context_tokens=context,
        install_dir=(install_dir or settings.install_dir or default_install_dir()).expanduser(),
        remove_model_on_uninstall=remove_model,
        gguf_import_path=gguf.expanduser() if gguf is not None else None,
        runtime_url=settings.runtime_url or DEFAULT_RUNTIME_URL,
    )
