"""
Installer error taxonomy.

Runners and strategies report failures as Receipts; the services
convert them into these exceptions at their boundary, carrying the
command and exit status that caused them. Only the orchestrator
decides whether one is fatal.
"""

from __future__ import annotations

from enum import Enum


class InstallErrorKind(str, Enum):
    DOWNLOAD_FAILED = "DownloadFailed"
    EXTRACT_FAILED = "ExtractFailed"
    PERMISSION_DENIED = "PermissionDenied"
    UNSUPPORTED_PLATFORM = "UnsupportedPlatform"
    STRATEGY_FAILED = "StrategyFailed"
    VERIFICATION_FAILED = "VerificationFailed"


class ModelErrorKind(str, Enum):
    SOURCE_NOT_FOUND = "SourceNotFound"
    PULL_FAILED = "PullFailed"
    IMPORT_FAILED = "ImportFailed"
    REMOVE_FAILED = "RemoveFailed"
    RUNTIME_MISSING = "RuntimeMissing"


class InstallerError(Exception):
    """Base class for every error the installer reports."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        exit_status: int | None = None,
        remediation: str = "",
    ):
        super().__init__(message)
        self.command = command
        self.exit_status = exit_status
        self.remediation = remediation


class PrerequisiteMissing(InstallerError):
    """A required external tool is absent and no install route exists."""

    def __init__(self, tool: str, message: str = "", **kwargs):
        super().__init__(message or f"{tool} is required but no install route is available", **kwargs)
        self.tool = tool


class InstallError(InstallerError):
    """Installing one external tool failed."""

    def __init__(self, tool: str, kind: InstallErrorKind, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.tool = tool
        self.kind = kind


class ModelError(InstallerError):
    """A pull, import or removal through the runtime CLI failed."""

    def __init__(self, model: str, kind: ModelErrorKind, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.model = model
        self.kind = kind
