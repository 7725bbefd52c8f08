"""Adapters — bindings to the host: command runners and install strategies.

Public re-exports for convenient access.
"""

from cclocal.adapters.base import CommandRunner
from cclocal.adapters.mock import MockRunner
from cclocal.adapters.shell.command import ShellCommandRunner

__all__ = [
    "CommandRunner",
    "MockRunner",
    "ShellCommandRunner",
]
