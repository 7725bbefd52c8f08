"""
Console output — the operator-facing side of a run.

Progress, warnings and the final summary are printed with
``click.secho``; diagnostics go through ``logging`` instead.
"""

from __future__ import annotations

import click


class ConsoleOutput:
    """Colored one-line status messages."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def step(self, message: str) -> None:
        if not self.quiet:
            click.secho(f"▶ {message}", fg="cyan", bold=True)

    def info(self, message: str) -> None:
        if not self.quiet:
            click.echo(f"   {message}")

    def success(self, message: str) -> None:
        if not self.quiet:
            click.secho(f"✓ {message}", fg="green")

    def warning(self, message: str, remediation: str = "") -> None:
        """Warnings are shown even in quiet mode."""
        click.secho(f"⚠ {message}", fg="yellow", err=True)
        if remediation:
            click.secho(f"   → {remediation}", fg="yellow", err=True)

    def error(self, message: str, remediation: str = "") -> None:
        click.secho(f"✗ {message}", fg="red", bold=True, err=True)
        if remediation:
            click.secho(f"   → {remediation}", fg="red", err=True)

    def heading(self, message: str) -> None:
        if not self.quiet:
            click.echo()
            click.secho(message, fg="white", bold=True)
