"""
Interactive prompts for the recommended and custom modes.

Only called when a terminal operator is present; non-interactive and
CI runs never reach this module.
"""

from __future__ import annotations

import click

from cclocal.core.models.install import InstallConfig, InstallMode


def choose_settings(config: InstallConfig, suggested_context: int, vram_gb: int) -> InstallConfig:
    """Confirm (recommended) or collect (custom) model and context.

    An explicit ``--context`` is shown as the default instead of the
    VRAM suggestion.
    """
    context = config.context_tokens or suggested_context

    click.secho("\n🔧 Setup", fg="cyan", bold=True)
    click.echo(f"   Detected GPU memory: {vram_gb} GB")
    click.echo(f"   Recommended model:   {config.model_name}")
    click.echo(f"   Context window:      {context} tokens")
    click.echo()

    choice = click.prompt(
        "Install mode",
        type=click.Choice([InstallMode.RECOMMENDED.value, InstallMode.CUSTOM.value]),
        default=config.mode.value if config.mode.interactive else InstallMode.RECOMMENDED.value,
    )

    if choice == InstallMode.RECOMMENDED.value and click.confirm(
        "Continue with these settings?", default=True
    ):
        return config.model_copy(
            update={"mode": InstallMode.RECOMMENDED, "context_tokens": context}
        )

    if config.gguf_import_path is not None:
        # The import decides the name; only the context is negotiable.
        model = config.model_name
    else:
        model = click.prompt("Model name", default=config.model_name).strip()
    tokens = click.prompt("Context window (tokens)", type=click.IntRange(min=1), default=context)

    return config.model_copy(
        update={"mode": InstallMode.CUSTOM, "model_name": model, "context_tokens": tokens}
    )
