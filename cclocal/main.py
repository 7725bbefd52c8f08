"""
claude-code-local — CLI entrypoint.

Usage:
    claude-code-local                      # interactive setup
    claude-code-local --yes --model demo   # unattended
    claude-code-local --uninstall --remove-model
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from cclocal import __version__
from cclocal.core.config.loader import (
    ConfigError,
    build_install_config,
    find_config_file,
    load_settings,
    resolve_mode,
)
from cclocal.core.observability.logging_config import setup_from_env
from cclocal.core.services.orchestrator import build_orchestrator
from cclocal.ui.cli.output import ConsoleOutput
from cclocal.ui.cli.prompts import choose_settings


@click.command(context_settings={"help_option_names": ["--help", "-h"]})
@click.version_option(version=__version__, prog_name="claude-code-local")
@click.option(
    "--yes", "--ci", "--non-interactive", "assume_yes",
    is_flag=True,
    help="Run without prompts (also implied by a truthy CI variable).",
)
@click.option("--model", default=None, help="Model to pull and launch (default: gpt-oss).")
@click.option("--context", "context", type=int, default=None,
              help="Context window in tokens (default: derived from GPU memory).")
@click.option("--gguf", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Import a local GGUF file instead of pulling.")
@click.option("--name", "model_name", default=None, help="Model name for the --gguf import.")
@click.option("--uninstall", is_flag=True, help="Remove the wrapper, env file and rc hook.")
@click.option("--remove-model", is_flag=True, help="With --uninstall, also remove the model.")
@click.option("--install-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Where binaries and the wrapper go (default: ~/.local/bin).")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.yml (default: ~/.config/claude-code-local/config.yml).",
)
def cli(
    assume_yes: bool,
    model: str | None,
    context: int | None,
    gguf: Path | None,
    model_name: str | None,
    uninstall: bool,
    remove_model: bool,
    install_dir: Path | None,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """Set up Ollama and the Claude Code CLI to run against a local model."""
    setup_from_env(verbose=verbose, quiet=quiet, debug=debug)
    output = ConsoleOutput(quiet=quiet)

    if remove_model and not uninstall:
        output.warning("--remove-model only applies with --uninstall; ignoring it")
    if model_name and gguf is None:
        output.warning("--name only applies with --gguf; ignoring it")

    try:
        settings = load_settings(find_config_file(config_path))
        mode = resolve_mode(uninstall=uninstall, assume_yes=assume_yes)
        config = build_install_config(
            mode=mode,
            settings=settings,
            model=model,
            context=context,
            install_dir=install_dir,
            gguf=gguf,
            name=model_name,
            remove_model=remove_model and uninstall,
        )
    except ConfigError as e:
        output.error(str(e))
        sys.exit(1)

    orchestrator = build_orchestrator(
        config,
        output,
        prompter=choose_settings if config.mode.interactive else None,
    )
    sys.exit(orchestrator.run(config))


if __name__ == "__main__":
    cli()
