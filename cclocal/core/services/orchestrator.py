"""
Installation Orchestrator — sequences one run.

The only place that decides whether a failure is fatal. Services
raise ``InstallerError`` subclasses; here they become either an
error line plus exit code 1, or a warning and the run continues.

Pipeline for the install modes::

    runtime installed  [fatal]
    runtime answering  [warn]
    model imported     [fatal]  or  model pulled  [warn]
    assistant CLI      [warn]
    assistant model    [warn]
    wrapper, env file, rc hook
    model listed       [warn]
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from cclocal.adapters.base import CommandRunner
from cclocal.adapters.registry import StrategyRegistry
from cclocal.adapters.shell.command import ShellCommandRunner
from cclocal.core.data.constants import ASSISTANT_TOOL, RUNTIME_TOOL, WRAPPER_NAME
from cclocal.core.data.tools import get_tool_spec
from cclocal.core.errors import InstallerError, ModelError
from cclocal.core.models.host import HostPlatform
from cclocal.core.models.install import InstallConfig, InstallMode
from cclocal.core.services.assistant import AssistantCli
from cclocal.core.services.environment import EnvironmentReconciler
from cclocal.core.services.installer import PackageInstaller
from cclocal.core.services.model_manager import ModelManager
from cclocal.core.services.probe import CapabilityProbe, detect_platform
from cclocal.core.services.runtime import RuntimeService
from cclocal.core.services.sizing import context_for_vram, resolve_context

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1

# (config, suggested_context, vram_gb) -> confirmed config
Prompter = Callable[[InstallConfig, int, int], InstallConfig]

_MANUAL_INSTRUCTIONS = (
    "Automated setup supports macOS and Linux only. To set up manually:",
    "  1. Install Ollama from https://ollama.com/download",
    "  2. Install the Claude Code CLI: npm install -g @anthropic-ai/claude-code",
    "  3. Pull a model:               ollama pull {model}",
    "  4. Launch:                     ollama launch claude --model {model}",
)


class Output(Protocol):
    """What the orchestrator needs from the console."""

    def step(self, message: str) -> None: ...
    def info(self, message: str) -> None: ...
    def success(self, message: str) -> None: ...
    def warning(self, message: str, remediation: str = "") -> None: ...
    def error(self, message: str, remediation: str = "") -> None: ...
    def heading(self, message: str) -> None: ...


class Orchestrator:
    """Drive one install or uninstall run to an exit code."""

    def __init__(
        self,
        *,
        host: HostPlatform,
        probe: CapabilityProbe,
        installer: PackageInstaller,
        models: ModelManager,
        runtime: RuntimeService,
        assistant: AssistantCli,
        reconciler: EnvironmentReconciler,
        output: Output,
        prompter: Prompter | None = None,
    ):
        self.host = host
        self.probe = probe
        self.installer = installer
        self.models = models
        self.runtime = runtime
        self.assistant = assistant
        self.reconciler = reconciler
        self.output = output
        self.prompter = prompter

    def run(self, config: InstallConfig) -> int:
        logger.debug("Run mode=%s host=%s/%s", config.mode.value, self.host.os, self.host.arch)
        if not self.host.supported:
            return self._unsupported(config)
        if config.mode is InstallMode.UNINSTALL:
            return self._uninstall(config)
        return self._install(config)

    # ── Unsupported OS ─────────────────────────────────────────

    def _unsupported(self, config: InstallConfig) -> int:
        self.output.warning(f"Unsupported platform: {self.host.os}")
        for line in _MANUAL_INSTRUCTIONS:
            self.output.info(line.format(model=config.model_name))
        return EXIT_OK

    # ── Uninstall ──────────────────────────────────────────────

    def _uninstall(self, config: InstallConfig) -> int:
        self.output.step("Removing claude-code-local files")
        for outcome in self.reconciler.remove_all():
            if outcome.absent:
                self.output.warning(f"{outcome.path} already absent")
            else:
                self.output.success(f"Removed {outcome.path}")

        if config.remove_model_on_uninstall:
            self._remove_model(config.model_name, config.install_dir)

        self.output.success("Uninstall complete")
        return EXIT_OK

    def _remove_model(self, model: str, install_dir: Path) -> None:
        presence = self.probe.probe(RUNTIME_TOOL, extra_dirs=self.installer.search_dirs(install_dir))
        if not presence.found:
            self.output.warning(f"Model {model} already absent (Ollama is not installed)")
            return
        if not self.models.record(model).present:
            self.output.warning(f"Model {model} already absent")
            return
        try:
            self.models.remove(model)
        except ModelError as e:
            self.output.warning(str(e), e.remediation)
            return
        self.output.success(f"Removed model {model}")

    # ── Install ────────────────────────────────────────────────

    def _install(self, config: InstallConfig) -> int:
        vram_gb = self.probe.probe_vram()
        suggested = context_for_vram(vram_gb)
        logger.info("Detected %d GB GPU memory, suggested context %d", vram_gb, suggested)

        if config.mode.interactive and self.prompter is not None:
            config = self.prompter(config, suggested, vram_gb)
        context = resolve_context(config.context_tokens, vram_gb)
        model = config.model_name

        # 1. Runtime
        self.output.step("Checking Ollama")
        try:
            path = self.installer.ensure_installed(RUNTIME_TOOL, config.install_dir)
        except InstallerError as e:
            self.output.error(str(e), e.remediation)
            return EXIT_FATAL
        self.output.success(f"Ollama available at {path}")
        self._ensure_on_path(path)

        if self.runtime.ensure_running():
            self.output.success(f"Ollama is serving on {self.runtime.url}")
        else:
            self.output.warning(
                f"Ollama is not responding on {self.runtime.url}",
                f"{RUNTIME_TOOL} serve",
            )

        # 2. Model
        if config.gguf_import_path is not None:
            self.output.step(f"Importing {config.gguf_import_path}")
            try:
                model = self.models.handle_import(config.gguf_import_path, model)
            except ModelError as e:
                self.output.error(str(e), e.remediation)
                return EXIT_FATAL
            self.output.success(f"Imported model {model}")
        else:
            self._ensure_model(model)

        # 3. Assistant CLI
        self.output.step("Checking Claude Code CLI")
        try:
            path = self.installer.ensure_installed(ASSISTANT_TOOL, config.install_dir)
        except InstallerError as e:
            self.output.warning(
                str(e), e.remediation or get_tool_spec(ASSISTANT_TOOL).manual_hint
            )
        else:
            self.output.success(f"Claude Code CLI available at {path}")
            self._ensure_on_path(path)
            self._set_assistant_model(model)

        # 4. Host files
        self.output.step("Writing launcher and environment")
        wrapper = self.reconciler.ensure_wrapper(model, context)
        self.output.success(f"Wrapper {wrapper}")
        env_vars = self.reconciler.default_env_vars(model, context, config.runtime_url)
        env_file = self.reconciler.ensure_env_file(env_vars)
        self.output.success(f"Env file {env_file}")
        if self.reconciler.ensure_rc_sourced():
            self.output.success(f"Hooked env file into {self.reconciler.rc_path}")
        else:
            self.output.info(f"{self.reconciler.rc_path} already sources the env file")

        # 5. Verification
        if not self.models.record(model).present:
            self.output.warning(
                f"Model {model} is not listed by Ollama",
                f"{RUNTIME_TOOL} pull {model}",
            )

        self._summary(model, context)
        return EXIT_OK

    def _ensure_on_path(self, path: Path) -> None:
        """Make a freshly installed binary callable by name for the rest of the run."""
        directory = str(path.parent)
        current = os.environ.get("PATH", "")
        if directory not in current.split(os.pathsep):
            logger.debug("Prepending %s to PATH", directory)
            os.environ["PATH"] = os.pathsep.join([directory, current]) if current else directory

    def _set_assistant_model(self, model: str) -> None:
        self.output.step(f"Setting the assistant's default model to {model}")
        try:
            supported = self.assistant.set_default_model(model)
        except InstallerError as e:
            self.output.warning(str(e), e.remediation)
            return
        if supported:
            self.output.success(f"Default model set to {model}")
        else:
            self.output.warning(
                f"'{ASSISTANT_TOOL} install' does not accept --model; configure the model manually",
                f"Start the assistant with: {WRAPPER_NAME}",
            )

    def _ensure_model(self, model: str) -> None:
        if self.models.has_model(model):
            self.output.success(f"Model {model} already pulled")
            return
        self.output.step(f"Pulling model {model}")
        try:
            self.models.pull(model)
        except ModelError as e:
            self.output.warning(str(e), e.remediation)
            return
        self.output.success(f"Pulled model {model}")

    def _summary(self, model: str, context: int) -> None:
        self.output.heading("Setup complete")
        self.output.info(f"Model:   {model}")
        self.output.info(f"Context: {context} tokens")
        self.output.heading("Next steps")
        self.output.info(f"Open a new shell, or run: . {self.reconciler.env_path}")
        self.output.info(f"Then start the assistant with: {WRAPPER_NAME}")


def build_orchestrator(
    config: InstallConfig,
    output: Output,
    *,
    prompter: Prompter | None = None,
    runner: CommandRunner | None = None,
    host: HostPlatform | None = None,
) -> Orchestrator:
    """Wire the real services for ``config``."""
    runner = runner or ShellCommandRunner()
    host = host or detect_platform()
    probe = CapabilityProbe(runner, host)
    return Orchestrator(
        host=host,
        probe=probe,
        installer=PackageInstaller(probe, StrategyRegistry.default(runner), host),
        models=ModelManager(runner, cli=get_tool_spec(RUNTIME_TOOL).cli),
        runtime=RuntimeService(runner, cli=get_tool_spec(RUNTIME_TOOL).cli, url=config.runtime_url),
        assistant=AssistantCli(runner, cli=get_tool_spec(ASSISTANT_TOOL).cli),
        reconciler=EnvironmentReconciler(config.install_dir),
        output=output,
        prompter=prompter,
    )
