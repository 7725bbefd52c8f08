"""
End-to-end tests for the orchestrator over real services and a MockRunner.

Only the host boundary is faked: commands go to a MockRunner, PATH
lookups are patched, and the runtime health check is injected.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from cclocal.adapters.mock import MockRunner
from cclocal.adapters.registry import StrategyRegistry
from cclocal.core.models.host import HostPlatform
from cclocal.core.models.install import InstallConfig, InstallMode
from cclocal.core.services.assistant import AssistantCli
from cclocal.core.services.environment import EnvironmentReconciler
from cclocal.core.services.installer import PackageInstaller
from cclocal.core.services.model_manager import ModelManager
from cclocal.core.services.orchestrator import Orchestrator, build_orchestrator
from cclocal.core.services.probe import CapabilityProbe
from cclocal.core.services.runtime import RuntimeService

_HEADER = "NAME    ID    SIZE    MODIFIED\n"
_WITH_DEMO = _HEADER + "demo:latest    abc123    4.1 GB    2 days ago\n"
_INSTALL_HELP = "Usage: claude install [options] [target]\n  --model <model>  Default model\n"


class RecordingOutput:
    def __init__(self):
        self.lines: list[tuple[str, str, str]] = []

    def _add(self, kind, message, remediation=""):
        self.lines.append((kind, message, remediation))

    def step(self, message):
        self._add("step", message)

    def info(self, message):
        self._add("info", message)

    def success(self, message):
        self._add("success", message)

    def warning(self, message, remediation=""):
        self._add("warning", message, remediation)

    def error(self, message, remediation=""):
        self._add("error", message, remediation)

    def heading(self, message):
        self._add("heading", message)

    def of(self, kind: str) -> list[tuple[str, str]]:
        return [(m, r) for k, m, r in self.lines if k == kind]


@pytest.fixture(autouse=True)
def fixed_path(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PATH", "/usr/bin:/bin")


@pytest.fixture
def which():
    """Every tool 'installed' in /usr/bin unless a test says otherwise."""
    present = {"ollama", "claude"}
    with patch(
        "cclocal.core.services.probe.shutil.which",
        side_effect=lambda name: f"/usr/bin/{name}" if name in present else None,
    ):
        yield present


def _orchestrator(
    runner: MockRunner,
    home: Path,
    install_dir: Path,
    *,
    host: HostPlatform | None = None,
    registry: StrategyRegistry | None = None,
    healthy: bool = True,
    prompter=None,
):
    host = host or HostPlatform(os="linux", arch="amd64")
    probe = CapabilityProbe(runner, host)
    runner.set_output(["claude", "help", "install"], _INSTALL_HELP)
    output = RecordingOutput()
    orchestrator = Orchestrator(
        host=host,
        probe=probe,
        installer=PackageInstaller(
            probe, registry or StrategyRegistry(), host, fallback_dirs=[home / ".claude" / "local"]
        ),
        models=ModelManager(runner),
        runtime=RuntimeService(runner, health_check=lambda url: healthy, sleep=lambda s: None),
        assistant=AssistantCli(runner),
        reconciler=EnvironmentReconciler(install_dir, home=home, shell="/bin/bash"),
        output=output,
        prompter=prompter,
    )
    return orchestrator, output


def _config(install_dir: Path, **kwargs) -> InstallConfig:
    kwargs.setdefault("mode", InstallMode.NON_INTERACTIVE)
    kwargs.setdefault("model_name", "demo")
    return InstallConfig(install_dir=install_dir, **kwargs)


class TestInstall:
    def test_present_runtime_and_model(self, which, runner, fake_home, install_dir):
        """Nothing to install or pull; only the host files are written."""
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, output = _orchestrator(runner, fake_home, install_dir)

        code = orch.run(_config(install_dir, context_tokens=8192))

        assert code == 0
        assert runner.calls_starting_with("ollama", "pull") == []
        assert runner.calls_starting_with("brew") == []
        wrapper = (install_dir / "claude-local").read_text()
        assert "OLLAMA_CONTEXT_LENGTH=8192" in wrapper
        assert "--model demo" in wrapper
        env = (fake_home / ".config" / "claude-code-local" / "env").read_text()
        assert 'export OLLAMA_CONTEXT_LENGTH="8192"' in env
        rc_lines = (fake_home / ".bashrc").read_text().splitlines()
        assert len([line for line in rc_lines if line.endswith("# claude-code-local")]) == 1
        assert output.of("warning") == []

    def test_rerun_is_idempotent(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, _ = _orchestrator(runner, fake_home, install_dir)
        config = _config(install_dir, context_tokens=8192)

        orch.run(config)
        first = {p: p.read_bytes() for p in (install_dir / "claude-local", fake_home / ".bashrc")}
        orch.run(config)

        assert {p: p.read_bytes() for p in first} == first

    def test_pulls_missing_model(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _HEADER)
        runner.on_command(["ollama", "pull"], lambda cmd: runner.set_output(["ollama", "list"], _WITH_DEMO))
        orch, output = _orchestrator(runner, fake_home, install_dir)

        assert orch.run(_config(install_dir, context_tokens=4096)) == 0
        assert runner.calls_starting_with("ollama", "pull") == [["ollama", "pull", "demo"]]
        assert output.of("warning") == []

    def test_pull_failure_is_a_warning(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _HEADER)
        runner.set_failure(["ollama", "pull"], "connection refused")
        orch, output = _orchestrator(runner, fake_home, install_dir)

        assert orch.run(_config(install_dir, context_tokens=4096)) == 0
        remediations = [r for _, r in output.of("warning")]
        assert "ollama pull demo" in remediations
        assert (install_dir / "claude-local").exists()

    def test_context_from_vram(self, which, fake_home, install_dir):
        runner = MockRunner(available={"nvidia-smi"})
        runner.set_output(
            ["nvidia-smi", "--query-gpu=memory.total", "--format=csv,noheader,nounits"], "49152\n"
        )
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, _ = _orchestrator(runner, fake_home, install_dir)

        assert orch.run(_config(install_dir)) == 0
        assert "OLLAMA_CONTEXT_LENGTH=262144" in (install_dir / "claude-local").read_text()

    def test_runtime_unavailable_is_fatal(self, which, runner, fake_home, install_dir):
        which.discard("ollama")
        orch, output = _orchestrator(runner, fake_home, install_dir)

        assert orch.run(_config(install_dir, context_tokens=4096)) == 1
        (message, remediation), = output.of("error")
        assert "Ollama" in message
        assert "ollama.com/install.sh" in remediation
        assert not (install_dir / "claude-local").exists()

    def test_runtime_not_responding_is_a_warning(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, output = _orchestrator(runner, fake_home, install_dir, healthy=False)

        assert orch.run(_config(install_dir, context_tokens=4096)) == 0
        assert runner.spawn_log == [["ollama", "serve"]]
        assert any("not responding" in m for m, _ in output.of("warning"))

    def test_assistant_missing_is_a_warning(self, which, runner, fake_home, install_dir):
        which.discard("claude")
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, output = _orchestrator(runner, fake_home, install_dir)

        assert orch.run(_config(install_dir, context_tokens=4096)) == 0
        remediations = [r for _, r in output.of("warning")]
        assert any("claude.ai/install.sh" in r for r in remediations)
        assert (install_dir / "claude-local").exists()

    def test_assistant_default_model_set(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, output = _orchestrator(runner, fake_home, install_dir)

        assert orch.run(_config(install_dir, context_tokens=4096)) == 0
        assert runner.calls_starting_with("claude", "install") == [["claude", "install", "--model", "demo"]]
        assert ("Default model set to demo", "") in output.of("success")

    def test_assistant_without_model_option_is_a_warning(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, output = _orchestrator(runner, fake_home, install_dir)
        runner.set_output(["claude", "help", "install"], "Usage: claude install [target]\n")

        assert orch.run(_config(install_dir, context_tokens=4096)) == 0
        assert runner.calls_starting_with("claude", "install") == []
        assert any("configure the model manually" in m for m, _ in output.of("warning"))

    def test_assistant_model_failure_is_a_warning(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, output = _orchestrator(runner, fake_home, install_dir)
        runner.set_failure(["claude", "install"], "unknown model")

        assert orch.run(_config(install_dir, context_tokens=4096)) == 0
        assert "claude install --model demo" in [r for _, r in output.of("warning")]
        assert (install_dir / "claude-local").exists()

    def test_model_still_missing_is_a_warning(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _HEADER)
        orch, output = _orchestrator(runner, fake_home, install_dir)

        assert orch.run(_config(install_dir, context_tokens=4096)) == 0
        assert any("not listed" in m for m, _ in output.of("warning"))

    def test_gguf_import(self, which, runner, fake_home, install_dir, tmp_path):
        source = tmp_path / "local.gguf"
        source.write_bytes(b"GGUF")
        runner.set_output(["ollama", "list"], _HEADER + "mine:latest    x    1 GB    now\n")
        orch, _ = _orchestrator(runner, fake_home, install_dir)

        code = orch.run(_config(install_dir, model_name="mine", gguf_import_path=source, context_tokens=4096))

        assert code == 0
        assert runner.calls_starting_with("ollama", "create", "mine")
        assert runner.calls_starting_with("ollama", "pull") == []
        assert "--model mine" in (install_dir / "claude-local").read_text()

    def test_gguf_missing_is_fatal(self, which, runner, fake_home, install_dir, tmp_path):
        orch, output = _orchestrator(runner, fake_home, install_dir)

        code = orch.run(_config(install_dir, gguf_import_path=tmp_path / "gone.gguf", context_tokens=4096))

        assert code == 1
        assert output.of("error")
        assert not (install_dir / "claude-local").exists()

    def test_prompter_used_in_interactive_mode(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        seen = {}

        def prompter(config, suggested, vram_gb):
            seen.update(suggested=suggested, vram=vram_gb)
            return config.model_copy(update={"context_tokens": 2048})

        orch, _ = _orchestrator(runner, fake_home, install_dir, prompter=prompter)
        assert orch.run(_config(install_dir, mode=InstallMode.CUSTOM)) == 0
        assert seen == {"suggested": 4096, "vram": 0}
        assert "OLLAMA_CONTEXT_LENGTH=2048" in (install_dir / "claude-local").read_text()

    def test_prompter_skipped_when_non_interactive(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)

        def prompter(*args):
            raise AssertionError("should not prompt")

        orch, _ = _orchestrator(runner, fake_home, install_dir, prompter=prompter)
        assert orch.run(_config(install_dir, context_tokens=4096)) == 0

    def test_fresh_install_dir_put_on_path(self, runner, fake_home, install_dir):
        binary = install_dir / "ollama"
        install_dir.mkdir(parents=True)
        binary.write_text("#!/bin/sh\n")
        binary.chmod(0o755)
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, _ = _orchestrator(runner, fake_home, install_dir)

        with patch("cclocal.core.services.probe.shutil.which", return_value=None):
            orch.run(_config(install_dir, context_tokens=4096))

        assert os.environ["PATH"].split(os.pathsep)[0] == str(install_dir)


class TestUnsupported:
    @pytest.mark.parametrize("os_name", ["windows", "unknown"])
    def test_manual_instructions(self, runner, fake_home, install_dir, os_name):
        orch, output = _orchestrator(runner, fake_home, install_dir, host=HostPlatform(os=os_name))

        assert orch.run(_config(install_dir)) == 0
        assert runner.call_count == 0
        assert any("ollama pull demo" in m for m, _ in output.of("info"))
        assert not (install_dir / "claude-local").exists()


class TestUninstall:
    def test_twice(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, _ = _orchestrator(runner, fake_home, install_dir)
        orch.run(_config(install_dir, context_tokens=8192))

        runner.on_command(["ollama", "rm"], lambda cmd: runner.set_output(["ollama", "list"], _HEADER))
        config = _config(install_dir, mode=InstallMode.UNINSTALL, remove_model_on_uninstall=True)

        orch, first = _orchestrator(runner, fake_home, install_dir)
        assert orch.run(config) == 0
        assert runner.calls_starting_with("ollama", "rm") == [["ollama", "rm", "demo"]]
        assert first.of("warning") == []
        assert not (install_dir / "claude-local").exists()
        assert "claude-code-local" not in (fake_home / ".bashrc").read_text()

        orch, second = _orchestrator(runner, fake_home, install_dir)
        assert orch.run(config) == 0
        warnings = [m for m, _ in second.of("warning")]
        assert warnings
        assert all("already absent" in m for m in warnings)
        assert [m for m, _ in second.of("success")] == ["Uninstall complete"]
        assert len(runner.calls_starting_with("ollama", "rm")) == 1

    def test_keeps_model_without_flag(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        orch, _ = _orchestrator(runner, fake_home, install_dir)

        assert orch.run(_config(install_dir, mode=InstallMode.UNINSTALL)) == 0
        assert runner.calls_starting_with("ollama", "rm") == []

    def test_remove_model_without_runtime(self, which, runner, fake_home, install_dir):
        which.discard("ollama")
        orch, output = _orchestrator(runner, fake_home, install_dir)

        config = _config(install_dir, mode=InstallMode.UNINSTALL, remove_model_on_uninstall=True)
        assert orch.run(config) == 0
        assert any("Ollama is not installed" in m for m, _ in output.of("warning"))
        assert runner.calls_starting_with("ollama") == []

    def test_remove_failure_is_a_warning(self, which, runner, fake_home, install_dir):
        runner.set_output(["ollama", "list"], _WITH_DEMO)
        runner.set_failure(["ollama", "rm"], "model is in use")
        orch, output = _orchestrator(runner, fake_home, install_dir)

        config = _config(install_dir, mode=InstallMode.UNINSTALL, remove_model_on_uninstall=True)
        assert orch.run(config) == 0
        assert ("Removal of 'demo' failed: model is in use", "ollama rm demo") in output.of("warning")


def test_build_orchestrator_wires_services(fake_home, install_dir):
    runner = MockRunner()
    orch = build_orchestrator(
        _config(install_dir, runtime_url="http://gpu:11434"),
        RecordingOutput(),
        runner=runner,
        host=HostPlatform(os="linux", arch="arm64"),
    )
    assert orch.host.arch == "arm64"
    assert orch.runtime.url == "http://gpu:11434/"
    assert orch.reconciler.wrapper_path == install_dir / "claude-local"
    assert orch.prompter is None
