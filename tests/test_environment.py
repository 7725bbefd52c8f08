"""
Tests for the environment reconciler — wrapper, env file and rc hook.
"""

import os
from pathlib import Path

import pytest

from cclocal.core.data.constants import RC_MARKER
from cclocal.core.services.environment import EnvironmentReconciler, default_rc_file


@pytest.fixture
def reconciler(fake_home: Path, install_dir: Path) -> EnvironmentReconciler:
    return EnvironmentReconciler(install_dir, home=fake_home, shell="/bin/bash")


def _ensure_all(rec: EnvironmentReconciler) -> None:
    rec.ensure_wrapper("demo", 8192)
    rec.ensure_env_file(rec.default_env_vars("demo", 8192, "http://127.0.0.1:11434"))
    rec.ensure_rc_sourced()


class TestRcSelection:
    def test_zsh_gets_zshrc(self, tmp_path: Path):
        assert default_rc_file(tmp_path, "/usr/bin/zsh") == tmp_path / ".zshrc"

    def test_bash_gets_bashrc(self, tmp_path: Path):
        assert default_rc_file(tmp_path, "/bin/bash") == tmp_path / ".bashrc"

    def test_unknown_shell_gets_bashrc(self, tmp_path: Path):
        assert default_rc_file(tmp_path, "") == tmp_path / ".bashrc"

    def test_shell_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SHELL", "/bin/zsh")
        assert default_rc_file(tmp_path) == tmp_path / ".zshrc"


class TestWrapper:
    def test_content(self, reconciler: EnvironmentReconciler):
        path = reconciler.ensure_wrapper("demo", 8192)
        content = path.read_text()
        assert content.startswith("#!/bin/sh\n")
        assert "export OLLAMA_CONTEXT_LENGTH=8192\n" in content
        assert 'exec ollama launch claude --model demo "$@"' in content

    def test_executable(self, reconciler: EnvironmentReconciler):
        path = reconciler.ensure_wrapper("demo", 8192)
        assert os.access(path, os.X_OK)

    def test_twice_is_byte_identical(self, reconciler: EnvironmentReconciler):
        first = reconciler.ensure_wrapper("demo", 8192).read_bytes()
        second = reconciler.ensure_wrapper("demo", 8192).read_bytes()
        assert first == second

    def test_new_inputs_overwrite(self, reconciler: EnvironmentReconciler):
        reconciler.ensure_wrapper("demo", 8192)
        content = reconciler.ensure_wrapper("other", 4096).read_text()
        assert "OLLAMA_CONTEXT_LENGTH=4096" in content
        assert "demo" not in content

    def test_creates_install_dir(self, reconciler: EnvironmentReconciler, install_dir: Path):
        assert not install_dir.exists()
        reconciler.ensure_wrapper("demo", 8192)
        assert (install_dir / "claude-local").is_file()


class TestEnvFile:
    def test_export_lines(self, reconciler: EnvironmentReconciler, install_dir: Path):
        variables = reconciler.default_env_vars("demo", 8192, "http://127.0.0.1:11434/")
        path = reconciler.ensure_env_file(variables)
        lines = path.read_text().splitlines()
        assert f'export PATH="{install_dir}:$PATH"' in lines
        assert 'export OLLAMA_CONTEXT_LENGTH="8192"' in lines
        assert 'export ANTHROPIC_BASE_URL="http://127.0.0.1:11434"' in lines
        assert 'export ANTHROPIC_MODEL="demo"' in lines
        assert all(line.startswith("export ") for line in lines)

    def test_lives_under_home_config(self, reconciler: EnvironmentReconciler, fake_home: Path):
        path = reconciler.ensure_env_file({"A": "1"})
        assert path == fake_home / ".config" / "claude-code-local" / "env"

    def test_overwritten_not_appended(self, reconciler: EnvironmentReconciler):
        reconciler.ensure_env_file({"A": "1"})
        path = reconciler.ensure_env_file({"B": "2"})
        assert path.read_text() == 'export B="2"\n'


class TestRcHook:
    def test_appends_once(self, reconciler: EnvironmentReconciler):
        assert reconciler.ensure_rc_sourced() is True
        for _ in range(4):
            assert reconciler.ensure_rc_sourced() is False
        lines = reconciler.rc_path.read_text().splitlines()
        assert lines.count(reconciler.source_line) == 1

    def test_line_carries_marker(self, reconciler: EnvironmentReconciler):
        assert reconciler.source_line.endswith(RC_MARKER)
        assert str(reconciler.env_path) in reconciler.source_line

    def test_preserves_existing_content(self, reconciler: EnvironmentReconciler):
        reconciler.rc_path.write_text("alias ll='ls -l'")
        reconciler.ensure_rc_sourced()
        lines = reconciler.rc_path.read_text().splitlines()
        assert lines == ["alias ll='ls -l'", reconciler.source_line]

    def test_custom_line_and_file(self, reconciler: EnvironmentReconciler, fake_home: Path):
        target = fake_home / ".profile"
        assert reconciler.ensure_rc_sourced(target, "export X=1  # mine")
        assert reconciler.ensure_rc_sourced(target, "export X=1  # mine") is False
        assert target.read_text() == "export X=1  # mine\n"

    def test_non_utf8_rc_file(self, reconciler: EnvironmentReconciler):
        reconciler.rc_path.write_bytes(b"alias caf\xe9=true\n")
        assert reconciler.ensure_rc_sourced()
        assert reconciler.ensure_rc_sourced() is False
        content = reconciler.rc_path.read_bytes()
        assert content.startswith(b"alias caf\xe9=true\n")
        assert content.count(reconciler.source_line.encode()) == 1


class TestRemoveAll:
    def test_removes_everything(self, reconciler: EnvironmentReconciler):
        _ensure_all(reconciler)
        outcomes = reconciler.remove_all()

        assert {o.artifact for o in outcomes} == {"wrapper", "env_file", "rc_file"}
        assert all(o.action == "removed" for o in outcomes)
        assert not reconciler.wrapper_path.exists()
        assert not reconciler.env_path.exists()
        assert RC_MARKER not in reconciler.rc_path.read_text()

    def test_second_run_reports_absent(self, reconciler: EnvironmentReconciler):
        _ensure_all(reconciler)
        reconciler.remove_all()
        outcomes = reconciler.remove_all()
        assert outcomes
        assert all(o.absent for o in outcomes)

    def test_nothing_installed(self, reconciler: EnvironmentReconciler):
        outcomes = reconciler.remove_all()
        assert [o.action for o in outcomes] == ["absent", "absent", "absent"]

    def test_keeps_unmarked_lines(self, reconciler: EnvironmentReconciler):
        reconciler.rc_path.write_text("export EDITOR=vim\n")
        reconciler.ensure_rc_sourced()
        reconciler.remove_all()
        assert reconciler.rc_path.read_text() == "export EDITOR=vim\n"

    def test_strips_every_candidate(self, reconciler: EnvironmentReconciler, fake_home: Path):
        profile = fake_home / ".profile"
        profile.write_text(f"umask 022\nexport PATH=/x:$PATH  {RC_MARKER}\n")
        reconciler.ensure_rc_sourced()

        outcomes = reconciler.remove_all()

        stripped = {o.path for o in outcomes if o.artifact == "rc_file"}
        assert stripped == {profile, reconciler.rc_path}
        assert profile.read_text() == "umask 022\n"

    def test_non_utf8_rc_file_keeps_its_bytes(self, reconciler: EnvironmentReconciler, fake_home: Path):
        profile = fake_home / ".profile"
        profile.write_bytes(b"# caf\xe9\n" + f"export PATH=/x:$PATH  {RC_MARKER}\n".encode())

        outcomes = reconciler.remove_all()

        assert profile in {o.path for o in outcomes if o.action == "removed"}
        assert profile.read_bytes() == b"# caf\xe9\n"
