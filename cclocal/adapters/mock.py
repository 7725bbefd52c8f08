"""
Mock runner — universal test double for external commands.

Records every command it receives and answers from scripted
responses matched by command prefix. Unscripted commands succeed
with a default output.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from cclocal.adapters.base import CommandRunner
from cclocal.core.models.receipt import Receipt


class MockRunner(CommandRunner):
    """Universal mock runner for testing.

    By default, every command succeeds. Responses are matched by the
    longest registered prefix of the command list.
    """

    def __init__(
        self,
        available: set[str] | None = None,
        default_output: str = "",
    ):
        self._available = set(available or ())
        self._default_output = default_output
        self._responses: dict[tuple[str, ...], Receipt] = {}
        self._effects: dict[tuple[str, ...], Callable[[list[str]], None]] = {}
        self._call_log: list[list[str]] = []
        self._spawn_log: list[list[str]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[list[str]]:
        """Every command passed to ``run``, in order."""
        return self._call_log

    @property
    def spawn_log(self) -> list[list[str]]:
        """Every command passed to ``spawn``, in order."""
        return self._spawn_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls_starting_with(self, *prefix: str) -> list[list[str]]:
        """Recorded commands whose first elements equal ``prefix``."""
        return [c for c in self._call_log if tuple(c[: len(prefix)]) == prefix]

    def set_available(self, *programs: str) -> None:
        self._available.update(programs)

    def is_available(self, program: str) -> bool:
        return program in self._available

    def set_response(self, prefix: list[str], receipt: Receipt) -> None:
        """Answer commands starting with ``prefix`` with ``receipt``."""
        self._responses[tuple(prefix)] = receipt

    def set_output(self, prefix: list[str], output: str) -> None:
        """Succeed with ``output`` for commands starting with ``prefix``."""
        self.set_response(
            prefix,
            Receipt.success(strategy=self.name, target=" ".join(prefix), output=output, return_code=0),
        )

    def set_failure(self, prefix: list[str], error: str = "Mock failure", return_code: int = 1) -> None:
        """Fail commands starting with ``prefix``."""
        self.set_response(
            prefix,
            Receipt.failure(strategy=self.name, target=" ".join(prefix), error=error, return_code=return_code),
        )

    def on_command(self, prefix: list[str], effect: Callable[[list[str]], None]) -> None:
        """Run ``effect(cmd)`` whenever a matching command executes."""
        self._effects[tuple(prefix)] = effect

    def _match(self, table: dict, cmd: list[str]):
        best = None
        for prefix in table:
            if tuple(cmd[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        return table[best] if best is not None else None

    def run(
        self,
        cmd: list[str],
        *,
        timeout: int | None = 300,
        cwd: Path | None = None,
        stream: bool = False,
        env_overrides: dict[str, str] | None = None,
    ) -> Receipt:
        self._call_log.append(list(cmd))

        effect = self._match(self._effects, cmd)
        if effect is not None:
            effect(list(cmd))

        receipt = self._match(self._responses, cmd)
        if receipt is not None:
            return receipt

        return Receipt.success(
            strategy=self.name,
            target=" ".join(cmd),
            output=self._default_output,
            return_code=0,
            metadata={"mock": True},
        )

    def spawn(self, cmd: list[str]) -> Receipt:
        self._spawn_log.append(list(cmd))
        return Receipt.success(strategy=self.name, target=" ".join(cmd), metadata={"mock": True})

    def reset(self) -> None:
        """Clear call logs, responses and effects."""
        self._call_log.clear()
        self._spawn_log.clear()
        self._responses.clear()
        self._effects.clear()
