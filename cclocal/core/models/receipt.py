"""
Receipt model — the execution contract.

Every external command and every install strategy reports its outcome
as a Receipt. Runners and strategies never raise: failures are
captured here and converted into typed errors by the services that
own the fatal-vs-warn decision.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of one command or strategy execution."""

    strategy: str                   # runner / strategy that produced it
    target: str                     # command line or tool name
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    return_code: int | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the execution succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the execution failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        strategy: str,
        target: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            strategy=strategy,
            target=target,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        strategy: str,
        target: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            strategy=strategy,
            target=target,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        strategy: str,
        target: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(
            strategy=strategy,
            target=target,
            status="skipped",
            output=reason,
            **kwargs,
        )
