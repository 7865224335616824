"""Check verdicts and the tagged outcome of a check run.

Verdict States (monitoring plugin convention):
- OK (0): p95 QPS below the warning threshold
- WARNING (1): p95 QPS at or above warning
- CRITICAL (2): p95 QPS at or above critical, or the API is unusable
- UNKNOWN (3): the check itself could not produce a number
"""

from enum import StrEnum

from pydantic import BaseModel, Field


class Verdict(StrEnum):
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES: dict[Verdict, int] = {
    Verdict.OK: 0,
    Verdict.WARNING: 1,
    Verdict.CRITICAL: 2,
    Verdict.UNKNOWN: 3,
}


class CheckResult(BaseModel):
    """Outcome of one check run: either an evaluated value or a classified error."""

    verdict: Verdict
    message: str
    value: float | None = Field(default=None, description="Computed p95 QPS, when available")
    error: str | None = Field(default=None, description="Error class name for failed runs")
    notes: list[str] = Field(
        default_factory=list, description="Advisory messages, e.g. a failed logout"
    )

    @property
    def exit_code(self) -> int:
        return self.verdict.exit_code
