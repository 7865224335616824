"""Pydantic models for the Dyn QPS check."""

from .config import DEFAULT_API_URL, CheckConfig, Period
from .verdict import CheckResult, Verdict
from .window import TimeWindow

__all__ = [
    "DEFAULT_API_URL",
    "CheckConfig",
    "CheckResult",
    "Period",
    "TimeWindow",
    "Verdict",
]
