"""Verdict evaluation - deterministic threshold rules.

Gates are checked most severe first, and comparisons are inclusive, so a value
sitting exactly on a threshold takes the more severe state:
- CRITICAL: value >= critical
- WARNING: value >= warning
- OK: otherwise
"""

from dyn_qps.models import CheckResult, Verdict


def format_qps(value: float) -> str:
    """Render a QPS figure with at most two decimals and no trailing zeros."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


def evaluate(value: float, warning: float, critical: float) -> CheckResult:
    """Classify a p95 QPS value against the warning and critical thresholds."""
    shown = format_qps(value)

    if value >= critical:
        return CheckResult(
            verdict=Verdict.CRITICAL,
            value=value,
            message=f"DynQPS is critical. QPS is {shown} of {format_qps(critical)}",
        )
    if value >= warning:
        return CheckResult(
            verdict=Verdict.WARNING,
            value=value,
            message=f"DynQPS is warning. QPS is {shown} of {format_qps(warning)}",
        )
    return CheckResult(
        verdict=Verdict.OK,
        value=value,
        message=f"DynQPS is ok. QPS is {shown} of {format_qps(warning)}",
    )
