"""Check runner - wires the session, parser, estimator and evaluator together.

This is the single place where classified errors become a CheckResult:

    TransportError, BadResponseError, RetryExhaustedError -> CRITICAL
    AuthenticationError, MalformedReportError,
    InsufficientDataError, InvalidConfigurationError       -> UNKNOWN

A failed logout is reported as a note and never changes the verdict.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dyn_qps.errors import (
    AuthenticationError,
    BadResponseError,
    DynQPSError,
    InsufficientDataError,
    InvalidConfigurationError,
    MalformedReportError,
    RetryExhaustedError,
    SessionTerminationError,
    TransportError,
)
from dyn_qps.evaluation import evaluate
from dyn_qps.models import CheckConfig, CheckResult, TimeWindow, Verdict
from dyn_qps.report import parse_report
from dyn_qps.session import DynSession
from dyn_qps.stats import P95, percentile

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx
    from whenever import Instant

logger = logging.getLogger("dyn_qps.check")


def failure_result(error: DynQPSError, url: str | None = None) -> CheckResult:
    """Translate a classified error into a CheckResult."""
    match error:
        case TransportError():
            target = url or "The Dyn API"
            verdict, message = Verdict.CRITICAL, f"{target} is not responding. {error}"
        case BadResponseError():
            verdict = Verdict.CRITICAL
            message = f"Could not complete request: HTTP {error.status_code}"
        case RetryExhaustedError():
            verdict, message = Verdict.CRITICAL, str(error)
        case (
            AuthenticationError()
            | MalformedReportError()
            | InsufficientDataError()
            | InvalidConfigurationError()
        ):
            verdict, message = Verdict.UNKNOWN, str(error)
        case _:
            verdict, message = Verdict.UNKNOWN, f"Check failed: {error}"
    return CheckResult(verdict=verdict, message=message, error=type(error).__name__)


def run_check(
    config: CheckConfig,
    *,
    now: Instant | None = None,
    transport: httpx.BaseTransport | None = None,
    sleep: Callable[[float], None] | None = None,
) -> CheckResult:
    """Run one QPS check end to end.

    Args:
        config: Validated check configuration.
        now: End of the report window (defaults to the current time).
        transport: Optional httpx transport, used by tests to fake the API.
        sleep: Optional replacement for the wait between redirected requests.

    Returns:
        CheckResult with the verdict. Classified errors never escape; anything
        else is a bug and propagates to the caller.
    """
    window = TimeWindow.for_period(config.period, now)
    logger.info(
        "Checking %s QPS from %d to %d against warning=%s critical=%s",
        config.period,
        window.start_ts,
        window.end_ts,
        config.warning,
        config.critical,
    )

    session_kwargs: dict = {
        "timeout": config.timeout_sec,
        "retry_delay": config.retry_delay_sec,
        "transport": transport,
    }
    if sleep is not None:
        session_kwargs["sleep"] = sleep

    notes: list[str] = []
    with DynSession(config.base_url, **session_kwargs) as session:
        token: str | None = None
        try:
            token = session.authenticate(
                config.customer, config.user, config.password.get_secret_value()
            )
            body = session.fetch_report(token, window, config.retries)
            samples = parse_report(body)
            value = percentile(samples, P95)
            logger.info("p95 QPS over %d samples is %s", len(samples), value)
            result = evaluate(value, config.warning, config.critical)
        except DynQPSError as e:
            logger.error("Check failed: %s", e)
            result = failure_result(e, config.url)
        finally:
            if token is not None:
                try:
                    session.terminate(token)
                except SessionTerminationError as e:
                    notes.append(str(e))

    if notes:
        result = result.model_copy(update={"notes": [*result.notes, *notes]})
    return result
