"""Typer CLI for the Dyn QPS check.

Runs one check and exits with the monitoring plugin convention:
0=OK, 1=WARNING, 2=CRITICAL, 3=UNKNOWN.

Every option can also be supplied as a DYN_QPS_* environment variable
(DYN_QPS_PASSWORD, DYN_QPS_CRITICAL, ...). Values are validated by CheckConfig
rather than by the option parser, so bad input reports UNKNOWN instead of
click's usage exit code (2), which would read as CRITICAL.
"""

from __future__ import annotations

import logging
import sys
from typing import Annotated

import click
import typer
from rich.console import Console

from dyn_qps.check import failure_result, run_check
from dyn_qps.errors import InvalidConfigurationError
from dyn_qps.evaluation import format_qps
from dyn_qps.models import DEFAULT_API_URL, CheckConfig, CheckResult, Verdict

app = typer.Typer(
    name="dyn-qps-check",
    help="Alert when the 95th percentile of Dyn DNS queries per second nears the commit rate",
    no_args_is_help=False,
    add_completion=False,
)
console = Console(highlight=False, soft_wrap=True)
logger = logging.getLogger("dyn_qps.cli")

OUTPUT_FORMATS = ("text", "json")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_result(result: CheckResult, output_format: str) -> None:
    if output_format == "json":
        console.print_json(result.model_dump_json())
        return

    if result.value is not None:
        console.print(format_qps(result.value), markup=False)
    console.print(f"DynQPS {result.verdict.upper()}: {result.message}", markup=False)
    for note in result.notes:
        console.print(f"note: {note}", markup=False)


@app.command()
def check(
    url: Annotated[
        str | None, typer.Option("--url", "-u", help=f"Dyn API URL [default: {DEFAULT_API_URL}]")
    ] = None,
    customer: Annotated[
        str | None, typer.Option("--customer", "-C", help="Your Dyn customer name")
    ] = None,
    username: Annotated[
        str | None, typer.Option("--username", "-U", help="Your Dyn username")
    ] = None,
    password: Annotated[
        str | None, typer.Option("--password", "-P", help="Your Dyn password")
    ] = None,
    period: Annotated[
        str | None,
        typer.Option("--period", "-p", help="Period of time to query: day, week or month"),
    ] = None,
    critical: Annotated[
        str | None,
        typer.Option("--critical", "-c", help="Critical threshold, e.g. your Dyn query allotment"),
    ] = None,
    warning: Annotated[
        str | None,
        typer.Option("--warning", "-w", help="Warning threshold, close to your query allotment"),
    ] = None,
    retries: Annotated[
        str | None,
        typer.Option(
            "--retries",
            "-r",
            help="Redirects (301/302/307) to follow before giving up [default: 50]",
        ),
    ] = None,
    retry_delay: Annotated[
        str | None,
        typer.Option("--retry-delay", help="Seconds to wait after each redirect [default: 5]"),
    ] = None,
    timeout: Annotated[
        str | None, typer.Option("--timeout", help="Per-request timeout in seconds [default: 30]")
    ] = None,
    output_format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log protocol steps to stderr")
    ] = False,
) -> None:
    """Check the p95 queries per second of a Dyn account against thresholds."""
    _configure_logging(verbose)

    if output_format not in OUTPUT_FORMATS:
        result = failure_result(
            InvalidConfigurationError(f"Unknown output format '{output_format}'. Use text or json")
        )
        _print_result(result, "text")
        raise typer.Exit(result.exit_code)

    try:
        config = CheckConfig.load(
            url=url,
            customer=customer,
            user=username,
            password=password,
            period=period,
            critical=critical,
            warning=warning,
            retries=retries,
            retry_delay_sec=retry_delay,
            timeout_sec=timeout,
        )
    except InvalidConfigurationError as e:
        result = failure_result(e)
    else:
        try:
            result = run_check(config)
        except Exception as e:
            logger.exception("Unexpected error while running the check")
            result = CheckResult(
                verdict=Verdict.UNKNOWN,
                message=f"Check failed unexpectedly: {e}",
                error=type(e).__name__,
            )

    _print_result(result, output_format)
    raise typer.Exit(result.exit_code)


def main() -> None:
    """Console script entry point; maps usage errors to UNKNOWN."""
    try:
        code = app(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        code = Verdict.UNKNOWN.exit_code
    sys.exit(code or 0)


if __name__ == "__main__":
    main()
