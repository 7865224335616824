"""QPS report parsing.

The QPSReport endpoint wraps a CSV document in its JSON envelope:

    {"data": {"csv": "Timestamp,Queries\\n1700000000,81000\\n..."}}

Each row counts the queries answered in one 300 second bucket. Column 1 holds
the count; it is converted to queries per second with truncating division.
"""

from __future__ import annotations

import csv
import io
import json
import logging

from dyn_qps.errors import MalformedReportError

logger = logging.getLogger("dyn_qps.report")

BUCKET_SECONDS = 300
COUNT_COLUMN = 1


def _parse_count(raw: str) -> int | None:
    """Parse a query count, or None if the cell is not an integer."""
    try:
        return int(raw)
    except ValueError:
        return None


def _to_rate(count: int) -> int:
    """Queries per second for one bucket, truncated towards zero."""
    if count < 0:
        return -(-count // BUCKET_SECONDS)
    return count // BUCKET_SECONDS


def extract_csv(body: str | bytes) -> str:
    """Pull the CSV payload out of the QPSReport JSON envelope."""
    try:
        document = json.loads(body)
    except ValueError as e:
        raise MalformedReportError(f"Report body is not valid JSON: {e}") from e

    data = document.get("data") if isinstance(document, dict) else None
    payload = data.get("csv") if isinstance(data, dict) else None
    if not isinstance(payload, str):
        raise MalformedReportError("Report body has no data.csv field")
    return payload


def rate_samples(csv_text: str) -> list[int]:
    """Convert CSV rows into per-bucket queries-per-second samples.

    Rows whose count does not parse are skipped. The first sample is always
    dropped: it belongs to the header row.
    """
    samples: list[int] = []
    skipped = 0
    for row in csv.reader(io.StringIO(csv_text)):
        if len(row) <= COUNT_COLUMN:
            skipped += 1
            continue
        count = _parse_count(row[COUNT_COLUMN])
        if count is None:
            skipped += 1
            continue
        samples.append(_to_rate(count))

    if skipped:
        logger.debug("Skipped %d report rows without an integer count", skipped)
    return samples[1:]


def parse_report(body: str | bytes) -> list[int]:
    """Parse a raw QPSReport response body into rate samples."""
    samples = rate_samples(extract_csv(body))
    logger.info("Parsed %d rate samples from QPS report", len(samples))
    return samples
