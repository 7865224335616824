"""Percentile estimation over QPS rate samples."""

from __future__ import annotations

import math
from collections.abc import Sequence

from dyn_qps.errors import InsufficientDataError

P95 = 0.95


def percentile(values: Sequence[float], p: float) -> float:
    """Linear-interpolated percentile of an unordered sequence.

    Uses rank = p * (n - 1) + 1 between the order statistics around the rank,
    so percentile([1..10], 0.95) == 9.55.

    Args:
        values: Samples in any order.
        p: Requested percentile as a fraction in [0, 1].

    Raises:
        InsufficientDataError: fewer than two samples.
        ValueError: p outside [0, 1].
    """
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"Percentile must be within [0, 1], got {p}")

    ordered = sorted(values)
    n = len(ordered)
    if n < 2:
        raise InsufficientDataError(n)

    rank = p * (n - 1) + 1
    k = math.floor(rank) - 1
    f = rank - math.floor(rank)

    # p == 1 lands on the last element; there is no k + 1 to interpolate towards
    if k >= n - 1:
        return float(ordered[-1])
    return ordered[k] + f * (ordered[k + 1] - ordered[k])
