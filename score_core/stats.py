"""Population statistics for the per-rubric global criterion samples.

MCi and σi are computed over every individual evaluator score that was
submitted for a criterion in a rubric group, not over project means.  The
standard deviation is the population form (divide by ``N``).
"""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Mapping, Sequence

from .types import GlobalStats

__all__ = [
    "finite",
    "mean",
    "pop_std",
    "compute_global_stats",
]


def finite(values: Iterable[float]) -> List[float]:
    """Keep only finite floats; ``None``/NaN/inf and non-numbers are dropped."""

    out: List[float] = []
    for v in values:
        if isinstance(v, bool):
            continue
        try:
            f = float(v)
        except (TypeError, ValueError):
            continue
        if math.isfinite(f):
            out.append(f)
    return out


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, ``0.0`` for an empty sequence."""

    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def pop_std(values: Sequence[float]) -> float:
    """Population standard deviation ``sqrt(mean((x - mean)^2))``.

    Parameters
    ----------
    values: Sequence[float]
        Finite samples.

    Returns
    -------
    float
        ``0.0`` for an empty sequence or when all samples are identical.
    """

    if not values:
        return 0.0
    first = values[0]
    if all(x == first for x in values):
        return 0.0
    m = mean(values)
    var = math.fsum((x - m) * (x - m) for x in values) / len(values)
    return math.sqrt(max(var, 0.0))


def compute_global_stats(samples_by_criterion: Mapping[str, Iterable[float]]) -> GlobalStats:
    """Compute ``(MCi, σi)`` per criterion for one rubric group.

    Also records ``count``, ``sum`` and ``sumsq`` of the filtered samples so
    the statistics can be persisted alongside the means.
    """

    mc: Dict[str, float] = {}
    sigma: Dict[str, float] = {}
    count: Dict[str, int] = {}
    total: Dict[str, float] = {}
    sumsq: Dict[str, float] = {}
    for cid, raw in samples_by_criterion.items():
        vals = finite(raw)
        mc[cid] = mean(vals)
        sigma[cid] = pop_std(vals)
        count[cid] = len(vals)
        total[cid] = math.fsum(vals)
        sumsq[cid] = math.fsum(x * x for x in vals)
    return GlobalStats(mean=mc, std=sigma, count=count, sum=total, sumsq=sumsq)
