"""Map heterogeneous evaluation records onto a per-criterion score vector.

Evaluation records have been written by several generations of the
evaluation form, so a criterion value may live in a ``criterios`` list of
``{id, value}`` pairs or under one of many flat keys (``C3``, ``nota3``,
``criterio_3`` ...).  Both the bag order and the alias order are plain data
below; adding a convention means adding a pattern, not touching the loop.
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

__all__ = [
    "CRITERION_KEY_ALIASES",
    "SCORE_BAGS",
    "PAIR_LIST_FIELD",
    "PAIR_VALUE_KEYS",
    "to_number",
    "missing_score",
    "criterion_id",
    "extract_scores",
]

PAIR_LIST_FIELD = "criterios"
# first present key wins inside a pair
PAIR_VALUE_KEYS: Tuple[str, ...] = ("value", "score", "nota")
# None stands for the whole record
SCORE_BAGS: Tuple[Optional[str], ...] = ("notas", "scores", None)
CRITERION_KEY_ALIASES: Tuple[str, ...] = (
    "C{i}",
    "c{i}",
    "{i}",
    "criterio{i}",
    "crit{i}",
    "nota{i}",
    "C_{i}",
    "c_{i}",
    "criterio_{i}",
    "crit_{i}",
    "nota_{i}",
)

_PAIR_ID_RX = re.compile(r"^\s*c(\d+)\s*$", re.I)


def to_number(value: Any) -> Optional[float]:
    """Parse ints, floats and numeric strings (``"1,5"`` included).

    Returns ``None`` for anything that does not yield a finite float.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
        return f if math.isfinite(f) else None
    if isinstance(value, str):
        txt = value.strip().replace(",", ".")
        if not txt:
            return None
        try:
            f = float(txt)
        except ValueError:
            return None
        return f if math.isfinite(f) else None
    return None


def missing_score(value: Optional[float]) -> float:
    """Policy for a criterion the evaluator did not score.

    Absent values count as 0, which makes them indistinguishable from an
    explicit 0 further down the pipeline.
    """

    return 0.0 if value is None else value


def criterion_id(index: int) -> str:
    return f"C{index}"


def _pair_value(pair: Mapping[str, Any]) -> Any:
    for key in PAIR_VALUE_KEYS:
        if key in pair and pair[key] is not None:
            return pair[key]
    return None


def _from_pairs(pairs: Sequence[Any], k: int, out: Dict[int, Optional[float]]) -> None:
    for pair in pairs:
        if not isinstance(pair, Mapping):
            continue
        m = _PAIR_ID_RX.match(str(pair.get("id") or ""))
        if not m:
            continue
        idx = int(m.group(1))
        if not 1 <= idx <= k:
            continue
        n = to_number(_pair_value(pair))
        if n is not None:
            out[idx] = n


def _lookup_alias(bag: Mapping[str, Any], idx: int) -> Optional[float]:
    for pattern in CRITERION_KEY_ALIASES:
        key = pattern.format(i=idx)
        if key not in bag:
            continue
        n = to_number(bag[key])
        if n is not None:
            return n
    return None


def extract_scores(record: Mapping[str, Any], k: int) -> Dict[str, float]:
    """Return ``{"C1": x1, ..., "Ck": xk}`` for one evaluation record.

    Pairs are applied first; the flat bags then fill every criterion still
    at the 0 placeholder.  Never raises.
    """

    found: Dict[int, Optional[float]] = {i: None for i in range(1, k + 1)}
    if not isinstance(record, Mapping):
        return {criterion_id(i): missing_score(None) for i in found}

    pairs = record.get(PAIR_LIST_FIELD)
    if isinstance(pairs, (list, tuple)):
        _from_pairs(pairs, k, found)

    bags = []
    for name in SCORE_BAGS:
        bag = record if name is None else record.get(name)
        if isinstance(bag, Mapping):
            bags.append(bag)

    for idx in found:
        if found[idx]:
            continue
        for bag in bags:
            n = _lookup_alias(bag, idx)
            if n is not None:
                found[idx] = n
                break

    return {criterion_id(i): missing_score(v) for i, v in found.items()}
