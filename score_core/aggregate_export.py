"""Ranked JSON/CSV views over persisted work aggregates."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
import csv
import io

_FIELDS: tuple[str, ...] = (
    "rank",
    "workId",
    "rubricId",
    "nf",
    "updatedAt",
)


def _normalize(record: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in _FIELDS:
        val = record.get(key)
        if key == "rank":
            try:
                out[key] = int(val)
            except (TypeError, ValueError):
                out[key] = 0
        elif key == "nf":
            try:
                out[key] = float(val)
            except (TypeError, ValueError):
                out[key] = 0.0
        else:
            out[key] = "" if val is None else str(val)
    return out


def rank_aggregates(records: Iterable[Dict[str, Any]], rubric_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Order by NF (highest first) and number ranks within each rubric."""

    rows = [dict(r) for r in records if rubric_id is None or r.get("rubricId") == rubric_id]
    for r in rows:
        r.setdefault("workId", r.get("id"))
    rows.sort(key=lambda r: (str(r.get("rubricId") or ""), -float(r.get("nf") or 0.0), str(r.get("workId") or "")))
    counters: Dict[str, int] = {}
    for r in rows:
        rid = str(r.get("rubricId") or "")
        counters[rid] = counters.get(rid, 0) + 1
        r["rank"] = counters[rid]
    return rows


def to_json(records: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    return {"aggregates": [_normalize(r) for r in records]}


def to_csv(records: Iterable[Dict[str, Any]]) -> str:
    """CSV with a fixed header, one line per ranked aggregate."""

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for row in records:
        writer.writerow(_normalize(row))
    return buf.getvalue()


__all__ = ["rank_aggregates", "to_json", "to_csv"]
