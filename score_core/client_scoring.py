"""Inline NCi/NF computation without a batch recompute.

Reads the materialized ``workAggregates`` document when it is complete and
otherwise recomputes NCi/NF from the work's NaCi and the persisted
``rubricStats`` of its rubric.  Zero or missing σ maps NCi straight to ``z``.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional

from .config import COLLECTION_AGGREGATES
from .engine import rubric_stats_collection
from .rubrics import get_rubric
from .scoring import compute_nci
from .store import DocumentStore

CriterionStats = Dict[str, float]


def load_rubric_stats(store: DocumentStore, rubric_id: str) -> Dict[str, CriterionStats]:
    """``{"C1": {"mean": MCi, "std": σi}, ...}`` from persisted statistics."""

    out: Dict[str, CriterionStats] = {}
    for doc in store.list_all(rubric_stats_collection(rubric_id)):
        cid = str(doc.get("criterionId") or doc.get("id") or "").upper()
        if not cid:
            continue
        out[cid] = {"mean": doc.get("mean") or 0.0, "std": doc.get("std") or 0.0}
    return out


def load_work_aggregate(store: DocumentStore, work_id: str) -> Optional[Dict[str, Any]]:
    return store.get(COLLECTION_AGGREGATES, work_id)


def compute_nf_on_client(
    rubric_id: str,
    na: Optional[Mapping[str, Any]],
    stats: Mapping[str, Mapping[str, Any]],
) -> Dict[str, Any]:
    """Return ``{"nci": {...}, "nf": float}``; criteria without a numeric NaCi are skipped."""

    rubric = get_rubric(rubric_id)
    nci: Dict[str, float] = {}
    nf = 0.0
    for cid in rubric.criterion_ids:
        value = (na or {}).get(cid)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            continue
        st = stats.get(cid) or {}
        score = compute_nci(float(value), st.get("mean"), st.get("std"), rubric.z, strategy="z")
        nci[cid] = score
        nf += score * rubric.weights[cid]
    return {"nci": nci, "nf": nf}


def get_nf_for_work(store: DocumentStore, work_id: str, rubric_id: str) -> Dict[str, Any]:
    agg = load_work_aggregate(store, work_id)
    if agg and agg.get("nf") is not None and agg.get("nci"):
        return {"nci": agg["nci"], "nf": agg["nf"], "source": "materialized"}
    stats = load_rubric_stats(store, rubric_id)
    res = compute_nf_on_client(rubric_id, (agg or {}).get("meanByCriterion"), stats)
    return {**res, "source": "computed"}
