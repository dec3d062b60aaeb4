# score_core/engine.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from .aggregation import GlobalSamples, ProjectAggregate, aggregate_project
from .config import (
    COLLECTION_AGGREGATES,
    COLLECTION_EVALUATIONS,
    COLLECTION_RUBRIC_STATS,
    COLLECTION_WORKS,
    FINAL_SCORE_DECIMALS,
    RECOMPUTE_MODES,
    STATS_DECIMALS,
    WORK_FOREIGN_KEY,
    ZERO_SIGMA_STRATEGIES,
    SIGMA_EPSILON,
    default_mode,
    ZERO_SIGMA_STRATEGY,
)
from .diagnostics import log_header, log_table
from .rubrics import RUBRICS, match_rule
from .scoring import compute_final
from .stats import compute_global_stats
from .store import DocumentStore
from .types import GlobalStats, Rubric, Work, WorkAggregate


log = logging.getLogger(__name__)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class GroupResult:
    rubric_id: str
    works: int
    processed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    samples: int = 0
    stats: Optional[GlobalStats] = None
    aggregates: List[WorkAggregate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rubricId": self.rubric_id,
            "works": self.works,
            "processed": len(self.processed),
            "skipped": list(self.skipped),
            "samples": self.samples,
        }


@dataclass
class RecomputeSummary:
    started_at: str
    finished_at: Optional[str] = None
    mode: str = "quiet"
    strategy: str = "epsilon"
    groups: List[GroupResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(len(g.processed) for g in self.groups)

    @property
    def skipped(self) -> int:
        return sum(len(g.skipped) for g in self.groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "mode": self.mode,
            "strategy": self.strategy,
            "processed": self.processed,
            "skipped": self.skipped,
            "groups": [g.to_dict() for g in self.groups],
        }


# ------------------------ store access ------------------------

def list_works(store: DocumentStore) -> List[Work]:
    return [Work.from_record(r) for r in store.list_all(COLLECTION_WORKS)]


def list_evaluations_for_work(store: DocumentStore, work_id: str) -> List[Dict[str, Any]]:
    return store.where_equals(COLLECTION_EVALUATIONS, WORK_FOREIGN_KEY, work_id)


def rubric_stats_collection(rubric_id: str) -> str:
    return f"{COLLECTION_RUBRIC_STATS}/{rubric_id}/criteria"


def save_work_aggregate(store: DocumentStore, agg: WorkAggregate) -> None:
    store.upsert(COLLECTION_AGGREGATES, agg.work_id, agg.to_record(), merge=True)
    store.upsert(
        COLLECTION_WORKS,
        agg.work_id,
        {
            "finalScore": round(agg.nf, FINAL_SCORE_DECIMALS),
            "rubricId": agg.rubric_id,
            "aggregatesUpdatedAt": agg.updated_at,
        },
        merge=True,
    )


def save_rubric_stats(store: DocumentStore, rubric: Rubric, stats: GlobalStats, now: str) -> None:
    store.upsert(COLLECTION_RUBRIC_STATS, rubric.id, {"rubricId": rubric.id, "updatedAt": now}, merge=True)
    col = rubric_stats_collection(rubric.id)
    for cid in rubric.criterion_ids:
        store.upsert(col, cid.lower(), {
            "rubricId": rubric.id,
            "criterionId": cid.lower(),
            "count": int(stats.count.get(cid, 0)),
            "sum": round(stats.sum.get(cid, 0.0), STATS_DECIMALS),
            "sumsq": round(stats.sumsq.get(cid, 0.0), STATS_DECIMALS),
            "mean": round(stats.mean.get(cid, 0.0), STATS_DECIMALS),
            "std": round(stats.std.get(cid, 0.0), STATS_DECIMALS),
            "updatedAt": now,
        }, merge=True)


# ------------------------ grouping ------------------------

def group_by_rubric(works: List[Work]) -> Dict[str, List[Work]]:
    """Bucket works by resolved rubric id; catalog order, empty buckets dropped."""
    groups: Dict[str, List[Work]] = {rid: [] for rid in RUBRICS}
    for w in works:
        rid, _rule = match_rule(w.categoria, w.subcategoria, w.tipo)
        groups[rid].append(w)
    return {rid: lst for rid, lst in groups.items() if lst}


# ------------------------ verbose tables ------------------------

def _trace_project(rubric: Rubric, work: Work, pa: ProjectAggregate) -> None:
    log_table(f"Work {work.id} ({work.titulo}) - {pa.evaluations} evaluations", pa.vectors)
    log_table(f"Work {work.id} NaCi", [{"criterion": c, "NaCi": pa.na[c]} for c in rubric.criterion_ids])


def _trace_stats(rubric: Rubric, stats: GlobalStats) -> None:
    log_table(
        f"Rubric {rubric.id} global MCi / sigma",
        [
            {"criterion": c, "n": stats.count.get(c, 0), "MCi": stats.mean[c], "sigma": stats.std[c]}
            for c in rubric.criterion_ids
        ],
    )


def _trace_final(rubric: Rubric, work: Work, agg: WorkAggregate, contributions: Dict[str, float]) -> None:
    log_header(f"WORK {work.id} - {work.titulo}")
    log_table("Inputs (NaCi / MCi / sigma / weight)", [
        {
            "criterion": c,
            "NaCi": agg.mean_by_criterion[c],
            "MCi": agg.mean_global[c],
            "sigma": agg.std_global[c],
            "weight": rubric.weights[c],
        }
        for c in rubric.criterion_ids
    ])
    log_table("NCi and contribution (NCi * weight)", [
        {"criterion": c, "NCi": agg.nci[c], "contrib": contributions[c]} for c in rubric.criterion_ids
    ])
    log.info("NF = %.6f", agg.nf)


# ------------------------ per-group processing ------------------------

def process_group(
    store: DocumentStore,
    rubric: Rubric,
    works: List[Work],
    *,
    verbose: bool = False,
    strategy: str = ZERO_SIGMA_STRATEGY,
    epsilon: float = SIGMA_EPSILON,
) -> GroupResult:
    result = GroupResult(rubric_id=rubric.id, works=len(works))
    if not works:
        return result
    if verbose:
        log_header(f"RUBRIC {rubric.id} - {rubric.title}")

    # 1) NaCi per work, every individual score into the group pool
    samples = GlobalSamples.for_rubric(rubric)
    per_work: List[tuple[Work, ProjectAggregate]] = []
    for w in works:
        evals = list_evaluations_for_work(store, w.id)
        pa = aggregate_project(w, rubric, evals, samples)
        if pa is None:
            result.skipped.append(w.id)
            continue
        per_work.append((w, pa))
        if verbose:
            _trace_project(rubric, w, pa)
    result.samples = samples.size()

    # 2) MCi and sigma over the pooled samples
    stats = compute_global_stats(samples.by_criterion)
    result.stats = stats
    if verbose:
        _trace_stats(rubric, stats)

    # 3) NCi / NF per work, then persist
    now = utcnow_iso()
    for w, pa in per_work:
        final = compute_final(pa.na, stats.mean, stats.std, rubric.weights, rubric.z, strategy, epsilon)
        agg = WorkAggregate(
            work_id=w.id,
            rubric_id=rubric.id,
            mean_by_criterion=dict(pa.na),
            mean_global=dict(stats.mean),
            std_global=dict(stats.std),
            nci=final.nci,
            nf=final.nf,
            updated_at=now,
        )
        if verbose:
            _trace_final(rubric, w, agg, final.contributions)
        save_work_aggregate(store, agg)
        result.processed.append(w.id)
        result.aggregates.append(agg)

    # 4) rubric-wide statistics for the client-side calculator
    save_rubric_stats(store, rubric, stats, now)
    log.info(
        "rubric %s: %d works, %d aggregated, %d skipped, %d samples",
        rubric.id, len(works), len(result.processed), len(result.skipped), result.samples,
    )
    return result


def recompute_all(
    store: DocumentStore,
    *,
    mode: Optional[str] = None,
    strategy: Optional[str] = None,
    epsilon: float = SIGMA_EPSILON,
) -> RecomputeSummary:
    """Recompute every work aggregate from scratch.

    ``mode`` is "quiet" or "verbose" (per-stage diagnostic tables); store
    errors propagate and abort the run.  Re-running with unchanged
    evaluations yields the same NF values.
    """
    mode = mode or default_mode()
    strategy = strategy or ZERO_SIGMA_STRATEGY
    if mode not in RECOMPUTE_MODES:
        raise ValueError(f"unknown recompute mode: {mode!r}")
    if strategy not in ZERO_SIGMA_STRATEGIES:
        raise ValueError(f"unknown zero-sigma strategy: {strategy!r}")
    verbose = mode == "verbose"

    summary = RecomputeSummary(started_at=utcnow_iso(), mode=mode, strategy=strategy)
    works = list_works(store)
    if not works:
        log.info("recompute: no works found")
        summary.finished_at = utcnow_iso()
        return summary

    for rid, group in group_by_rubric(works).items():
        res = process_group(store, RUBRICS[rid], group, verbose=verbose, strategy=strategy, epsilon=epsilon)
        summary.groups.append(res)

    summary.finished_at = utcnow_iso()
    log.info("recompute finished: %d aggregated, %d skipped", summary.processed, summary.skipped)
    return summary
