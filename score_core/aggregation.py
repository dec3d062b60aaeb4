"""Per-project criterion means (NaCi) and the rubric-wide sample pool."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .extraction import extract_scores
from .types import PerCriterion, Rubric, Work

log = logging.getLogger(__name__)


@dataclass
class GlobalSamples:
    """Every individual evaluator score of one rubric group, per criterion."""

    rubric_id: str
    by_criterion: Dict[str, List[float]] = field(default_factory=dict)

    @classmethod
    def for_rubric(cls, rubric: Rubric) -> "GlobalSamples":
        return cls(rubric_id=rubric.id, by_criterion={cid: [] for cid in rubric.criterion_ids})

    def add(self, cid: str, value: float) -> None:
        self.by_criterion.setdefault(cid, []).append(value)

    def size(self) -> int:
        return sum(len(v) for v in self.by_criterion.values())


@dataclass
class ProjectAggregate:
    work_id: str
    evaluations: int
    na: PerCriterion
    vectors: List[Dict[str, Any]] = field(default_factory=list)


def aggregate_project(
    work: Work,
    rubric: Rubric,
    evaluations: Sequence[Mapping[str, Any]],
    samples: GlobalSamples,
) -> Optional[ProjectAggregate]:
    """Average each criterion over a work's evaluations.

    Every extracted score is also appended to ``samples``.  A work with no
    evaluations returns ``None`` and contributes nothing.
    """

    if not evaluations:
        log.debug("work %s has no evaluations; skipped", work.id)
        return None

    cids = rubric.criterion_ids
    total: Dict[str, float] = {cid: 0.0 for cid in cids}
    count: Dict[str, int] = {cid: 0 for cid in cids}
    vectors: List[Dict[str, Any]] = []

    for ev in evaluations:
        vec = extract_scores(ev, rubric.size)
        for cid in cids:
            value = vec.get(cid, 0.0)
            if not math.isfinite(value):
                continue
            total[cid] += value
            count[cid] += 1
            samples.add(cid, value)
        vectors.append({"evaluationId": ev.get("id", ""), "avaliadorId": ev.get("avaliadorId", ""), **vec})

    na = {cid: (total[cid] / count[cid] if count[cid] else 0.0) for cid in cids}
    return ProjectAggregate(work_id=work.id, evaluations=len(evaluations), na=na, vectors=vectors)
