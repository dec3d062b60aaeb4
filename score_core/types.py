from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from .config import Z_SCALE

SigmaStrategy = Literal["epsilon", "z"]
RecomputeMode = Literal["quiet", "verbose"]
PerCriterion = Dict[str, float]


@dataclass(frozen=True)
class Criterion:
    id: str; label: str = ""
    options: Tuple[float, ...] = ()

    @property
    def max_score(self) -> float:
        return max(self.options) if self.options else 0.0


@dataclass(frozen=True, eq=False)
class Rubric:
    """Ordered criteria ``C1..Ck`` with one positive weight each and the scale ``z``."""

    id: str
    title: str
    criteria: Tuple[Criterion, ...]
    weights: Mapping[str, float]
    z: float = Z_SCALE

    def __post_init__(self) -> None:
        ids = [c.id for c in self.criteria]
        if set(ids) != set(self.weights) or len(ids) != len(self.weights):
            raise ValueError(f"rubric {self.id}: weights must cover exactly {ids}")
        bad = [cid for cid, w in self.weights.items() if not w > 0]
        if bad:
            raise ValueError(f"rubric {self.id}: non-positive weights for {bad}")

    @property
    def criterion_ids(self) -> List[str]:
        return [c.id for c in self.criteria]

    @property
    def size(self) -> int:
        return len(self.criteria)

    def weight_vector(self) -> List[float]:
        return [self.weights[c.id] for c in self.criteria]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "z": self.z,
            "criteria": [
                {"id": c.id, "label": c.label, "weight": self.weights[c.id], "options": list(c.options)}
                for c in self.criteria
            ],
        }


@dataclass
class Work:
    id: str
    titulo: str = ""
    categoria: str = ""
    subcategoria: str = ""
    tipo: str = ""
    area: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Work":
        def _s(key: str) -> str:
            v = record.get(key)
            return "" if v is None else str(v)
        return cls(
            id=_s("id"),
            titulo=_s("titulo"),
            categoria=_s("categoria"),
            subcategoria=_s("subcategoria"),
            tipo=_s("tipo"),
            area=_s("area"),
        )


@dataclass
class GlobalStats:
    mean: PerCriterion
    std: PerCriterion
    count: Dict[str, int] = field(default_factory=dict)
    sum: PerCriterion = field(default_factory=dict)
    sumsq: PerCriterion = field(default_factory=dict)


@dataclass
class FinalScore:
    nci: PerCriterion
    nf: float
    contributions: PerCriterion = field(default_factory=dict)


@dataclass
class WorkAggregate:
    work_id: str
    rubric_id: str
    mean_by_criterion: PerCriterion
    mean_global: PerCriterion
    std_global: PerCriterion
    nci: PerCriterion
    nf: float
    updated_at: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "workId": self.work_id,
            "rubricId": self.rubric_id,
            "meanByCriterion": dict(self.mean_by_criterion),
            "meanGlobal": dict(self.mean_global),
            "stdGlobal": dict(self.std_global),
            "nci": dict(self.nci),
            "nf": self.nf,
            "updatedAt": self.updated_at,
        }
