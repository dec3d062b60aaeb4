from __future__ import annotations

import pytest

from score_core.config import COLLECTION_EVALUATIONS, COLLECTION_WORKS
from score_core.store import MemoryStore


def build_work(work_id: str, categoria: str = "Comunicação Oral", **extra: str) -> dict:
    rec = {
        "id": work_id,
        "titulo": f"Trabalho {work_id}",
        "categoria": categoria,
        "subcategoria": "",
        "tipo": "",
        "area": "",
    }
    rec.update(extra)
    return rec


def build_evaluation(
    eval_id: str,
    work_id: str,
    evaluator: str,
    scores: dict[int, float],
    *,
    shape: str = "pairs",
) -> dict:
    """Create an evaluation record; ``shape`` is "pairs" (criterios list) or "notas"."""

    rec = {"id": eval_id, "trabalhoId": work_id, "avaliadorId": evaluator}
    if shape == "pairs":
        rec["criterios"] = [{"id": f"c{idx}", "value": val} for idx, val in scores.items()]
    else:
        rec["notas"] = {f"C{idx}": val for idx, val in scores.items()}
    return rec


def build_synthetic_store(
    c1_scores: dict[str, list[float]] | None = None,
    *,
    categoria: str = "Comunicação Oral",
    extra_works: list[dict] | None = None,
) -> MemoryStore:
    """One rubric group whose works carry only a C1 score per evaluator.

    Default data: P1 scored 2 and 3, P2 scored 4 and 5.
    """

    c1_scores = c1_scores if c1_scores is not None else {"P1": [2, 3], "P2": [4, 5]}
    works = [build_work(wid, categoria) for wid in c1_scores]
    works.extend(extra_works or [])
    evaluations = []
    for wid, values in c1_scores.items():
        for n, val in enumerate(values, start=1):
            evaluations.append(build_evaluation(f"{wid}_ev{n}", wid, f"ev{n}", {1: val}))
    return MemoryStore({COLLECTION_WORKS: works, COLLECTION_EVALUATIONS: evaluations})


@pytest.fixture
def synthetic_store() -> MemoryStore:
    return build_synthetic_store()
