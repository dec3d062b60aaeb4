"""Static rubric catalog and the category-based resolver.

Every component (batch recompute, client-side calculator, HTTP catalog)
reads criteria, weights and the scale constant from ``RUBRICS``; there is no
other weight table in the code base.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Any, Dict, Mapping, Sequence, Tuple

from .config import Z_SCALE
from .types import Criterion, Rubric, Work

RUBRIC_IFTECH = "iftech"
RUBRIC_FEIRA = "feira"
RUBRIC_GERAL = "geral"
DEFAULT_RUBRIC_ID = RUBRIC_GERAL

WEIGHTS_SIX: Tuple[float, ...] = (0.75, 1.0, 0.5, 1.0, 0.75, 1.0)
WEIGHTS_NINE: Tuple[float, ...] = (0.9, 0.8, 0.7, 0.6, 0.6, 0.4, 0.4, 0.3, 0.3)

# score ladders offered by the evaluation form
S_04_18 = (0.0, 0.4, 0.9, 1.4, 1.8)
S_04_16 = (0.0, 0.4, 0.8, 1.2, 1.6)
S_04_14 = (0.0, 0.4, 0.7, 1.0, 1.4)
S_03_12 = (0.0, 0.3, 0.6, 0.9, 1.2)
S_02_08 = (0.0, 0.2, 0.4, 0.6, 0.8)
S_02_06 = (0.0, 0.2, 0.3, 0.4, 0.6)
IF_025_15 = (0.0, 0.25, 0.5, 1.0, 1.5)
IF_05_20 = (0.0, 0.5, 1.0, 1.5, 2.0)
IF_025_10 = (0.0, 0.25, 0.5, 0.75, 1.0)


def _criteria(rows: Sequence[Tuple[str, Tuple[float, ...]]]) -> Tuple[Criterion, ...]:
    return tuple(
        Criterion(id=f"C{idx}", label=label, options=opts)
        for idx, (label, opts) in enumerate(rows, start=1)
    )


def _build(rubric_id: str, title: str, rows, weights: Sequence[float]) -> Rubric:
    crits = _criteria(rows)
    return Rubric(
        id=rubric_id,
        title=title,
        criteria=crits,
        weights={c.id: float(w) for c, w in zip(crits, weights)},
        z=Z_SCALE,
    )


RUBRICS: Dict[str, Rubric] = {
    RUBRIC_IFTECH: _build(RUBRIC_IFTECH, "IFTECH", [
        ("Objetivos e métodos bem definidos (tema da feira).", IF_025_15),
        ("Protótipo/modelo visa solucionar problemas locais/regionais.", IF_05_20),
        ("Sustentabilidade e responsabilidade social.", IF_025_10),
        ("Inserção em pesquisa/desenvolvimento/inovação.", IF_05_20),
        ("Desempenho ao explicar aplicabilidade do protótipo.", IF_025_15),
        ("Apresenta protótipo?", IF_05_20),
    ], WEIGHTS_SIX),
    RUBRIC_FEIRA: _build(RUBRIC_FEIRA, "Feira de Ciências", [
        ("Objetivos e métodos (diário de bordo e resumo expandido).", IF_025_15),
        ("Solução de problemas locais/regionais.", IF_05_20),
        ("Sustentabilidade e responsabilidade social.", IF_025_15),
        ("Inserção em pesquisa/desenvolvimento/inovação.", IF_05_20),
        ("Desempenho durante a explicação do protótipo.", IF_025_15),
        ("Interdisciplinaridade do projeto apresentado.", IF_025_15),
    ], WEIGHTS_SIX),
    RUBRIC_GERAL: _build(RUBRIC_GERAL, "Comunicação Oral / Banner", [
        ("Domínio sobre o trabalho considerando a fundamentação teórica.", S_04_18),
        ("Clareza e objetividade da apresentação.", S_04_16),
        ("Definição da proposta do projeto.", S_04_14),
        ("Elaboração do material (visuais, diagramação, qualidade do texto).", S_03_12),
        ("Contribuição para a experiência acadêmica e profissional do(a) estudante.", S_03_12),
        ("Domínio e desenvoltura na apresentação.", S_02_08),
        ("Relação entre resultados (esperados/obtidos) e objetivos.", S_02_08),
        ("Relevância e contribuição para sociedade/formação/processo de ensino.", S_02_06),
        ("Interdisciplinaridade e uso de recursos audiovisuais.", S_02_06),
    ], WEIGHTS_NINE),
}

# matched as substrings of the normalized category/subcategory/type text
NINE_CRITERIA_TOKENS: Tuple[str, ...] = (
    "comunicacao", "oral", "communication",
    "banner",
    "ensino", "teaching",
    "pesquisa", "research",
    "inovacao", "innovation",
    "extensao", "extension",
    "fundamental", "elementary",
    "medio", "high school",
    "superior", "graduacao", "higher",
    "pos-graduacao", "postgrad",
)

_WS_RX = re.compile(r"\s+")


def norm(text: Any) -> str:
    """Lower-case, strip diacritics and collapse whitespace (NBSP included)."""

    s = "" if text is None else str(text)
    s = unicodedata.normalize("NFD", s.replace("\u00a0", " "))
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return _WS_RX.sub(" ", s).strip().lower()


def match_rule(categoria: Any = None, subcategoria: Any = None, tipo: Any = None) -> Tuple[str, str]:
    """Return ``(rubric_id, rule)`` where rule is iftech|feira|keyword|fallback."""

    c = norm(categoria)
    if "iftech" in c:
        return RUBRIC_IFTECH, "iftech"
    if "feira" in c:
        return RUBRIC_FEIRA, "feira"
    for text in (c, norm(subcategoria), norm(tipo)):
        if text and any(tok in text for tok in NINE_CRITERIA_TOKENS):
            return RUBRIC_GERAL, "keyword"
    return DEFAULT_RUBRIC_ID, "fallback"


def rubric_id_for_project(categoria: Any = None, subcategoria: Any = None, tipo: Any = None) -> str:
    return match_rule(categoria, subcategoria, tipo)[0]


def get_rubric(rubric_id: str | None, strict: bool = False) -> Rubric:
    if rubric_id and rubric_id in RUBRICS:
        return RUBRICS[rubric_id]
    if strict:
        raise KeyError(f"unknown rubric: {rubric_id!r}")
    return RUBRICS[DEFAULT_RUBRIC_ID]


def resolve_rubric(work: Work | Mapping[str, Any]) -> Rubric:
    if isinstance(work, Work):
        rid = rubric_id_for_project(work.categoria, work.subcategoria, work.tipo)
    else:
        rid = rubric_id_for_project(work.get("categoria"), work.get("subcategoria"), work.get("tipo"))
    return RUBRICS[rid]


__all__ = [
    "RUBRICS",
    "RUBRIC_IFTECH",
    "RUBRIC_FEIRA",
    "RUBRIC_GERAL",
    "DEFAULT_RUBRIC_ID",
    "norm",
    "match_rule",
    "rubric_id_for_project",
    "get_rubric",
    "resolve_rubric",
]
