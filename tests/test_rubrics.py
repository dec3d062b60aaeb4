from __future__ import annotations

import pytest

from score_core.rubrics import (
    RUBRICS,
    get_rubric,
    match_rule,
    resolve_rubric,
    rubric_id_for_project,
)
from score_core.types import Criterion, Rubric, Work


def test_iftech_category_resolves_to_six_criteria():
    rubric = resolve_rubric(Work(id="w1", categoria="IFTECH Jr"))
    assert rubric.id == "iftech"
    assert rubric.size == 6
    assert rubric.weight_vector() == [0.75, 1, 0.5, 1, 0.75, 1]
    assert rubric.z == 2.5


def test_feira_has_same_profile_under_its_own_id():
    rubric = resolve_rubric({"categoria": "Feira de Ciências"})
    assert rubric.id == "feira"
    assert rubric.weight_vector() == RUBRICS["iftech"].weight_vector()


def test_oral_and_unknown_categories_use_nine_criteria():
    oral = resolve_rubric(Work(id="w2", categoria="Comunicação Oral"))
    fallback = resolve_rubric(Work(id="w3", categoria="Xyz"))
    assert oral.size == 9 and fallback.size == 9
    assert oral.weight_vector() == [0.9, 0.8, 0.7, 0.6, 0.6, 0.4, 0.4, 0.3, 0.3]
    assert match_rule("Comunicação Oral")[1] == "keyword"
    assert match_rule("Xyz")[1] == "fallback"


def test_resolution_ignores_case_and_diacritics():
    assert rubric_id_for_project("iftech") == "iftech"
    assert rubric_id_for_project("FEIRA DE CIENCIAS") == "feira"
    assert match_rule("", "Extensão")[1] == "keyword"
    assert match_rule(None, None, "Pós-graduação")[1] == "keyword"
    assert match_rule("COMUNICACAO  ORAL")[1] == "keyword"


def test_category_rule_wins_over_subcategory_keywords():
    assert rubric_id_for_project("IFTECH", "Pesquisa/Inovação", "Superior") == "iftech"


def test_every_rubric_shares_scale_and_covers_its_weights():
    for rubric in RUBRICS.values():
        assert rubric.z == 2.5
        assert set(rubric.weights) == set(rubric.criterion_ids)
        assert rubric.criterion_ids == [f"C{i}" for i in range(1, rubric.size + 1)]
        assert all(c.max_score > 0 for c in rubric.criteria)


def test_get_rubric_fallback_and_strict():
    assert get_rubric("nope").id == "geral"
    assert get_rubric(None).id == "geral"
    with pytest.raises(KeyError):
        get_rubric("nope", strict=True)


def test_rubric_rejects_mismatched_weights():
    crits = (Criterion("C1"), Criterion("C2"))
    with pytest.raises(ValueError):
        Rubric(id="bad", title="bad", criteria=crits, weights={"C1": 1.0})
    with pytest.raises(ValueError):
        Rubric(id="bad", title="bad", criteria=crits, weights={"C1": 1.0, "C2": 0.0})
