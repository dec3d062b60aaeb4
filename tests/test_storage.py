from __future__ import annotations

import json

import pytest

from api.storage import JsonFileStore
from score_core import engine as eng
from score_core.config import COLLECTION_AGGREGATES, COLLECTION_EVALUATIONS, COLLECTION_WORKS

from tests.conftest import build_evaluation, build_work


def test_upsert_merges_top_level_fields(tmp_path):
    store = JsonFileStore(tmp_path)
    store.upsert("things", "t1", {"a": 1, "b": {"x": 1}})
    store.upsert("things", "t1", {"b": {"y": 2}, "c": 3})
    assert store.get("things", "t1") == {"id": "t1", "a": 1, "b": {"y": 2}, "c": 3}

    store.upsert("things", "t1", {"only": True}, merge=False)
    assert store.get("things", "t1") == {"id": "t1", "only": True}


def test_nested_collection_paths_and_filters(tmp_path):
    store = JsonFileStore(tmp_path)
    store.upsert("rubricStats/geral/criteria", "c1", {"mean": 1.0})
    assert (tmp_path / "rubricStats__geral__criteria.json").exists()
    store.upsert("avaliacoes", "e1", {"trabalhoId": "w1"})
    store.upsert("avaliacoes", "e2", {"trabalhoId": "w2"})
    assert [r["id"] for r in store.where_equals("avaliacoes", "trabalhoId", "w2")] == ["e2"]
    assert store.list_all("empty") == []
    with pytest.raises(ValueError):
        store.collection_path("../etc")


def test_corrupt_collection_raises(tmp_path):
    (tmp_path / "trabalhos.json").write_text("{not json", encoding="utf-8")
    store = JsonFileStore(tmp_path)
    with pytest.raises(json.JSONDecodeError):
        eng.recompute_all(store)


def test_recompute_round_trip_on_disk(tmp_path):
    store = JsonFileStore(tmp_path)
    store.upsert(COLLECTION_WORKS, "w1", build_work("w1", "IFTECH"))
    for n, val in enumerate(["1,5", 0.5], start=1):
        store.upsert(COLLECTION_EVALUATIONS, f"e{n}", build_evaluation(f"e{n}", "w1", f"a{n}", {1: val}))
    eng.recompute_all(store)

    reopened = JsonFileStore(tmp_path)
    agg = reopened.get(COLLECTION_AGGREGATES, "w1")
    assert agg["rubricId"] == "iftech"
    assert agg["meanByCriterion"]["C1"] == pytest.approx(1.0)
    assert reopened.get(COLLECTION_WORKS, "w1")["finalScore"] == round(agg["nf"], 4)
