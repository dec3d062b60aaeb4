from __future__ import annotations

import importlib
import sys

import pytest
from fastapi.testclient import TestClient

from score_core import config
from score_core.config import COLLECTION_EVALUATIONS, COLLECTION_WORKS

from tests.conftest import build_evaluation, build_work

SECRET = "s3cret"


def _reload_app(tmp_path, monkeypatch) -> tuple[object, object]:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    if "api.storage" in sys.modules:
        importlib.reload(sys.modules["api.storage"])
    else:
        import api.storage  # noqa: F401
    storage = sys.modules["api.storage"]
    if "api.app" in sys.modules:
        importlib.reload(sys.modules["api.app"])
    else:
        import api.app  # noqa: F401
    app_module = sys.modules["api.app"]
    return storage, app_module


def _seed(storage) -> None:
    store = storage.get_store()
    for wid, values in {"P1": [2, 3], "P2": [4, 5]}.items():
        store.upsert(COLLECTION_WORKS, wid, build_work(wid))
        for n, val in enumerate(values, start=1):
            eid = f"{wid}_ev{n}"
            store.upsert(COLLECTION_EVALUATIONS, eid, build_evaluation(eid, wid, f"ev{n}", {1: val}))


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "RECOMPUTE_SECRET", SECRET)
    storage, app_module = _reload_app(tmp_path, monkeypatch)
    _seed(storage)
    c = TestClient(app_module.app)
    c.app_module = app_module
    return c


def test_missing_server_secret_is_503(client, monkeypatch):
    monkeypatch.setattr(config, "RECOMPUTE_SECRET", "")
    r = client.post("/recompute", headers={"Authorization": f"Bearer {SECRET}"})
    assert r.status_code == 503


def test_bad_or_missing_credentials_are_401(client):
    assert client.post("/recompute").status_code == 401
    assert client.post("/recompute", headers={"Authorization": "Bearer nope"}).status_code == 401
    assert client.post("/recompute", headers={"Authorization": f"Basic {SECRET}"}).status_code == 401
    assert client.post("/recompute", headers={"X-API-Key": "nope"}).status_code == 401


def test_recompute_with_bearer_token(client):
    r = client.post("/recompute", headers={"Authorization": f"Bearer {SECRET}"})
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["summary"]["processed"] == 2
    assert body["summary"]["mode"] == "quiet"
    assert [g["rubricId"] for g in body["summary"]["groups"]] == ["geral"]


def test_recompute_with_api_key_and_debug(client, caplog):
    with caplog.at_level("INFO"):
        r = client.post("/recompute?debug=1", headers={"X-API-Key": SECRET})
    assert r.status_code == 200
    assert r.json()["summary"]["mode"] == "verbose"
    assert "NCi and contribution" in caplog.text


def test_recompute_body_strategy(client):
    r = client.post("/recompute", headers={"X-API-Key": SECRET}, json={"strategy": "z"})
    assert r.json()["summary"]["strategy"] == "z"
    bad = client.post("/recompute", headers={"X-API-Key": SECRET}, json={"strategy": "clamp"})
    assert bad.status_code == 422


def test_recompute_failure_is_500(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(client.app_module, "recompute_all", boom)
    r = client.post("/recompute", headers={"X-API-Key": SECRET})
    assert r.status_code == 500
    assert r.json() == {"ok": False, "error": "store unavailable"}


def test_read_side_after_recompute(client):
    client.post("/recompute", headers={"X-API-Key": SECRET})

    score = client.get("/works/P2/score").json()
    assert score["rubricId"] == "geral"
    assert score["source"] == "materialized"
    assert score["nci"]["C1"] == pytest.approx(3.395, abs=1e-3)

    assert client.get("/works/nope/score").status_code == 404
    assert client.get("/works/P1/score", params={"rubric_id": "unknown"}).status_code == 404

    aggs = client.get("/aggregates").json()["aggregates"]
    assert [(a["workId"], a["rank"]) for a in aggs] == [("P2", 1), ("P1", 2)]

    csv = client.get("/aggregates.csv")
    assert csv.headers["content-type"].startswith("text/csv")
    assert "attachment" in csv.headers["content-disposition"]
    assert csv.text.splitlines()[0] == "rank,workId,rubricId,nf,updatedAt"


def test_status_routes(client):
    assert client.get("/").json()["ok"] is True
    health = client.get("/health").json()
    assert health["secret_configured"] is True
    rubrics = {r["id"]: r for r in client.get("/rubrics").json()["rubrics"]}
    assert set(rubrics) == {"iftech", "feira", "geral"}
