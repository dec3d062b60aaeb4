from __future__ import annotations
from fastapi import FastAPI, HTTPException, Body, Header, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import hmac, logging, os, typing as t

from score_core import config
from score_core.aggregate_export import rank_aggregates, to_csv, to_json
from score_core.client_scoring import get_nf_for_work
from score_core.engine import recompute_all
from score_core.rubrics import RUBRICS, rubric_id_for_project
from .storage import get_store

log = logging.getLogger(__name__)

app = FastAPI(title="Score Aggregator API")

ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

# ---- Schemas ----
class RecomputeReq(BaseModel):
    debug: bool = False
    strategy: str | None = None   # "epsilon" | "z"

# ---- Helpers ----
def _presented_secret(authorization: str | None, api_key: str | None) -> str | None:
    if api_key:
        return api_key.strip()
    if authorization:
        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return None


def _require_secret(authorization: str | None, api_key: str | None) -> None:
    expected = config.RECOMPUTE_SECRET
    if not expected:
        raise HTTPException(503, "recompute secret is not configured on the server")
    presented = _presented_secret(authorization, api_key)
    if not presented or not hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(401, "invalid or missing credentials")


def _flag(raw: str | None) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes", "on"}


def _ranked(rubric_id: str | None) -> list[dict[str, t.Any]]:
    records = get_store().list_all(config.COLLECTION_AGGREGATES)
    return rank_aggregates(records, rubric_id=rubric_id)

# ---- Status ----
@app.get("/")
def root():
    return {"ok": True, "service": "score-aggregator", "version": 1}

@app.get("/health")
def health():
    return {
        "secret_configured": bool(config.RECOMPUTE_SECRET),
        "data_dir": str(get_store().root),
        "zero_sigma_strategy": config.ZERO_SIGMA_STRATEGY,
        "z": config.Z_SCALE,
    }

# ---- Recompute trigger ----
@app.post("/recompute")
def recompute(
    debug: str | None = Query(None, description="1 enables per-stage diagnostic tables"),
    req: RecomputeReq | None = Body(None),
    authorization: str | None = Header(None),
    x_api_key: str | None = Header(None),
):
    _require_secret(authorization, x_api_key)
    verbose = _flag(debug) or bool(req and req.debug)
    strategy = (req.strategy if req else None) or config.ZERO_SIGMA_STRATEGY
    if strategy not in config.ZERO_SIGMA_STRATEGIES:
        raise HTTPException(422, f"unknown strategy: {strategy}")
    try:
        summary = recompute_all(get_store(), mode=("verbose" if verbose else "quiet"), strategy=strategy)
    except Exception as e:
        log.exception("recompute failed")
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e) or "internal"})
    return {"ok": True, "summary": summary.to_dict()}

# ---- Read side ----
@app.get("/rubrics")
def list_rubrics():
    return {"rubrics": [r.to_dict() for r in RUBRICS.values()]}

@app.get("/works/{work_id}/score")
def work_score(work_id: str, rubric_id: str | None = Query(None)):
    store = get_store()
    if not rubric_id:
        work = store.get(config.COLLECTION_WORKS, work_id)
        if not work:
            raise HTTPException(404, "work not found")
        rubric_id = work.get("rubricId") or rubric_id_for_project(
            work.get("categoria"), work.get("subcategoria"), work.get("tipo")
        )
    elif rubric_id not in RUBRICS:
        raise HTTPException(404, "rubric not found")
    res = get_nf_for_work(store, work_id, rubric_id)
    return {"workId": work_id, "rubricId": rubric_id, **res}

@app.get("/aggregates")
def list_aggregates(rubric_id: str | None = Query(None)):
    return to_json(_ranked(rubric_id))

@app.get("/aggregates.csv")
def aggregates_csv(rubric_id: str | None = Query(None)):
    body = to_csv(_ranked(rubric_id))
    filename = f"aggregates_{rubric_id}.csv" if rubric_id else "aggregates.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("api.app:app", host="0.0.0.0", port=config.PORT)
