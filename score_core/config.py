from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


Z_SCALE: float = 2.5
SIGMA_EPSILON: float = 1e-9
ZERO_SIGMA_STRATEGY: str = "epsilon"
ZERO_SIGMA_STRATEGIES: tuple[str, ...] = ("epsilon", "z")

RECOMPUTE_MODES: tuple[str, ...] = ("quiet", "verbose")

COLLECTION_WORKS: str = "trabalhos"
COLLECTION_EVALUATIONS: str = "avaliacoes"
COLLECTION_AGGREGATES: str = "workAggregates"
COLLECTION_RUBRIC_STATS: str = "rubricStats"
WORK_FOREIGN_KEY: str = "trabalhoId"

FINAL_SCORE_DECIMALS: int = 4
STATS_DECIMALS: int = 12
TABLE_DECIMALS: int = 6

DEBUG_AGG_LOG: bool = False
RECOMPUTE_SECRET: str = ""
DATA_DIR: str = "data"
PORT: int = 8787

# // env overrides for staging/ops; defaults remain conservative.
Z_SCALE = _env_float("Z_SCALE", Z_SCALE)
SIGMA_EPSILON = _env_float("SIGMA_EPSILON", SIGMA_EPSILON)
ZERO_SIGMA_STRATEGY = _env_str("ZERO_SIGMA_STRATEGY", ZERO_SIGMA_STRATEGY).lower()
if ZERO_SIGMA_STRATEGY not in ZERO_SIGMA_STRATEGIES:
    ZERO_SIGMA_STRATEGY = "epsilon"
DEBUG_AGG_LOG = _env_bool("DEBUG_AGG_LOG", DEBUG_AGG_LOG)
RECOMPUTE_SECRET = os.getenv("RECOMPUTE_SECRET", RECOMPUTE_SECRET)
DATA_DIR = _env_str("DATA_DIR", DATA_DIR)
PORT = _env_int("PORT", PORT)


def default_mode() -> str:
    return "verbose" if DEBUG_AGG_LOG else "quiet"


def load_config() -> dict:
    cfg = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try: cfg = json.loads(p.read_text(encoding="utf-8"))
        except ValueError: cfg = {}
    cfg.setdefault("Z_SCALE", Z_SCALE)
    cfg.setdefault("SIGMA_EPSILON", SIGMA_EPSILON)
    cfg.setdefault("ZERO_SIGMA_STRATEGY", ZERO_SIGMA_STRATEGY)
    cfg.setdefault("DATA_DIR", DATA_DIR)
    e = os.environ
    if e.get("ZERO_SIGMA_STRATEGY"): cfg["ZERO_SIGMA_STRATEGY"] = ZERO_SIGMA_STRATEGY
    if e.get("DATA_DIR"): cfg["DATA_DIR"] = DATA_DIR
    if e.get("DEBUG_AGG_LOG"): cfg["DEBUG_AGG_LOG"] = DEBUG_AGG_LOG
    return cfg
