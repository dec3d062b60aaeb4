from __future__ import annotations
import argparse, json, logging
from pathlib import Path

from score_core.config import load_config, default_mode, ZERO_SIGMA_STRATEGIES
from score_core.engine import recompute_all
from api.storage import JsonFileStore

log = logging.getLogger("app_cli.recompute")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Recompute every work aggregate once and exit.")
    ap.add_argument("--data-dir", help="document store root (default: DATA_DIR or ./data)")
    ap.add_argument("--debug", action="store_true", help="log per-stage diagnostic tables")
    ap.add_argument("--strategy", choices=ZERO_SIGMA_STRATEGIES, help="zero-sigma handling")
    ap.add_argument("--json", action="store_true", help="print the run summary as JSON")
    return ap


def main(argv: list[str] | None = None) -> int:
    a = build_parser().parse_args(argv)
    cfg = load_config()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    store = JsonFileStore(Path(a.data_dir or cfg.get("DATA_DIR") or "data"))
    mode = "verbose" if a.debug else default_mode()
    strategy = a.strategy or cfg.get("ZERO_SIGMA_STRATEGY")
    try:
        summary = recompute_all(store, mode=mode, strategy=strategy)
    except Exception:
        log.exception("recompute failed")
        return 1
    if a.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(f"OK: {summary.processed} works aggregated, {summary.skipped} skipped, "
              f"{len(summary.groups)} rubric groups.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
