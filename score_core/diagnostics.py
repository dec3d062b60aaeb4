"""Plain-text tables for verbose recompute runs."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from .config import TABLE_DECIMALS

log = logging.getLogger("score_core.recompute")


def _cell(value: Any) -> str:
    if isinstance(value, float):
        return f"{round(value, TABLE_DECIMALS):.{TABLE_DECIMALS}f}"
    return "" if value is None else str(value)


def format_table(rows: Sequence[Dict[str, Any]]) -> str:
    if not rows:
        return "(empty)"
    headers: List[str] = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)
    body = [[_cell(row.get(h)) for h in headers] for row in rows]
    widths = [max(len(h), *(len(r[i]) for r in body)) for i, h in enumerate(headers)]
    lines = [" | ".join(h.ljust(w) for h, w in zip(headers, widths))]
    lines.append("-+-".join("-" * w for w in widths))
    for r in body:
        lines.append(" | ".join(c.ljust(w) for c, w in zip(r, widths)))
    return "\n".join(lines)


def log_header(title: str) -> None:
    log.info("===== %s =====", title)


def log_table(label: str, rows: Sequence[Dict[str, Any]]) -> None:
    log.info("%s\n%s", label, format_table(rows))
