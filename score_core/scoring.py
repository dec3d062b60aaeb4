from __future__ import annotations
from typing import Dict, Mapping, Optional
import math

from .config import SIGMA_EPSILON, Z_SCALE, ZERO_SIGMA_STRATEGIES
from .types import FinalScore, PerCriterion


def _num(x) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    try:
        f = float(x)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def compute_nci(
    na: float,
    mc: Optional[float],
    sigma: Optional[float],
    z: float = Z_SCALE,
    strategy: str = "epsilon",
    epsilon: float = SIGMA_EPSILON,
) -> float:
    """
    Standardize one criterion mean around ``z``: ``((NaCi - MCi) / σi) + z``.
    A zero or missing σ is handled by the strategy:
      - "epsilon": divide by ``epsilon`` instead (large but finite result)
      - "z": return ``z`` outright
    """
    if strategy not in ZERO_SIGMA_STRATEGIES:
        raise ValueError(f"unknown zero-sigma strategy: {strategy!r}")
    m = _num(mc) or 0.0
    sd = _num(sigma)
    if not sd:
        if strategy == "z":
            return float(z)
        sd = epsilon
    return ((float(na) - m) / sd) + float(z)


def compute_final(
    na: Mapping[str, float],
    mc: Mapping[str, float],
    sigma: Mapping[str, float],
    weights: Mapping[str, float],
    z: float = Z_SCALE,
    strategy: str = "epsilon",
    epsilon: float = SIGMA_EPSILON,
) -> FinalScore:
    """Return NCi per criterion and ``NF = Σ NCi * weight``; criteria follow ``weights`` order."""
    nci: PerCriterion = {}
    contributions: Dict[str, float] = {}
    for cid, w in weights.items():
        value = compute_nci(_num(na.get(cid)) or 0.0, mc.get(cid), sigma.get(cid), z, strategy, epsilon)
        nci[cid] = value
        contributions[cid] = value * float(w)
    nf = math.fsum(contributions.values())
    return FinalScore(nci=nci, nf=nf, contributions=contributions)
