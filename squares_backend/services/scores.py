# squares_backend/services/scores.py
from __future__ import annotations
from typing import Dict, Mapping, Optional, Tuple
import re

from squares_backend.core.models import QUARTERS, Linescores, QuarterScores

_NON_DIGIT_RX = re.compile(r"\D")
MAX_SCORE_CHARS = 2


def derive_checkpoints(linescores: Linescores) -> Dict[str, Tuple[int, int]]:
    """
    Running (away, home) totals at the end of each regulation quarter.
    A quarter is only present once the feed has an away value for it;
    overtime periods are ignored.
    """
    out: Dict[str, Tuple[int, int]] = {}
    away_run = home_run = 0
    for i, q in enumerate(QUARTERS):
        away = linescores.away[i] if i < len(linescores.away) else None
        home = linescores.home[i] if i < len(linescores.home) else None
        away_run += away or 0
        home_run += home or 0
        if away is not None:
            out[q] = (away_run, home_run)
    return out


def reconcile(stored: QuarterScores, new_checkpoints: Mapping[str, Tuple[int, int]]) -> QuarterScores:
    """Overlay freshly polled quarters; anything the poll lacks stays as stored."""
    merged = stored
    for q in QUARTERS:
        pair = new_checkpoints.get(q)
        if pair is not None:
            merged = merged.with_pair(q, pair)
    return merged


def sanitize_score_input(raw: Optional[str]) -> Optional[int]:
    """'1a4' -> 14, '' -> None. Keeps at most two digits like the entry box does."""
    cleaned = _NON_DIGIT_RX.sub("", raw or "")[:MAX_SCORE_CHARS]
    return int(cleaned) if cleaned else None


def apply_manual_score(scores: QuarterScores, quarter: str, side: int, raw: Optional[str]) -> QuarterScores:
    if side not in (0, 1):
        raise ValueError(f"side must be 0 (away) or 1 (home), got {side}")
    return scores.with_side(quarter, side, sanitize_score_input(raw))
