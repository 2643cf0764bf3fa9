# squares_backend/services/winners.py
from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from squares_backend.core.models import (
    CHECKPOINT_LABELS,
    CURRENT,
    QUARTERS,
    AxisDigits,
    Cell,
    Game,
    Pool,
    PoolType,
    ScorePair,
    WinRecord,
)
from squares_backend.services.scores import derive_checkpoints, reconcile

CHECKPOINTS_BY_TYPE: Dict[PoolType, Tuple[str, ...]] = {
    PoolType.quarters: QUARTERS,
    PoolType.half_final: ("q2", "q4"),
    PoolType.every_score: QUARTERS,
    PoolType.minute: QUARTERS,
}

# Pool types that also pay on the live, in-between score.
TRACKS_CURRENT = {PoolType.every_score, PoolType.minute}


def resolve_cell(
    col_digits: Optional[AxisDigits],
    row_digits: Optional[AxisDigits],
    score_a: Optional[int],
    score_b: Optional[int],
) -> Optional[Cell]:
    """Last digit of score_a picks the column, last digit of score_b the row."""
    if col_digits is None or row_digits is None or score_a is None or score_b is None:
        return None
    col = col_digits.index_of(score_a % 10)
    row = row_digits.index_of(score_b % 10)
    if col < 0 or row < 0:
        return None
    return Cell(row=row, col=col)


def resolve_wins(
    pool: Pool,
    checkpoints: Mapping[str, Optional[ScorePair]],
    current: Optional[Tuple[int, int]] = None,
) -> List[WinRecord]:
    """
    One record per scored checkpoint the pool type pays on, in checkpoint
    order. A score whose digits aren't on the axes yields cell=None.
    `current` is only consulted for every_score/minute pools.
    """
    if pool.col_numbers is None or pool.row_numbers is None:
        return []

    def _record(key: str, a: int, b: int) -> WinRecord:
        cell = resolve_cell(pool.col_numbers, pool.row_numbers, a, b)
        return WinRecord(
            checkpoint=key,
            label=CHECKPOINT_LABELS[key],
            score_pair=(a, b),
            digit_pair=(a % 10, b % 10),
            cell=cell,
            is_mine=bool(cell and pool.my_squares.is_mine(cell.row, cell.col)),
        )

    records: List[WinRecord] = []
    for q in CHECKPOINTS_BY_TYPE[pool.type]:
        pair = checkpoints.get(q)
        if not pair or pair[0] is None or pair[1] is None:
            continue
        records.append(_record(q, pair[0], pair[1]))

    if pool.type in TRACKS_CURRENT and current is not None:
        a, b = current
        if not any(r.score_pair == (a, b) for r in records):
            records.append(_record(CURRENT, a, b))

    return records


def pool_checkpoints(pool: Pool, game: Optional[Game]) -> Tuple[Dict[str, Optional[ScorePair]], Optional[Tuple[int, int]]]:
    """
    Score source for a pool: stored quarters (manual or last poll) overlaid
    with the linked game's snapshot, plus its live score when there is one.
    """
    if game is not None:
        scores = reconcile(pool.scores, derive_checkpoints(game.linescores))
        return {q: scores.get(q) for q in QUARTERS}, game.current_score
    return {q: pool.scores.get(q) for q in QUARTERS}, None


def summarize_wins(records: Sequence[WinRecord], pool: Pool) -> Dict[str, Any]:
    mine = sum(1 for r in records if r.is_mine)
    return {
        "my_win_count": mine,
        "checkpoints": len(records),
        "pool_value": pool.buy_in * 100 if pool.buy_in > 0 else None,
    }
