# tests/test_winners.py
from squares_backend.core.models import AxisDigits, Cell, Pool, PoolType, QuarterScores, SquaresGrid
from squares_backend.services.winners import pool_checkpoints, resolve_cell, resolve_wins, summarize_wins

from conftest import make_game

COLS = AxisDigits.from_list([3, 1, 4, 1, 5, 9, 2, 6, 5, 0])
ROWS = AxisDigits.from_list(list(range(10)))


def _pool(**kw):
    kw.setdefault("col_numbers", COLS)
    kw.setdefault("row_numbers", ROWS)
    return Pool(**kw)


def test_last_digits_pick_the_cell():
    assert resolve_cell(COLS, ROWS, 24, 17) == Cell(row=7, col=2)


def test_unknown_inputs_resolve_to_no_cell():
    assert resolve_cell(None, ROWS, 24, 17) is None
    assert resolve_cell(COLS, ROWS, None, 17) is None
    assert resolve_cell(COLS, ROWS, 28, 17) is None          # 8 is not on the column axis
    assert resolve_cell(COLS, AxisDigits(), 24, 17) is None


def test_half_final_ignores_q1_and_q3():
    pool = _pool(type=PoolType.half_final)
    assert resolve_wins(pool, {"q1": (7, 0), "q3": (10, 17)}) == []
    wins = resolve_wins(pool, {"q1": (7, 0), "q2": (10, 10), "q3": (10, 17), "q4": (17, 17)})
    assert [w.checkpoint for w in wins] == ["q2", "q4"]
    assert [w.label for w in wins] == ["Halftime", "Final"]


def test_quarters_pool_flags_my_square():
    mine = SquaresGrid().toggle(7, 2)
    wins = resolve_wins(_pool(my_squares=mine), {"q1": (24, 17), "q2": (30, 20)})
    assert wins[0].cell == Cell(7, 2) and wins[0].is_mine
    assert wins[0].digit_pair == (4, 7)
    assert wins[1].cell == Cell(row=0, col=9) and not wins[1].is_mine


def test_half_set_checkpoint_is_skipped():
    assert resolve_wins(_pool(), {"q1": (7, None)}) == []


def test_score_not_on_axes_still_reported_without_a_cell():
    wins = resolve_wins(_pool(), {"q1": (8, 7)})
    assert len(wins) == 1
    assert wins[0].cell is None and not wins[0].is_mine


def test_unconfigured_axes_give_no_records():
    assert resolve_wins(Pool(), {"q1": (7, 0)}) == []


def test_current_score_only_for_running_pools():
    checkpoints = {"q1": (7, 0)}
    assert len(resolve_wins(_pool(type=PoolType.quarters), checkpoints, (14, 3))) == 1

    wins = resolve_wins(_pool(type=PoolType.every_score), checkpoints, (14, 3))
    assert [w.checkpoint for w in wins] == ["q1", "current"]
    assert wins[-1].label == "Current"


def test_current_score_equal_to_a_checkpoint_is_not_repeated():
    wins = resolve_wins(_pool(type=PoolType.minute), {"q1": (7, 0)}, (7, 0))
    assert [w.checkpoint for w in wins] == ["q1"]


def test_pool_checkpoints_prefers_live_but_keeps_manual_quarters():
    pool = _pool(scores=QuarterScores(q3=(20, 20)))
    checkpoints, current = pool_checkpoints(pool, make_game(away=(7, 3), home=(0, 10)))
    assert checkpoints == {"q1": (7, 0), "q2": (10, 10), "q3": (20, 20), "q4": (None, None)}
    assert current == (10, 10)

    checkpoints, current = pool_checkpoints(pool, None)
    assert checkpoints["q1"] == (None, None) and current is None


def test_summary_counts_my_wins_and_pool_value():
    pool = _pool(buy_in=5, my_squares=SquaresGrid().toggle(7, 2))
    records = resolve_wins(pool, {"q1": (24, 17), "q2": (30, 20)})
    assert summarize_wins(records, pool) == {"my_win_count": 1, "checkpoints": 2, "pool_value": 500}
    assert summarize_wins([], Pool())["pool_value"] is None
