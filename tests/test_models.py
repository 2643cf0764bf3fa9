# tests/test_models.py
import json

import pytest

from squares_backend.core.models import (
    AxisDigits,
    Game,
    Pool,
    PoolType,
    QuarterScores,
    Rect,
    SquaresGrid,
)

from conftest import make_game


def test_pool_survives_a_storage_round_trip():
    squares = SquaresGrid().toggle(0, 0).toggle(9, 9).toggle(4, 7)
    pool = Pool(
        name="Office",
        type=PoolType.half_final,
        buy_in=10,
        game_id="401",
        col_numbers=AxisDigits.from_list([3, None, 4, 1, None, 9, 2, 6, 5, 0]),
        row_numbers=AxisDigits.from_list([None] * 9 + [7]),
        my_squares=squares,
        scores=QuarterScores(q1=(7, 0), q2=(10, None)),
        grid_bounds=Rect(12.5, 30, 200, 282.8),
    )
    restored = Pool.from_dict(json.loads(json.dumps(pool.to_dict())))

    assert restored == pool
    assert restored.col_numbers.to_list()[1] is None
    assert restored.my_squares.count() == 3
    assert not restored.my_squares.is_mine(0, 1)


def test_pool_uses_camel_case_keys():
    d = Pool(buy_in=5).to_dict()
    assert {"buyIn", "gameId", "colNumbers", "rowNumbers", "mySquares", "gridBounds"} <= set(d)
    assert d["colNumbers"] is None


def test_sparse_stored_pool_gets_defaults():
    pool = Pool.from_dict({"id": "abc"})
    assert pool.team1 == "Team 1" and pool.type is PoolType.quarters
    assert pool.my_squares.count() == 0
    assert pool.scores == QuarterScores()


@pytest.mark.parametrize("slots", [
    [0] * 9,
    [0] * 11,
    [10] + [None] * 9,
    [True] + [None] * 9,
    ["1"] + [None] * 9,
])
def test_axis_digits_reject_bad_slots(slots):
    with pytest.raises(ValueError):
        AxisDigits.from_list(slots)


def test_axis_lookup():
    axis = AxisDigits.from_list([3, 1, 4, 1, 5, 9, 2, 6, 5, 0])
    assert axis.index_of(1) == 1        # first occurrence
    assert axis.index_of(8) == -1
    assert AxisDigits().index_of(0) == -1


def test_toggle_returns_a_new_grid():
    grid = SquaresGrid()
    toggled = grid.toggle(3, 4)
    assert toggled.is_mine(3, 4) and not grid.is_mine(3, 4)
    assert toggled.toggle(3, 4) == grid
    with pytest.raises(IndexError):
        grid.toggle(10, 0)


def test_squares_grid_shape_is_checked():
    with pytest.raises(ValueError):
        SquaresGrid.from_list([[False] * 10] * 9)


def test_quarter_scores_lookup():
    scores = QuarterScores(q1=(7, 0), q2=(10, 10))
    assert scores.is_set("q2") and not scores.is_set("q3")
    assert scores.with_side("q3", 0, 13).q3 == (13, None)
    with pytest.raises(KeyError):
        scores.get("q5")


def test_game_serializes_linescores_as_lists():
    game = make_game()
    d = game.to_dict()
    assert d["linescores"] == {"away": [7, 3], "home": [0, 10]}
    assert isinstance(game, Game) and game.current_score == (10, 10)
