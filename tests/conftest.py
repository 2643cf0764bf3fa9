# tests/conftest.py
import os
import sys
import tempfile
from pathlib import Path
from typing import List

# Add project root to sys.path so "squares_backend" can be imported in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time; keep test runs out of ./data
os.environ.setdefault("DATA_DIR", str(Path(tempfile.gettempdir()) / "squares-backend-tests"))

import pytest

from squares_backend.core.models import BBox, Game, Linescores, RecognizedSymbol


class FakeEngine:
    """OCREngine stand-in: replays canned symbols and records the crops it saw."""

    def __init__(self, *batches: List[RecognizedSymbol]):
        self.batches = list(batches)
        self.seen = []

    def recognize(self, image, whitelist):
        self.seen.append(image.size)
        if not self.batches:
            return []
        return self.batches.pop(0) if len(self.batches) > 1 else list(self.batches[0])


def sym(text, x, y, w=10, h=10, conf=90.0) -> RecognizedSymbol:
    return RecognizedSymbol(text, conf, BBox(x, y, x + w, y + h))


def sheet_labels():
    """Ten column labels across the top and ten row labels down the left of a 600x800 sheet."""
    top = [sym(str(i), 100 + 40 * i, 40, w=20, h=20) for i in range(10)]
    left = [sym(str(i), 60, 100 + 40 * i, w=20, h=20) for i in range(10)]
    return top + left


def make_game(game_id="401", away=(7, 3), home=(0, 10), status="In Progress") -> Game:
    return Game(
        id=game_id,
        name="KC at PHI",
        status=status,
        period=len(away),
        clock="12:00",
        away_team="Kansas City Chiefs",
        away_abbr="KC",
        away_score=sum(away),
        home_team="Philadelphia Eagles",
        home_abbr="PHI",
        home_score=sum(home),
        linescores=Linescores(away=tuple(away), home=tuple(home)),
    )


@pytest.fixture
def digits_row():
    return [3, 1, 4, 1, 5, 9, 2, 6, 5, 0]
