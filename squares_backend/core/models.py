# squares_backend/core/models.py
from __future__ import annotations
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import uuid

GRID_SIZE = 10
QUARTERS: Tuple[str, ...] = ("q1", "q2", "q3", "q4")
CURRENT = "current"
CHECKPOINT_LABELS = {"q1": "Q1", "q2": "Halftime", "q3": "Q3", "q4": "Final", CURRENT: "Current"}

ScorePair = Tuple[Optional[int], Optional[int]]
EMPTY_PAIR: ScorePair = (None, None)


class PoolType(str, Enum):
    quarters = "quarters"
    half_final = "half_final"
    every_score = "every_score"
    minute = "minute"


# --------------------------- Geometry ---------------------------

@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Rect":
        return cls(x=float(d["x"]), y=float(d["y"]), w=float(d["w"]), h=float(d["h"]))


@dataclass(frozen=True)
class BBox:
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def center_x(self) -> float:
        return (self.x0 + self.x1) / 2

    @property
    def center_y(self) -> float:
        return (self.y0 + self.y1) / 2

    def offset(self, dx: float, dy: float) -> "BBox":
        return BBox(self.x0 + dx, self.y0 + dy, self.x1 + dx, self.y1 + dy)


@dataclass(frozen=True)
class RecognizedSymbol:
    text: str
    confidence: float   # 0-100, as the OCR engine reports it
    bbox: BBox

    @property
    def digit(self) -> Optional[int]:
        if len(self.text) == 1 and self.text in "0123456789":
            return int(self.text)
        return None


# --------------------------- Grid values ---------------------------

def _check_digit(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 9:
        raise ValueError(f"axis digit must be 0-9 or None, got {value!r}")
    return value


@dataclass(frozen=True)
class AxisDigits:
    """
    The ten labels along one edge of the grid, in ordinal order
    (left->right for columns, top->bottom for rows). None = unknown.
    """
    slots: Tuple[Optional[int], ...] = (None,) * GRID_SIZE

    def __post_init__(self):
        slots = tuple(_check_digit(v) for v in self.slots)
        if len(slots) != GRID_SIZE:
            raise ValueError(f"axis needs {GRID_SIZE} slots, got {len(slots)}")
        object.__setattr__(self, "slots", slots)

    @classmethod
    def from_list(cls, values: Sequence[Optional[int]]) -> "AxisDigits":
        return cls(tuple(values))

    def __iter__(self) -> Iterator[Optional[int]]:
        return iter(self.slots)

    def __getitem__(self, i: int) -> Optional[int]:
        return self.slots[i]

    def __len__(self) -> int:
        return GRID_SIZE

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in self.slots)

    def index_of(self, digit: int) -> int:
        try:
            return self.slots.index(digit)
        except ValueError:
            return -1

    def to_list(self) -> List[Optional[int]]:
        return list(self.slots)


@dataclass(frozen=True)
class SquaresGrid:
    """10x10 ownership grid, indexed [row][col]."""
    cells: Tuple[Tuple[bool, ...], ...] = tuple((False,) * GRID_SIZE for _ in range(GRID_SIZE))

    def __post_init__(self):
        cells = tuple(tuple(bool(c) for c in row) for row in self.cells)
        if len(cells) != GRID_SIZE or any(len(r) != GRID_SIZE for r in cells):
            raise ValueError(f"squares grid must be {GRID_SIZE}x{GRID_SIZE}")
        object.__setattr__(self, "cells", cells)

    @classmethod
    def from_list(cls, rows: Sequence[Sequence[bool]]) -> "SquaresGrid":
        return cls(tuple(tuple(r) for r in rows))

    def is_mine(self, row: int, col: int) -> bool:
        return self.cells[row][col]

    def toggle(self, row: int, col: int) -> "SquaresGrid":
        if not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
            raise IndexError((row, col))
        rows = [list(r) for r in self.cells]
        rows[row][col] = not rows[row][col]
        return SquaresGrid.from_list(rows)

    def count(self) -> int:
        return sum(1 for r in self.cells for c in r if c)

    def to_list(self) -> List[List[bool]]:
        return [list(r) for r in self.cells]


# --------------------------- Scores ---------------------------

def _pair(value: Any) -> ScorePair:
    if value is None:
        return EMPTY_PAIR
    a, b = value
    return (None if a is None else int(a), None if b is None else int(b))


@dataclass(frozen=True)
class QuarterScores:
    q1: ScorePair = EMPTY_PAIR
    q2: ScorePair = EMPTY_PAIR
    q3: ScorePair = EMPTY_PAIR
    q4: ScorePair = EMPTY_PAIR

    def __post_init__(self):
        for q in QUARTERS:
            object.__setattr__(self, q, _pair(getattr(self, q)))

    def get(self, quarter: str) -> ScorePair:
        if quarter not in QUARTERS:
            raise KeyError(quarter)
        return getattr(self, quarter)

    def is_set(self, quarter: str) -> bool:
        a, b = self.get(quarter)
        return a is not None and b is not None

    def with_pair(self, quarter: str, pair: ScorePair) -> "QuarterScores":
        self.get(quarter)
        return replace(self, **{quarter: _pair(pair)})

    def with_side(self, quarter: str, side: int, value: Optional[int]) -> "QuarterScores":
        pair = list(self.get(quarter))
        pair[side] = value
        return self.with_pair(quarter, (pair[0], pair[1]))

    def to_dict(self) -> Dict[str, List[Optional[int]]]:
        return {q: list(self.get(q)) for q in QUARTERS}

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "QuarterScores":
        d = d or {}
        return cls(**{q: _pair(d.get(q)) for q in QUARTERS})


# --------------------------- Feed ---------------------------

@dataclass(frozen=True)
class Linescores:
    away: Tuple[int, ...] = ()
    home: Tuple[int, ...] = ()


@dataclass(frozen=True)
class Game:
    id: str
    name: str
    status: str
    period: int
    clock: str
    away_team: str
    away_abbr: str
    away_score: int
    home_team: str
    home_abbr: str
    home_score: int
    linescores: Linescores = field(default_factory=Linescores)

    @property
    def current_score(self) -> Tuple[int, int]:
        return (self.away_score, self.home_score)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["linescores"] = {"away": list(self.linescores.away), "home": list(self.linescores.home)}
        return d


# --------------------------- Wins ---------------------------

@dataclass(frozen=True)
class Cell:
    row: int
    col: int


@dataclass(frozen=True)
class WinRecord:
    checkpoint: str
    label: str
    score_pair: Tuple[int, int]
    digit_pair: Tuple[int, int]
    cell: Optional[Cell]
    is_mine: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------------------------- Pool ---------------------------

@dataclass(frozen=True)
class Pool:
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    name: str = ""
    type: PoolType = PoolType.quarters
    team1: str = "Team 1"
    team2: str = "Team 2"
    buy_in: float = 0.0
    game_id: Optional[str] = None
    col_numbers: Optional[AxisDigits] = None
    row_numbers: Optional[AxisDigits] = None
    my_squares: SquaresGrid = field(default_factory=SquaresGrid)
    scores: QuarterScores = field(default_factory=QuarterScores)
    grid_bounds: Optional[Rect] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "team1": self.team1,
            "team2": self.team2,
            "buyIn": self.buy_in,
            "gameId": self.game_id,
            "colNumbers": self.col_numbers.to_list() if self.col_numbers else None,
            "rowNumbers": self.row_numbers.to_list() if self.row_numbers else None,
            "mySquares": self.my_squares.to_list(),
            "scores": self.scores.to_dict(),
            "gridBounds": self.grid_bounds.to_dict() if self.grid_bounds else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Pool":
        cols = d.get("colNumbers")
        rows = d.get("rowNumbers")
        squares = d.get("mySquares")
        bounds = d.get("gridBounds")
        return cls(
            id=str(d["id"]),
            name=d.get("name") or "",
            type=PoolType(d.get("type") or PoolType.quarters.value),
            team1=d.get("team1") or "Team 1",
            team2=d.get("team2") or "Team 2",
            buy_in=float(d.get("buyIn") or 0),
            game_id=d.get("gameId"),
            col_numbers=AxisDigits.from_list(cols) if cols is not None else None,
            row_numbers=AxisDigits.from_list(rows) if rows is not None else None,
            my_squares=SquaresGrid.from_list(squares) if squares is not None else SquaresGrid(),
            scores=QuarterScores.from_dict(d.get("scores")),
            grid_bounds=Rect.from_dict(bounds) if bounds else None,
        )
