# squares_backend/routers/pools_api.py
from __future__ import annotations
from dataclasses import replace
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field
from typing import Annotated, Any, Dict, List, Optional, Union

from squares_backend.core.models import (
    GRID_SIZE,
    QUARTERS,
    AxisDigits,
    Pool,
    PoolType,
    Rect,
    SquaresGrid,
)
from squares_backend.core.registry import PoolRegistry
from squares_backend.routers.deps import get_live_store, get_registry, resync_live
from squares_backend.services.live_games import LiveGameStore
from squares_backend.services.scores import apply_manual_score
from squares_backend.services.winners import pool_checkpoints, resolve_wins, summarize_wins

router = APIRouter(prefix="/pools", tags=["pools"])

Digit = Optional[Annotated[int, Field(ge=0, le=9)]]
AxisList = Annotated[List[Digit], Field(min_length=GRID_SIZE, max_length=GRID_SIZE)]
Index = Annotated[int, Field(ge=0, lt=GRID_SIZE)]

# ---------- Schemas ----------
class RectModel(BaseModel):
    x: float = Field(ge=0)
    y: float = Field(ge=0)
    w: float = Field(gt=0)
    h: float = Field(gt=0)

class PoolCreate(BaseModel):
    name: str = ""
    type: PoolType = PoolType.quarters
    team1: str = ""
    team2: str = ""
    buy_in: float = Field(0, ge=0)
    game_id: Optional[str] = None
    col_numbers: Optional[AxisList] = None
    row_numbers: Optional[AxisList] = None
    my_squares: Optional[List[List[bool]]] = None
    grid_bounds: Optional[RectModel] = None

class PoolPatch(BaseModel):
    name: Optional[str] = None
    type: Optional[PoolType] = None
    team1: Optional[str] = None
    team2: Optional[str] = None
    buy_in: Optional[float] = Field(None, ge=0)
    game_id: Optional[str] = None
    unlink_game: bool = False

class NumbersUpdate(BaseModel):
    col_numbers: Optional[AxisList] = None
    row_numbers: Optional[AxisList] = None

class SquareToggle(BaseModel):
    row: Index
    col: Index

class ManualScore(BaseModel):
    # raw text from the entry boxes; non-digits are stripped server side
    away: Optional[Union[str, int]] = None
    home: Optional[Union[str, int]] = None

def _raw(v: Optional[Union[str, int]]) -> Optional[str]:
    return None if v is None else str(v)

def _axis(values: Optional[List[Optional[int]]]) -> Optional[AxisDigits]:
    # an all-unknown axis is stored as "not configured"
    if values is None or all(v is None for v in values):
        return None
    return AxisDigits.from_list(values)

# ---------- Endpoints ----------
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_pool(body: PoolCreate, request: Request, registry: PoolRegistry = Depends(get_registry)):
    try:
        squares = SquaresGrid.from_list(body.my_squares) if body.my_squares is not None else SquaresGrid()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    pool = Pool(
        name=body.name.strip(),
        type=body.type,
        team1=body.team1.strip() or "Team 1",
        team2=body.team2.strip() or "Team 2",
        buy_in=body.buy_in,
        game_id=body.game_id or None,
        col_numbers=_axis(body.col_numbers),
        row_numbers=_axis(body.row_numbers),
        my_squares=squares,
        grid_bounds=Rect(**body.grid_bounds.model_dump()) if body.grid_bounds else None,
    )
    registry.add(pool)
    resync_live(request)
    return pool.to_dict()

@router.get("")
def list_pools(registry: PoolRegistry = Depends(get_registry)):
    pools = registry.all()
    return {
        "pools": [p.to_dict() for p in pools],
        "total_squares": sum(p.my_squares.count() for p in pools),
        "total_invested": sum(p.buy_in for p in pools),
    }

@router.get("/{pool_id}")
def get_pool(pool_id: str, registry: PoolRegistry = Depends(get_registry)):
    return registry.get(pool_id).to_dict()

@router.patch("/{pool_id}")
async def patch_pool(pool_id: str, body: PoolPatch, request: Request, registry: PoolRegistry = Depends(get_registry)):
    pool = registry.get(pool_id)
    changes: Dict[str, Any] = {
        k: v for k, v in body.model_dump(exclude={"unlink_game"}, exclude_none=True).items()
    }
    if body.unlink_game:
        changes["game_id"] = None
    pool = registry.update(replace(pool, **changes))
    resync_live(request)
    return pool.to_dict()

@router.delete("/{pool_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pool(pool_id: str, request: Request, registry: PoolRegistry = Depends(get_registry)):
    registry.delete(pool_id)
    resync_live(request)

@router.put("/{pool_id}/numbers")
async def put_numbers(pool_id: str, body: NumbersUpdate, registry: PoolRegistry = Depends(get_registry)):
    """User correction of the axis digits; each axis is replaced whole."""
    pool = registry.get(pool_id)
    fields = body.model_fields_set
    pool = registry.update(replace(
        pool,
        col_numbers=_axis(body.col_numbers) if "col_numbers" in fields else pool.col_numbers,
        row_numbers=_axis(body.row_numbers) if "row_numbers" in fields else pool.row_numbers,
    ))
    return pool.to_dict()

@router.post("/{pool_id}/squares/toggle")
async def toggle_square(pool_id: str, body: SquareToggle, registry: PoolRegistry = Depends(get_registry)):
    pool = registry.get(pool_id)
    pool = registry.update(replace(pool, my_squares=pool.my_squares.toggle(body.row, body.col)))
    return {"row": body.row, "col": body.col, "mine": pool.my_squares.is_mine(body.row, body.col),
            "count": pool.my_squares.count()}

@router.put("/{pool_id}/scores/{quarter}")
async def put_score(pool_id: str, quarter: str, body: ManualScore, registry: PoolRegistry = Depends(get_registry)):
    if quarter not in QUARTERS:
        raise HTTPException(status_code=404, detail=f"Unknown quarter: {quarter}")
    pool = registry.get(pool_id)
    scores = pool.scores
    fields = body.model_fields_set
    if "away" in fields:
        scores = apply_manual_score(scores, quarter, 0, _raw(body.away))
    if "home" in fields:
        scores = apply_manual_score(scores, quarter, 1, _raw(body.home))
    pool = registry.update(replace(pool, scores=scores))
    return {"quarter": quarter, "score": list(pool.scores.get(quarter)), "scores": pool.scores.to_dict()}

@router.get("/{pool_id}/wins")
def get_wins(
    pool_id: str,
    registry: PoolRegistry = Depends(get_registry),
    live: LiveGameStore = Depends(get_live_store),
):
    pool = registry.get(pool_id)
    game = live.get(pool.game_id)
    checkpoints, current = pool_checkpoints(pool, game)
    records = resolve_wins(pool, checkpoints, current)
    return {
        "pool_id": pool.id,
        "source": "live" if game is not None else "manual",
        "axes_configured": pool.col_numbers is not None and pool.row_numbers is not None,
        "game": game.to_dict() if game is not None else None,
        "wins": [r.to_dict() for r in records],
        **summarize_wins(records, pool),
    }
