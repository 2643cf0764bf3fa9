# squares_backend/routers/games_api.py
from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Any, Dict, Optional
import asyncio

from squares_backend.services.espn_feed import fetch_games, normalize_date
from squares_backend.services.live_games import LiveGameStore
from squares_backend.routers.deps import get_live_store

router = APIRouter(prefix="/games", tags=["games"])


@router.get("")
async def list_games(date: Optional[str] = Query(None, description="YYYY-MM-DD or YYYYMMDD")):
    """Games for linking a pool. A feed outage comes back as 503 so the UI can offer manual entry."""
    try:
        normalize_date(date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    games = await asyncio.to_thread(fetch_games, date)
    return {"games": [g.to_dict() for g in games]}


@router.get("/live")
def live_snapshot(live: LiveGameStore = Depends(get_live_store)) -> Dict[str, Any]:
    return {
        "polling": live.running,
        "watched": sorted(live.watched),
        "last_error": live.last_error,
        "games": {gid: g.to_dict() for gid, g in live.games.items()},
    }


@router.post("/live/refresh")
async def live_refresh(live: LiveGameStore = Depends(get_live_store)) -> Dict[str, Any]:
    ok = await live.poll_once()
    return {"ok": ok, "last_error": live.last_error, "games": len(live.games)}
