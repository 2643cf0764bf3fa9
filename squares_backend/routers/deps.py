# squares_backend/routers/deps.py
from fastapi import Request

from squares_backend.core.registry import PoolRegistry
from squares_backend.services.live_games import LiveGameStore
from squares_backend.services.ocr import OCREngine, get_ocr_engine


def get_registry(request: Request) -> PoolRegistry:
    return request.app.state.registry

def get_live_store(request: Request) -> LiveGameStore:
    return request.app.state.live

def get_engine() -> OCREngine:
    return get_ocr_engine()

def resync_live(request: Request) -> None:
    """Call after any change that can alter which games pools link to."""
    get_live_store(request).sync(get_registry(request).linked_game_ids())
