# squares_backend/routers/health.py
from fastapi import APIRouter, Depends
from pathlib import Path

from squares_backend.config import get_settings
from squares_backend.core.registry import PoolRegistry
from squares_backend.routers.deps import get_live_store, get_registry
from squares_backend.services.live_games import LiveGameStore

router = APIRouter()

@router.get("/health")
def health_check(
    registry: PoolRegistry = Depends(get_registry),
    live: LiveGameStore = Depends(get_live_store),
):
    return {
        "status": "ok",
        "pools": len(registry.all()),
        "live": {"polling": live.running, "watched": len(live.watched), "last_error": live.last_error},
    }

@router.get("/health/env")
def env_preview():
    s = get_settings()
    return {
        "status": "ok",
        # server
        "PORT": s.PORT,
        "DATA_DIR": str(Path(s.DATA_DIR).resolve()),
        "MAX_UPLOAD_MB": s.MAX_UPLOAD_MB,
        "ALLOWED_ORIGINS": s.ALLOWED_ORIGINS,
        # OCR (binary path only, nothing secret lives here)
        "OCR": {
            "engine": s.OCR_ENGINE,
            "tesseract_cmd": s.TESSERACT_CMD,
            "min_confidence": s.OCR_MIN_CONFIDENCE,
            "strip_ratio": s.OCR_STRIP_RATIO,
            "grid_working_max_dim": s.GRID_WORKING_MAX_DIM,
            "sheet_aspect_ratio": s.SHEET_ASPECT_RATIO,
        },
        "FEED": {
            "espn_base": s.ESPN_BASE,
            "timeout_s": s.FEED_HTTP_TIMEOUT_S,
            "poll_interval_s": s.LIVE_POLL_INTERVAL_S,
        },
    }
