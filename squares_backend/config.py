# squares_backend/config.py
from functools import lru_cache
from pathlib import Path
from typing import Optional
import os
from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]

# Load in ascending precedence; later overrides earlier
load_dotenv(ROOT / ".env")
load_dotenv(ROOT / ".env.local", override=True)
load_dotenv(ROOT / "squares_backend" / ".env", override=True)
load_dotenv(ROOT / "squares_backend" / ".env.local", override=True)

class Settings:
    # Server
    PORT: int = int(os.getenv("PORT", "8000"))
    DATA_DIR: str = os.getenv("DATA_DIR", str(ROOT / "data"))
    MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "20"))
    POOLS_FILE: str = os.getenv("POOLS_FILE", "pools.json")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SLOW_REQUEST_MS: float = float(os.getenv("SLOW_REQUEST_MS", "5000"))

    # CORS
    ALLOWED_ORIGINS: list[str] = [
        o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",") if o.strip()
    ]

    # OCR
    OCR_ENGINE: str = os.getenv("OCR_ENGINE", "tesseract")
    TESSERACT_CMD: Optional[str] = os.getenv("TESSERACT_CMD")
    OCR_MIN_CONFIDENCE: float = float(os.getenv("OCR_MIN_CONFIDENCE", "40"))
    OCR_STRIP_RATIO: float = float(os.getenv("OCR_STRIP_RATIO", "0.22"))

    # Grid detection
    GRID_WORKING_MAX_DIM: int = int(os.getenv("GRID_WORKING_MAX_DIM", "900"))
    SHEET_ASPECT_RATIO: float = float(os.getenv("SHEET_ASPECT_RATIO", "1.414"))

    # Score feed
    ESPN_BASE: str = os.getenv("ESPN_BASE", "https://site.api.espn.com/apis/site/v2/sports/football/nfl")
    FEED_HTTP_TIMEOUT_S: float = float(os.getenv("FEED_HTTP_TIMEOUT_S", "5"))
    LIVE_POLL_INTERVAL_S: float = float(os.getenv("LIVE_POLL_INTERVAL_S", "30"))

@lru_cache
def get_settings() -> Settings:
    return Settings()
