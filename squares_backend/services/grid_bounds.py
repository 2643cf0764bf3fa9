# squares_backend/services/grid_bounds.py
from __future__ import annotations
from typing import List, Optional
import asyncio, logging, math

from squares_backend.config import get_settings
from squares_backend.core.errors import GridNotFound
from squares_backend.core.models import Rect, RecognizedSymbol, Size
from squares_backend.services.geometry import to_display_rect
from squares_backend.services.ocr import (
    RESAMPLE_LANCZOS,
    OCREngine,
    PILImageLike,
    confident_digits,
    extract_symbols,
)

log = logging.getLogger(__name__)

MIN_SYMBOLS = 10
MIN_EDGE_SYMBOLS = 5
EDGE_BAND = 0.4      # top/left fraction of the working image searched for labels
MIN_SIDE_PX = 50.0


def _working_copy(image: PILImageLike, max_dim: int) -> PILImageLike:
    w, h = image.size
    scale = min(1.0, max_dim / max(w, h))
    if scale >= 1.0:
        return image
    size = (max(1, math.floor(w * scale)), max(1, math.floor(h * scale)))
    return image.resize(size, resample=RESAMPLE_LANCZOS)


def _fit_aspect(w: float, h: float, ratio: float) -> tuple[float, float]:
    # grow the short side only
    if h / w < ratio:
        return w, w * ratio
    return h / ratio, h


def detect_grid(image: PILImageLike, display_size: Size, engine: Optional[OCREngine] = None) -> Rect:
    """
    Propose the 10x10 grid overlay (display coords) from the digit labels
    printed along the top and left margins. A seed for the user to adjust,
    not a precise localization; raises GridNotFound rather than guessing.
    """
    if display_size.width <= 0 or display_size.height <= 0:
        raise GridNotFound("Display size must be positive")

    s = get_settings()
    working = _working_copy(image, s.GRID_WORKING_MAX_DIM)
    ww, wh = working.size

    symbols: List[RecognizedSymbol] = confident_digits(extract_symbols(working, None, engine))
    log.info("grid detect working=%dx%d digits=%d", ww, wh, len(symbols))
    if len(symbols) < MIN_SYMBOLS:
        raise GridNotFound("Not enough digits detected")

    top = [sym.bbox for sym in symbols if sym.bbox.y1 < wh * EDGE_BAND]
    left = [sym.bbox for sym in symbols if sym.bbox.x1 < ww * EDGE_BAND]
    if len(top) < MIN_EDGE_SYMBOLS or len(left) < MIN_EDGE_SYMBOLS:
        raise GridNotFound("Could not locate top/left digits")

    min_x = min(b.x0 for b in top)
    max_x = max(b.x1 for b in top)
    min_y = min(b.y0 for b in left)
    max_y = max(b.y1 for b in left)

    w = max(MIN_SIDE_PX, max_x - min_x)
    h = max(MIN_SIDE_PX, max_y - min_y)
    w, h = _fit_aspect(w, h, s.SHEET_ASPECT_RATIO)

    x = max(0.0, min(min_x, ww - w))
    y = max(0.0, min(min_y, wh - h))

    rect = to_display_rect(Rect(x, y, w, h), Size(ww, wh), display_size)
    log.info("grid detect top=%d left=%d -> %s", len(top), len(left), rect)
    return rect


async def detect_grid_async(image: PILImageLike, display_size: Size, engine: Optional[OCREngine] = None) -> Rect:
    return await asyncio.to_thread(detect_grid, image, display_size, engine)
