# squares_backend/services/axis_digits.py
from __future__ import annotations
from typing import Iterable, List, Literal, Optional, Tuple
import asyncio, logging, math

from squares_backend.config import get_settings
from squares_backend.core.errors import DetectionCancelled
from squares_backend.core.models import GRID_SIZE, AxisDigits, Rect, RecognizedSymbol, Size
from squares_backend.services.geometry import to_native_rect
from squares_backend.services.ocr import (
    OCREngine,
    PILImageLike,
    confident_digits,
    extract_symbols,
    offset_symbols,
)

log = logging.getLogger(__name__)

Axis = Literal["x", "y"]

# Fraction of the strip depth the strip is allowed to bleed into the grid.
_STRIP_OVERLAP = 0.2

# --------------------------- Resolution ---------------------------

def resolve_axis(
    symbols: Iterable[RecognizedSymbol],
    axis: Axis,
    grid_rect: Rect,
    min_confidence: Optional[float] = None,
) -> AxisDigits:
    """
    Bucket full-image symbols into the 10 ordinal slots of one grid edge.
    Higher confidence wins a contested slot; on an exact tie the first symbol
    seen stays.
    """
    start = grid_rect.x if axis == "x" else grid_rect.y
    size = grid_rect.w if axis == "x" else grid_rect.h
    if size <= 0:
        return AxisDigits()

    best: List[Optional[RecognizedSymbol]] = [None] * GRID_SIZE
    for s in confident_digits(symbols, min_confidence):
        center = s.bbox.center_x if axis == "x" else s.bbox.center_y
        slot = math.floor(((center - start) / size) * GRID_SIZE)
        if slot < 0 or slot >= GRID_SIZE:
            continue
        current = best[slot]
        if current is None or s.confidence > current.confidence:
            best[slot] = s

    return AxisDigits(tuple(s.digit if s else None for s in best))


def merge_axis_result(previous: Optional[AxisDigits], detected: AxisDigits) -> Optional[AxisDigits]:
    """An axis that resolved nothing keeps whatever was configured before."""
    return previous if detected.is_empty else detected

# --------------------------- Strips ---------------------------

def axis_strips(grid: Rect, ratio: Optional[float] = None) -> Tuple[Rect, Rect]:
    """(top, left) strips, in native pixels, where the axis labels are printed."""
    ratio = get_settings().OCR_STRIP_RATIO if ratio is None else ratio
    depth = min(grid.w, grid.h) * ratio

    top_y = math.floor(max(0.0, grid.y - depth))
    top = Rect(
        x=math.floor(grid.x),
        y=top_y,
        w=grid.w,
        h=depth + min(depth * _STRIP_OVERLAP, grid.y),
    )
    left_x = math.floor(max(0.0, grid.x - depth))
    left = Rect(
        x=left_x,
        y=math.floor(grid.y),
        w=depth + min(depth * _STRIP_OVERLAP, grid.x),
        h=grid.h,
    )
    return top, left

def _ensure_live(cancel: Optional[asyncio.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise DetectionCancelled("axis detection cancelled")

async def _read_strip(image: PILImageLike, strip: Rect, engine: Optional[OCREngine]) -> List[RecognizedSymbol]:
    local = await asyncio.to_thread(extract_symbols, image, strip, engine)
    return offset_symbols(local, strip.x, strip.y)

async def detect_axis_numbers(
    image: PILImageLike,
    grid_bounds: Rect,
    display_size: Size,
    engine: Optional[OCREngine] = None,
    cancel: Optional[asyncio.Event] = None,
) -> Tuple[AxisDigits, AxisDigits]:
    """
    Read (col_numbers, row_numbers) for the overlay the user placed.
    `cancel` is checked around each OCR pass; once set, DetectionCancelled is
    raised instead of returning stale digits.
    """
    native = Size(float(image.size[0]), float(image.size[1]))
    grid = to_native_rect(grid_bounds, display_size, native)
    top, left = axis_strips(grid)

    _ensure_live(cancel)
    top_symbols = await _read_strip(image, top, engine)
    _ensure_live(cancel)
    left_symbols = await _read_strip(image, left, engine)
    _ensure_live(cancel)

    cols = resolve_axis(top_symbols, "x", grid)
    rows = resolve_axis(left_symbols, "y", grid)
    log.info(
        "axis digits grid=%s cols=%s rows=%s (symbols top=%d left=%d)",
        grid, cols.to_list(), rows.to_list(), len(top_symbols), len(left_symbols),
    )
    return cols, rows
