# squares_backend/routers/ocr_api.py
from __future__ import annotations
from dataclasses import replace
from fastapi import APIRouter, Depends, UploadFile, File, HTTPException, Form
from pydantic import BaseModel
from typing import Dict, Iterable, List, Optional
from pathlib import Path, PurePath
import asyncio

from PIL import UnidentifiedImageError

from squares_backend.config import get_settings
from squares_backend.core.models import Rect, Size
from squares_backend.core.registry import PoolRegistry
from squares_backend.routers.deps import get_engine, get_registry
from squares_backend.services.axis_digits import detect_axis_numbers, merge_axis_result
from squares_backend.services.grid_bounds import detect_grid_async
from squares_backend.services.ocr import OCREngine, PILImageLike, load_image

router = APIRouter(prefix="/ocr", tags=["ocr"])

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".bmp", ".webp", ".tif", ".tiff"}
MIME_TO_EXT = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
}

# pool id -> cancel token of the axis read currently running for it
_inflight: Dict[str, asyncio.Event] = {}

def _safe_ext(upload: UploadFile, allow: Iterable[str]) -> str:
    # content-type first, then the sanitized filename's extension
    ext = MIME_TO_EXT.get((upload.content_type or "").lower(), "")
    if not ext:
        name_only = Path(PurePath(upload.filename or "")).name
        ext = Path(name_only).suffix.lower()
    if not ext or ext not in allow:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {ext or 'unknown'}")
    return ext

async def _read_image(upload: UploadFile) -> PILImageLike:
    _safe_ext(upload, IMAGE_EXTS)
    max_bytes = get_settings().MAX_UPLOAD_MB * 1024 * 1024
    data = bytearray()
    while chunk := await upload.read(1024 * 1024):
        data.extend(chunk)
        if len(data) > max_bytes:
            raise HTTPException(status_code=413, detail=f"Image larger than {get_settings().MAX_UPLOAD_MB} MB")
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")
    try:
        return load_image(bytes(data))
    except (UnidentifiedImageError, OSError) as e:
        raise HTTPException(status_code=400, detail=f"Unreadable image: {e}")

def _display_size(width: float, height: float) -> Size:
    if width <= 0 or height <= 0:
        raise HTTPException(status_code=400, detail="display_width and display_height must be positive")
    return Size(width, height)

# ---------- Schemas ----------
class RectModel(BaseModel):
    x: float
    y: float
    w: float
    h: float

class AxisResponse(BaseModel):
    col_numbers: List[Optional[int]]
    row_numbers: List[Optional[int]]
    applied_to: Optional[str] = None

# ---------- Endpoints ----------
@router.post("/grid", response_model=RectModel)
async def ocr_grid(
    image: UploadFile = File(...),
    display_width: float = Form(...),
    display_height: float = Form(...),
    engine: OCREngine = Depends(get_engine),
):
    img = await _read_image(image)
    rect = await detect_grid_async(img, _display_size(display_width, display_height), engine)
    return RectModel(**rect.to_dict())

@router.post("/axis", response_model=AxisResponse)
async def ocr_axis(
    image: UploadFile = File(...),
    x: float = Form(...),
    y: float = Form(...),
    w: float = Form(...),
    h: float = Form(...),
    display_width: float = Form(...),
    display_height: float = Form(...),
    pool_id: Optional[str] = Form(None),
    engine: OCREngine = Depends(get_engine),
    registry: PoolRegistry = Depends(get_registry),
):
    """
    Read both axes under the user's overlay. With pool_id, the digits are
    written to that pool (an axis that read nothing keeps its old digits),
    and a newer read for the same pool cancels this one.
    """
    if w <= 0 or h <= 0:
        raise HTTPException(status_code=400, detail="Overlay w and h must be positive")
    if pool_id:
        registry.get(pool_id)
    img = await _read_image(image)
    bounds = Rect(max(0.0, x), max(0.0, y), w, h)

    cancel = asyncio.Event()
    if pool_id:
        previous = _inflight.get(pool_id)
        if previous is not None:
            previous.set()
        _inflight[pool_id] = cancel
    try:
        cols, rows = await detect_axis_numbers(
            img, bounds, _display_size(display_width, display_height), engine, cancel
        )
    finally:
        if pool_id and _inflight.get(pool_id) is cancel:
            del _inflight[pool_id]

    if not pool_id:
        return AxisResponse(col_numbers=cols.to_list(), row_numbers=rows.to_list())

    pool = registry.get(pool_id)
    pool = registry.update(replace(
        pool,
        col_numbers=merge_axis_result(pool.col_numbers, cols),
        row_numbers=merge_axis_result(pool.row_numbers, rows),
        grid_bounds=bounds,
    ))
    return AxisResponse(
        col_numbers=pool.col_numbers.to_list() if pool.col_numbers else [None] * 10,
        row_numbers=pool.row_numbers.to_list() if pool.row_numbers else [None] * 10,
        applied_to=pool.id,
    )
