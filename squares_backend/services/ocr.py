# squares_backend/services/ocr.py
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, TYPE_CHECKING
import io, logging

import numpy as np
import cv2
import pytesseract
from PIL import Image, ImageOps

from squares_backend.config import get_settings
from squares_backend.core.errors import RecognitionUnavailable
from squares_backend.core.models import BBox, Rect, RecognizedSymbol

if TYPE_CHECKING:
    from PIL.Image import Image as _PILImageType
    PILImageLike = _PILImageType
else:
    PILImageLike = Any  # type: ignore[assignment]

log = logging.getLogger(__name__)

DIGIT_WHITELIST = "0123456789"

RESAMPLE_LANCZOS = Image.Resampling.LANCZOS

# Crops whose short side is below this get upscaled before OCR; thin printed
# digits on a phone photo of a strip are often only ~15px tall.
_UPSCALE_BELOW_PX = 60
_UPSCALE_FACTOR = 3

# --------------------------- Image loading ---------------------------

def load_image(data: bytes) -> PILImageLike:
    with Image.open(io.BytesIO(data)) as im:
        return im.convert("RGB")

# --------------------------- Preprocessing ---------------------------

def _preprocess_sheet(img: PILImageLike) -> tuple[PILImageLike, int]:
    """Grayscale + autocontrast + Otsu binarize; upscale small crops. Returns (image, scale)."""
    w, h = img.size
    scale = _UPSCALE_FACTOR if min(w, h) < _UPSCALE_BELOW_PX else 1
    if scale > 1:
        img = img.resize((w * scale, h * scale), resample=RESAMPLE_LANCZOS)
    g = ImageOps.autocontrast(ImageOps.grayscale(img))
    arr = np.array(g)
    if arr.size and arr.min() != arr.max():
        _, arr = cv2.threshold(arr, 0, 255, cv2.THRESH_BINARY | cv2.THRESH_OTSU)
    return Image.fromarray(arr), scale

# --------------------------- Engines ---------------------------

class OCREngine(Protocol):
    def recognize(self, image: PILImageLike, whitelist: str) -> List[RecognizedSymbol]: ...


class TesseractEngine:
    """
    pytesseract backed engine. Tesseract reports words, not glyphs, so a
    word of N digits is split into N symbols over equal slices of its box.
    """

    def __init__(self, cmd: Optional[str] = None, psm: int = 11, split_words: bool = True):
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd
        self.psm = psm
        self.split_words = split_words

    def recognize(self, image: PILImageLike, whitelist: str) -> List[RecognizedSymbol]:
        prepped, scale = _preprocess_sheet(image)
        cfg = f"--oem 1 --psm {self.psm} -c tessedit_char_whitelist={whitelist} -c classify_bln_numeric_mode=1"
        data = pytesseract.image_to_data(prepped, lang="eng", config=cfg, output_type=pytesseract.Output.DICT)

        out: List[RecognizedSymbol] = []
        for i, raw in enumerate(data.get("text", [])):
            text = (raw or "").strip()
            conf = float(data["conf"][i])
            if conf < 0:   # page/block/line rows
                continue
            left, top = data["left"][i] / scale, data["top"][i] / scale
            width, height = data["width"][i] / scale, data["height"][i] / scale
            if self.split_words and len(text) > 1:
                step = width / len(text)
                for k, ch in enumerate(text):
                    x0 = left + k * step
                    out.append(RecognizedSymbol(ch, conf, BBox(x0, top, x0 + step, top + height)))
            else:
                out.append(RecognizedSymbol(text, conf, BBox(left, top, left + width, top + height)))
        return out


_ENGINES: Dict[str, Callable[[], OCREngine]] = {
    "tesseract": lambda: TesseractEngine(cmd=get_settings().TESSERACT_CMD),
}

def get_ocr_engine(name: Optional[str] = None) -> OCREngine:
    key = (name or get_settings().OCR_ENGINE).lower()
    factory = _ENGINES.get(key)
    if factory is None:
        raise RecognitionUnavailable(f"Unknown OCR engine: {key}")
    return factory()

# --------------------------- Extraction ---------------------------

def crop_region(image: PILImageLike, region: Optional[Rect]) -> PILImageLike:
    if region is None:
        return image
    left, top = int(region.x), int(region.y)
    w, h = max(1, int(region.w)), max(1, int(region.h))
    return image.crop((left, top, left + w, top + h))

def extract_symbols(
    image: PILImageLike,
    region: Optional[Rect] = None,
    engine: Optional[OCREngine] = None,
    whitelist: str = DIGIT_WHITELIST,
) -> List[RecognizedSymbol]:
    """
    OCR one region of `image`. Boxes come back in the region's LOCAL pixel
    space; run them through offset_symbols() before mixing with anything
    measured on the full image.
    """
    crop = crop_region(image, region)
    try:
        eng = engine or get_ocr_engine()
        symbols = eng.recognize(crop, whitelist)
    except RecognitionUnavailable:
        raise
    except Exception as e:
        log.warning("OCR engine failed region=%s error=%r", region, e)
        raise RecognitionUnavailable(f"OCR failed: {e}") from e
    log.debug("OCR region=%s size=%s symbols=%d", region, crop.size, len(symbols))
    return list(symbols)

def offset_symbols(symbols: Iterable[RecognizedSymbol], dx: float, dy: float) -> List[RecognizedSymbol]:
    return [RecognizedSymbol(s.text, s.confidence, s.bbox.offset(dx, dy)) for s in symbols]

def confident_digits(symbols: Iterable[RecognizedSymbol], min_confidence: Optional[float] = None) -> List[RecognizedSymbol]:
    """Single 0-9 characters at or above the confidence floor, in input order."""
    floor = get_settings().OCR_MIN_CONFIDENCE if min_confidence is None else min_confidence
    return [s for s in symbols if s.digit is not None and s.confidence >= floor]
