# squares_backend/services/geometry.py
from __future__ import annotations

from squares_backend.core.models import Rect, Size


def _scale(to: float, frm: float) -> float:
    return to / frm if frm > 0 else 0.0


def to_native_rect(display_rect: Rect, display_size: Size, native_size: Size) -> Rect:
    """
    Map an overlay rectangle from on-screen display coords into the photo's
    native pixel space. Axes scale independently; the result is clamped so it
    never leaves [0, native_size].
    """
    sx = _scale(native_size.width, display_size.width)
    sy = _scale(native_size.height, display_size.height)

    x = min(max(0.0, display_rect.x * sx), native_size.width)
    y = min(max(0.0, display_rect.y * sy), native_size.height)
    w = min(max(0.0, display_rect.w * sx), native_size.width - x)
    h = min(max(0.0, display_rect.h * sy), native_size.height - y)
    return Rect(x=x, y=y, w=w, h=h)


def to_display_rect(native_rect: Rect, native_size: Size, display_size: Size) -> Rect:
    sx = _scale(display_size.width, native_size.width)
    sy = _scale(display_size.height, native_size.height)
    return Rect(
        x=max(0.0, native_rect.x * sx),
        y=max(0.0, native_rect.y * sy),
        w=max(0.0, native_rect.w * sx),
        h=max(0.0, native_rect.h * sy),
    )
