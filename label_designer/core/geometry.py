"""
core/geometry.py - Unit conversion and zoom transforms.

Element geometry is stored in un-zoomed document pixels derived from the
label's millimeter size at 96 DPI. Zoom only affects how pointer positions
map onto that space; it never touches stored geometry.
"""
from __future__ import annotations

from typing import Tuple

PX_PER_MM = 96.0 / 25.4

ZOOM_LEVELS: Tuple[int, ...] = (50, 75, 100, 125, 150, 200)
DEFAULT_ZOOM = 100


def mm_to_px(mm: float) -> float:
    return float(mm) * PX_PER_MM


def px_to_mm(px: float) -> float:
    return float(px) / PX_PER_MM


def zoom_factor(zoom_percent: float) -> float:
    zoom = float(zoom_percent)
    if zoom <= 0:
        raise ValueError(f"Zoom must be positive, got {zoom_percent!r}")
    return zoom / 100.0


def snap_zoom(zoom_percent: float) -> int:
    """Return the entry of ZOOM_LEVELS closest to *zoom_percent*."""
    value = float(zoom_percent)
    return min(ZOOM_LEVELS, key=lambda level: (abs(level - value), level))


def screen_to_document(
    screen_x: float, screen_y: float, zoom_percent: float
) -> Tuple[float, float]:
    """
    Map a pointer position (relative to the canvas' on-screen top-left)
    into document pixel space.
    """
    scale = zoom_factor(zoom_percent)
    return float(screen_x) / scale, float(screen_y) / scale


def document_to_screen(x: float, y: float, zoom_percent: float) -> Tuple[float, float]:
    scale = zoom_factor(zoom_percent)
    return float(x) * scale, float(y) * scale


def clamp(value: float, lo: float, hi: float) -> float:
    if hi < lo:
        hi = lo
    return max(lo, min(hi, value))


def clamp_rect(
    x: float,
    y: float,
    w: float,
    h: float,
    bounds_w: float,
    bounds_h: float,
) -> Tuple[float, float, float, float]:
    """
    Keep the box (x, y, w, h) inside [0, bounds_w] x [0, bounds_h].

    A box larger than the bounds is shrunk to fit before its origin is
    clamped, so the result is always fully contained.
    """
    w = min(float(w), float(bounds_w))
    h = min(float(h), float(bounds_h))
    x = clamp(float(x), 0.0, float(bounds_w) - w)
    y = clamp(float(y), 0.0, float(bounds_h) - h)
    return x, y, w, h


def rect_contains(
    x: float, y: float, w: float, h: float, px: float, py: float
) -> bool:
    return x <= px <= x + w and y <= py <= y + h
