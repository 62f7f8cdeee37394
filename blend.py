from __future__ import annotations
import math
import re
from enum import IntEnum
from typing import Sequence, Tuple, Union

from geometry import PanelGeometry

ColorLike = Union[int, str, Sequence[int]]

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class GradientMode(IntEnum):
    HORIZONTAL = 0  # along the text axis
    VERTICAL = 1    # across it
    DIAGONAL = 2


def clamp_byte(v) -> int:
    return max(0, min(255, int(math.floor(v))))


def rgb(r, g, b) -> int:
    return (clamp_byte(r) << 16) | (clamp_byte(g) << 8) | clamp_byte(b)


def unpack(color: int) -> Tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def to_color(value: ColorLike) -> int:
    """Normalize an int, an (r, g, b) sequence or a hex string to a packed color."""
    if isinstance(value, str):
        m = _HEX_COLOR.match(value.strip())
        if not m:
            raise ValueError(f"not a hex color: {value!r}")
        s = m.group(1)
        if len(s) == 3:
            s = "".join(c * 2 for c in s)
        return int(s, 16)
    if isinstance(value, int):
        return max(0, min(0xFFFFFF, value))
    r, g, b = value
    return rgb(r, g, b)


def lerp(a: float, b: float, t: float) -> int:
    t = max(0.0, min(1.0, t))
    return int(math.floor(a + (b - a) * t))


def rgb_lerp(c1: int, c2: int, t: float) -> int:
    r1, g1, b1 = unpack(c1)
    r2, g2, b2 = unpack(c2)
    return rgb(lerp(r1, r2, t), lerp(g1, g2, t), lerp(b1, b2, t))


def gradient_t(x: int, y: int, geometry: PanelGeometry, mode: GradientMode) -> float:
    if mode == GradientMode.DIAGONAL:
        denom = (geometry.width - 1) + (geometry.height - 1)
        t = (x + y) / denom if denom > 0 else 0.0
    else:
        along = y if geometry.vertical else x
        across = x if geometry.vertical else y
        if mode == GradientMode.VERTICAL:
            pos, extent = across, geometry.across_extent
        else:
            pos, extent = along, geometry.along_extent
        t = pos / (extent - 1) if extent > 1 else 0.0
    return max(0.0, min(1.0, t))


def gradient_at(x: int, y: int, c1: int, c2: int, mode: GradientMode,
                geometry: PanelGeometry) -> int:
    return rgb_lerp(c1, c2, gradient_t(x, y, geometry, mode))


def hsv_to_rgb(h: float, s: float, v: float) -> int:
    h = h % 360.0
    s = max(0.0, min(1.0, s))
    v = max(0.0, min(1.0, v))
    c = v * s
    x = c * (1 - abs((h / 60.0) % 2 - 1))
    m = v - c
    if h < 60:
        r, g, b = c, x, 0.0
    elif h < 120:
        r, g, b = x, c, 0.0
    elif h < 180:
        r, g, b = 0.0, c, x
    elif h < 240:
        r, g, b = 0.0, x, c
    elif h < 300:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return rgb((r + m) * 255, (g + m) * 255, (b + m) * 255)


def swirl_hue(x: int, y: int, geometry: PanelGeometry, seconds: float,
              hue_speed: float, scale: float) -> float:
    """Hue in degrees: polar angle around the panel center, rotated over time
    and shifted by distance from the center."""
    dx = x - (geometry.width - 1) / 2
    dy = y - (geometry.height - 1) / 2
    angle = math.degrees(math.atan2(dy, dx))
    return angle + seconds * hue_speed + math.hypot(dx, dy) * scale


def swirl_color(x: int, y: int, geometry: PanelGeometry, seconds: float,
                hue_speed: float, scale: float) -> int:
    return hsv_to_rgb(swirl_hue(x, y, geometry, seconds, hue_speed, scale), 1.0, 1.0)
