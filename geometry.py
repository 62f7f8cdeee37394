from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

import config

OFF_PANEL = -1


class GeometryError(ValueError):
    pass


@dataclass(frozen=True)
class PanelGeometry:
    """Size and wiring of one LED panel.

    Text runs along the longer side: on a portrait panel (height > width) the
    string advances along y and glyph rows stack along x.
    """
    width: int
    height: int
    serpentine: bool = True

    @classmethod
    def create(cls, width: int, height: int, serpentine: bool = True,
               max_pixels: int = config.MAX_PIXELS) -> "PanelGeometry":
        if isinstance(width, bool) or isinstance(height, bool):
            raise GeometryError("panel dimensions must be integers")
        if not isinstance(width, int) or not isinstance(height, int):
            raise GeometryError("panel dimensions must be integers")
        if width <= 0 or height <= 0:
            raise GeometryError(f"panel dimensions must be positive, got {width}x{height}")
        if width * height > max_pixels:
            raise GeometryError(f"{width}x{height} exceeds the {max_pixels} pixel budget")
        return cls(width, height, bool(serpentine))

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def vertical(self) -> bool:
        return self.height > self.width

    @property
    def along_extent(self) -> int:
        return self.height if self.vertical else self.width

    @property
    def across_extent(self) -> int:
        return self.width if self.vertical else self.height

    def to_xy(self, along: int, across: int) -> Tuple[int, int]:
        if self.vertical:
            return across, along
        return along, across

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height


def pixel_index(x: int, y: int, geometry: PanelGeometry) -> int:
    """Chain index of panel cell (x, y), or OFF_PANEL outside the panel."""
    w = geometry.width
    if x < 0 or y < 0 or x >= w or y >= geometry.height:
        return OFF_PANEL
    row_start = y * w
    if geometry.serpentine and y % 2 == 1:
        return row_start + (w - 1 - x)
    return row_start + x


def pixel_coords(index: int, geometry: PanelGeometry) -> Tuple[int, int]:
    if not (0 <= index < geometry.size):
        raise IndexError(f"chain index {index} out of range")
    y, col = divmod(index, geometry.width)
    if geometry.serpentine and y % 2 == 1:
        return geometry.width - 1 - col, y
    return col, y
