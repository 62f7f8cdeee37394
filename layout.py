from __future__ import annotations
from typing import Iterable, Iterator, List, NamedTuple, Optional, Sequence

import config
from geometry import PanelGeometry
from glyphs import FontTable


class LitCell(NamedTuple):
    x: int
    y: int
    char_index: int


def _columns_to_cells(columns: Iterable[tuple], font: FontTable,
                      geometry: PanelGeometry, across0: int) -> Iterator[LitCell]:
    # columns yields (along position, column bits, char index)
    extent = geometry.along_extent
    for along, bits, ci in columns:
        if not bits or along < 0 or along >= extent:
            continue
        for gy in range(font.height):
            if (bits >> gy) & 1 == 0:
                continue
            x, y = geometry.to_xy(along, across0 + gy)
            if geometry.contains(x, y):
                yield LitCell(x, y, ci)


def centered_layout(text: str, font: FontTable, geometry: PanelGeometry) -> List[LitCell]:
    """Cells lit by `text` centered on the panel, clipped to its bounds."""
    along0 = max(0, (geometry.along_extent - font.span(len(text))) // 2)
    across0 = (geometry.across_extent - font.height) // 2

    def columns():
        for i, ch in enumerate(text):
            base = along0 + i * font.pitch
            for gx, bits in enumerate(font.glyph(ch)):
                yield base + gx, bits, i

    return list(_columns_to_cells(columns(), font, geometry, across0))


def offset_layout(text: str, font: FontTable, geometry: PanelGeometry,
                  x0: int, y0: int) -> List[LitCell]:
    along0, across0 = (y0, x0) if geometry.vertical else (x0, y0)
    stream = font.column_stream(text)
    visible = max(0, geometry.along_extent - along0)
    cols = ((along0 + ci, bits, font.char_at_column(ci))
            for ci, bits in enumerate(stream[:visible]))
    return list(_columns_to_cells(cols, font, geometry, across0))


def scroll_offsets(extent: int, length: int) -> range:
    """Offsets of one sweep: enters fully off one edge, leaves fully off the other."""
    if length <= 0:
        return range(0)
    return range(extent, -length, -1)


def scroll_layout(stream: Sequence[int], offset: int, font: FontTable,
                  geometry: PanelGeometry) -> List[LitCell]:
    across0 = (geometry.across_extent - font.height) // 2
    n = len(stream)

    def columns():
        for along in range(geometry.along_extent):
            ci = along - offset
            if 0 <= ci < n:
                yield along, stream[ci], font.char_at_column(ci)

    return list(_columns_to_cells(columns(), font, geometry, across0))


def resolve_char_color(colors: Optional[Sequence[int]], index: int,
                       fallback: int = config.WHITE) -> int:
    if not colors:
        return fallback
    if index < len(colors):
        return colors[index]
    return colors[-1]
