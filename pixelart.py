"""Pixel-art assets: "<cols>x<rows>;#rrggbb,#rrggbb,...|#rrggbb,...".

Rows run top to bottom, one token per column. Parsing never fails; any
missing or unreadable token becomes black, and a header asking for more
than MAX_CELLS cells falls back to the default size.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import List

from PIL import Image

DEFAULT_COLUMNS = 8
DEFAULT_ROWS = 32
BLACK_HEX = "#000000"
MAX_CELLS = 64 * 64

_HEX6 = re.compile(r"^#[0-9a-fA-F]{6}$")
_HEX3 = re.compile(r"^#[0-9a-fA-F]{3}$")
_CSS_RGB = re.compile(r"^rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)$", re.IGNORECASE)


@dataclass
class PixelGrid:
    columns: int
    rows: int
    pixels: List[List[str]]

    @classmethod
    def blank(cls, columns: int, rows: int) -> "PixelGrid":
        return cls(columns, rows, [[BLACK_HEX] * columns for _ in range(rows)])


def normalize_hex(token: str) -> str:
    t = (token or "").strip()
    if _HEX6.match(t):
        return t.lower()
    if _HEX3.match(t):
        return "#" + "".join(c * 2 for c in t[1:]).lower()
    m = _CSS_RGB.match(t)
    if m:
        return "#" + "".join(f"{min(255, int(v)):02x}" for v in m.groups())
    return BLACK_HEX


def _parse_header(head: str, columns: int, rows: int):
    w, sep, h = head.partition("x")
    if not sep:
        return columns, rows
    try:
        w_val, h_val = int(w), int(h)
    except ValueError:
        return columns, rows
    w_val, h_val = (w_val if w_val > 0 else columns), (h_val if h_val > 0 else rows)
    if w_val * h_val > MAX_CELLS:
        return columns, rows
    return w_val, h_val


def parse_asset(text: str, columns: int = DEFAULT_COLUMNS, rows: int = DEFAULT_ROWS) -> PixelGrid:
    if not text:
        return PixelGrid.blank(columns, rows)
    head, sep, body = text.partition(";")
    if sep:
        columns, rows = _parse_header(head.strip(), columns, rows)
    else:
        body = text
    lines = body.split("|")
    pixels = []
    for y in range(rows):
        tokens = lines[y].split(",") if y < len(lines) else []
        pixels.append([normalize_hex(tokens[x]) if x < len(tokens) else BLACK_HEX
                       for x in range(columns)])
    return PixelGrid(columns, rows, pixels)


def serialize_asset(grid: PixelGrid) -> str:
    body = "|".join(",".join(normalize_hex(c) for c in row) for row in grid.pixels)
    return f"{grid.columns}x{grid.rows};{body}"


def hex_to_color(token: str) -> int:
    return int(normalize_hex(token)[1:], 16)


def grid_colors(grid: PixelGrid) -> List[List[int]]:
    return [[hex_to_color(c) for c in row] for row in grid.pixels]


def grid_to_image(grid: PixelGrid) -> Image.Image:
    img = Image.new("RGB", (grid.columns, grid.rows), (0, 0, 0))
    px = img.load()
    for y, row in enumerate(grid_colors(grid)):
        for x, c in enumerate(row):
            px[x, y] = ((c >> 16) & 0xFF, (c >> 8) & 0xFF, c & 0xFF)
    return img


def image_to_grid(img: Image.Image) -> PixelGrid:
    im = img.convert("RGB")
    w, h = im.size
    px = im.load()
    pixels = [["#%02x%02x%02x" % px[x, y] for x in range(w)] for y in range(h)]
    return PixelGrid(w, h, pixels)
