from __future__ import annotations
from typing import List, Protocol

import numpy as np
from PIL import Image, ImageEnhance

from geometry import PanelGeometry, pixel_coords


class PixelSink(Protocol):
    def set_pixel(self, index: int, color: int) -> None: ...

    def clear(self) -> None: ...

    def present(self) -> None: ...

    def set_brightness(self, value: int) -> None: ...


class FrameBufferSink:
    """Headless stand-in for the LED chain.

    Writes land in a working buffer; `present()` copies it to `shown`, which
    is what the physical panel would display.
    """

    def __init__(self, length: int, record: bool = False) -> None:
        self.length = length
        self.record = record
        self.buffer = np.zeros(length, dtype=np.uint32)
        self.shown = np.zeros(length, dtype=np.uint32)
        self.history: List[np.ndarray] = []
        self.presented = 0
        self.brightness = 255

    def set_pixel(self, index: int, color: int) -> None:
        if 0 <= index < self.length:
            self.buffer[index] = color & 0xFFFFFF

    def clear(self) -> None:
        self.buffer[:] = 0

    def present(self) -> None:
        self.shown = self.buffer.copy()
        self.presented += 1
        if self.record:
            self.history.append(self.shown)

    def set_brightness(self, value: int) -> None:
        self.brightness = value

    def color_at(self, index: int) -> int:
        return int(self.shown[index])

    def lit(self) -> int:
        return int(np.count_nonzero(self.shown))

    def to_image(self, geometry: PanelGeometry, apply_brightness: bool = True) -> Image.Image:
        rgb = np.zeros((geometry.height, geometry.width, 3), dtype=np.uint8)
        for i in range(min(self.length, geometry.size)):
            x, y = pixel_coords(i, geometry)
            c = int(self.shown[i])
            rgb[y, x] = ((c >> 16) & 0xFF, (c >> 8) & 0xFF, c & 0xFF)
        im = Image.fromarray(rgb)
        factor = max(0, min(255, int(self.brightness))) / 255.0
        if apply_brightness and factor != 1.0:
            im = ImageEnhance.Brightness(im).enhance(factor)
        return im


def sink_for(geometry: PanelGeometry, record: bool = False) -> FrameBufferSink:
    return FrameBufferSink(geometry.size, record=record)
