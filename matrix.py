from __future__ import annotations
import logging
from functools import wraps
from typing import Callable, Iterable, Optional, Sequence, Tuple, Union

from PIL import Image

import config
from anim import AnimationSession
from blend import (
    ColorLike,
    GradientMode,
    clamp_byte,
    gradient_at,
    swirl_color,
    to_color,
)
from geometry import OFF_PANEL, GeometryError, PanelGeometry, pixel_index
from glyphs import FONT_5X8, FontTable
from layout import (
    LitCell,
    centered_layout,
    offset_layout,
    resolve_char_color,
    scroll_layout,
    scroll_offsets,
)
from pixelart import PixelGrid, grid_colors, parse_asset
from sinks import PixelSink, sink_for
from tools_image import fit_to_panel, gif_frames, image_colors, strip_frames

log = logging.getLogger(__name__)

ColorOf = Callable[[LitCell], int]
FrameItem = Union[Image.Image, Tuple[Image.Image, int]]


def requires_sink(default=None):
    """Turn a drawing call into a no-op until the panel is initialized."""
    def decorator(f):
        @wraps(f)
        def wrapper(self, *args, **kwargs):
            if self._sink is None:
                log.debug("%s skipped: panel not initialized", f.__name__)
                return default
            return f(self, *args, **kwargs)
        return wrapper
    return decorator


def _frame_ms(ms) -> int:
    return max(1, int(ms))


class NeoMatrix:
    """Text, gradients and animations on one serially chained LED panel."""

    def __init__(self, session: Optional[AnimationSession] = None,
                 font: FontTable = FONT_5X8) -> None:
        self.session = session if session is not None else AnimationSession()
        self.font = font
        self._sink: Optional[PixelSink] = None
        self._geometry: Optional[PanelGeometry] = None
        self._brightness = config.DEFAULT_BRIGHTNESS

    # ---------- Setup ----------

    def init(self, width: int = config.MATRIX_WIDTH, height: int = config.MATRIX_HEIGHT,
             serpentine: bool = config.SERPENTINE, brightness: int = config.DEFAULT_BRIGHTNESS,
             sink: Optional[PixelSink] = None) -> None:
        """Set up the panel and its sink.

        A rejected size raises GeometryError and keeps the previous setup.
        A running animation is stopped before the new panel takes over.
        """
        try:
            geometry = PanelGeometry.create(width, height, serpentine, max_pixels=config.MAX_PIXELS)
        except GeometryError as e:
            log.warning("panel %rx%r refused: %s", width, height, e)
            raise
        # setup always lands: a claim lost to a newer animation is retried
        active = False
        while not active:
            with self.session.claim() as active:
                if active:
                    self._geometry = geometry
                    self._sink = sink if sink is not None else sink_for(geometry)
                    self._brightness = clamp_byte(brightness)
                    self._sink.set_brightness(self._brightness)
                    self._sink.clear()
                    self._sink.present()
        log.info("panel %dx%d serpentine=%s brightness=%d",
                 geometry.width, geometry.height, geometry.serpentine, self._brightness)

    @property
    def ready(self) -> bool:
        return self._sink is not None

    @property
    def geometry(self) -> Optional[PanelGeometry]:
        return self._geometry

    @property
    def sink(self) -> Optional[PixelSink]:
        return self._sink

    @property
    def brightness(self) -> int:
        return self._brightness

    @requires_sink()
    def set_brightness(self, value) -> None:
        self._brightness = clamp_byte(value)
        self._sink.set_brightness(self._brightness)
        self._sink.present()

    @requires_sink()
    def clear(self) -> None:
        with self.session.claim() as active:
            if active:
                self._sink.clear()
                self._sink.present()

    @requires_sink()
    def set_pixel(self, x: int, y: int, color: ColorLike) -> None:
        j = pixel_index(x, y, self._geometry)
        if j != OFF_PANEL:
            self._sink.set_pixel(j, to_color(color))

    @requires_sink()
    def show(self) -> None:
        self._sink.present()

    def stop_animations(self) -> None:
        self.session.stop()

    # ---------- Frame helpers ----------

    def _write(self, cells: Iterable[LitCell], color_of: ColorOf) -> None:
        g = self._geometry
        for cell in cells:
            j = pixel_index(cell.x, cell.y, g)
            if j != OFF_PANEL:
                self._sink.set_pixel(j, color_of(cell))

    def _frame(self, cells: Iterable[LitCell], color_of: ColorOf) -> None:
        self._sink.clear()
        self._write(cells, color_of)
        self._sink.present()

    def _static(self, cells: Iterable[LitCell], color_of: ColorOf) -> None:
        with self.session.claim() as active:
            if active:
                self._frame(cells, color_of)

    def _solid(self, color: ColorLike) -> ColorOf:
        c = to_color(color)
        return lambda cell: c

    def _per_char(self, colors: Optional[Sequence[ColorLike]], fallback: ColorLike) -> ColorOf:
        palette = [to_color(c) for c in (colors or [])]
        default = to_color(fallback)
        return lambda cell: resolve_char_color(palette, cell.char_index, default)

    def _gradient(self, c1: ColorLike, c2: ColorLike, mode: GradientMode) -> ColorOf:
        a, b, g = to_color(c1), to_color(c2), self._geometry
        mode = GradientMode(mode)
        return lambda cell: gradient_at(cell.x, cell.y, a, b, mode, g)

    # ---------- Static text ----------

    @requires_sink()
    def show_text(self, text: str, color: ColorLike) -> None:
        self._static(centered_layout(text or "", self.font, self._geometry), self._solid(color))

    @requires_sink()
    def show_text_colors(self, text: str, colors: Sequence[ColorLike],
                         fallback: ColorLike = config.WHITE) -> None:
        """Centered text, one color per character; the last color repeats.

        With no colors at all every character uses `fallback`.
        """
        self._static(centered_layout(text or "", self.font, self._geometry),
                     self._per_char(colors, fallback))

    @requires_sink()
    def show_text_gradient(self, text: str, c1: ColorLike, c2: ColorLike,
                           mode: GradientMode = GradientMode.HORIZONTAL) -> None:
        self._static(centered_layout(text or "", self.font, self._geometry),
                     self._gradient(c1, c2, mode))

    @requires_sink()
    def show_text_at(self, text: str, x0: int, y0: int, color: ColorLike) -> None:
        self._static(offset_layout(text or "", self.font, self._geometry, x0, y0),
                     self._solid(color))

    # ---------- Panel ----------

    @requires_sink()
    def fill_gradient(self, c1: ColorLike, c2: ColorLike,
                      mode: GradientMode = GradientMode.HORIZONTAL) -> None:
        g = self._geometry
        cells = [LitCell(x, y, 0) for y in range(g.height) for x in range(g.width)]
        self._static(cells, self._gradient(c1, c2, mode))

    @requires_sink()
    def draw_pixel_art(self, asset: Union[str, PixelGrid], x0: int = 0, y0: int = 0) -> None:
        grid = asset if isinstance(asset, PixelGrid) else parse_asset(asset)
        colors = grid_colors(grid)
        cells = [LitCell(x0 + x, y0 + y, 0) for y in range(grid.rows) for x in range(grid.columns)]
        self._static(cells, lambda cell: colors[cell.y - y0][cell.x - x0])

    @requires_sink()
    def draw_image(self, img: Image.Image, gamma: float = config.DEFAULT_GAMMA,
                   dither: bool = False) -> None:
        colors = {(x, y): c for x, y, c in image_colors(fit_to_panel(img, self._geometry, gamma, dither))}
        self._static([LitCell(x, y, 0) for x, y in colors], lambda cell: colors[cell.x, cell.y])

    # ---------- Effects ----------

    @requires_sink(0)
    def swirl_text(self, text: str, ms_per_frame: int = config.MS_PER_FRAME,
                   duration_ms: int = config.SWIRL_DURATION_MS,
                   hue_speed: float = config.SWIRL_HUE_SPEED,
                   scale: float = config.SWIRL_SCALE) -> int:
        """Rotate a rainbow around the panel center over the lit text cells."""
        g = self._geometry
        cells = centered_layout(text or "", self.font, g)
        ms = _frame_ms(ms_per_frame)
        frames = max(1, int(duration_ms) // ms)
        clock = self.session.clock

        def render(_):
            seconds = clock.millis() / 1000.0
            self._frame(cells, lambda cell: swirl_color(cell.x, cell.y, g, seconds, hue_speed, scale))

        with self.session.claim() as active:
            if not active:
                return 0
            log.debug("swirl %r for %d frame(s)", text, frames)
            return self.session.run_frames(range(frames), render, ms)

    # ---------- Scrolling ----------

    def _sweep(self, stream: Sequence[int], color_of: ColorOf, ms: int) -> int:
        g = self._geometry

        def render(offset: int) -> None:
            self._frame(scroll_layout(stream, offset, self.font, g), color_of)

        return self.session.run_frames(scroll_offsets(g.along_extent, len(stream)), render, ms)

    def _scroll_once(self, text: str, color_of: ColorOf, ms_per_col) -> int:
        stream = self.font.column_stream(text or "")
        with self.session.claim() as active:
            return self._sweep(stream, color_of, _frame_ms(ms_per_col)) if active else 0

    def _scroll_loop(self, text: str, color_of: ColorOf, ms_per_col, gap_ms, loops) -> int:
        stream = self.font.column_stream(text or "")
        if not stream:
            return 0
        ms = _frame_ms(ms_per_col)
        with self.session.claim() as active:
            if not active:
                return 0
            log.debug("scroll loop %r loops=%d gap=%dms", text, loops, gap_ms)
            return self.session.repeat(lambda: self._sweep(stream, color_of, ms), loops, gap_ms)

    @requires_sink(0)
    def scroll_once(self, text: str, color: ColorLike,
                    ms_per_col: int = config.MS_PER_COLUMN) -> int:
        return self._scroll_once(text, self._solid(color), ms_per_col)

    @requires_sink(0)
    def scroll_once_colors(self, text: str, colors: Sequence[ColorLike],
                           ms_per_col: int = config.MS_PER_COLUMN,
                           fallback: ColorLike = config.WHITE) -> int:
        return self._scroll_once(text, self._per_char(colors, fallback), ms_per_col)

    @requires_sink(0)
    def scroll_once_gradient(self, text: str, c1: ColorLike, c2: ColorLike,
                             mode: GradientMode = GradientMode.HORIZONTAL,
                             ms_per_col: int = config.MS_PER_COLUMN) -> int:
        return self._scroll_once(text, self._gradient(c1, c2, mode), ms_per_col)

    @requires_sink(0)
    def scroll_loop(self, text: str, color: ColorLike, ms_per_col: int = config.MS_PER_COLUMN,
                    gap_ms: int = 0, loops: int = -1) -> int:
        """Scroll `loops` times (forever when negative) until stopped."""
        return self._scroll_loop(text, self._solid(color), ms_per_col, gap_ms, loops)

    @requires_sink(0)
    def scroll_loop_colors(self, text: str, colors: Sequence[ColorLike],
                           ms_per_col: int = config.MS_PER_COLUMN,
                           gap_ms: int = 0, loops: int = -1,
                           fallback: ColorLike = config.WHITE) -> int:
        return self._scroll_loop(text, self._per_char(colors, fallback), ms_per_col, gap_ms, loops)

    @requires_sink(0)
    def scroll_loop_gradient(self, text: str, c1: ColorLike, c2: ColorLike,
                             mode: GradientMode = GradientMode.HORIZONTAL,
                             ms_per_col: int = config.MS_PER_COLUMN,
                             gap_ms: int = 0, loops: int = -1) -> int:
        return self._scroll_loop(text, self._gradient(c1, c2, mode), ms_per_col, gap_ms, loops)

    # ---------- Frame sequences ----------

    @requires_sink(0)
    def play_frames(self, frames: Sequence[FrameItem], loops: int = 1, gap_ms: int = 0,
                    gamma: float = config.DEFAULT_GAMMA) -> int:
        """Play images (optionally paired with a delay in ms); returns completed loops."""
        g = self._geometry
        prepared = []
        for item in frames:
            img, delay = item if isinstance(item, tuple) else (item, config.FRAME_DELAY_MS)
            writes = [(pixel_index(x, y, g), c) for x, y, c in image_colors(fit_to_panel(img, g, gamma))]
            prepared.append(([w for w in writes if w[0] != OFF_PANEL], delay))
        if not prepared:
            return 0

        def render(item) -> None:
            writes, _ = item
            self._sink.clear()
            for j, c in writes:
                self._sink.set_pixel(j, c)
            self._sink.present()

        with self.session.claim() as active:
            if not active:
                return 0
            return self.session.repeat(
                lambda: self.session.run_frames(prepared, render, lambda item: item[1]),
                loops, gap_ms)

    @requires_sink(0)
    def play_gif(self, fp, loops: int = 1, gap_ms: int = 0,
                 gamma: float = config.DEFAULT_GAMMA) -> int:
        """Play an animated GIF (path or file object) with its own frame delays."""
        return self.play_frames(gif_frames(fp), loops, gap_ms, gamma)

    @requires_sink(0)
    def play_strip(self, sheet: Image.Image, cols: int, rows: int,
                   delay_ms: int = config.FRAME_DELAY_MS, loops: int = 1, gap_ms: int = 0,
                   gamma: float = config.DEFAULT_GAMMA) -> int:
        frames = [(f, delay_ms) for f in strip_frames(sheet, cols, rows)]
        return self.play_frames(frames, loops, gap_ms, gamma)
