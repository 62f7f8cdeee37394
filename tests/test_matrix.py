from __future__ import annotations

import io

import pytest
from PIL import Image

from blend import GradientMode, gradient_at, swirl_color
from geometry import GeometryError, PanelGeometry, pixel_index
from glyphs import FONT_5X8
from layout import centered_layout
from matrix import NeoMatrix
from sinks import FrameBufferSink

from conftest import StoppingSink, panel_color, reset_counters

RED, GREEN, BLUE, WHITE = 0xFF0000, 0x00FF00, 0x0000FF, 0xFFFFFF


def test_uninitialized_panel_ignores_every_call(session):
    m = NeoMatrix(session)
    assert not m.ready
    assert m.show_text("HI", RED) is None
    assert m.fill_gradient(RED, BLUE) is None
    assert m.clear() is None
    assert m.set_brightness(10) is None
    assert m.scroll_once("HI", RED) == 0
    assert m.scroll_loop("HI", RED, loops=-1) == 0
    assert m.swirl_text("HI") == 0
    assert m.play_frames([Image.new("RGB", (8, 32))]) == 0
    m.stop_animations()
    assert session.clock.sleeps == []


def test_init_clears_and_applies_clamped_brightness(session):
    sink = FrameBufferSink(256, record=True)
    sink.buffer[:] = 0x123456
    m = NeoMatrix(session)
    m.init(8, 32, True, 999, sink=sink)
    assert m.ready
    assert m.brightness == 255
    assert sink.brightness == 255
    assert sink.lit() == 0
    assert sink.presented == 1


def test_refused_size_keeps_the_previous_setup(matrix):
    sink, geometry = matrix.sink, matrix.geometry
    with pytest.raises(GeometryError):
        matrix.init(20, 20)
    with pytest.raises(GeometryError):
        matrix.init(0, 8)
    assert matrix.sink is sink
    assert matrix.geometry == geometry


def test_refused_first_init_leaves_the_panel_unready(session):
    m = NeoMatrix(session)
    with pytest.raises(GeometryError):
        m.init(32, 32)
    assert not m.ready


def test_reinit_replaces_geometry_and_sink(matrix):
    matrix.init(16, 16, False)
    assert matrix.geometry == PanelGeometry(16, 16, False)
    assert matrix.sink.length == 256


def test_brightness_is_clamped(matrix):
    matrix.set_brightness(-4)
    assert matrix.brightness == 0
    matrix.set_brightness(300.7)
    assert matrix.sink.brightness == 255


def test_show_text_goes_through_the_serpentine_mapper(matrix):
    matrix.show_text("HI", RED)
    sink = matrix.sink
    cells = centered_layout("HI", FONT_5X8, matrix.geometry)
    assert sink.lit() == len(cells)
    assert panel_color(matrix, 0, 10) == RED
    # H column 1 is 0x08: row 3, on odd panel row 11 -> chain index 11*8 + (7-3)
    assert sink.color_at(92) == RED
    assert sink.color_at(11 * 8 + 3) == 0
    assert sink.presented == 1


def test_per_character_colors_reuse_the_last_one(matrix):
    matrix.show_text_colors("HI", [RED, BLUE])
    assert panel_color(matrix, 0, 10) == RED
    assert panel_color(matrix, 0, 18) == BLUE

    matrix.show_text_colors("HI", [GREEN])
    assert panel_color(matrix, 0, 18) == GREEN

    matrix.show_text_colors("HI", [])
    assert panel_color(matrix, 0, 10) == WHITE

    matrix.show_text_colors("HI", [], fallback=GREEN)
    assert panel_color(matrix, 0, 10) == GREEN
    assert panel_color(matrix, 0, 18) == GREEN


def test_gradient_text_is_panel_relative(matrix):
    matrix.show_text_gradient("HI", RED, BLUE, GradientMode.HORIZONTAL)
    g = matrix.geometry
    assert panel_color(matrix, 0, 10) == gradient_at(0, 10, RED, BLUE, GradientMode.HORIZONTAL, g)
    assert panel_color(matrix, 0, 18) == gradient_at(0, 18, RED, BLUE, GradientMode.HORIZONTAL, g)


def test_show_text_at_places_the_stream_without_centering(make_matrix):
    m = make_matrix(32, 8)
    m.show_text_at("I", 0, 0, GREEN)
    # I = 0x00, 0x41, 0x7F, 0x41, 0x00
    assert panel_color(m, 2, 3) == GREEN
    assert panel_color(m, 1, 0) == GREEN
    assert panel_color(m, 0, 0) == 0
    assert m.sink.lit() == 7 + 2 + 2


def test_fill_gradient_covers_the_panel(matrix):
    matrix.fill_gradient(RED, BLUE)
    assert matrix.sink.lit() == 256
    assert panel_color(matrix, 0, 0) == RED
    assert panel_color(matrix, 5, 31) == BLUE
    matrix.fill_gradient(RED, BLUE, GradientMode.VERTICAL)
    assert panel_color(matrix, 7, 0) == BLUE


def test_scroll_once_sweeps_across_the_panel(make_matrix, clock):
    m = make_matrix(8, 8)
    frames = m.scroll_once("A", RED, ms_per_col=20)
    assert frames == 13
    assert m.sink.presented == 13
    assert clock.sleeps == [20] * 13
    # first frame is empty, last one shows only the final glyph column at x=0
    assert not m.sink.history[0].any()
    last = m.sink.history[-1]
    lit = {i for i in range(64) if last[i]}
    assert lit == {pixel_index(0, y, m.geometry) for y in range(1, 7)}


def test_scroll_interval_is_clamped(make_matrix, clock):
    m = make_matrix(8, 8)
    m.scroll_once("A", RED, ms_per_col=0)
    assert set(clock.sleeps) == {1}


def test_scrolling_empty_text_does_nothing(matrix, clock):
    assert matrix.scroll_once("", RED) == 0
    assert matrix.scroll_loop("", RED, loops=-1) == 0
    assert matrix.sink.presented == 0
    assert clock.sleeps == []


def test_scroll_once_colors(make_matrix):
    m = make_matrix(16, 8)
    m.scroll_once_colors("AB", [RED, BLUE], ms_per_col=1)
    # offset 0 is frame 16 (offsets start at 16)
    frame = m.sink.history[16]
    assert frame[pixel_index(0, 1, m.geometry)] == RED
    assert frame[pixel_index(6, 0, m.geometry)] == BLUE


def test_scroll_once_gradient_colors_by_panel_position(make_matrix):
    m = make_matrix(16, 8)
    m.scroll_once_gradient("AB", RED, BLUE, GradientMode.HORIZONTAL, ms_per_col=1)
    frame = m.sink.history[16]
    g = m.geometry
    assert frame[pixel_index(0, 1, g)] == gradient_at(0, 1, RED, BLUE, GradientMode.HORIZONTAL, g)
    assert frame[pixel_index(9, 0, g)] == gradient_at(9, 0, RED, BLUE, GradientMode.HORIZONTAL, g)


def test_counted_scroll_loop_with_gap(make_matrix, clock):
    m = make_matrix(8, 8)
    done = m.scroll_loop("A", RED, ms_per_col=10, gap_ms=300, loops=2)
    assert done == 2
    assert m.sink.presented == 26
    assert clock.sleeps == [10] * 13 + [300] + [10] * 13 + [300]


def test_scroll_loop_colors_and_gradient_variants(make_matrix):
    m = make_matrix(8, 8)
    assert m.scroll_loop_colors("A", [GREEN], ms_per_col=1, loops=1) == 1
    assert m.scroll_loop_gradient("A", RED, BLUE, ms_per_col=1, loops=3) == 3
    assert m.sink.presented == 13 * 4


def test_stop_halts_an_endless_loop_after_the_current_frame(session, clock):
    sink = StoppingSink(64, session, after=4)
    m = NeoMatrix(session)
    m.init(8, 8, sink=sink)
    reset_counters(sink)
    sink.after = 4
    done = m.scroll_loop("A", RED, ms_per_col=5, loops=-1)
    assert done == 0
    assert sink.presented == 4
    assert len(clock.sleeps) == 4
    assert not session.running
    # a new animation starts normally afterwards
    sink.after = 10 ** 6
    assert m.scroll_once("A", RED, ms_per_col=1) == 13


def test_swirl_runs_for_its_duration(matrix, clock):
    clock.now = 1500
    frames = matrix.swirl_text("HI", ms_per_frame=40, duration_ms=200, hue_speed=120, scale=10)
    assert frames == 5
    assert clock.sleeps == [40] * 5
    g = matrix.geometry
    first = matrix.sink.history[0]
    assert first[pixel_index(0, 10, g)] == swirl_color(0, 10, g, 1.5, 120, 10)
    last = matrix.sink.history[-1]
    assert last[pixel_index(0, 10, g)] == swirl_color(0, 10, g, 1.66, 120, 10)
    lit = {i for i in range(256) if last[i]}
    assert len(lit) == len(centered_layout("HI", FONT_5X8, g))


def test_swirl_shorter_than_a_frame_still_draws_once(matrix):
    assert matrix.swirl_text("A", ms_per_frame=100, duration_ms=10) == 1


def test_draw_pixel_art(matrix):
    matrix.draw_pixel_art("2x2;#ff0000,#00ff00|#0000ff,#ffffff")
    assert panel_color(matrix, 0, 0) == RED
    assert panel_color(matrix, 1, 0) == GREEN
    assert matrix.sink.color_at(15) == BLUE
    assert panel_color(matrix, 1, 1) == WHITE
    assert matrix.sink.lit() == 4


def test_draw_pixel_art_offset_clips(matrix):
    matrix.draw_pixel_art("2x1;#ff0000,#00ff00", x0=7, y0=31)
    assert panel_color(matrix, 7, 31) == RED
    assert matrix.sink.lit() == 1


def test_draw_image(matrix):
    img = Image.new("RGB", (8, 32))
    img.putpixel((3, 5), (255, 0, 0))
    matrix.draw_image(img, gamma=0)
    assert panel_color(matrix, 3, 5) == RED
    assert matrix.sink.lit() == 1


def test_play_frames(matrix, clock):
    red = Image.new("RGB", (8, 32), (255, 0, 0))
    blue = Image.new("RGB", (8, 32), (0, 0, 255))
    done = matrix.play_frames([(red, 30), (blue, 50)], loops=2, gamma=0)
    assert done == 2
    assert matrix.sink.presented == 4
    assert clock.sleeps == [30, 50, 30, 50]
    assert matrix.sink.history[0][0] == RED
    assert matrix.sink.history[1][0] == BLUE


def test_raw_pixels_use_the_mapper(matrix):
    matrix.set_pixel(0, 1, "#00ff00")
    matrix.set_pixel(-1, 0, RED)
    matrix.set_pixel(8, 0, RED)
    matrix.show()
    assert matrix.sink.color_at(15) == GREEN
    assert matrix.sink.lit() == 1


def test_scroll_colors_fallback_when_no_colors_are_given(make_matrix):
    m = make_matrix(8, 8)
    m.scroll_once_colors("A", [], ms_per_col=1, fallback=BLUE)
    assert set(m.sink.history[6]) <= {0, BLUE}
    assert BLUE in m.sink.history[6]
    assert m.scroll_loop_colors("A", None, ms_per_col=1, loops=1, fallback=RED) == 1
    assert RED in m.sink.history[-7]


def test_play_gif_uses_the_frame_delays(matrix, clock):
    red = Image.new("RGB", (8, 32), (255, 0, 0))
    blue = Image.new("RGB", (8, 32), (0, 0, 255))
    buf = io.BytesIO()
    red.save(buf, "GIF", save_all=True, append_images=[blue], duration=[60, 90], loop=0)
    buf.seek(0)
    assert matrix.play_gif(buf, gamma=0) == 1
    assert clock.sleeps == [60, 90]
    assert matrix.sink.history[0][0] == RED
    assert matrix.sink.history[1][0] == BLUE


def test_play_strip_slices_the_sheet(matrix, clock):
    sheet = Image.new("RGB", (16, 32))
    sheet.paste((0, 255, 0), (8, 0, 16, 32))
    assert matrix.play_strip(sheet, 2, 1, delay_ms=20, loops=2, gamma=0) == 2
    assert clock.sleeps == [20, 20, 20, 20]
    assert matrix.sink.history[0][0] == 0
    assert matrix.sink.history[1][0] == GREEN
