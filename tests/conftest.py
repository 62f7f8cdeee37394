from __future__ import annotations

import pytest

from anim import AnimationSession
from clock import ManualClock
from geometry import pixel_index
from matrix import NeoMatrix
from sinks import FrameBufferSink


class StoppingSink(FrameBufferSink):
    """Requests a stop once `after` frames have been presented."""

    def __init__(self, length, session, after):
        super().__init__(length, record=True)
        self.session = session
        self.after = after

    def present(self):
        super().present()
        if self.presented >= self.after:
            self.session.stop()


def panel_color(matrix: NeoMatrix, x: int, y: int) -> int:
    return matrix.sink.color_at(pixel_index(x, y, matrix.geometry))


def reset_counters(sink: FrameBufferSink) -> None:
    sink.presented = 0
    sink.history.clear()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def session(clock):
    return AnimationSession(clock)


@pytest.fixture
def make_matrix(session):
    def _make(width=8, height=32, serpentine=True, brightness=60, sink=None):
        m = NeoMatrix(session)
        if sink is None:
            sink = FrameBufferSink(width * height, record=True)
        m.init(width, height, serpentine, brightness, sink=sink)
        reset_counters(sink)
        return m
    return _make


@pytest.fixture
def matrix(make_matrix):
    return make_matrix()
