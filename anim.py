from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, Optional, TypeVar, Union

from clock import FrameClock, SystemClock

log = logging.getLogger(__name__)

T = TypeVar("T")


class AnimationError(RuntimeError):
    pass


class AnimationSession:
    """Cancellation state and frame clock shared by the animations of one panel.

    Only one animation holds the session at a time. Every claim takes a
    ticket and clears the run flag, so the holder stops after its current
    frame. The newest ticket gets the session once it is free; older
    waiters are superseded and come back without it.
    """

    def __init__(self, clock: Optional[FrameClock] = None) -> None:
        self.clock = clock if clock is not None else SystemClock()
        self._run_flag = threading.Event()
        self._cond = threading.Condition()
        self._owner: Optional[int] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._run_flag.is_set()

    @property
    def busy(self) -> bool:
        return self._owner is not None

    def stop(self) -> None:
        if self._run_flag.is_set():
            log.debug("stop requested")
        self._run_flag.clear()

    @contextmanager
    def claim(self) -> Iterator[bool]:
        """Hold the session for one animation.

        Yields True when this caller owns the session, False when a newer
        claim arrived while it was waiting. A superseded caller must not draw.
        """
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                raise AnimationError("an animation is already running on this thread")
            self._generation += 1
            ticket = self._generation
            self._run_flag.clear()
            self._cond.notify_all()
            if self._owner is not None:
                log.debug("waiting for the previous animation to finish its frame")
            while self._owner is not None and ticket == self._generation:
                self._cond.wait()
            active = ticket == self._generation
            if active:
                self._owner = me
                self._run_flag.set()
            else:
                log.debug("claim superseded by a newer one")
        try:
            yield active
        finally:
            if active:
                with self._cond:
                    self._run_flag.clear()
                    self._owner = None
                    self._cond.notify_all()

    def run_frames(self, frames: Iterable[T], render: Callable[[T], None],
                   interval_ms: Union[int, Callable[[T], int]]) -> int:
        """Render frames until they run out or the session is stopped.

        Each frame is rendered in full, then the clock blocks for the frame
        interval (at least 1 ms). Returns the number of frames rendered.
        """
        shown = 0
        for frame in frames:
            if not self.running:
                break
            render(frame)
            shown += 1
            delay = interval_ms(frame) if callable(interval_ms) else interval_ms
            self.clock.sleep(max(1, int(delay)))
        return shown

    def repeat(self, sweep: Callable[[], object], loops: int, gap_ms: int = 0) -> int:
        """Run `sweep` `loops` times, or until stopped when `loops` is negative."""
        gap = max(0, int(gap_ms))
        done = 0
        while self.running and (loops < 0 or done < loops):
            sweep()
            if not self.running:
                break
            if gap > 0:
                self.clock.sleep(gap)
            done += 1
        log.debug("repeat finished after %d sweep(s)", done)
        return done
