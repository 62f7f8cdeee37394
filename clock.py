from __future__ import annotations
import time
from typing import List, Protocol


class FrameClock(Protocol):
    def millis(self) -> int: ...

    def sleep(self, ms: int) -> None: ...


class SystemClock:
    def millis(self) -> int:
        return int(time.monotonic() * 1000)

    def sleep(self, ms: int) -> None:
        time.sleep(max(0, ms) / 1000.0)


class ManualClock:
    """Virtual clock for headless runs: sleeping only advances time."""

    def __init__(self, start_ms: int = 0) -> None:
        self.now = start_ms
        self.sleeps: List[int] = []

    def millis(self) -> int:
        return self.now

    def sleep(self, ms: int) -> None:
        self.sleeps.append(ms)
        self.now += max(0, ms)
