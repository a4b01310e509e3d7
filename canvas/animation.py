"""
canvas/animation.py

Cosmetic frame-clock pulses (selection attention pulse, active key badge).
"""

from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtCore import QElapsedTimer, QTimer

FRAME_INTERVAL_MS = 16


class Pulse:
    """
    Drives a per-frame callback with the elapsed time in milliseconds.

    Args:
        on_frame: Called with elapsed ms on every frame.
        duration_ms: Length of one run.
        loop: Keep running until ``stop()`` instead of finishing after one run.
        on_finished: Called once when the pulse ends, by timeout or ``stop()``.
    """

    def __init__(self, on_frame: Callable[[float], None], duration_ms: int,
                 loop: bool = False, on_finished: Optional[Callable[[], None]] = None):
        self._on_frame = on_frame
        self._on_finished = on_finished
        self._duration = int(duration_ms)
        self._loop = loop
        self._clock = QElapsedTimer()
        self._timer = QTimer()
        self._timer.setInterval(FRAME_INTERVAL_MS)
        self._timer.timeout.connect(self._tick)
        self._done = True

    def _tick(self):
        elapsed = float(self._clock.elapsed())
        if not self._loop and elapsed >= self._duration:
            self.stop()
            return
        self._on_frame(elapsed)

    def start(self) -> None:
        self._done = False
        self._clock.start()
        self._timer.start()
        self._on_frame(0.0)

    def stop(self) -> None:
        """Stop the pulse and run the finish callback once; safe to call repeatedly."""
        self._timer.stop()
        if self._done:
            return
        self._done = True
        if self._on_finished:
            self._on_finished()

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()
