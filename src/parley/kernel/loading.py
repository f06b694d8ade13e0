"""Animated "Thinking" indicator shown while a generation call is pending."""

from __future__ import annotations

import os
import sys
import threading
from dataclasses import dataclass, field
from typing import Optional, TextIO

THINKING_FRAMES = ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷")
THINKING_LABEL = "Thinking"
FRAME_INTERVAL_SEC = 0.1
DEFAULT_GRACE_SEC = 1.0
CLEAR_WIDTH = 30

_ANSI_BLUE_ITALIC = "\033[3;34m"
_ANSI_RESET = "\033[0m"


@dataclass
class AnimationState:
    """Stop flag shared with the coordinator; the frame counter belongs to the animation thread."""

    stop_event: threading.Event = field(default_factory=threading.Event)
    frame: int = 0

    @property
    def running(self) -> bool:
        return not self.stop_event.is_set()


def compose_frame(frame: int) -> str:
    glyph = THINKING_FRAMES[frame % len(THINKING_FRAMES)]
    dots = (frame // len(THINKING_FRAMES)) % 4
    return "{0} {1}{2}{3}".format(glyph, THINKING_LABEL, "." * dots, " " * (3 - dots))


class ThinkingIndicator:
    """Runs the animation on a daemon thread until ``stop`` is called."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        enabled: Optional[bool] = None,
        interval_sec: float = FRAME_INTERVAL_SEC,
    ) -> None:
        self._stream = stream or sys.stdout
        if enabled is None:
            isatty = getattr(self._stream, "isatty", None)
            enabled = bool(isatty()) if callable(isatty) else False
        self._enabled = bool(enabled)
        term = str(os.getenv("TERM") or "")
        self._supports_ansi = self._enabled and term.lower() not in {"", "dumb"}
        self._interval_sec = interval_sec
        self._state = AnimationState()
        self._write_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._abandoned = False

    @property
    def state(self) -> AnimationState:
        return self._state

    @property
    def abandoned(self) -> bool:
        """True when the thread outlived the grace period on stop."""

        return self._abandoned

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._state.stop_event.clear()
        if not self._enabled:
            return
        self._thread = threading.Thread(target=self._loop, name="parley-thinking", daemon=True)
        self._thread.start()

    def stop(self, grace_sec: float = DEFAULT_GRACE_SEC) -> None:
        with self._write_lock:
            self._state.stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout=max(0.0, grace_sec))
            # A thread still alive here draws no further frames: the flag is
            # checked under the write lock.
            self._abandoned = self._thread.is_alive()

        if self._enabled:
            self._clear_line()

    def _loop(self) -> None:
        while True:
            with self._write_lock:
                if self._state.stop_event.is_set():
                    return
                self._write_frame(compose_frame(self._state.frame))
            self._state.frame += 1
            if self._state.stop_event.wait(self._interval_sec):
                return

    def _write_frame(self, text: str) -> None:
        if self._supports_ansi:
            text = "{0}{1}{2}".format(_ANSI_BLUE_ITALIC, text, _ANSI_RESET)
        self._stream.write("\r" + text)
        self._stream.flush()

    def _clear_line(self) -> None:
        self._stream.write("\r" + (" " * CLEAR_WIDTH) + "\r")
        self._stream.flush()
