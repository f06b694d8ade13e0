"""Paced "typing" output of assistant replies, with optional speech."""

from __future__ import annotations

import sys
import time
from typing import Callable, Mapping, Optional, TextIO

from parley.kernel.debug_log import DebugLogWriter
from parley.ui.render import echo, echo_styled, is_tty, render_markdown
from parley.ui.speech import Speaker, SpeechError

LINE_BUDGET_SEC = 0.1
LINE_PAUSE_SEC = 0.01


def _toggle(variables: Mapping[str, str], name: str, default: str) -> bool:
    return str(variables.get(name, default)).strip().lower() == "true"


def text_enabled(variables: Mapping[str, str]) -> bool:
    return _toggle(variables, "text", "true")


def voice_enabled(variables: Mapping[str, str]) -> bool:
    return _toggle(variables, "voice", "false")


class TypewriterRenderer:
    """Prints a reply word by word so each line takes about ``line_budget_sec``."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        *,
        speaker: Optional[Speaker] = None,
        label: str = "",
        line_budget_sec: float = LINE_BUDGET_SEC,
        line_pause_sec: float = LINE_PAUSE_SEC,
        markdown: Optional[bool] = None,
        sleep: Callable[[float], None] = time.sleep,
        log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._stream = stream or sys.stdout
        self._speaker = speaker
        self._label = label
        self._line_budget_sec = line_budget_sec
        self._line_pause_sec = line_pause_sec
        self._markdown = is_tty(self._stream) if markdown is None else bool(markdown)
        self._sleep = sleep
        self._log = log or DebugLogWriter.disabled()

    def render(self, text: str, variables: Mapping[str, str]) -> None:
        echo(self._stream)
        self._stream.write(self._label)
        echo(self._stream)

        if text_enabled(variables):
            display = render_markdown(text) if self._markdown else text
            try:
                self._type(display)
            except KeyboardInterrupt:
                echo(self._stream)
                echo_styled(self._stream, "Typing interrupted", "warn")
                self._log.warn("renderer", "typing display interrupted")

        if voice_enabled(variables):
            self._speak(text)

        echo(self._stream)

    def _type(self, text: str) -> None:
        for line in text.split("\n"):
            words = line.split(" ")
            delay = self._line_budget_sec / len(words)
            for word in words:
                self._stream.write(word + " ")
                self._stream.flush()
                self._sleep(delay)
            echo(self._stream)
            self._sleep(self._line_pause_sec)

    def _speak(self, text: str) -> None:
        if self._speaker is None:
            echo_styled(self._stream, "Voice output is not available", "warn")
            return
        try:
            self._speaker.speak(text)
        except SpeechError as exc:
            self._log.warn("renderer", "speech failed", error=str(exc))
            echo_styled(self._stream, "Speech failed: {0}".format(exc), "warn")
