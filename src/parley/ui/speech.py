"""Speech synthesis through the platform's text-to-speech command."""

from __future__ import annotations

import shutil
import subprocess
from typing import Optional, Protocol, Sequence

DEFAULT_SPEECH_COMMANDS: Sequence[str] = ("say", "espeak", "spd-say")


class SpeechError(RuntimeError):
    """Raised when no speech command is available or it fails."""


class Speaker(Protocol):
    def speak(self, text: str) -> None:
        ...


class SystemSpeaker:
    """Speaks text with the first available command in ``commands``."""

    def __init__(
        self,
        commands: Sequence[str] = DEFAULT_SPEECH_COMMANDS,
        timeout_sec: int = 300,
    ) -> None:
        self._commands = tuple(commands)
        self._timeout_sec = timeout_sec

    def resolve_binary(self) -> Optional[str]:
        for command in self._commands:
            found = shutil.which(command)
            if found:
                return found
        return None

    def speak(self, text: str) -> None:
        if not text.strip():
            return
        binary = self.resolve_binary()
        if binary is None:
            raise SpeechError(
                "no speech command found (tried: {0})".format(", ".join(self._commands))
            )

        try:
            completed = subprocess.run(
                [binary, text],
                capture_output=True,
                text=True,
                timeout=self._timeout_sec,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise SpeechError("speech command failed: {0}".format(exc)) from exc

        if completed.returncode != 0:
            raise SpeechError(
                "speech command exited with code {0}: {1}".format(
                    completed.returncode,
                    (completed.stderr or "").strip(),
                )
            )
