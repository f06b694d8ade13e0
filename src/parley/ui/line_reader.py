"""Line editing with history and completion, backed by prompt_toolkit."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import (
    Completer,
    Completion,
    PathCompleter,
    WordCompleter,
    merge_completers,
)
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.history import FileHistory

from parley.ui.render import HELP_COMMANDS

COMMAND_WORDS: Sequence[str] = tuple(HELP_COMMANDS.keys())


class TerminalInitError(RuntimeError):
    """Raised when the interactive line editor cannot be set up."""


class LineReader(Protocol):
    def read_line(self, prompt: str) -> str:
        ...


class WordPathCompleter(Completer):
    """Completes the path under the cursor, anywhere in the line."""

    def __init__(self) -> None:
        self._paths = PathCompleter(expanduser=True)

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        word = document.get_word_before_cursor(WORD=True)
        if not word or word[0] not in "/~.":
            return
        sub_document = Document(word, cursor_position=len(word))
        for completion in self._paths.get_completions(sub_document, complete_event):
            yield completion


def build_completer() -> Completer:
    commands = WordCompleter(list(COMMAND_WORDS), ignore_case=True, sentence=True)
    return merge_completers([commands, WordPathCompleter()])


class PromptToolkitReader:
    """Reads one line per call; history persists to ``history_file``."""

    def __init__(self, history_file: Path, session: Optional[PromptSession] = None) -> None:
        if session is not None:
            self._session = session
            return
        try:
            history_file.parent.mkdir(parents=True, exist_ok=True)
            self._session = PromptSession(
                history=FileHistory(str(history_file)),
                completer=build_completer(),
                complete_while_typing=False,
            )
        except Exception as exc:
            raise TerminalInitError("failed to initialize terminal: {0}".format(exc)) from exc

    def read_line(self, prompt: str) -> str:
        return self._session.prompt(ANSI(prompt))
