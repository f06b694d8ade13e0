from __future__ import annotations

import pytest
from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import ANSI

import parley.ui.line_reader as line_reader
from parley.ui.line_reader import PromptToolkitReader, TerminalInitError, WordPathCompleter, build_completer


class FakePromptSession:
    def __init__(self, answers):
        self._answers = list(answers)
        self.messages = []

    def prompt(self, message):
        self.messages.append(message)
        return self._answers.pop(0)


def _completions(completer, text):
    return list(completer.get_completions(Document(text, cursor_position=len(text)), CompleteEvent()))


def test_read_line_wraps_prompt_as_ansi(tmp_path):
    session = FakePromptSession(["hello"])
    reader = PromptToolkitReader(tmp_path / "history", session=session)

    assert reader.read_line("\033[44m USER \033[0m\n") == "hello"
    assert isinstance(session.messages[0], ANSI)


def test_command_words_complete_case_insensitively():
    texts = [completion.text for completion in _completions(build_completer(), ":HE")]

    assert ":help" in texts


def test_paths_complete_inside_a_sentence(tmp_path):
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")

    completions = _completions(WordPathCompleter(), "summarize {0}/no".format(tmp_path))

    assert [completion.text for completion in completions] == ["tes.txt"]


def test_plain_words_do_not_trigger_path_completion():
    assert _completions(WordPathCompleter(), "tell me a story") == []


def test_setup_failure_raises_terminal_init_error(monkeypatch, tmp_path):
    def broken_session(*args, **kwargs):
        raise OSError("not a terminal")

    monkeypatch.setattr(line_reader, "PromptSession", broken_session)

    with pytest.raises(TerminalInitError) as exc_info:
        PromptToolkitReader(tmp_path / "history")

    assert "not a terminal" in str(exc_info.value)
