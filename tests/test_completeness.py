from __future__ import annotations

import pytest

from parley.kernel.completeness import accumulate_input, is_complete_input


@pytest.mark.parametrize(
    "text",
    [
        "",
        "hello world",
        "call f(x) and g[0]",
        "{ nested [ (ok) ] }",
        ")(",
        "}{ ][",
    ],
)
def test_balanced_text_is_complete(text):
    assert is_complete_input(text) is True


@pytest.mark.parametrize(
    "text",
    [
        "hello \\",
        "def f(",
        "items = [1, 2",
        "{ \"a\": 1",
        "(()",
        "]",
    ],
)
def test_unbalanced_or_continued_text_is_incomplete(text):
    assert is_complete_input(text) is False


def test_kinds_are_counted_independently():
    assert is_complete_input("( ]") is False
    assert is_complete_input("( ] [ )") is True


def test_accumulate_joins_lines_until_complete():
    lines = iter(["  return x", "}"])
    text = accumulate_input("function f() {", lambda: next(lines))

    assert text == "function f() {\n  return x\n}"


def test_accumulate_stops_when_input_ends():
    text = accumulate_input("open (", lambda: None)

    assert text == "open ("


def test_accumulate_backslash_asks_for_more():
    calls = []

    def read_more():
        calls.append(1)
        return "second line"

    text = accumulate_input("first line \\", read_more)

    assert calls == [1]
    assert text == "first line \\\nsecond line"


def test_accumulate_complete_first_line_reads_nothing():
    def read_more():
        raise AssertionError("should not be called")

    assert accumulate_input("what is python?", read_more) == "what is python?"
