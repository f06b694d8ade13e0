"""Input completeness detection for multi-line prompts."""

from __future__ import annotations

from typing import Callable, Optional

CONTINUATION_MARKER = "\\"

_BALANCE_DELTAS = {
    "{": (0, 1),
    "}": (0, -1),
    "[": (1, 1),
    "]": (1, -1),
    "(": (2, 1),
    ")": (2, -1),
}


def is_complete_input(text: str) -> bool:
    """Return False while the text ends with a backslash or any bracket count is off.

    Only the per-kind open/close balance matters; ordering is not checked,
    so ``")("`` counts as complete.
    """

    if text.endswith(CONTINUATION_MARKER):
        return False

    counts = [0, 0, 0]
    for char in text:
        delta = _BALANCE_DELTAS.get(char)
        if delta is None:
            continue
        slot, step = delta
        counts[slot] += step
    return counts == [0, 0, 0]


def accumulate_input(first_line: str, read_more: Callable[[], Optional[str]]) -> str:
    """Append continuation lines until the text is complete or input ends."""

    text = first_line
    while not is_complete_input(text):
        next_line = read_more()
        if next_line is None:
            break
        text = "{0}\n{1}".format(text, next_line)
    return text
