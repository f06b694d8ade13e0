"""Presentation helpers for Parley terminal output."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Dict, Optional, TextIO

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from parley import __version__

APP_TITLE = "Parley AI Chat"

HELP_COMMANDS: Dict[str, str] = {
    "exit": "Exit the chat",
    ":help": "Display this help message",
    ":clear": "Clear the screen",
    ":var": "Set a variable, e.g. :var voice=true",
    ":vars": "List defined variables in the current session",
    ":new": "Start a new backend session and clear the screen",
}

_NOTICE_STYLES = {
    "info": "cyan",
    "warn": "yellow",
    "error": "red",
    "success": "green",
}


def is_tty(stream: TextIO, forced: Optional[bool] = None) -> bool:
    if forced is not None:
        return forced
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except Exception:
            return False
    return False


def _console(stream: TextIO) -> Console:
    return Console(file=stream, highlight=False, soft_wrap=True)


def styled(text: str, style: str, *, color: bool = True) -> str:
    """Render ``text`` with a rich style into an ANSI string (plain when color is off)."""

    if not color:
        return text
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        force_terminal=True,
        color_system="standard",
        highlight=False,
        soft_wrap=True,
    )
    console.print(Text(text, style=style), end="")
    return buffer.getvalue()


def render_notice(level: str, text: str) -> str:
    prefix = {
        "info": "Info",
        "warn": "Warning",
        "error": "Error",
        "success": "Success",
    }.get(level, "Info")
    return "{0}: {1}".format(prefix, text)


def echo(stream: TextIO, text: str = "") -> None:
    stream.write(text + "\n")
    stream.flush()


def echo_styled(stream: TextIO, text: str, level: str, is_tty_stream: Optional[bool] = None) -> None:
    """Print a message in the level's color on terminals, plain elsewhere."""

    if is_tty(stream, is_tty_stream):
        _console(stream).print(Text(text, style=_NOTICE_STYLES.get(level, "cyan")))
        return
    echo(stream, text)


@dataclass(frozen=True)
class SessionLabels:
    """Styled speaker labels, built once per session."""

    user: str
    assistant: str

    @classmethod
    def build(cls, user_name: str, vendor: str, *, color: bool = True) -> "SessionLabels":
        user = " {0} ".format(str(user_name or "user").upper())
        assistant = " {0} ".format(str(vendor or "ai").upper())
        return cls(
            user=styled(user, "black on bright_blue", color=color),
            assistant=styled(assistant, "black on bright_green", color=color),
        )


def render_help_text() -> str:
    width = max(len(command) for command in HELP_COMMANDS)
    lines = ["", "Available Commands:"]
    for command, description in HELP_COMMANDS.items():
        lines.append("{0}{1}".format(command.ljust(width + 2), description))
    lines.append("")
    lines.append("Any other input will be sent to the AI assistant.")
    return "\n".join(lines)


def render_help(stream: TextIO, is_tty_stream: Optional[bool] = None) -> None:
    if not is_tty(stream, is_tty_stream):
        echo(stream, render_help_text())
        return

    width = max(len(command) for command in HELP_COMMANDS)
    console = _console(stream)
    console.print()
    console.print(Text("Available Commands:", style="bold"))
    for command, description in HELP_COMMANDS.items():
        line = Text(command.ljust(width + 2), style="yellow")
        line.append(description)
        console.print(line)
    console.print()
    console.print(Text("Any other input will be sent to the AI assistant.", style="italic"))


def render_banner(stream: TextIO, is_tty_stream: Optional[bool] = None) -> None:
    if is_tty(stream, is_tty_stream):
        _console(stream).print(
            Panel(
                "v{0}".format(__version__),
                title=APP_TITLE,
                border_style="cyan",
                box=box.ROUNDED,
                expand=False,
            )
        )
        return

    lines = [APP_TITLE, "v{0}".format(__version__)]
    width = max(len(line) for line in lines)
    stream.write("+-{0}-+\n".format("-" * width))
    for line in lines:
        stream.write("| {0} |\n".format(line.ljust(width)))
    stream.write("+-{0}-+\n".format("-" * width))
    stream.flush()


def render_markdown(text: str, *, color: bool = True, width: Optional[int] = None) -> str:
    """Markdown to ANSI terminal text; returns the input unchanged when color is off."""

    if not color:
        return text
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        force_terminal=True,
        color_system="standard",
        highlight=False,
        width=width,
    )
    console.print(Markdown(text))
    return buffer.getvalue().rstrip("\n")
