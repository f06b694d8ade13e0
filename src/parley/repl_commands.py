"""Colon command parsing and dispatch for the interactive chat loop."""

from __future__ import annotations

import os
import re
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, TextIO

from parley.kernel.debug_log import DebugLogWriter
from parley.providers.base import BaseProvider
from parley.ui.render import echo, echo_styled, render_banner, render_help

COMMAND_PREFIX = ":"
COMMAND_RE = re.compile(r":([A-Za-z]+)(?: ([A-Za-z0-9_]+(?:\s*=\s*.+)?))?")

KIND_EXIT = "exit"
KIND_HELP = "help"
KIND_CLEAR = "clear"
KIND_SET_VARIABLE = "set_variable"
KIND_LIST_VARIABLES = "list_variables"
KIND_NEW_SESSION = "new_session"
KIND_UNKNOWN = "unknown"

_COMMAND_KINDS: Dict[str, str] = {
    "exit": KIND_EXIT,
    "quit": KIND_EXIT,
    "help": KIND_HELP,
    "clear": KIND_CLEAR,
    "var": KIND_SET_VARIABLE,
    "vars": KIND_LIST_VARIABLES,
    "new": KIND_NEW_SESSION,
}

CLEAR_FALLBACK_LINES = 50
VAR_USAGE = "Usage: :var name=value"
_ANSI_HOME_ERASE = "\033[H\033[2J"

ClearRunner = Callable[..., object]
ProviderBuilder = Callable[[], BaseProvider]


@dataclass(frozen=True)
class Command:
    kind: str
    name: str
    argument: Optional[str] = None


@dataclass
class ReplState:
    """Mutable session state the dispatcher may touch."""

    provider: Optional[BaseProvider]
    rebuild_provider: ProviderBuilder
    variables: Dict[str, str] = field(default_factory=dict)
    log: DebugLogWriter = field(default_factory=DebugLogWriter.disabled)
    is_tty_stream: Optional[bool] = None
    clear_runner: Optional[ClearRunner] = None


@dataclass
class DispatchResult:
    handled: bool
    exit_requested: bool = False


def is_exit_word(line: str) -> bool:
    return line.strip().lower() == "exit"


def parse_command(line: str) -> Optional[Command]:
    """Parse one input line; ``None`` means the colon syntax is malformed."""

    stripped = line.strip()
    if is_exit_word(stripped):
        return Command(kind=KIND_EXIT, name="exit")

    match = COMMAND_RE.fullmatch(stripped)
    if match is None:
        return None

    name = match.group(1).lower()
    argument = match.group(2)
    return Command(kind=_COMMAND_KINDS.get(name, KIND_UNKNOWN), name=name, argument=argument)


def dispatch_command(line: str, state: ReplState, stream: TextIO = sys.stdout) -> DispatchResult:
    stripped = line.strip()
    if not stripped.startswith(COMMAND_PREFIX) and not is_exit_word(stripped):
        return DispatchResult(handled=False)

    command = parse_command(stripped)
    if command is None:
        state.log.warn("commands", "ignored malformed command", line=stripped)
        return DispatchResult(handled=True)

    if command.kind == KIND_EXIT:
        return DispatchResult(handled=True, exit_requested=True)
    if command.kind == KIND_HELP:
        render_help(stream, state.is_tty_stream)
    elif command.kind == KIND_CLEAR:
        clear_screen(stream, state)
    elif command.kind == KIND_LIST_VARIABLES:
        list_variables(stream, state.variables)
    elif command.kind == KIND_SET_VARIABLE:
        set_variable(stream, state, command.argument)
    elif command.kind == KIND_NEW_SESSION:
        new_session(stream, state)
    else:
        echo_styled(stream, "Unknown command: {0}".format(command.name), "error", state.is_tty_stream)
        render_help(stream, state.is_tty_stream)
    return DispatchResult(handled=True)


def _clear_command() -> list:
    if os.name == "nt":
        return ["cmd", "/c", "cls"]
    return ["clear"]


def clear_screen(stream: TextIO, state: ReplState) -> None:
    try:
        runner = state.clear_runner or subprocess.run
        runner(_clear_command(), check=True)
        stream.write(_ANSI_HOME_ERASE)
        stream.flush()
    except (OSError, subprocess.SubprocessError) as exc:
        state.log.warn("commands", "clear command unavailable", error=str(exc))
        stream.write("\n" * CLEAR_FALLBACK_LINES)
        echo_styled(stream, "Could not clear the screen: {0}".format(exc), "warn", state.is_tty_stream)
    render_banner(stream, state.is_tty_stream)


def list_variables(stream: TextIO, variables: Dict[str, str]) -> None:
    if not variables:
        echo(stream, "No variables are currently defined. Use :var name=value to set one.")
        return
    for name, value in variables.items():
        echo(stream, "{0} = {1}".format(name, value))


def set_variable(stream: TextIO, state: ReplState, argument: Optional[str]) -> None:
    if not argument:
        state.log.error("commands", "variable command without argument")
        echo_styled(stream, VAR_USAGE, "warn", state.is_tty_stream)
        return

    name, sep, value = argument.partition("=")
    name = name.strip()
    value = value.strip()
    if not sep or not name or not value:
        state.log.error("commands", "malformed variable assignment", argument=argument)
        echo_styled(stream, VAR_USAGE, "warn", state.is_tty_stream)
        return

    state.variables[name] = value
    echo(stream, "Set variable {0} = {1}".format(name, value))


def new_session(stream: TextIO, state: ReplState) -> None:
    try:
        provider = state.rebuild_provider()
    except Exception as exc:
        state.log.error("commands", "failed to start a new backend session", error=str(exc))
        echo_styled(stream, "Error: {0}".format(exc), "error", state.is_tty_stream)
        return
    state.provider = provider
    state.log.info("commands", "started a new backend session", provider=type(provider).__name__)
    clear_screen(stream, state)
