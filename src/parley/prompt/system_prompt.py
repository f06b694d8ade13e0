"""System instruction resolution from configuration."""

from __future__ import annotations

from pathlib import Path

from parley.config import Settings

DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly assistant in a terminal chat. You talk about tech, tech news "
    "and STEAM topics. Keep answers short and readable in a terminal. When the user "
    "message includes Files: or URLs: sections, use that content to answer."
)


class PromptLoadError(RuntimeError):
    """Raised when the system prompt file exists but cannot be read."""


def resolve_system_prompt(settings: Settings) -> str:
    """Config override first, then prompts/system.md, then the built-in instruction."""

    override = settings.system_prompt_override.strip()
    if override:
        return override

    path = Path(settings.system_prompt_file)
    if not path.is_file():
        return DEFAULT_SYSTEM_PROMPT
    try:
        text = path.read_text(encoding="utf-8").strip()
    except Exception as exc:
        raise PromptLoadError("failed to read system prompt: {0}".format(path)) from exc
    return text or DEFAULT_SYSTEM_PROMPT
