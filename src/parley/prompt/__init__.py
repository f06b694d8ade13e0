"""Prompt loading utilities."""

from .system_prompt import DEFAULT_SYSTEM_PROMPT, PromptLoadError, resolve_system_prompt

__all__ = ["DEFAULT_SYSTEM_PROMPT", "PromptLoadError", "resolve_system_prompt"]
