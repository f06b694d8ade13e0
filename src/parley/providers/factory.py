"""Provider factory keyed by the configured vendor."""

from __future__ import annotations

from typing import Optional

import httpx

from parley.config import VENDOR_CLAUDE, VENDOR_OLLAMA, Settings
from parley.providers.base import BaseProvider
from parley.providers.claude_cli import ClaudeCLIProvider
from parley.providers.ollama import OllamaProvider


class ProviderFactory:
    """Build a fresh provider handle from resolved settings."""

    def __init__(self, *, http_client: Optional[httpx.Client] = None) -> None:
        self._http_client = http_client

    def build(self, settings: Settings) -> BaseProvider:
        vendor = str(settings.vendor or "").strip().lower()
        if vendor == VENDOR_CLAUDE:
            return ClaudeCLIProvider(
                binary=settings.claude_binary,
                timeout_sec=settings.claude_timeout_sec,
                model=settings.model,
            )
        if vendor == VENDOR_OLLAMA:
            return OllamaProvider(
                base_url=settings.ollama_base_url,
                model=settings.model,
                http_client=self._http_client,
            )
        raise ValueError("unsupported vendor: {0}".format(vendor or "<empty>"))
