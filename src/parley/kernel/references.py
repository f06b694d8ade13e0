"""Resolve file paths and URLs mentioned in a prompt and append their content."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

import httpx

from parley.kernel.debug_log import DebugLogWriter

DEFAULT_URL_TIMEOUT_SEC = 5.0

POSIX_PATH_RE = re.compile(r"(?<![\w.:/\\~-])(?:/[A-Za-z0-9_.\-]+)+/?")
WINDOWS_PATH_RE = re.compile(r"(?<![\w])[A-Za-z]:\\(?:[A-Za-z0-9_.\-]+\\?)*")
URL_RE = re.compile(r"https?://(?:[\w-]+\.)+[\w-]+(?:/[\w\-./?%&=]*)?")

_TRAILING_PUNCTUATION = ".,"


def _frozen(mapping: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class PendingPrompt:
    """Raw prompt text plus the file and URL content found in it."""

    text: str
    files: Mapping[str, str] = field(default_factory=lambda: _frozen(None))
    urls: Mapping[str, str] = field(default_factory=lambda: _frozen(None))

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", _frozen(self.files))
        object.__setattr__(self, "urls", _frozen(self.urls))

    @property
    def has_references(self) -> bool:
        return bool(self.files) or bool(self.urls)

    def enriched(self) -> str:
        parts = [self.text]
        if self.files:
            parts.append(_render_section("Files:", self.files))
        if self.urls:
            parts.append(_render_section("URLs:", self.urls))
        return "".join(parts)


def _render_section(title: str, entries: Mapping[str, str]) -> str:
    chunks = ["\n\n", title]
    for key, value in entries.items():
        chunks.append("\n{0}:\n```\n{1}\n```\n".format(key, value))
    return "".join(chunks)


def find_file_paths(text: str, windows: Optional[bool] = None) -> List[str]:
    """Path-like substrings in match order, sentence punctuation trimmed."""

    use_windows = (os.name == "nt") if windows is None else bool(windows)
    pattern = WINDOWS_PATH_RE if use_windows else POSIX_PATH_RE
    paths: List[str] = []
    for match in pattern.finditer(text):
        candidate = match.group(0).rstrip(_TRAILING_PUNCTUATION) or match.group(0)
        paths.append(candidate)
    return paths


def find_urls(text: str) -> List[str]:
    return [match.group(0) for match in URL_RE.finditer(text)]


class ReferenceResolver:
    """Best-effort file/URL resolver; a failing reference never aborts the prompt."""

    def __init__(
        self,
        *,
        http_client: Optional[httpx.Client] = None,
        timeout_sec: float = DEFAULT_URL_TIMEOUT_SEC,
        windows: Optional[bool] = None,
        log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._http_client = http_client
        self._timeout_sec = float(timeout_sec)
        self._windows = windows
        self._log = log or DebugLogWriter.disabled()

    def resolve(self, text: str) -> PendingPrompt:
        return PendingPrompt(
            text=text,
            files=self.extract_file_contents(text),
            urls=self.extract_url_contents(text),
        )

    def enrich(self, text: str) -> str:
        return self.resolve(text).enriched()

    def extract_file_contents(self, text: str) -> Dict[str, str]:
        file_map: Dict[str, str] = {}
        for file_path in find_file_paths(text, windows=self._windows):
            if file_path in file_map:
                continue
            path = Path(file_path)
            try:
                if not path.is_file():
                    continue
            except OSError as exc:
                self._log.warn("references", "skipped unreachable path", path=file_path, error=str(exc))
                continue
            try:
                file_map[file_path] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                self._log.warn("references", "failed to read file", path=file_path, error=str(exc))
                file_map[file_path] = "Error reading file: {0}".format(exc)
        return file_map

    def extract_url_contents(self, text: str) -> Dict[str, str]:
        urls = find_urls(text)
        url_map: Dict[str, str] = {}
        if not urls:
            return url_map

        client = self._http_client or httpx.Client(timeout=self._timeout_sec, follow_redirects=True)
        try:
            for url in urls:
                if url in url_map:
                    continue
                url_map[url] = self._fetch(client, url)
        finally:
            if self._http_client is None:
                client.close()
        return url_map

    def _fetch(self, client: httpx.Client, url: str) -> str:
        try:
            response = client.get(url, timeout=self._timeout_sec)
        except httpx.HTTPError as exc:
            self._log.warn("references", "failed to fetch url", url=url, error=str(exc))
            return "Error accessing: {0}".format(str(exc) or type(exc).__name__)

        if response.status_code == 200:
            return response.text

        self._log.warn("references", "url returned non-200 status", url=url, status=response.status_code)
        return "Error accessing: HTTP {0}".format(response.status_code)


def enrich_prompt(text: str, resolver: Optional[ReferenceResolver] = None) -> str:
    return (resolver or ReferenceResolver()).enrich(text)
