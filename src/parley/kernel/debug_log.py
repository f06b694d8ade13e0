"""JSONL debug log with size-based rotation and secret redaction."""

from __future__ import annotations

import json
import re
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from parley.kernel.types import now_ms


_REDACTED = "***REDACTED***"
_SENSITIVE_KEY_RE = re.compile(
    r"(password|secret|token|authorization|cookie|api[_-]?key)",
    re.IGNORECASE,
)
_BEARER_RE = re.compile(r"(?i)\bbearer\s+([^\s,;]+)")
_KEY_VALUE_RE = re.compile(r"(?i)\b(api[_-]?key|token|secret|password)\b\s*[:=]\s*([^\s,;]+)")


class DebugLogWriter:
    """Best-effort log writer: a failed write is counted, never raised."""

    def __init__(
        self,
        *,
        logs_dir: Path,
        enabled: bool,
        max_file_bytes: int = 5 * 1024 * 1024,
        max_files: int = 3,
        redaction: str = "default",
    ) -> None:
        self._logs_dir = Path(logs_dir)
        self._enabled = bool(enabled)
        self._max_file_bytes = max(1, int(max_file_bytes or 0))
        self._max_files = max(1, int(max_files or 0))
        self._redact = str(redaction or "default").strip().lower() != "none"
        self._write_errors = 0
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Any) -> "DebugLogWriter":
        return cls(
            logs_dir=settings.logs_dir,
            enabled=settings.logs_enabled,
            max_file_bytes=settings.logs_max_file_bytes,
            max_files=settings.logs_max_files,
            redaction=settings.logs_redaction,
        )

    @classmethod
    def disabled(cls) -> "DebugLogWriter":
        return cls(logs_dir=Path("."), enabled=False)

    @property
    def active_log_file(self) -> Path:
        return self._logs_dir / "debug.log.jsonl"

    @property
    def write_errors(self) -> int:
        return self._write_errors

    def info(self, component: str, message: str, **data: Any) -> None:
        self.write_entry(level="info", component=component, message=message, data=data)

    def warn(self, component: str, message: str, **data: Any) -> None:
        self.write_entry(level="warn", component=component, message=message, data=data)

    def error(self, component: str, message: str, **data: Any) -> None:
        self.write_entry(level="error", component=component, message=message, data=data)

    def write_entry(
        self,
        *,
        level: str,
        component: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        ts_ms: Optional[int] = None,
    ) -> None:
        if not self._enabled:
            return

        record: Dict[str, Any] = {
            "ts_ms": int(ts_ms if ts_ms is not None else now_ms()),
            "level": str(level or "info"),
            "component": str(component or "session"),
            "message": str(message or ""),
            "data": dict(data or {}),
        }
        if self._redact:
            record["message"] = self._redact_text(record["message"])
            record["data"] = self._redact_payload(record["data"])

        with self._lock:
            try:
                line = json.dumps(record, ensure_ascii=True, separators=(",", ":"), default=str)
                payload = (line + "\n").encode("utf-8")
                self._logs_dir.mkdir(parents=True, exist_ok=True)
                self._rotate_if_needed_locked(len(payload))
                with self.active_log_file.open("ab") as fp:
                    fp.write(payload)
            except Exception:
                self._write_errors += 1

    def rotated_files(self) -> list:
        return [
            self._rotated_file(index)
            for index in range(1, self._max_files + 1)
            if self._rotated_file(index).exists()
        ]

    def close(self) -> None:
        # Files are opened per write; nothing is held open.
        return

    def _rotate_if_needed_locked(self, incoming_size: int) -> None:
        current_size = 0
        if self.active_log_file.exists():
            current_size = int(self.active_log_file.stat().st_size)
        if current_size + int(incoming_size) <= self._max_file_bytes:
            return

        self._rotated_file(self._max_files).unlink(missing_ok=True)
        for index in range(self._max_files - 1, 0, -1):
            src = self._rotated_file(index)
            if src.exists():
                src.replace(self._rotated_file(index + 1))
        if self.active_log_file.exists():
            self.active_log_file.replace(self._rotated_file(1))

    def _rotated_file(self, index: int) -> Path:
        return Path("{0}.{1}".format(self.active_log_file, index))

    def _redact_payload(self, value: Any) -> Any:
        if isinstance(value, dict):
            out: Dict[str, Any] = {}
            for key, item in value.items():
                if _SENSITIVE_KEY_RE.search(str(key)):
                    out[key] = _REDACTED
                else:
                    out[key] = self._redact_payload(item)
            return out
        if isinstance(value, (list, tuple)):
            return [self._redact_payload(item) for item in value]
        if isinstance(value, str):
            return self._redact_text(value)
        return value

    @staticmethod
    def _redact_text(text: str) -> str:
        if not text:
            return text
        masked = _BEARER_RE.sub("Bearer {0}".format(_REDACTED), text)
        return _KEY_VALUE_RE.sub(lambda m: "{0}={1}".format(m.group(1), _REDACTED), masked)
