"""Configuration loading and directory resolution for Parley."""

from __future__ import annotations

import getpass
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

HOME_ENV_VAR = "PARLEY_HOME"
CONFIG_DIR_NAME = ".parley"
CONFIG_FILE_NAME = "config.toml"
PROMPTS_DIR_NAME = "prompts"
SYSTEM_PROMPT_FILE_NAME = "system.md"
LOGS_DIR_NAME = "logs"
HISTORY_FILE_NAME = ".parley_history"

VENDOR_CLAUDE = "claude"
VENDOR_OLLAMA = "ollama"
ALLOWED_VENDORS = (VENDOR_OLLAMA, VENDOR_CLAUDE)
DEFAULT_VENDOR = VENDOR_OLLAMA
DEFAULT_MODELS = {
    VENDOR_OLLAMA: "llama3.2",
    VENDOR_CLAUDE: "",
}

DEFAULT_CLAUDE_BINARY = "claude"
DEFAULT_CLAUDE_TIMEOUT_SEC = 300
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_URL_TIMEOUT_SEC = 5.0
DEFAULT_GENERATION_TIMEOUT_SEC = 0
DEFAULT_LOGS_ENABLED = True
DEFAULT_LOGS_MAX_FILE_BYTES = 5 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 3
DEFAULT_LOGS_REDACTION = "default"
ALLOWED_LOG_REDACTION = ("default", "none")


class ProjectConfigError(RuntimeError):
    """Raised when the configuration file is invalid or cannot be written."""


@dataclass
class ProjectConfig:
    vendor: str = DEFAULT_VENDOR
    model: str = ""
    system_prompt: str = ""
    user_name: str = ""
    url_timeout: float = DEFAULT_URL_TIMEOUT_SEC
    generation_timeout: int = DEFAULT_GENERATION_TIMEOUT_SEC
    claude_binary: str = DEFAULT_CLAUDE_BINARY
    claude_timeout: int = DEFAULT_CLAUDE_TIMEOUT_SEC
    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION


@dataclass
class Settings:
    """Resolved runtime settings for one chat session or one-shot run."""

    config_root: Path
    vendor: str = DEFAULT_VENDOR
    model: str = DEFAULT_MODELS[DEFAULT_VENDOR]
    system_prompt_override: str = ""
    user_name: str = "user"
    url_timeout_sec: float = DEFAULT_URL_TIMEOUT_SEC
    generation_timeout_sec: Optional[float] = None
    claude_binary: str = DEFAULT_CLAUDE_BINARY
    claude_timeout_sec: int = DEFAULT_CLAUDE_TIMEOUT_SEC
    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION
    history_file: Path = field(default_factory=lambda: Path.home() / HISTORY_FILE_NAME)

    @property
    def config_file(self) -> Path:
        return self.config_root / CONFIG_FILE_NAME

    @property
    def system_prompt_file(self) -> Path:
        return self.config_root / PROMPTS_DIR_NAME / SYSTEM_PROMPT_FILE_NAME

    @property
    def logs_dir(self) -> Path:
        return self.config_root / LOGS_DIR_NAME


def resolve_config_root() -> Path:
    override = str(os.getenv(HOME_ENV_VAR) or "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return (Path.home() / CONFIG_DIR_NAME).resolve()


def config_exists(config_root: Optional[Path] = None) -> bool:
    root = config_root or resolve_config_root()
    return (root / CONFIG_FILE_NAME).is_file()


def _normalize_vendor(vendor: object) -> str:
    candidate = str(vendor or DEFAULT_VENDOR).strip().lower() or DEFAULT_VENDOR
    if candidate not in ALLOWED_VENDORS:
        return DEFAULT_VENDOR
    return candidate


def _safe_positive_int(value: object, default: int) -> int:
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0:
        return default
    return converted


def _safe_non_negative_int(value: object, default: int) -> int:
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return max(0, converted)


def _safe_positive_float(value: object, default: float) -> float:
    try:
        converted = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0:
        return default
    return converted


def _safe_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_redaction(value: object, default: str) -> str:
    normalized = str(value or default).strip().lower()
    if normalized not in ALLOWED_LOG_REDACTION:
        return default
    return normalized


def _section(data: Dict[str, object], name: str) -> Dict[str, object]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _parse_project_config_data(data: Dict[str, object]) -> ProjectConfig:
    model = _section(data, "model")
    chat = _section(data, "chat")
    providers = _section(data, "providers")
    claude = providers.get("claude") if isinstance(providers.get("claude"), dict) else {}
    ollama = providers.get("ollama") if isinstance(providers.get("ollama"), dict) else {}
    logs = _section(data, "logs")

    return ProjectConfig(
        vendor=_normalize_vendor(model.get("vendor")),
        model=str(model.get("name") or "").strip(),
        system_prompt=str(chat.get("system_prompt") or "").strip(),
        user_name=str(chat.get("user_name") or "").strip(),
        url_timeout=_safe_positive_float(chat.get("url_timeout"), DEFAULT_URL_TIMEOUT_SEC),
        generation_timeout=_safe_non_negative_int(
            chat.get("generation_timeout"),
            DEFAULT_GENERATION_TIMEOUT_SEC,
        ),
        claude_binary=str(claude.get("binary") or DEFAULT_CLAUDE_BINARY).strip() or DEFAULT_CLAUDE_BINARY,  # type: ignore[union-attr]
        claude_timeout=_safe_positive_int(claude.get("timeout"), DEFAULT_CLAUDE_TIMEOUT_SEC),  # type: ignore[union-attr]
        ollama_base_url=str(ollama.get("base_url") or DEFAULT_OLLAMA_BASE_URL).strip().rstrip("/")  # type: ignore[union-attr]
        or DEFAULT_OLLAMA_BASE_URL,
        logs_enabled=_safe_bool(logs.get("enabled"), DEFAULT_LOGS_ENABLED),
        logs_max_file_bytes=_safe_positive_int(logs.get("max_file_bytes"), DEFAULT_LOGS_MAX_FILE_BYTES),
        logs_max_files=_safe_positive_int(logs.get("max_files"), DEFAULT_LOGS_MAX_FILES),
        logs_redaction=_safe_redaction(logs.get("redaction"), DEFAULT_LOGS_REDACTION),
    )


def _render_project_config(config: ProjectConfig) -> str:
    lines = [
        "# Parley configuration",
        "",
        "[model]",
        "# vendor = {0}".format(" | ".join(ALLOWED_VENDORS)),
        'vendor = "{0}"'.format(_normalize_vendor(config.vendor)),
        'name = "{0}"'.format(config.model),
        "",
        "[chat]",
        "# Leave empty to use prompts/system.md or the built-in instruction.",
        'system_prompt = "{0}"'.format(config.system_prompt.replace('"', '\\"')),
        'user_name = "{0}"'.format(config.user_name),
        "url_timeout = {0}".format(_safe_positive_float(config.url_timeout, DEFAULT_URL_TIMEOUT_SEC)),
        "# 0 waits for the backend without a limit.",
        "generation_timeout = {0}".format(
            _safe_non_negative_int(config.generation_timeout, DEFAULT_GENERATION_TIMEOUT_SEC)
        ),
        "",
        "[providers.claude]",
        'binary = "{0}"'.format(config.claude_binary),
        "timeout = {0}".format(_safe_positive_int(config.claude_timeout, DEFAULT_CLAUDE_TIMEOUT_SEC)),
        "",
        "[providers.ollama]",
        'base_url = "{0}"'.format(config.ollama_base_url),
        "",
        "[logs]",
        "enabled = {0}".format(str(bool(config.logs_enabled)).lower()),
        "max_file_bytes = {0}".format(
            _safe_positive_int(config.logs_max_file_bytes, DEFAULT_LOGS_MAX_FILE_BYTES)
        ),
        "max_files = {0}".format(_safe_positive_int(config.logs_max_files, DEFAULT_LOGS_MAX_FILES)),
        'redaction = "{0}"'.format(_safe_redaction(config.logs_redaction, DEFAULT_LOGS_REDACTION)),
        "",
    ]
    return "\n".join(lines)


def initialize_project_config(config_root: Optional[Path] = None, force: bool = False) -> Path:
    root = (config_root or resolve_config_root()).resolve()
    config_file = root / CONFIG_FILE_NAME

    if config_file.exists():
        if not force:
            raise ProjectConfigError("configuration already exists: {0}".format(config_file))
        shutil.rmtree(root)

    (root / PROMPTS_DIR_NAME).mkdir(parents=True, exist_ok=True)
    (root / LOGS_DIR_NAME).mkdir(parents=True, exist_ok=True)
    config_file.write_text(_render_project_config(ProjectConfig()), encoding="utf-8")
    return root


def load_project_config(config_root: Optional[Path] = None) -> ProjectConfig:
    root = (config_root or resolve_config_root()).resolve()
    config_file = root / CONFIG_FILE_NAME
    if not config_file.is_file():
        return ProjectConfig()

    try:
        parsed = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ProjectConfigError("invalid config file: {0}".format(config_file)) from exc

    if not isinstance(parsed, dict):
        raise ProjectConfigError("invalid config file: {0}".format(config_file))

    return _parse_project_config_data(parsed)


def _default_user_name() -> str:
    try:
        return getpass.getuser() or "user"
    except Exception:
        return "user"


def load_settings(
    vendor: Optional[str] = None,
    model: Optional[str] = None,
    config_root: Optional[Path] = None,
) -> Settings:
    """Resolve settings from the config file plus explicit overrides."""

    root = (config_root or resolve_config_root()).resolve()
    project_config = load_project_config(config_root=root)

    resolved_vendor = _normalize_vendor(vendor or project_config.vendor)
    if vendor and resolved_vendor != str(vendor).strip().lower():
        raise ProjectConfigError(
            "unsupported vendor: '{0}', choose one of {1}".format(vendor, "|".join(ALLOWED_VENDORS))
        )
    resolved_model = str(model or "").strip()
    if not resolved_model and resolved_vendor == project_config.vendor:
        resolved_model = project_config.model
    if not resolved_model:
        resolved_model = DEFAULT_MODELS.get(resolved_vendor, "")

    generation_timeout: Optional[float] = None
    if project_config.generation_timeout > 0:
        generation_timeout = float(project_config.generation_timeout)

    return Settings(
        config_root=root,
        vendor=resolved_vendor,
        model=resolved_model,
        system_prompt_override=project_config.system_prompt,
        user_name=project_config.user_name or _default_user_name(),
        url_timeout_sec=project_config.url_timeout,
        generation_timeout_sec=generation_timeout,
        claude_binary=project_config.claude_binary,
        claude_timeout_sec=project_config.claude_timeout,
        ollama_base_url=project_config.ollama_base_url,
        logs_enabled=project_config.logs_enabled,
        logs_max_file_bytes=project_config.logs_max_file_bytes,
        logs_max_files=project_config.logs_max_files,
        logs_redaction=project_config.logs_redaction,
    )
