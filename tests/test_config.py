from __future__ import annotations

from pathlib import Path

import pytest

from parley.config import (
    DEFAULT_OLLAMA_BASE_URL,
    HOME_ENV_VAR,
    ProjectConfigError,
    initialize_project_config,
    load_project_config,
    load_settings,
    resolve_config_root,
)
from parley.prompt.system_prompt import DEFAULT_SYSTEM_PROMPT, resolve_system_prompt


def _write_config(config_root: Path, text: str) -> None:
    (config_root / "config.toml").write_text(text, encoding="utf-8")


def test_config_root_follows_env(monkeypatch, tmp_path):
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path / "custom"))

    assert resolve_config_root() == (tmp_path / "custom").resolve()


def test_init_writes_layout(isolated_env):
    config_root = isolated_env["config_root"]

    assert (config_root / "config.toml").is_file()
    assert (config_root / "prompts").is_dir()
    assert (config_root / "logs").is_dir()


def test_init_refuses_to_overwrite_without_force(isolated_env):
    with pytest.raises(ProjectConfigError):
        initialize_project_config()

    _write_config(isolated_env["config_root"], "[model]\nvendor = \"claude\"\n")
    initialize_project_config(force=True)
    assert load_project_config().vendor == "ollama"


def test_default_settings(isolated_env):
    settings = load_settings()

    assert settings.vendor == "ollama"
    assert settings.model == "llama3.2"
    assert settings.url_timeout_sec == 5.0
    assert settings.generation_timeout_sec is None
    assert settings.ollama_base_url == DEFAULT_OLLAMA_BASE_URL
    assert settings.config_file.is_file()
    assert settings.logs_dir == isolated_env["config_root"] / "logs"
    assert settings.history_file.name == ".parley_history"
    assert settings.user_name


def test_settings_from_file(isolated_env):
    _write_config(
        isolated_env["config_root"],
        "\n".join(
            [
                "[model]",
                'vendor = "claude"',
                'name = "sonnet"',
                "[chat]",
                'user_name = "ada"',
                "url_timeout = 2.5",
                "generation_timeout = 30",
                "[providers.claude]",
                'binary = "/opt/bin/claude"',
                "timeout = 60",
                "[logs]",
                "enabled = false",
                'redaction = "none"',
            ]
        ),
    )

    settings = load_settings()

    assert settings.vendor == "claude"
    assert settings.model == "sonnet"
    assert settings.user_name == "ada"
    assert settings.url_timeout_sec == 2.5
    assert settings.generation_timeout_sec == 30.0
    assert settings.claude_binary == "/opt/bin/claude"
    assert settings.claude_timeout_sec == 60
    assert settings.logs_enabled is False
    assert settings.logs_redaction == "none"


def test_explicit_vendor_overrides_file_and_uses_vendor_default_model(isolated_env):
    _write_config(isolated_env["config_root"], '[model]\nvendor = "claude"\nname = "sonnet"\n')

    settings = load_settings(vendor="ollama")

    assert settings.vendor == "ollama"
    assert settings.model == "llama3.2"


def test_unknown_explicit_vendor_is_rejected(isolated_env):
    with pytest.raises(ProjectConfigError):
        load_settings(vendor="gpt")


def test_invalid_values_fall_back_to_defaults(isolated_env):
    _write_config(
        isolated_env["config_root"],
        '[model]\nvendor = "mystery"\n[chat]\nurl_timeout = -1\n[logs]\nmax_files = "many"\n',
    )

    settings = load_settings()

    assert settings.vendor == "ollama"
    assert settings.url_timeout_sec == 5.0
    assert settings.logs_max_files == 3


def test_invalid_toml_raises(isolated_env):
    _write_config(isolated_env["config_root"], "[model\nvendor = ")

    with pytest.raises(ProjectConfigError):
        load_settings()


def test_missing_file_means_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path / "empty"))

    assert load_settings().vendor == "ollama"


def test_system_prompt_resolution_order(isolated_env):
    config_root = isolated_env["config_root"]
    assert resolve_system_prompt(load_settings()) == DEFAULT_SYSTEM_PROMPT

    (config_root / "prompts" / "system.md").write_text("From file.\n", encoding="utf-8")
    assert resolve_system_prompt(load_settings()) == "From file."

    _write_config(config_root, '[chat]\nsystem_prompt = "From config."\n')
    assert resolve_system_prompt(load_settings()) == "From config."
