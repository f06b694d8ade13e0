from __future__ import annotations

from pathlib import Path

import pytest

from parley.config import HOME_ENV_VAR, initialize_project_config, resolve_config_root


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    home = tmp_path / "parley_home"
    workspace = tmp_path / "workspace"
    workspace.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv(HOME_ENV_VAR, str(home))
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(workspace)
    initialize_project_config()

    return {
        "workspace": workspace,
        "config_root": resolve_config_root(),
    }
