"""Tests for settings loading."""

from pathlib import Path

import pytest

from budget_ingest.lib.config import Settings, get_project_root
from budget_ingest.lib.errors import ConfigError


def test_defaults_without_config(tmp_path: Path):
    settings = Settings.load(tmp_path)
    assert settings.db_path == tmp_path / "data" / "budget.sqlite"
    assert settings.files_path == tmp_path / "files"
    assert settings.new_files_dir == tmp_path / "files" / "new"
    assert settings.descriptions_path == tmp_path / "config" / "descriptions.yaml"


def test_config_file_and_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "budget.yaml").write_text(
        "database:\n  path: state/money.sqlite\nfiles_path: exports\n"
    )
    settings = Settings.load(tmp_path)
    assert settings.db_path == tmp_path / "state" / "money.sqlite"
    assert settings.files_path == tmp_path / "exports"

    monkeypatch.setenv("BUDGET_FILE_PATH", str(tmp_path / "elsewhere"))
    settings = Settings.load(tmp_path)
    assert settings.files_path == tmp_path / "elsewhere"


def test_invalid_config(tmp_path: Path):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "budget.yaml").write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        Settings.load(tmp_path)


def test_project_root_discovery(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "budget.yaml").write_text("{}\n")
    nested = tmp_path / "files" / "new"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    assert get_project_root() == tmp_path.resolve()
