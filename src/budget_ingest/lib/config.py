"""Project settings — paths to the CSV drop folder, database and rules.

Read from ``config/budget.yaml`` under the project root:

    database:
      path: data/budget.sqlite
    files_path: files/
    descriptions: config/descriptions.yaml

``BUDGET_FILE_PATH`` and ``BUDGET_DB_PATH`` override the file values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .errors import ConfigError

CONFIG_RELPATH = Path("config") / "budget.yaml"

DEFAULT_DB_PATH = "data/budget.sqlite"
DEFAULT_FILES_PATH = "files/"
DEFAULT_DESCRIPTIONS_PATH = "config/descriptions.yaml"


def get_project_root() -> Path:
    """Find the project root by looking for config/budget.yaml."""
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        if (parent / CONFIG_RELPATH).exists():
            return parent
    return cwd


def _resolve(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


@dataclass
class Settings:
    project_root: Path
    db_path: Path
    files_path: Path
    descriptions_path: Path

    @property
    def new_files_dir(self) -> Path:
        return self.files_path / "new"

    @classmethod
    def load(cls, project_root: Path | None = None) -> "Settings":
        root = project_root or get_project_root()
        config_path = root / CONFIG_RELPATH

        data: dict = {}
        if config_path.exists():
            with open(config_path) as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as exc:
                    raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
            if not isinstance(data, dict):
                raise ConfigError(f"{config_path} must contain a mapping")

        database = data.get("database") or {}
        if not isinstance(database, dict):
            raise ConfigError(f"'database' in {config_path} must be a mapping")

        db_path = os.environ.get("BUDGET_DB_PATH") or database.get("path", DEFAULT_DB_PATH)
        files_path = os.environ.get("BUDGET_FILE_PATH") or data.get("files_path", DEFAULT_FILES_PATH)
        descriptions = data.get("descriptions", DEFAULT_DESCRIPTIONS_PATH)

        return cls(
            project_root=root,
            db_path=_resolve(root, str(db_path)),
            files_path=_resolve(root, str(files_path)),
            descriptions_path=_resolve(root, str(descriptions)),
        )
