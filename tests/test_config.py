# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from task_flow.config import (
    DEFAULT_COMPLETED_DATE_FORMAT,
    DEFAULT_THEME,
    Config,
    load_config,
)


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "task-flow.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    config = load_config(tmp_path / "nope.toml")

    assert config.theme == DEFAULT_THEME
    assert config.completed_date_format == DEFAULT_COMPLETED_DATE_FORMAT
    assert config.backend == "sqlite"
    assert config.database == tmp_path / "tasks.db"
    assert config.remote.base_url == ""
    assert config.logging.level == "INFO"


def test_invalid_toml_gives_defaults(tmp_path: Path) -> None:
    config = load_config(write(tmp_path, "theme = [unclosed"))

    assert config.theme == Config().theme


def test_values_are_read(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    path = write(
        tmp_path,
        """
theme = "nord"
completed_date_format = "%Y-%m-%d"
backend = "Remote"
database = "data/my-tasks.db"

[remote]
base_url = "https://records.example.test"
api_key = "abc"
timeout = 30

[logging]
level = "debug"
directory = "/tmp/task-flow-logs"
""",
    )

    config = load_config(path)

    assert config.theme == "nord"
    assert config.completed_date_format == "%Y-%m-%d"
    assert config.backend == "remote"
    assert config.database == tmp_path / "data" / "my-tasks.db"
    assert config.remote.base_url == "https://records.example.test"
    assert config.remote.api_key == "abc"
    assert config.remote.timeout == 30.0
    assert config.logging.level == "DEBUG"
    assert config.logging.directory == Path("/tmp/task-flow-logs")


def test_wrong_types_keep_defaults(tmp_path: Path) -> None:
    path = write(
        tmp_path,
        """
theme = 3
backend = "postgres"

[remote]
timeout = -1

[logging]
level = "chatty"
""",
    )

    config = load_config(path)

    assert config.theme == DEFAULT_THEME
    assert config.backend == "sqlite"
    assert config.remote.timeout == 15.0
    assert config.logging.level == "INFO"
