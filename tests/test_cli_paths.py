from pathlib import Path

from diagnosis.cli.paths import default_trees_dir, trees_store_path
from diagnosis.config import TREES_DIR_ENV


def test_default_trees_dir(tmp_path, monkeypatch):
    """Default store lives under the working directory."""
    monkeypatch.chdir(tmp_path)

    assert default_trees_dir() == Path.cwd() / "data" / "diagnosis" / "trees"


def test_store_path_falls_back_to_default(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(TREES_DIR_ENV, raising=False)

    assert Path(trees_store_path(None)) == default_trees_dir()


def test_store_path_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(TREES_DIR_ENV, str(tmp_path / "shared"))

    assert trees_store_path(None) == str(tmp_path / "shared")


def test_explicit_store_path_wins(tmp_path, monkeypatch):
    monkeypatch.setenv(TREES_DIR_ENV, str(tmp_path / "shared"))

    assert trees_store_path("custom") == "custom"
