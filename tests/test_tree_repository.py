"""
Tests for tree record stores.

Tests cover:
- JSON directory store (round trip, atomic writes, corrupt files)
- In-memory store isolation
"""

import json

import pytest

from diagnosis.repositories.tree_repository import (
    InMemoryTreeRepository,
    JsonTreeRepository,
    RepositoryError,
    TreeRecord,
    safe_file_name,
)


def _record(battery_document, **overrides):
    values = {"tree_id": "battery-no-start", "version": 1, "document": battery_document}
    values.update(overrides)
    return TreeRecord(**values)


class TestTreeRecord:
    def test_aliases(self, battery_document):
        record = TreeRecord.model_validate(
            {"treeId": "battery-no-start", "version": 2, "isActive": True, "document": battery_document}
        )

        assert record.is_active
        assert record.node_count == 4
        assert record.updated_at

    def test_version_must_be_positive(self, battery_document):
        with pytest.raises(ValueError):
            _record(battery_document, version=0)


class TestJsonTreeRepository:
    def test_missing_tree(self, tmp_path):
        assert JsonTreeRepository(tmp_path / "trees").get("nope") is None

    def test_empty_store_lists_nothing(self, tmp_path):
        assert JsonTreeRepository(tmp_path / "trees").list_all() == []

    def test_save_and_get(self, tmp_path, battery_document):
        repository = JsonTreeRepository(tmp_path / "trees")
        repository.save(_record(battery_document, updated_by="kim"))

        record = repository.get("battery-no-start")

        assert record.version == 1
        assert record.updated_by == "kim"
        assert record.document == battery_document

    def test_file_layout(self, tmp_path, battery_document):
        root = tmp_path / "trees"
        JsonTreeRepository(root).save(_record(battery_document))

        assert [p.name for p in root.iterdir()] == ["battery-no-start.json"]
        stored = json.loads((root / "battery-no-start.json").read_text(encoding="utf-8"))
        assert stored["treeId"] == "battery-no-start"
        assert stored["isActive"] is False

    def test_save_replaces(self, tmp_path, battery_document):
        repository = JsonTreeRepository(tmp_path)
        repository.save(_record(battery_document))
        repository.save(_record(battery_document, version=2))

        assert repository.get("battery-no-start").version == 2
        assert len(repository.list_all()) == 1

    def test_set_active(self, tmp_path, battery_document):
        repository = JsonTreeRepository(tmp_path)
        repository.save(_record(battery_document, version=3))

        assert repository.set_active("battery-no-start", True)
        assert not repository.set_active("nope", True)

        record = repository.get("battery-no-start")
        assert record.is_active
        assert record.version == 3

    def test_reads_byte_order_mark(self, tmp_path, battery_document):
        payload = json.dumps(_record(battery_document).model_dump(by_alias=True))
        (tmp_path / "battery-no-start.json").write_text("\ufeff" + payload, encoding="utf-8")

        assert JsonTreeRepository(tmp_path).get("battery-no-start").tree_id == "battery-no-start"

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(RepositoryError, match="Cannot read tree record"):
            JsonTreeRepository(tmp_path).list_all()

    def test_no_temp_files_left(self, tmp_path, battery_document):
        JsonTreeRepository(tmp_path).save(_record(battery_document))

        assert not list(tmp_path.glob(".*.tmp"))

    def test_unsafe_ids(self):
        assert safe_file_name("../etc/passwd") == "___etc_passwd"
        assert safe_file_name("battery-no-start_2") == "battery-no-start_2"


class TestInMemoryTreeRepository:
    def test_returns_copies(self, battery_document):
        repository = InMemoryTreeRepository()
        repository.save(_record(battery_document))

        repository.get("battery-no-start").document["title"] = "changed"

        assert repository.get("battery-no-start").document["title"] == "Engine does not start"

    def test_set_active_unknown(self):
        assert InMemoryTreeRepository().set_active("nope", True) is False

    def test_list_newest_first(self, battery_document):
        repository = InMemoryTreeRepository()
        repository.save(_record(battery_document, tree_id="old", updated_at="2024-01-01T00:00:00+00:00"))
        repository.save(_record(battery_document, tree_id="new", updated_at="2025-01-01T00:00:00+00:00"))

        assert [r.tree_id for r in repository.list_all()] == ["new", "old"]


class TestJsonTreeRepositoryFailures:
    def test_colliding_ids_are_not_merged(self, tmp_path, battery_document):
        """``a.b`` and ``a_b`` share a file name; the second tree must not overwrite the first."""
        repository = JsonTreeRepository(tmp_path)
        repository.save(_record(battery_document, tree_id="a.b"))

        with pytest.raises(RepositoryError, match="collides with stored tree 'a.b'"):
            repository.get("a_b")
        with pytest.raises(RepositoryError):
            repository.save(_record(battery_document, tree_id="a_b", version=5))

        assert repository.get("a.b").version == 1

    def test_failed_write_removes_temp_file(self, tmp_path, battery_document, monkeypatch):
        def refuse(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr("diagnosis.repositories.tree_repository.os.replace", refuse)
        repository = JsonTreeRepository(tmp_path)

        with pytest.raises(RepositoryError, match="Cannot write tree record"):
            repository.save(_record(battery_document))

        assert list(tmp_path.iterdir()) == []

    def test_lenient_listing_skips_unreadable(self, tmp_path, battery_document):
        repository = JsonTreeRepository(tmp_path)
        repository.save(_record(battery_document))
        (tmp_path / "other.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(RepositoryError):
            repository.list_all()
        assert [r.tree_id for r in repository.list_all(strict=False)] == ["battery-no-start"]
