"""Tests for snapshot files and ignore filtering."""

import json

import pytest

from pg_schema_diff.config.models import IgnoreRules
from pg_schema_diff.schema.snapshot import (
    SnapshotLoadError,
    dump_snapshot,
    filter_snapshot,
    load_snapshot,
)


class TestLoadSnapshot:
    """Reading snapshot JSON."""

    def test_dump_then_load(self, tmp_path, full_snapshot) -> None:
        path = tmp_path / "snapshot.json"
        dump_snapshot(full_snapshot, path)
        assert load_snapshot(path) == full_snapshot

    def test_dump_uses_aliases(self, tmp_path, full_snapshot) -> None:
        path = tmp_path / "snapshot.json"
        dump_snapshot(full_snapshot, path)
        data = json.loads(path.read_text())
        assert data["schema"] == "public"
        assert "schema_name" not in data

    def test_minimal_document(self, tmp_path) -> None:
        """Optional fields take their documented defaults."""
        path = tmp_path / "snapshot.json"
        path.write_text(
            json.dumps(
                {
                    "schema": "app",
                    "tables": [
                        {
                            "name": "t",
                            "columns": [{"name": "id", "data_type": "integer"}],
                            "foreign_keys": [
                                {
                                    "name": "fk",
                                    "columns": ["id"],
                                    "foreign_table": "u",
                                    "foreign_columns": ["id"],
                                }
                            ],
                        }
                    ],
                }
            )
        )
        snapshot = load_snapshot(path)
        assert snapshot.schema_name == "app"
        assert snapshot.tables[0].foreign_keys[0].on_delete == "NO ACTION"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(SnapshotLoadError) as exc_info:
            load_snapshot(path)
        assert exc_info.value.path == path

    def test_duplicate_names_rejected(self, tmp_path) -> None:
        path = tmp_path / "dupes.json"
        path.write_text(json.dumps({"enums": [{"name": "e"}, {"name": "e"}]}))
        with pytest.raises(SnapshotLoadError, match="Duplicate enum"):
            load_snapshot(path)


class TestFilterSnapshot:
    """Ignore rules."""

    def test_empty_rules_return_same_snapshot(self, full_snapshot) -> None:
        assert filter_snapshot(full_snapshot, IgnoreRules()) is full_snapshot

    def test_ignore_tables_and_views(self, full_snapshot) -> None:
        filtered = filter_snapshot(full_snapshot, IgnoreRules(tables=["posts"], views=["active_users"]))
        assert [t.name for t in filtered.tables] == ["users"]
        assert filtered.views == []
        assert [e.name for e in filtered.enums] == ["mood"]

    def test_ignore_indexes_and_constraints(self, full_snapshot) -> None:
        filtered = filter_snapshot(
            full_snapshot,
            IgnoreRules(indexes=["users_email_idx"], constraints=["users_email_check"]),
        )
        users = filtered.tables[0]
        assert [i.name for i in users.indexes] == ["users_pkey"]
        assert [c.name for c in users.constraints] == ["users_pkey"]

    def test_original_untouched(self, full_snapshot) -> None:
        filter_snapshot(full_snapshot, IgnoreRules(tables=["posts"]))
        assert len(full_snapshot.tables) == 2
