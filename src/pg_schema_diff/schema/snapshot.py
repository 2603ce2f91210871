"""Snapshot files and ignore filtering.

Snapshots are stored as JSON in the same shape as ``SchemaSnapshot``
(field aliases, e.g. ``"schema"``).  Any producer -- a database
introspector, an ORM reflector, a hand-written fixture -- can write one.

Usage:
    from pg_schema_diff.schema.snapshot import dump_snapshot, filter_snapshot, load_snapshot
    from pg_schema_diff.config import IgnoreRules

    snapshot = load_snapshot("current.json")
    snapshot = filter_snapshot(snapshot, IgnoreRules(tables=["schema_migrations"]))
    dump_snapshot(snapshot, "filtered.json")
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from pg_schema_diff.config.models import IgnoreRules
from pg_schema_diff.schema.models import SchemaSnapshot

logger = logging.getLogger(__name__)


class SnapshotLoadError(Exception):
    """Raised when a snapshot file is not valid JSON or not a valid snapshot."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"Invalid snapshot {path}: {message}")


def load_snapshot(path: Path | str) -> SchemaSnapshot:
    """Load a schema snapshot from a JSON file.

    Args:
        path: Path to the snapshot JSON file.

    Returns:
        Validated ``SchemaSnapshot``.

    Raises:
        FileNotFoundError: If the file doesn't exist
        SnapshotLoadError: If the file is not valid JSON or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")

    try:
        snapshot = SchemaSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise SnapshotLoadError(path, str(e)) from e

    logger.debug(
        "Loaded snapshot %s: %d tables, %d views, %d enums",
        path,
        len(snapshot.tables),
        len(snapshot.views),
        len(snapshot.enums),
    )
    return snapshot


def dump_snapshot(snapshot: SchemaSnapshot, path: Path | str) -> None:
    """Write a schema snapshot to a JSON file, indented, using field aliases."""
    Path(path).write_text(snapshot.model_dump_json(by_alias=True, indent=2) + "\n", encoding="utf-8")


def filter_snapshot(snapshot: SchemaSnapshot, rules: IgnoreRules) -> SchemaSnapshot:
    """Return a copy of *snapshot* without the objects named in *rules*.

    Example:
        >>> rules = IgnoreRules(tables=["schema_migrations"])
        >>> filtered = filter_snapshot(snapshot, rules)
    """
    if rules.is_empty:
        return snapshot

    ignored_indexes = set(rules.indexes)
    ignored_constraints = set(rules.constraints)

    tables = [
        table.model_copy(
            update={
                "indexes": [i for i in table.indexes if i.name not in ignored_indexes],
                "constraints": [c for c in table.constraints if c.name not in ignored_constraints],
            }
        )
        for table in snapshot.tables
        if table.name not in rules.tables
    ]
    views = [view for view in snapshot.views if view.name not in rules.views]

    return snapshot.model_copy(update={"tables": tables, "views": views})
