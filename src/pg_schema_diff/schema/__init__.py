"""Schema snapshots, normalization, and comparison.

Provides the snapshot and report models, the normalizer that makes
independently produced snapshots comparable, the comparator
(``diff_snapshots``), and snapshot file handling.

Usage:
    from pg_schema_diff.schema import SchemaSnapshot, diff_snapshots
    from pg_schema_diff.schema import load_snapshot, filter_snapshot
"""

from pg_schema_diff.schema.comparator import diff_snapshots
from pg_schema_diff.schema.models import (
    ColumnSchema,
    ConstraintSchema,
    DiffReport,
    Difference,
    EntityDiff,
    EnumSchema,
    ForeignKeySchema,
    IndexColumn,
    IndexSchema,
    SchemaNames,
    SchemaSnapshot,
    TableDiff,
    TableModification,
    TableSchema,
    TriggerSchema,
    ViewSchema,
)
from pg_schema_diff.schema.normalizer import (
    normalize_data_type,
    normalize_default,
    normalize_sql_expression,
)
from pg_schema_diff.schema.snapshot import (
    SnapshotLoadError,
    dump_snapshot,
    filter_snapshot,
    load_snapshot,
)

__all__ = [
    "diff_snapshots",
    "normalize_data_type",
    "normalize_default",
    "normalize_sql_expression",
    "load_snapshot",
    "dump_snapshot",
    "filter_snapshot",
    "SnapshotLoadError",
    "SchemaSnapshot",
    "TableSchema",
    "ColumnSchema",
    "ConstraintSchema",
    "IndexColumn",
    "IndexSchema",
    "ForeignKeySchema",
    "TriggerSchema",
    "EnumSchema",
    "ViewSchema",
    "DiffReport",
    "Difference",
    "EntityDiff",
    "SchemaNames",
    "TableDiff",
    "TableModification",
]
