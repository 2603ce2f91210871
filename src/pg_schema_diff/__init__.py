"""pg-schema-diff: PostgreSQL schema normalization, diffing, and DDL generation.

Compares two structural snapshots of a PostgreSQL schema -- typically one
introspected from a live database and one reflected from ORM definitions --
and produces a diff report plus ordered DDL batches to migrate between them.

Usage:
    from pg_schema_diff import load_snapshot, diff_snapshots, generate_migration_plan
    from pg_schema_diff import generate_create_sql, load_diff_config
"""

__version__ = "0.1.0"

# Config
from pg_schema_diff.config.loader import load_diff_config
from pg_schema_diff.config.models import DiffConfig, IgnoreRules

# DDL
from pg_schema_diff.ddl.create import generate_create_sql
from pg_schema_diff.ddl.migration import (
    MigrationPlan,
    generate_migration,
    generate_migration_plan,
    generate_migration_sql,
    split_statements,
)

# Schema
from pg_schema_diff.schema.comparator import diff_snapshots
from pg_schema_diff.schema.models import DiffReport, SchemaSnapshot
from pg_schema_diff.schema.snapshot import (
    SnapshotLoadError,
    dump_snapshot,
    filter_snapshot,
    load_snapshot,
)

__all__ = [
    # Config
    "load_diff_config",
    "DiffConfig",
    "IgnoreRules",
    # DDL
    "generate_create_sql",
    "generate_migration",
    "generate_migration_plan",
    "generate_migration_sql",
    "split_statements",
    "MigrationPlan",
    # Schema
    "diff_snapshots",
    "DiffReport",
    "SchemaSnapshot",
    "load_snapshot",
    "dump_snapshot",
    "filter_snapshot",
    "SnapshotLoadError",
]
