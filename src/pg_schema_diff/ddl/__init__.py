"""DDL generation: statement builders, migrations, and full-schema creation.

Usage:
    from pg_schema_diff.ddl import generate_migration_plan, generate_create_sql
"""

from pg_schema_diff.ddl.create import generate_create_sql
from pg_schema_diff.ddl.migration import (
    MigrationPlan,
    generate_migration,
    generate_migration_plan,
    generate_migration_sql,
    split_statements,
)

__all__ = [
    "generate_create_sql",
    "generate_migration",
    "generate_migration_plan",
    "generate_migration_sql",
    "split_statements",
    "MigrationPlan",
]
