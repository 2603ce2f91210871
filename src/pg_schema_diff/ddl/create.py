"""New-schema SQL generation -- full DDL for a snapshot from scratch.

Usage:
    from pg_schema_diff.ddl.create import generate_create_sql
    from pg_schema_diff.schema.snapshot import load_snapshot

    for batch in generate_create_sql(load_snapshot("desired.json")):
        print("\\n".join(batch))
"""

import logging

from pg_schema_diff.ddl.generators import (
    add_foreign_key,
    create_enum,
    create_index,
    create_table,
    create_trigger,
    create_view,
)
from pg_schema_diff.schema.models import SchemaSnapshot

logger = logging.getLogger(__name__)


def generate_create_sql(snapshot: SchemaSnapshot) -> list[list[str]]:
    """Generate DDL batches that build *snapshot* in an empty schema.

    Order:
        1. Enums
        2. ``CREATE TABLE`` for every table (columns, inline constraints, comments)
        3. Per table: non-constraint indexes, foreign keys, triggers --
           after all tables exist, so cross-table references resolve
        4. Views

    Args:
        snapshot: The schema to create.

    Returns:
        List of statement batches.
    """
    batches: list[list[str]] = []

    batches.extend(create_enum(e) for e in snapshot.enums)
    batches.extend(create_table(t) for t in snapshot.tables)

    for table in snapshot.tables:
        batches.extend(
            create_index(table.name, i) for i in table.indexes if not i.is_constraint_index
        )
        batches.extend(add_foreign_key(table.name, fk) for fk in table.foreign_keys)
        batches.extend(create_trigger(table.name, t) for t in table.triggers)

    batches.extend(create_view(v) for v in snapshot.views)

    logger.debug("Generated %d create batches for schema %s", len(batches), snapshot.schema_name)
    return batches
