"""Migration SQL generation -- turn a diff report into ordered DDL batches.

The order of batches is what makes a migration apply cleanly: views that
depend on tables go first and come back last, enums exist before the
columns that use them, foreign keys and constraints are dropped before the
columns they reference and re-added after.  Each batch is meant to run in
its own transaction; the generator never connects to a database.

Usage:
    from pg_schema_diff.ddl.migration import generate_migration_plan
    from pg_schema_diff.schema.comparator import diff_snapshots

    report = diff_snapshots(current, desired)
    plan = generate_migration_plan(report)

    if plan.has_changes:
        print(plan.to_sql())
"""

import logging
import re
from dataclasses import dataclass, field

from pg_schema_diff.ddl import generators as g
from pg_schema_diff.schema.comparator import diff_snapshots
from pg_schema_diff.schema.models import DiffReport, SchemaSnapshot, TableModification

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Plan data class
# ------------------------------------------------------------------


@dataclass
class MigrationPlan:
    """Ordered DDL batches for a migration.

    Attributes:
        batches: Statement batches in execution order.  Each inner list is
            the output of one builder call (e.g. ``CREATE TABLE`` plus its
            comments).
    """

    batches: list[list[str]] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        """True if there is at least one statement to run."""
        return any(self.batches)

    @property
    def statement_count(self) -> int:
        """Total number of statements across all batches."""
        return sum(len(batch) for batch in self.batches)

    def statements(self) -> list[str]:
        """All statements, flattened in execution order."""
        return [statement for batch in self.batches for statement in batch]

    def to_sql(self) -> str:
        """Render the plan as SQL text, batches separated by a blank line."""
        return "\n\n".join("\n".join(batch) for batch in self.batches if batch)


# ------------------------------------------------------------------
# Generation
# ------------------------------------------------------------------


def _modified_table_batches(table: TableModification) -> list[list[str]]:
    name = table.name
    batches: list[list[str]] = []

    if table.description is not None:
        batches.append(g.update_table_description(name, table.description.to))

    # Drops: removed first, then the old side of each modification
    batches.extend(g.drop_foreign_key(name, fk.name) for fk in table.foreign_keys.removed)
    batches.extend(g.drop_foreign_key(name, d.from_.name) for d in table.foreign_keys.modified)
    batches.extend(g.drop_constraint(name, c.name) for c in table.constraints.removed)
    batches.extend(g.drop_constraint(name, d.from_.name) for d in table.constraints.modified)
    batches.extend(g.drop_index(i.name) for i in table.indexes.removed)
    batches.extend(g.drop_index(d.from_.name) for d in table.indexes.modified)
    batches.extend(g.drop_trigger(name, t.name) for t in table.triggers.removed)
    batches.extend(g.drop_trigger(name, d.from_.name) for d in table.triggers.modified)

    # Columns
    batches.extend(g.drop_column(name, c.name) for c in table.columns.removed)
    batches.extend(g.add_column(name, c) for c in table.columns.added)
    batches.extend(g.alter_column(name, d.from_, d.to) for d in table.columns.modified)

    # Re-creates: the new side of each modification, then additions
    batches.extend(g.add_foreign_key(name, d.to) for d in table.foreign_keys.modified)
    batches.extend(g.add_foreign_key(name, fk) for fk in table.foreign_keys.added)
    batches.extend(g.add_constraint(name, d.to) for d in table.constraints.modified)
    batches.extend(g.add_constraint(name, c) for c in table.constraints.added)
    batches.extend(g.create_index(name, d.to) for d in table.indexes.modified)
    batches.extend(g.create_index(name, i) for i in table.indexes.added)
    batches.extend(g.create_trigger(name, d.to) for d in table.triggers.modified)
    batches.extend(g.create_trigger(name, t) for t in table.triggers.added)

    return batches


def generate_migration_sql(report: DiffReport) -> list[list[str]]:
    """Generate ordered DDL batches that apply *report*.

    Order:
        1. Drop removed views, and modified views (recreated at the end)
        2. Create added enums; comment updates for modified enums
        3. Added tables: CREATE TABLE, then indexes, foreign keys, triggers
        4. Modified tables (see ``_modified_table_batches``)
        5. Drop removed tables
        6. Drop removed enums
        7. Recreate modified views, then create added views

    Args:
        report: Diff report from ``diff_snapshots``.

    Returns:
        List of statement batches.  Empty batches are omitted.

    Example:
        >>> generate_migration_sql(diff_snapshots(SchemaSnapshot(), SchemaSnapshot()))
        []
    """
    batches: list[list[str]] = []

    batches.extend(g.drop_view(v.name) for v in report.views.removed)
    batches.extend(g.drop_view(d.from_.name) for d in report.views.modified)

    batches.extend(g.create_enum(e) for e in report.enums.added)
    batches.extend(g.update_enum(d.from_, d.to) for d in report.enums.modified)

    for table in report.tables.added:
        batches.append(g.create_table(table))
        batches.extend(
            g.create_index(table.name, i) for i in table.indexes if not i.is_constraint_index
        )
        batches.extend(g.add_foreign_key(table.name, fk) for fk in table.foreign_keys)
        batches.extend(g.create_trigger(table.name, t) for t in table.triggers)

    for table in report.tables.modified:
        batches.extend(_modified_table_batches(table))

    batches.extend(g.drop_table(t.name) for t in report.tables.removed)
    batches.extend(g.drop_enum(e.name) for e in report.enums.removed)

    batches.extend(g.create_view(d.to) for d in report.views.modified)
    batches.extend(g.create_view(v) for v in report.views.added)

    batches = [batch for batch in batches if batch]
    logger.debug(
        "Generated %d migration batches (%d statements)",
        len(batches),
        sum(len(batch) for batch in batches),
    )
    return batches


def generate_migration_plan(report: DiffReport) -> MigrationPlan:
    """Wrap ``generate_migration_sql`` output in a ``MigrationPlan``."""
    return MigrationPlan(batches=generate_migration_sql(report))


def generate_migration(
    from_snapshot: SchemaSnapshot, to_snapshot: SchemaSnapshot
) -> list[list[str]]:
    """Diff two snapshots and generate the migration batches in one call."""
    return generate_migration_sql(diff_snapshots(from_snapshot, to_snapshot))


# ------------------------------------------------------------------
# SQL text helpers
# ------------------------------------------------------------------

_STATEMENT_END_RE = re.compile(r";\s*\n")


def split_statements(sql: str) -> list[str]:
    """Split SQL text into statements at a ``;`` that ends a line.

    Statements keep their terminating ``;``.  Blank fragments are dropped.

    Example:
        >>> split_statements('DROP VIEW "a";\\nDROP VIEW "b";')
        ['DROP VIEW "a";', 'DROP VIEW "b";']
    """
    statements: list[str] = []
    for fragment in _STATEMENT_END_RE.split(sql):
        fragment = fragment.strip()
        if not fragment:
            continue
        statements.append(fragment if fragment.endswith(";") else fragment + ";")
    return statements
