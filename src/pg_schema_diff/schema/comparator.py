"""Schema comparison between two snapshots.

Compares a source snapshot against a target snapshot and produces a
``DiffReport`` describing what must change to turn the source into the
target.  Pure logic -- no I/O, no database connections.

Enums, views, columns and triggers are matched by name.  Constraints,
indexes and foreign keys are matched by name first and then by a semantic
key, so two producers that generate different names for the same
structure do not report a difference.

Usage:
    from pg_schema_diff.schema.comparator import diff_snapshots
    from pg_schema_diff.schema.snapshot import load_snapshot

    current = load_snapshot("current.json")
    desired = load_snapshot("desired.json")

    report = diff_snapshots(current, desired)
    if report.has_changes:
        print(report.format_report())
"""

import logging
from collections import defaultdict, deque
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel

from pg_schema_diff.schema.models import (
    ColumnSchema,
    ConstraintSchema,
    DiffReport,
    Difference,
    EntityDiff,
    EnumSchema,
    ForeignKeySchema,
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
    deep_equal,
    normalize_data_type,
    normalize_default,
    normalize_generation_expression,
    normalize_sql_expression,
)

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_VIEW_PREFIXES: tuple[str, ...] = ("pg_stat_statements",)

E = TypeVar("E", bound=BaseModel)


# ============================================================================
# Comparable projections
# ============================================================================


def _column_projection(column: ColumnSchema) -> dict[str, Any]:
    data = column.model_dump()
    # Not populated by every producer; udt_name is folded into data_type
    data["position"] = None
    data["numeric_precision"] = None
    data["numeric_scale"] = None
    data["udt_name"] = None
    data["default"] = normalize_default(column.default, column.data_type)
    data["data_type"] = normalize_data_type(column.data_type, column.udt_name)
    data["generation_expression"] = normalize_generation_expression(column.generation_expression)
    return data


def _enum_projection(enum: EnumSchema) -> dict[str, Any]:
    # Value-set changes are not reported
    return {"name": enum.name, "description": enum.description}


def _constraint_projection(constraint: ConstraintSchema) -> dict[str, Any]:
    data = constraint.model_dump(exclude={"name", "definition", "description"})
    if constraint.type == "CHECK":
        data.pop("columns")
    if constraint.check_predicate is not None:
        data["check_predicate"] = normalize_sql_expression(constraint.check_predicate)
    return data


def _index_projection(index: IndexSchema) -> dict[str, Any]:
    data = index.model_dump(exclude={"name", "definition", "description", "is_valid"})
    if index.predicate is not None:
        data["predicate"] = normalize_sql_expression(index.predicate)
    return data


def _foreign_key_projection(foreign_key: ForeignKeySchema) -> dict[str, Any]:
    return foreign_key.model_dump(exclude={"name", "description"})


def _trigger_projection(trigger: TriggerSchema) -> dict[str, Any]:
    return trigger.model_dump(exclude={"definition"})


def _plain_projection(item: BaseModel) -> dict[str, Any]:
    return item.model_dump()


# ============================================================================
# Semantic keys
# ============================================================================


def constraint_key(constraint: ConstraintSchema) -> str:
    """Structural identity of a constraint, independent of its name.

    Example:
        >>> constraint_key(ConstraintSchema(name="pk", type="PRIMARY KEY", columns=["id"]))
        'PRIMARY KEY:id:'
    """
    predicate = ""
    if constraint.type == "CHECK" and constraint.check_predicate is not None:
        predicate = normalize_sql_expression(constraint.check_predicate)
    return f"{constraint.type}:{','.join(sorted(constraint.columns))}:{predicate}"


def index_key(index: IndexSchema) -> str:
    """Structural identity of an index: columns, uniqueness and method."""
    columns = ",".join(sorted(c.name for c in index.columns))
    uniqueness = "U" if index.is_unique else "N"
    return f"{columns}:{uniqueness}:{index.index_type}"


def foreign_key_key(foreign_key: ForeignKeySchema) -> str:
    """Structural identity of a foreign key, independent of its name."""
    columns = ",".join(sorted(foreign_key.columns))
    foreign_columns = ",".join(sorted(foreign_key.foreign_columns))
    return (
        f"{columns}->{foreign_key.foreign_table}({foreign_columns})"
        f":{foreign_key.on_delete}:{foreign_key.on_update}"
    )


# ============================================================================
# List diffs
# ============================================================================


def diff_by_name(
    kind: type[E],
    source: Sequence[E],
    target: Sequence[E],
    projection: Callable[[E], Any] = _plain_projection,
) -> EntityDiff[E]:
    """Diff two lists of named entities by identity key.

    Args:
        kind: Entity model class, used to type the result.
        source: Entities in the source snapshot.
        target: Entities in the target snapshot.
        projection: Maps an entity to the comparable value used to decide
            whether a pair with the same name is modified.

    Returns:
        ``EntityDiff`` with added, removed and modified entries.  Entries
        carry the original (unnormalized) entities.
    """
    source_by_name = {item.name: item for item in source}
    target_by_name = {item.name: item for item in target}

    added = [item for item in target if item.name not in source_by_name]
    removed = [item for item in source if item.name not in target_by_name]

    modified: list[Difference[E]] = []
    for item in source:
        other = target_by_name.get(item.name)
        if other is None:
            continue
        if not deep_equal(projection(item), projection(other)):
            modified.append(Difference[kind](from_=item, to=other))

    return EntityDiff[kind](added=added, removed=removed, modified=modified)


def diff_by_semantic_key(
    kind: type[E],
    source: Sequence[E],
    target: Sequence[E],
    key: Callable[[E], str],
    projection: Callable[[E], Any],
) -> EntityDiff[E]:
    """Diff two lists of entities whose names may differ across producers.

    Pairs are matched by name first.  Remaining items are matched by
    semantic key, walking the source in order; when several targets share
    a key they are consumed first-in-first-out in target order.  Matched
    pairs are compared through ``projection``, which must ignore the name.

    Args:
        kind: Entity model class, used to type the result.
        source: Entities in the source snapshot.
        target: Entities in the target snapshot.
        key: Structural identity of an entity.
        projection: Comparable value of an entity, excluding its name.

    Returns:
        ``EntityDiff`` with added, removed and modified entries.
    """
    pairs: list[tuple[E, E]] = []

    target_by_name = {item.name: item for item in target}
    matched_target_names: set[str] = set()
    unmatched_source: list[E] = []

    for item in source:
        other = target_by_name.get(item.name)
        if other is not None:
            pairs.append((item, other))
            matched_target_names.add(other.name)
        else:
            unmatched_source.append(item)

    candidates: dict[str, deque[E]] = defaultdict(deque)
    for other in target:
        if other.name not in matched_target_names:
            candidates[key(other)].append(other)

    removed: list[E] = []
    for item in unmatched_source:
        queue = candidates.get(key(item))
        if queue:
            other = queue.popleft()
            logger.debug("Matched %r to %r by structure", item.name, other.name)
            pairs.append((item, other))
            matched_target_names.add(other.name)
        else:
            removed.append(item)

    added = [other for other in target if other.name not in matched_target_names]

    modified: list[Difference[E]] = [
        Difference[kind](from_=item, to=other)
        for item, other in pairs
        if not deep_equal(projection(item), projection(other))
    ]

    return EntityDiff[kind](added=added, removed=removed, modified=modified)


def _without_extension_views(
    views: Iterable[ViewSchema], excluded_prefixes: Sequence[str]
) -> list[ViewSchema]:
    return [view for view in views if not view.name.startswith(tuple(excluded_prefixes))]


# ============================================================================
# Table diff
# ============================================================================


def diff_tables(source: TableSchema, target: TableSchema) -> TableModification:
    """Compute the changes within a table present in both snapshots.

    Indexes flagged ``is_constraint_index`` are implied by their
    constraints and are excluded from the index diff.
    """
    description: Difference[str | None] | None = None
    if source.description != target.description:
        description = Difference[str | None](from_=source.description, to=target.description)

    return TableModification(
        name=target.name,
        description=description,
        columns=diff_by_name(ColumnSchema, source.columns, target.columns, _column_projection),
        constraints=diff_by_semantic_key(
            ConstraintSchema,
            source.constraints,
            target.constraints,
            constraint_key,
            _constraint_projection,
        ),
        indexes=diff_by_semantic_key(
            IndexSchema,
            [i for i in source.indexes if not i.is_constraint_index],
            [i for i in target.indexes if not i.is_constraint_index],
            index_key,
            _index_projection,
        ),
        foreign_keys=diff_by_semantic_key(
            ForeignKeySchema,
            source.foreign_keys,
            target.foreign_keys,
            foreign_key_key,
            _foreign_key_projection,
        ),
        triggers=diff_by_name(TriggerSchema, source.triggers, target.triggers, _trigger_projection),
    )


# ============================================================================
# Snapshot diff
# ============================================================================


def diff_snapshots(
    from_snapshot: SchemaSnapshot,
    to_snapshot: SchemaSnapshot,
    *,
    excluded_view_prefixes: Sequence[str] = DEFAULT_EXCLUDED_VIEW_PREFIXES,
    generated_at: datetime | None = None,
) -> DiffReport:
    """Compare two schema snapshots.

    Args:
        from_snapshot: The current state.
        to_snapshot: The desired state.
        excluded_view_prefixes: Views whose name starts with one of these
            prefixes (extension views) are ignored on both sides.
        generated_at: Timestamp to stamp on the report.  Defaults to now.

    Returns:
        ``DiffReport`` describing the changes from *from_snapshot* to
        *to_snapshot*.  ``has_changes`` is ``False`` iff every nested
        collection is empty.

    Examples:
        >>> empty = SchemaSnapshot()
        >>> diff_snapshots(empty, empty).has_changes
        False
    """
    enums = diff_by_name(EnumSchema, from_snapshot.enums, to_snapshot.enums, _enum_projection)
    views = diff_by_name(
        ViewSchema,
        _without_extension_views(from_snapshot.views, excluded_view_prefixes),
        _without_extension_views(to_snapshot.views, excluded_view_prefixes),
    )

    target_tables = {table.name: table for table in to_snapshot.tables}
    source_tables = {table.name: table for table in from_snapshot.tables}

    modified: list[TableModification] = []
    for table in from_snapshot.tables:
        other = target_tables.get(table.name)
        if other is None:
            continue
        modification = diff_tables(table, other)
        if modification.has_changes:
            modified.append(modification)

    tables = TableDiff(
        added=[t for t in to_snapshot.tables if t.name not in source_tables],
        removed=[t for t in from_snapshot.tables if t.name not in target_tables],
        modified=modified,
    )

    has_changes = not (enums.is_empty and views.is_empty and tables.is_empty)

    logger.debug(
        "Diff %s -> %s: enums +%d/-%d/~%d, views +%d/-%d/~%d, tables +%d/-%d/~%d",
        from_snapshot.schema_name,
        to_snapshot.schema_name,
        len(enums.added),
        len(enums.removed),
        len(enums.modified),
        len(views.added),
        len(views.removed),
        len(views.modified),
        len(tables.added),
        len(tables.removed),
        len(tables.modified),
    )

    stamp: dict[str, Any] = {} if generated_at is None else {"generated_at": generated_at}
    return DiffReport(
        has_changes=has_changes,
        schemas=SchemaNames(from_=from_snapshot.schema_name, to=to_snapshot.schema_name),
        enums=enums,
        views=views,
        tables=tables,
        **stamp,
    )
