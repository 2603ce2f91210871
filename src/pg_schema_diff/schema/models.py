"""Pydantic models for schema snapshots and diff reports.

This module contains schema-domain models:
- Snapshot models: ColumnSchema, ConstraintSchema, IndexColumn, IndexSchema,
  ForeignKeySchema, TriggerSchema, EnumSchema, ViewSchema, TableSchema,
  SchemaSnapshot
- Diff report models: Difference, EntityDiff, TableModification, TableDiff,
  SchemaNames, DiffReport

All snapshot models are frozen.  Field names follow the snapshot JSON format
so a snapshot file validates straight into ``SchemaSnapshot``.

Configuration models (DiffConfig, IgnoreRules) live in
pg_schema_diff.config.models.
"""

from datetime import datetime, timezone
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator


ConstraintType = Literal["PRIMARY KEY", "UNIQUE", "CHECK"]
ReferentialAction = Literal["CASCADE", "RESTRICT", "NO ACTION", "SET NULL", "SET DEFAULT"]
MatchOption = Literal["SIMPLE", "FULL", "PARTIAL", "NONE"]
IdentityGeneration = Literal["BY DEFAULT", "ALWAYS"]
SortOrder = Literal["ASC", "DESC"]
NullsOrder = Literal["NULLS FIRST", "NULLS LAST"]
TriggerTiming = Literal["BEFORE", "AFTER", "INSTEAD OF"]
TriggerLevel = Literal["ROW", "STATEMENT"]


def _check_unique(kind: str, names: list[str]) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise ValueError(f"Duplicate {kind} name: {name!r}")
        seen.add(name)


class _Entity(BaseModel):
    model_config = ConfigDict(frozen=True)


# ============================================================================
# Snapshot Models
# ============================================================================


class ColumnSchema(_Entity):
    """Schema for a table column.

    Example:
        >>> col = ColumnSchema(name="id", data_type="integer")
        >>> col.is_nullable
        True
    """

    name: str
    description: str | None = None
    position: int | None = None  # Advisory only
    data_type: str
    is_nullable: bool = True
    default: str | None = None
    is_generated: bool = False
    generation_expression: str | None = None
    is_identity: bool = False
    identity_generation: IdentityGeneration | None = None
    max_length: int | None = None
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    udt_name: str | None = None


class ConstraintSchema(_Entity):
    """Schema for a PRIMARY KEY, UNIQUE or CHECK constraint."""

    name: str
    description: str | None = None
    type: ConstraintType
    columns: list[str] = Field(default_factory=list)  # Empty for CHECK
    check_predicate: str | None = None
    nulls_not_distinct: bool = False
    definition: str | None = None  # Advisory only


class IndexColumn(_Entity):
    """A single column within an index."""

    name: str
    sort_order: SortOrder = "ASC"
    nulls_order: NullsOrder = "NULLS LAST"


class IndexSchema(_Entity):
    """Schema for a table index.

    ``is_constraint_index`` marks indexes created implicitly by a PRIMARY KEY
    or UNIQUE constraint.
    """

    name: str
    description: str | None = None
    definition: str | None = None  # Advisory only
    is_constraint_index: bool = False
    is_unique: bool = False
    nulls_not_distinct: bool = False
    is_valid: bool = True
    index_type: str = "btree"
    columns: list[IndexColumn] = Field(default_factory=list)  # Empty for expression indexes
    predicate: str | None = None


class ForeignKeySchema(_Entity):
    """Schema for a foreign key constraint."""

    name: str
    description: str | None = None
    columns: list[str]
    foreign_table: str
    foreign_columns: list[str]
    on_update: ReferentialAction = "NO ACTION"
    on_delete: ReferentialAction = "NO ACTION"
    match_option: MatchOption = "SIMPLE"


class TriggerSchema(_Entity):
    """Schema for a table trigger."""

    name: str
    description: str | None = None
    timing: TriggerTiming = "AFTER"
    event: str  # INSERT, UPDATE, DELETE, INSERT OR UPDATE, ...
    level: TriggerLevel = "ROW"
    function_schema: str = "public"
    function_name: str
    definition: str | None = None  # Advisory only


class EnumSchema(_Entity):
    """Schema for an enumerated type.  ``values`` is in sort order."""

    name: str
    description: str | None = None
    values: list[str] = Field(default_factory=list)


class ViewSchema(_Entity):
    """Schema for a view."""

    name: str
    description: str | None = None
    definition: str


class TableSchema(_Entity):
    """Schema for a table and everything attached to it."""

    name: str
    description: str | None = None
    columns: list[ColumnSchema] = Field(default_factory=list)
    constraints: list[ConstraintSchema] = Field(default_factory=list)
    indexes: list[IndexSchema] = Field(default_factory=list)
    foreign_keys: list[ForeignKeySchema] = Field(default_factory=list)
    triggers: list[TriggerSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> "TableSchema":
        _check_unique(f"column in table {self.name!r}", [c.name for c in self.columns])
        _check_unique(f"constraint in table {self.name!r}", [c.name for c in self.constraints])
        _check_unique(f"index in table {self.name!r}", [i.name for i in self.indexes])
        _check_unique(f"foreign key in table {self.name!r}", [f.name for f in self.foreign_keys])
        _check_unique(f"trigger in table {self.name!r}", [t.name for t in self.triggers])
        return self


class SchemaSnapshot(_Entity):
    """Complete structural snapshot of one database schema.

    Example:
        >>> snapshot = SchemaSnapshot(schema="public")
        >>> snapshot.schema_name
        'public'
        >>> snapshot.tables
        []
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_name: str = Field(default="public", alias="schema")
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    enums: list[EnumSchema] = Field(default_factory=list)
    views: list[ViewSchema] = Field(default_factory=list)
    tables: list[TableSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> "SchemaSnapshot":
        _check_unique("enum", [e.name for e in self.enums])
        _check_unique("view", [v.name for v in self.views])
        _check_unique("table", [t.name for t in self.tables])
        return self


# ============================================================================
# Diff Report Models
# ============================================================================


T = TypeVar("T")


class Difference(BaseModel, Generic[T]):
    """A modification, capturing the state before and after."""

    model_config = ConfigDict(populate_by_name=True)

    from_: T = Field(alias="from")
    to: T


class EntityDiff(BaseModel, Generic[T]):
    """Added, removed and modified entities of one kind."""

    added: list[T] = Field(default_factory=list)
    removed: list[T] = Field(default_factory=list)
    modified: list[Difference[T]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True if nothing was added, removed or modified."""
        return not (self.added or self.removed or self.modified)


class TableModification(BaseModel):
    """Changes detected within a single table present in both snapshots."""

    name: str
    description: Difference[str | None] | None = None
    columns: EntityDiff[ColumnSchema] = Field(default_factory=EntityDiff[ColumnSchema])
    constraints: EntityDiff[ConstraintSchema] = Field(default_factory=EntityDiff[ConstraintSchema])
    indexes: EntityDiff[IndexSchema] = Field(default_factory=EntityDiff[IndexSchema])
    foreign_keys: EntityDiff[ForeignKeySchema] = Field(default_factory=EntityDiff[ForeignKeySchema])
    triggers: EntityDiff[TriggerSchema] = Field(default_factory=EntityDiff[TriggerSchema])

    @property
    def has_changes(self) -> bool:
        """True if the description or any nested collection changed."""
        if self.description is not None:
            return True
        return not all(
            diff.is_empty
            for diff in (
                self.columns,
                self.constraints,
                self.indexes,
                self.foreign_keys,
                self.triggers,
            )
        )


class TableDiff(BaseModel):
    """Added, removed and modified tables."""

    added: list[TableSchema] = Field(default_factory=list)
    removed: list[TableSchema] = Field(default_factory=list)
    modified: list[TableModification] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)


class SchemaNames(BaseModel):
    """Names of the two compared schemas."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str


class DiffReport(BaseModel):
    """Structured difference between two schema snapshots.

    Example:
        >>> report = DiffReport(schemas=SchemaNames(from_="public", to="public"))
        >>> report.has_changes
        False
        >>> report.format_report()
        'No schema changes'
    """

    has_changes: bool = False
    schemas: SchemaNames
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    enums: EntityDiff[EnumSchema] = Field(default_factory=EntityDiff[EnumSchema])
    views: EntityDiff[ViewSchema] = Field(default_factory=EntityDiff[ViewSchema])
    tables: TableDiff = Field(default_factory=TableDiff)

    def format_report(self, from_label: str = "Current", to_label: str = "New") -> str:
        """Format the report as a human-readable change list."""
        if not self.has_changes:
            return "No schema changes"

        lines = [f"Schema difference report: {from_label} -> {to_label}"]

        if not self.enums.is_empty:
            lines.append("\n  Enums:")
            for enum in self.enums.removed:
                lines.append(f"    - Removed enum: {enum.name}")
            for enum in self.enums.added:
                lines.append(f"    - Added enum: {enum.name}")
            for diff in self.enums.modified:
                lines.append(f"    - Modified enum: {diff.from_.name}")

        if not self.views.is_empty:
            lines.append("\n  Views:")
            for view in self.views.removed:
                lines.append(f"    - Removed view: {view.name}")
            for view in self.views.added:
                lines.append(f"    - Added view: {view.name}")
            for diff in self.views.modified:
                lines.append(f"    - Modified view: {diff.from_.name}")
                if diff.from_.definition != diff.to.definition:
                    lines.append(
                        f"      Definition changed: {diff.from_.definition!r} -> {diff.to.definition!r}"
                    )

        if not self.tables.is_empty:
            lines.append("\n  Tables:")
            for table in self.tables.removed:
                lines.append(f"    - Removed table: {table.name}")
            for table in self.tables.added:
                lines.append(f"    - Added table: {table.name}")
            for mod in self.tables.modified:
                lines.append(f"    - Modified table: {mod.name}")
                if mod.description is not None:
                    lines.append("      Description changed")
                sections = (
                    ("column", mod.columns),
                    ("constraint", mod.constraints),
                    ("index", mod.indexes),
                    ("foreign key", mod.foreign_keys),
                    ("trigger", mod.triggers),
                )
                for label, diff in sections:
                    for item in diff.removed:
                        lines.append(f"      - Removed {label}: {item.name}")
                    for item in diff.added:
                        lines.append(f"      - Added {label}: {item.name}")
                    for change in diff.modified:
                        if change.from_.name == change.to.name:
                            lines.append(f"      - Modified {label}: {change.to.name}")
                        else:
                            lines.append(
                                f"      - Modified {label}: {change.from_.name} -> {change.to.name}"
                            )

        return "\n".join(lines)
