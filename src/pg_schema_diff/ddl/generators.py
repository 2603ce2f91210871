"""DDL statement builders.

Each builder renders one change to one database object and returns the
statements as a list (a *batch*): the DDL statement itself plus any
``COMMENT ON`` statements that belong with it.  Builders never look at
other objects and never decide ordering -- see ``ddl.migration`` and
``ddl.create`` for that.

Conventions:
- Identifiers are double-quoted, embedded quotes doubled.
- String literals are single-quoted, embedded quotes doubled.
- Every statement ends with ``;``.

Usage:
    from pg_schema_diff.ddl.generators import create_table, drop_table

    create_table(table)
    # ['CREATE TABLE "users" (\\n  "id" serial NOT NULL,\\n ...\\n);', ...]
    drop_table("users")
    # ['DROP TABLE IF EXISTS "users" CASCADE;']
"""

from pg_schema_diff.schema.models import (
    ColumnSchema,
    ConstraintSchema,
    EnumSchema,
    ForeignKeySchema,
    IndexColumn,
    IndexSchema,
    TableSchema,
    TriggerSchema,
    ViewSchema,
)
from pg_schema_diff.schema.normalizer import (
    SERIAL_SENTINEL,
    SERIAL_TYPES,
    is_serial_column,
    normalize_data_type,
    normalize_default,
    normalize_generation_expression,
)

# Internal array element names -> SQL type names
ARRAY_BASE_TYPES: dict[str, str] = {
    "int2": "smallint",
    "int4": "integer",
    "int8": "bigint",
    "float4": "real",
    "float8": "double precision",
    "bool": "boolean",
    "bpchar": "character",
    "varchar": "character varying",
}

SERIAL_BY_STORAGE_TYPE: dict[str, str] = {
    storage: serial for serial, storage in SERIAL_TYPES.items()
}

NUMERIC_TYPES = frozenset({"numeric", "decimal"})
CHARACTER_TYPES = frozenset({"character varying", "varchar", "character", "char", "bpchar"})


# ------------------------------------------------------------------
# Quoting and comments
# ------------------------------------------------------------------


def quote(identifier: str) -> str:
    """Quote an identifier: ``my"col`` -> ``"my""col"``."""
    return '"' + identifier.replace('"', '""') + '"'


def quote_literal(literal: str) -> str:
    """Quote a string literal: ``it's`` -> ``'it''s'``."""
    return "'" + literal.replace("'", "''") + "'"


def comment_on(kind: str, object_name: str, description: str | None) -> list[str]:
    """Set or clear a comment.  ``None`` renders ``IS NULL``."""
    value = quote_literal(description) if description is not None else "NULL"
    return [f"COMMENT ON {kind} {object_name} IS {value};"]


def generate_comment(kind: str, object_name: str, description: str | None) -> list[str]:
    """``COMMENT ON`` for a newly created object; nothing if it has no description."""
    if description is None:
        return []
    return comment_on(kind, object_name, description)


# ------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------


def create_enum(enum: EnumSchema) -> list[str]:
    values = ", ".join(quote_literal(v) for v in enum.values)
    return [
        f"CREATE TYPE {quote(enum.name)} AS ENUM ({values});",
        *generate_comment("TYPE", quote(enum.name), enum.description),
    ]


def update_enum(old: EnumSchema, new: EnumSchema) -> list[str]:
    """Comment update for a matched enum.  Value-set changes are not applied."""
    if old.description == new.description:
        return []
    return comment_on("TYPE", quote(new.name), new.description)


def drop_enum(name: str) -> list[str]:
    return [f"DROP TYPE IF EXISTS {quote(name)};"]


# ------------------------------------------------------------------
# Views
# ------------------------------------------------------------------


def create_view(view: ViewSchema) -> list[str]:
    """``CREATE OR REPLACE VIEW``; also used to recreate a modified view."""
    definition = view.definition.strip().rstrip(";").rstrip()
    return [
        f"CREATE OR REPLACE VIEW {quote(view.name)} AS\n{definition};",
        *generate_comment("VIEW", quote(view.name), view.description),
    ]


def drop_view(name: str) -> list[str]:
    return [f"DROP VIEW IF EXISTS {quote(name)};"]


# ------------------------------------------------------------------
# Column types
# ------------------------------------------------------------------


def resolve_array_base_type(udt_name: str) -> str:
    """``_int4`` -> ``integer``, ``_text`` -> ``text``."""
    base = udt_name[1:] if udt_name.startswith("_") else udt_name
    return ARRAY_BASE_TYPES.get(base, base)


def resolve_column_type(column: ColumnSchema) -> str:
    """Render a column's type as it would appear in DDL.

    Serial pseudo-types resolve to their storage type here; use
    ``format_column_definition`` to render them as serial in CREATE/ADD.

    Examples:
        >>> resolve_column_type(ColumnSchema(name="n", data_type="numeric",
        ...                                  numeric_precision=10, numeric_scale=2))
        'numeric(10, 2)'
        >>> resolve_column_type(ColumnSchema(name="tags", data_type="ARRAY", udt_name="_int4"))
        'integer[]'
    """
    data_type = column.data_type
    lowered = data_type.lower()

    if data_type == "USER-DEFINED" and column.udt_name:
        return quote(column.udt_name)

    if data_type == "ARRAY" and column.udt_name:
        return f"{resolve_array_base_type(column.udt_name)}[]"

    if lowered in SERIAL_TYPES:
        return SERIAL_TYPES[lowered]

    if lowered in NUMERIC_TYPES and column.numeric_precision is not None:
        if column.numeric_scale is not None:
            return f"{data_type}({column.numeric_precision}, {column.numeric_scale})"
        return f"{data_type}({column.numeric_precision})"

    if lowered in CHARACTER_TYPES and column.max_length is not None:
        return f"{data_type}({column.max_length})"

    return data_type


def serial_type(column: ColumnSchema) -> str | None:
    """The serial pseudo-type to render for *column*, or ``None``.

    A column is rendered as serial when its type already is one, or when
    it is an integer type whose default draws from a sequence.
    """
    lowered = column.data_type.lower()
    if lowered in SERIAL_TYPES:
        return lowered
    if column.default is not None and is_serial_column(None, column.default):
        return SERIAL_BY_STORAGE_TYPE.get(lowered)
    return None


def format_column_definition(column: ColumnSchema) -> str:
    """Render ``"name" type [NOT NULL] [DEFAULT ...] [GENERATED ...]``."""
    serial = serial_type(column)
    parts = [quote(column.name), serial or resolve_column_type(column)]

    if not column.is_nullable:
        parts.append("NOT NULL")
    if column.default is not None and serial is None:
        parts.append(f"DEFAULT {column.default}")
    if column.is_identity:
        parts.append(f"GENERATED {column.identity_generation or 'BY DEFAULT'} AS IDENTITY")
    if column.is_generated and column.generation_expression:
        parts.append(f"GENERATED ALWAYS AS ({column.generation_expression}) STORED")

    return " ".join(parts)


# ------------------------------------------------------------------
# Tables
# ------------------------------------------------------------------


def create_table(table: TableSchema) -> list[str]:
    """``CREATE TABLE`` with inline columns and PK/UNIQUE/CHECK constraints.

    Indexes, foreign keys and triggers are not included; they are emitted
    separately once every table exists.
    """
    constraints = [c for c in table.constraints if has_constraint_body(c)]
    body = [f"  {format_column_definition(c)}" for c in table.columns]
    body.extend(f"  {format_constraint_definition(c)}" for c in constraints)

    statements = [f"CREATE TABLE {quote(table.name)} (\n" + ",\n".join(body) + "\n);"]
    statements.extend(generate_comment("TABLE", quote(table.name), table.description))
    for column in table.columns:
        statements.extend(
            generate_comment("COLUMN", f"{quote(table.name)}.{quote(column.name)}", column.description)
        )
    for constraint in constraints:
        statements.extend(
            generate_comment(
                "CONSTRAINT", f"{quote(constraint.name)} ON {quote(table.name)}", constraint.description
            )
        )
    return statements


def update_table_description(table_name: str, description: str | None) -> list[str]:
    return comment_on("TABLE", quote(table_name), description)


def drop_table(name: str) -> list[str]:
    return [f"DROP TABLE IF EXISTS {quote(name)} CASCADE;"]


# ------------------------------------------------------------------
# Columns
# ------------------------------------------------------------------


def add_column(table_name: str, column: ColumnSchema) -> list[str]:
    return [
        f"ALTER TABLE {quote(table_name)} ADD COLUMN {format_column_definition(column)};",
        *generate_comment("COLUMN", f"{quote(table_name)}.{quote(column.name)}", column.description),
    ]


def drop_column(table_name: str, column_name: str) -> list[str]:
    return [f"ALTER TABLE {quote(table_name)} DROP COLUMN IF EXISTS {quote(column_name)};"]


def alter_column(table_name: str, old: ColumnSchema, new: ColumnSchema) -> list[str]:
    """Statements to turn column *old* into *new*.

    Type, default, nullability, identity and comment each get their own
    statement, and only when that field changed after normalization.  A
    changed generation flag or expression cannot be altered in place, so
    the column is dropped and re-added instead.

    Example:
        >>> old = ColumnSchema(name="age", data_type="integer")
        >>> new = ColumnSchema(name="age", data_type="integer", is_nullable=False)
        >>> alter_column("users", old, new)
        ['ALTER TABLE "users" ALTER COLUMN "age" SET NOT NULL;']
    """
    if old.is_generated != new.is_generated or normalize_generation_expression(
        old.generation_expression
    ) != normalize_generation_expression(new.generation_expression):
        return [*drop_column(table_name, old.name), *add_column(table_name, new)]

    prefix = f"ALTER TABLE {quote(table_name)} ALTER COLUMN {quote(new.name)}"
    statements: list[str] = []

    if (
        normalize_data_type(old.data_type, old.udt_name) != normalize_data_type(new.data_type, new.udt_name)
        or old.max_length != new.max_length
    ):
        new_type = resolve_column_type(new)
        statements.append(f"{prefix} TYPE {new_type} USING {quote(new.name)}::{new_type};")

    new_default = normalize_default(new.default, new.data_type)
    if normalize_default(old.default, old.data_type) != new_default:
        if new.default is not None:
            statements.append(f"{prefix} SET DEFAULT {new.default};")
        elif new_default != SERIAL_SENTINEL:
            # A serial type without an explicit default keeps its sequence
            statements.append(f"{prefix} DROP DEFAULT;")

    if old.is_nullable != new.is_nullable:
        statements.append(f"{prefix} {'DROP NOT NULL' if new.is_nullable else 'SET NOT NULL'};")

    if old.is_identity != new.is_identity or (
        new.is_identity and old.identity_generation != new.identity_generation
    ):
        if old.is_identity:
            statements.append(f"{prefix} DROP IDENTITY IF EXISTS;")
        if new.is_identity:
            statements.append(
                f"{prefix} ADD GENERATED {new.identity_generation or 'BY DEFAULT'} AS IDENTITY;"
            )

    if old.description != new.description:
        statements.extend(
            comment_on("COLUMN", f"{quote(table_name)}.{quote(new.name)}", new.description)
        )

    return statements


# ------------------------------------------------------------------
# Constraints (PRIMARY KEY, UNIQUE, CHECK)
# ------------------------------------------------------------------


def has_constraint_body(constraint: ConstraintSchema) -> bool:
    """False for a CHECK without predicate or a PK/UNIQUE without columns."""
    if constraint.type == "CHECK":
        return bool(constraint.check_predicate)
    return bool(constraint.columns)


def format_constraint_definition(constraint: ConstraintSchema) -> str:
    definition = f"CONSTRAINT {quote(constraint.name)}"
    if constraint.type == "CHECK":
        return f"{definition} CHECK ({constraint.check_predicate})"

    definition += f" {constraint.type}"
    if constraint.type == "UNIQUE" and constraint.nulls_not_distinct:
        definition += " NULLS NOT DISTINCT"
    if constraint.columns:
        definition += f" ({', '.join(quote(c) for c in constraint.columns)})"
    return definition


def add_constraint(table_name: str, constraint: ConstraintSchema) -> list[str]:
    if not has_constraint_body(constraint):
        return []
    return [
        f"ALTER TABLE {quote(table_name)} ADD {format_constraint_definition(constraint)};",
        *generate_comment(
            "CONSTRAINT", f"{quote(constraint.name)} ON {quote(table_name)}", constraint.description
        ),
    ]


def drop_constraint(table_name: str, constraint_name: str) -> list[str]:
    return [f"ALTER TABLE {quote(table_name)} DROP CONSTRAINT IF EXISTS {quote(constraint_name)};"]


# ------------------------------------------------------------------
# Foreign keys
# ------------------------------------------------------------------


def add_foreign_key(table_name: str, foreign_key: ForeignKeySchema) -> list[str]:
    columns = ", ".join(quote(c) for c in foreign_key.columns)
    foreign_columns = ", ".join(quote(c) for c in foreign_key.foreign_columns)

    sql = (
        f"ALTER TABLE {quote(table_name)} ADD CONSTRAINT {quote(foreign_key.name)} "
        f"FOREIGN KEY ({columns}) REFERENCES {quote(foreign_key.foreign_table)} ({foreign_columns})"
    )
    if foreign_key.match_option != "NONE":
        sql += f" MATCH {foreign_key.match_option}"
    sql += f" ON UPDATE {foreign_key.on_update} ON DELETE {foreign_key.on_delete};"

    return [
        sql,
        *generate_comment(
            "CONSTRAINT", f"{quote(foreign_key.name)} ON {quote(table_name)}", foreign_key.description
        ),
    ]


drop_foreign_key = drop_constraint


# ------------------------------------------------------------------
# Indexes
# ------------------------------------------------------------------


def format_index_column(column: IndexColumn) -> str:
    return f"{quote(column.name)} {column.sort_order} {column.nulls_order}"


def create_index(table_name: str, index: IndexSchema) -> list[str]:
    """``CREATE INDEX``.

    Expression indexes carry no columns; their recorded definition is used
    verbatim.
    """
    if not index.columns and index.definition:
        sql = index.definition.strip().rstrip(";") + ";"
    else:
        unique = "UNIQUE " if index.is_unique else ""
        columns = ", ".join(format_index_column(c) for c in index.columns)
        sql = f"CREATE {unique}INDEX {quote(index.name)} ON {quote(table_name)} USING {index.index_type} ({columns})"
        if index.nulls_not_distinct:
            sql += " NULLS NOT DISTINCT"
        if index.predicate:
            sql += f" WHERE {index.predicate}"
        sql += ";"

    return [sql, *generate_comment("INDEX", quote(index.name), index.description)]


def drop_index(name: str) -> list[str]:
    return [f"DROP INDEX IF EXISTS {quote(name)};"]


# ------------------------------------------------------------------
# Triggers
# ------------------------------------------------------------------


def create_trigger(table_name: str, trigger: TriggerSchema) -> list[str]:
    function = f"{quote(trigger.function_schema)}.{quote(trigger.function_name)}()"
    return [
        f"CREATE TRIGGER {quote(trigger.name)} {trigger.timing} {trigger.event} "
        f"ON {quote(table_name)} FOR EACH {trigger.level} EXECUTE FUNCTION {function};",
        *generate_comment(
            "TRIGGER", f"{quote(trigger.name)} ON {quote(table_name)}", trigger.description
        ),
    ]


def drop_trigger(table_name: str, trigger_name: str) -> list[str]:
    return [f"DROP TRIGGER IF EXISTS {quote(trigger_name)} ON {quote(table_name)};"]
