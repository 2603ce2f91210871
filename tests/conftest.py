"""Shared snapshot builders for pg-schema-diff tests."""

from datetime import datetime, timezone

import pytest

from pg_schema_diff.schema.models import (
    ColumnSchema,
    ConstraintSchema,
    EnumSchema,
    ForeignKeySchema,
    IndexColumn,
    IndexSchema,
    SchemaSnapshot,
    TableSchema,
    TriggerSchema,
    ViewSchema,
)

FIXED_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def fixed_time() -> datetime:
    return FIXED_TIME


@pytest.fixture
def users_table() -> TableSchema:
    """``users`` as a database introspector reports it."""
    return TableSchema(
        name="users",
        description="Registered users",
        columns=[
            ColumnSchema(
                name="id",
                position=1,
                data_type="integer",
                is_nullable=False,
                default="nextval('users_id_seq'::regclass)",
                numeric_precision=32,
                numeric_scale=0,
                udt_name="int4",
            ),
            ColumnSchema(name="email", position=2, data_type="text", is_nullable=False, udt_name="text"),
            ColumnSchema(
                name="is_active",
                position=3,
                data_type="boolean",
                is_nullable=False,
                default="true",
                udt_name="bool",
            ),
            ColumnSchema(name="tags", position=4, data_type="ARRAY", udt_name="_text"),
        ],
        constraints=[
            ConstraintSchema(name="users_pkey", type="PRIMARY KEY", columns=["id"]),
            ConstraintSchema(
                name="users_email_check",
                type="CHECK",
                columns=["email"],
                check_predicate="(email ~~ '%@%'::text)",
            ),
        ],
        indexes=[
            IndexSchema(
                name="users_pkey",
                is_constraint_index=True,
                is_unique=True,
                columns=[IndexColumn(name="id")],
            ),
            IndexSchema(name="users_email_idx", columns=[IndexColumn(name="email")]),
        ],
    )


@pytest.fixture
def posts_table() -> TableSchema:
    """``posts`` referencing ``users``, with a trigger."""
    return TableSchema(
        name="posts",
        columns=[
            ColumnSchema(name="id", data_type="bigserial", is_nullable=False),
            ColumnSchema(name="user_id", data_type="integer", is_nullable=False),
            ColumnSchema(name="title", data_type="character varying", max_length=200),
        ],
        constraints=[ConstraintSchema(name="posts_pkey", type="PRIMARY KEY", columns=["id"])],
        indexes=[IndexSchema(name="posts_user_id_idx", columns=[IndexColumn(name="user_id")])],
        foreign_keys=[
            ForeignKeySchema(
                name="posts_user_id_fkey",
                columns=["user_id"],
                foreign_table="users",
                foreign_columns=["id"],
                on_delete="CASCADE",
            )
        ],
        triggers=[
            TriggerSchema(
                name="posts_touch",
                timing="BEFORE",
                event="UPDATE",
                function_name="touch_updated_at",
            )
        ],
    )


@pytest.fixture
def mood_enum() -> EnumSchema:
    return EnumSchema(name="mood", values=["happy", "sad"])


@pytest.fixture
def active_users_view() -> ViewSchema:
    return ViewSchema(
        name="active_users",
        definition=" SELECT users.id FROM users WHERE users.is_active;",
    )


@pytest.fixture
def make_snapshot():
    """Factory for snapshots with a fixed timestamp."""

    def _make(**kwargs) -> SchemaSnapshot:
        return SchemaSnapshot(generated_at=FIXED_TIME, **kwargs)

    return _make


@pytest.fixture
def full_snapshot(make_snapshot, users_table, posts_table, mood_enum, active_users_view) -> SchemaSnapshot:
    return make_snapshot(
        enums=[mood_enum],
        views=[active_users_view],
        tables=[users_table, posts_table],
    )
