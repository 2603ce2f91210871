"""Tests for migration SQL generation and ordering."""

from pg_schema_diff.ddl.migration import (
    MigrationPlan,
    generate_migration,
    generate_migration_plan,
    generate_migration_sql,
    split_statements,
)
from pg_schema_diff.schema.comparator import diff_snapshots
from pg_schema_diff.schema.models import (
    ColumnSchema,
    EnumSchema,
    IndexColumn,
    IndexSchema,
    TableSchema,
    ViewSchema,
)


def _position(statements: list[str], prefix: str) -> int:
    """Index of the first statement starting with *prefix*."""
    for i, statement in enumerate(statements):
        if statement.startswith(prefix):
            return i
    raise AssertionError(f"No statement starts with {prefix!r}")


class TestEmpty:
    """No changes, no SQL."""

    def test_identical_snapshots(self, full_snapshot) -> None:
        assert generate_migration(full_snapshot, full_snapshot) == []

    def test_empty_plan(self) -> None:
        plan = MigrationPlan()
        assert plan.has_changes is False
        assert plan.statement_count == 0
        assert plan.to_sql() == ""


class TestViewsFirst:
    """Dependent views are dropped before anything else."""

    def test_removed_view_dropped_first(self, make_snapshot, users_table, active_users_view) -> None:
        """A removed view plus table changes puts DROP VIEW in the first batch."""
        columns = [*users_table.columns, ColumnSchema(name="age", data_type="integer")]
        changed = users_table.model_copy(update={"columns": columns})
        batches = generate_migration(
            make_snapshot(views=[active_users_view], tables=[users_table]),
            make_snapshot(tables=[changed]),
        )
        assert batches[0] == ['DROP VIEW IF EXISTS "active_users";']
        assert batches[1] == ['ALTER TABLE "users" ADD COLUMN "age" integer;']

    def test_modified_view_dropped_and_recreated(self, make_snapshot, active_users_view) -> None:
        changed = active_users_view.model_copy(update={"definition": "SELECT 1"})
        batches = generate_migration(
            make_snapshot(views=[active_users_view]), make_snapshot(views=[changed])
        )
        assert batches == [
            ['DROP VIEW IF EXISTS "active_users";'],
            ['CREATE OR REPLACE VIEW "active_users" AS\nSELECT 1;'],
        ]


class TestOrdering:
    """Global ordering protocol."""

    def test_full_ordering(self, make_snapshot, users_table, posts_table, mood_enum) -> None:
        old_enum = EnumSchema(name="legacy_status", values=["x"])
        audit = TableSchema(name="audit", columns=[ColumnSchema(name="id", data_type="integer")])
        v_old = ViewSchema(name="v_old", definition="SELECT 1")
        v_mod = ViewSchema(name="v_mod", definition="SELECT 1")
        v_new = ViewSchema(name="v_new", definition="SELECT 3")

        columns = [c for c in users_table.columns if c.name != "tags"]
        columns.append(ColumnSchema(name="age", data_type="integer"))
        users_changed = users_table.model_copy(update={"columns": columns})

        source = make_snapshot(
            enums=[old_enum],
            views=[v_old, v_mod],
            tables=[users_table, audit],
        )
        target = make_snapshot(
            enums=[mood_enum],
            views=[v_mod.model_copy(update={"definition": "SELECT 2"}), v_new],
            tables=[users_changed, posts_table],
        )
        statements = generate_migration_plan(diff_snapshots(source, target)).statements()

        expected_order = [
            'DROP VIEW IF EXISTS "v_old"',
            'DROP VIEW IF EXISTS "v_mod"',
            'CREATE TYPE "mood"',
            'CREATE TABLE "posts"',
            'CREATE INDEX "posts_user_id_idx"',
            'ALTER TABLE "posts" ADD CONSTRAINT "posts_user_id_fkey"',
            'CREATE TRIGGER "posts_touch"',
            'ALTER TABLE "users" DROP COLUMN IF EXISTS "tags"',
            'ALTER TABLE "users" ADD COLUMN "age"',
            'DROP TABLE IF EXISTS "audit"',
            'DROP TYPE IF EXISTS "legacy_status"',
            'CREATE OR REPLACE VIEW "v_mod"',
            'CREATE OR REPLACE VIEW "v_new"',
        ]
        positions = [_position(statements, prefix) for prefix in expected_order]
        assert positions == sorted(positions)

    def test_constraint_indexes_not_created_for_new_table(self, make_snapshot, users_table) -> None:
        statements = generate_migration_plan(
            diff_snapshots(make_snapshot(), make_snapshot(tables=[users_table]))
        ).statements()
        assert not any(s.startswith('CREATE UNIQUE INDEX "users_pkey"') for s in statements)
        assert any(s.startswith('CREATE INDEX "users_email_idx"') for s in statements)

    def test_modified_table_drops_before_columns(self, make_snapshot, users_table, posts_table) -> None:
        """Changed foreign keys are dropped before column changes and re-added after."""
        fk = posts_table.foreign_keys[0].model_copy(update={"on_delete": "RESTRICT"})
        columns = [*posts_table.columns, ColumnSchema(name="body", data_type="text")]
        changed = posts_table.model_copy(update={"foreign_keys": [fk], "columns": columns})

        statements = generate_migration_plan(
            diff_snapshots(
                make_snapshot(tables=[users_table, posts_table]),
                make_snapshot(tables=[users_table, changed]),
            )
        ).statements()

        drop_fk = _position(statements, 'ALTER TABLE "posts" DROP CONSTRAINT IF EXISTS "posts_user_id_fkey"')
        add_col = _position(statements, 'ALTER TABLE "posts" ADD COLUMN "body"')
        add_fk = _position(statements, 'ALTER TABLE "posts" ADD CONSTRAINT "posts_user_id_fkey"')
        assert drop_fk < add_col < add_fk
        assert "ON DELETE RESTRICT" in statements[add_fk]

    def test_renamed_index_modification(self, make_snapshot, users_table) -> None:
        """A structurally matched index is dropped under its old name and created under its new one."""
        partial = IndexSchema(
            name="users_email_index",
            columns=[IndexColumn(name="email")],
            predicate="email IS NOT NULL",
        )
        changed = users_table.model_copy(update={"indexes": [users_table.indexes[0], partial]})
        batches = generate_migration(make_snapshot(tables=[users_table]), make_snapshot(tables=[changed]))
        assert batches == [
            ['DROP INDEX IF EXISTS "users_email_idx";'],
            [
                'CREATE INDEX "users_email_index" ON "users" USING btree ("email" ASC NULLS LAST) '
                "WHERE email IS NOT NULL;"
            ],
        ]

    def test_enum_description_cleared(self, make_snapshot) -> None:
        described = EnumSchema(name="mood", description="Feelings", values=["a"])
        plain = EnumSchema(name="mood", values=["a"])
        batches = generate_migration(make_snapshot(enums=[described]), make_snapshot(enums=[plain]))
        assert batches == [['COMMENT ON TYPE "mood" IS NULL;']]

    def test_table_description_first(self, make_snapshot, users_table) -> None:
        columns = [*users_table.columns, ColumnSchema(name="age", data_type="integer")]
        changed = users_table.model_copy(update={"description": "Accounts", "columns": columns})
        batches = generate_migration(make_snapshot(tables=[users_table]), make_snapshot(tables=[changed]))
        assert batches[0] == ["COMMENT ON TABLE \"users\" IS 'Accounts';"]


class TestModifiedTables:
    """Every reported table change yields SQL, and advisory fields yield none."""

    def test_length_change_migrated(self, make_snapshot) -> None:
        old = TableSchema(
            name="t",
            columns=[ColumnSchema(name="c", data_type="character varying", max_length=100)],
        )
        new = TableSchema(
            name="t",
            columns=[ColumnSchema(name="c", data_type="character varying", max_length=200)],
        )
        batches = generate_migration(make_snapshot(tables=[old]), make_snapshot(tables=[new]))
        assert batches == [
            ['ALTER TABLE "t" ALTER COLUMN "c" TYPE character varying(200) USING "c"::character varying(200);']
        ]

    def test_trigger_definition_not_migrated(self, make_snapshot, posts_table) -> None:
        trigger = posts_table.triggers[0].model_copy(update={"definition": "CREATE TRIGGER posts_touch ..."})
        introspected = posts_table.model_copy(update={"triggers": [trigger]})
        assert generate_migration(make_snapshot(tables=[introspected]), make_snapshot(tables=[posts_table])) == []


class TestMigrationPlan:
    """Plan wrapper."""

    def test_plan_counts(self, make_snapshot, users_table) -> None:
        report = diff_snapshots(make_snapshot(), make_snapshot(tables=[users_table]))
        plan = generate_migration_plan(report)
        assert plan.has_changes is True
        assert plan.batches == generate_migration_sql(report)
        assert plan.statement_count == len(plan.statements())

    def test_to_sql_separates_batches(self) -> None:
        plan = MigrationPlan(batches=[["A;", "B;"], ["C;"]])
        assert plan.to_sql() == "A;\nB;\n\nC;"


class TestSplitStatements:
    """SQL text splitting."""

    def test_split(self) -> None:
        sql = 'DROP VIEW "a";\nDROP VIEW "b";'
        assert split_statements(sql) == ['DROP VIEW "a";', 'DROP VIEW "b";']

    def test_multiline_statement_kept_whole(self) -> None:
        sql = 'CREATE OR REPLACE VIEW "v" AS\nSELECT 1;\n\nDROP TABLE "t";\n'
        assert split_statements(sql) == ['CREATE OR REPLACE VIEW "v" AS\nSELECT 1;', 'DROP TABLE "t";']

    def test_roundtrip_plan_text(self, make_snapshot, users_table) -> None:
        plan = generate_migration_plan(diff_snapshots(make_snapshot(), make_snapshot(tables=[users_table])))
        assert split_statements(plan.to_sql()) == plan.statements()
