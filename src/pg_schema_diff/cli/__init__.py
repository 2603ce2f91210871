"""CLI module for schema diffing and DDL generation.

Provides commands to compare two schema snapshots, generate the migration
SQL between them, and generate the full DDL for one snapshot.

Usage:
    pg-schema-diff diff current.json desired.json
    pg-schema-diff diff current.json desired.json --format json
    pg-schema-diff diff current.json desired.json --check
    pg-schema-diff migrate current.json desired.json --output migration.sql
    pg-schema-diff create desired.json
    pg-schema-diff --config schema-diff.toml --verbose diff a.json b.json

Commands:
    diff     - Show the differences between two snapshots
    migrate  - Generate migration SQL from one snapshot to another
    create   - Generate SQL that creates a snapshot from scratch
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pg_schema_diff.config.loader import find_config_file, load_diff_config
from pg_schema_diff.config.models import DiffConfig
from pg_schema_diff.ddl.create import generate_create_sql
from pg_schema_diff.ddl.migration import MigrationPlan, generate_migration_plan
from pg_schema_diff.schema.comparator import diff_snapshots
from pg_schema_diff.schema.models import DiffReport, SchemaSnapshot
from pg_schema_diff.schema.snapshot import SnapshotLoadError, filter_snapshot, load_snapshot

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _load_config(args: argparse.Namespace) -> DiffConfig:
    """Load the config named by ``--config``, or ./schema-diff.toml if present.

    Raises:
        FileNotFoundError: If an explicit ``--config`` path doesn't exist
        ValueError: If the config format is invalid
    """
    if args.config:
        return load_diff_config(args.config)
    default_path = find_config_file()
    if default_path is None:
        return DiffConfig()
    return load_diff_config(default_path)


def _load_filtered(path: str, config: DiffConfig) -> SchemaSnapshot:
    return filter_snapshot(load_snapshot(path), config.ignore)


def _diff(args: argparse.Namespace) -> DiffReport:
    config = _load_config(args)
    return diff_snapshots(
        _load_filtered(args.source, config),
        _load_filtered(args.target, config),
        excluded_view_prefixes=tuple(config.excluded_view_prefixes),
    )


def _print_summary(report: DiffReport) -> None:
    table = Table(title="Schema Changes", show_header=True, header_style="bold")
    table.add_column("Object", style="dim")
    table.add_column("Added", justify="right")
    table.add_column("Removed", justify="right")
    table.add_column("Modified", justify="right")

    for label, diff in (("Enums", report.enums), ("Views", report.views), ("Tables", report.tables)):
        table.add_row(
            label,
            f"[green]{len(diff.added)}[/green]" if diff.added else "0",
            f"[red]{len(diff.removed)}[/red]" if diff.removed else "0",
            f"[yellow]{len(diff.modified)}[/yellow]" if diff.modified else "0",
        )

    console.print(table)


def _emit_sql(batches: list[list[str]], output: str | None) -> None:
    plan = MigrationPlan(batches=batches)
    sql = plan.to_sql()
    if output:
        Path(output).write_text(sql + "\n" if sql else "", encoding="utf-8")
        console.print(
            f"[green]Wrote {plan.statement_count} statements "
            f"in {len(plan.batches)} batches to {output}[/green]"
        )
    else:
        console.print(sql, markup=False, highlight=False, emoji=False, soft_wrap=True)


# ============================================================================
# Commands
# ============================================================================


def cmd_diff(args: argparse.Namespace) -> int:
    """Show the differences between two snapshots.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on error, or 1 when ``--check`` is set and the
        snapshots differ.
    """
    try:
        report = _diff(args)
    except (FileNotFoundError, ValueError, SnapshotLoadError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    if args.format == "json":
        console.print(
            report.model_dump_json(by_alias=True, indent=2),
            markup=False,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )
    elif not report.has_changes:
        console.print("[bold green]v[/bold green] No schema changes")
    else:
        _print_summary(report)
        console.print()
        console.print(
            report.format_report(from_label=args.source, to_label=args.target),
            markup=False,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )

    if args.check and report.has_changes:
        return 1
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    """Generate migration SQL from one snapshot to another.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on error.
    """
    try:
        report = _diff(args)
    except (FileNotFoundError, ValueError, SnapshotLoadError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    plan = generate_migration_plan(report)
    if not plan.has_changes:
        console.print("[bold green]v[/bold green] No schema changes")
        return 0

    _emit_sql(plan.batches, args.output)
    return 0


def cmd_create(args: argparse.Namespace) -> int:
    """Generate SQL that creates a snapshot in an empty schema.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on error.
    """
    try:
        config = _load_config(args)
        snapshot = _load_filtered(args.snapshot, config)
    except (FileNotFoundError, ValueError, SnapshotLoadError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    _emit_sql(generate_create_sql(snapshot), args.output)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="pg-schema-diff",
        description="PostgreSQL schema diff and DDL generation",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to schema-diff.toml (default: ./schema-diff.toml if present)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # diff command
    p_diff = subparsers.add_parser(
        "diff",
        help="Show the differences between two snapshots",
    )
    p_diff.add_argument("source", help="Snapshot JSON of the current schema")
    p_diff.add_argument("target", help="Snapshot JSON of the desired schema")
    p_diff.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    p_diff.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 if the snapshots differ",
    )
    p_diff.set_defaults(func=cmd_diff)

    # migrate command
    p_migrate = subparsers.add_parser(
        "migrate",
        help="Generate migration SQL from one snapshot to another",
    )
    p_migrate.add_argument("source", help="Snapshot JSON of the current schema")
    p_migrate.add_argument("target", help="Snapshot JSON of the desired schema")
    p_migrate.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write SQL to this file instead of stdout",
    )
    p_migrate.set_defaults(func=cmd_migrate)

    # create command
    p_create = subparsers.add_parser(
        "create",
        help="Generate SQL that creates a snapshot from scratch",
    )
    p_create.add_argument("snapshot", help="Snapshot JSON of the schema to create")
    p_create.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write SQL to this file instead of stdout",
    )
    p_create.set_defaults(func=cmd_create)

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
