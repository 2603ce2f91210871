"""Configuration loading for pg-schema-diff.

A config file is optional.  When present it looks like::

    [ignore]
    views = ["legacy_report"]
    tables = ["schema_migrations"]
    indexes = []
    constraints = []

    [diff]
    excluded_view_prefixes = ["pg_stat_statements", "pg_buffercache"]
"""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from pg_schema_diff.config.models import DiffConfig, IgnoreRules

DEFAULT_CONFIG_FILE = "schema-diff.toml"


def find_config_file(directory: Path | None = None) -> Path | None:
    """Return ``schema-diff.toml`` in *directory* (default: cwd) if it exists."""
    candidate = (directory or Path.cwd()) / DEFAULT_CONFIG_FILE
    return candidate if candidate.is_file() else None


def load_diff_config(config_path: Path | str) -> DiffConfig:
    """Load diff configuration from a TOML file.

    Args:
        config_path: Path to schema-diff.toml

    Returns:
        DiffConfig with ignore rules and diff settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Diff config not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    diff_settings = data.get("diff", {})

    try:
        ignore = IgnoreRules.model_validate(data.get("ignore", {}))
        if "excluded_view_prefixes" in diff_settings:
            return DiffConfig(
                ignore=ignore,
                excluded_view_prefixes=diff_settings["excluded_view_prefixes"],
            )
        return DiffConfig(ignore=ignore)
    except ValidationError as e:
        raise ValueError(f"Invalid config in {config_path}: {e}") from e
