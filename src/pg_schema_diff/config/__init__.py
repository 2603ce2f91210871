"""Configuration management: TOML loading and config models.

Usage:
    >>> from pg_schema_diff.config import load_diff_config, DiffConfig, IgnoreRules
"""

from pg_schema_diff.config.loader import find_config_file, load_diff_config
from pg_schema_diff.config.models import DiffConfig, IgnoreRules

__all__ = ["load_diff_config", "find_config_file", "DiffConfig", "IgnoreRules"]
