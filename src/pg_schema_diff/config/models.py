"""Pydantic models for diff configuration."""

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Configuration Models
# ============================================================================


class IgnoreRules(BaseModel):
    """Objects to leave out of both snapshots before comparing.

    Indexes and constraints are matched by name in every table.
    """

    model_config = ConfigDict(extra="forbid")

    views: list[str] = Field(default_factory=list)
    tables: list[str] = Field(default_factory=list)
    indexes: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True if no rule is set."""
        return not (self.views or self.tables or self.indexes or self.constraints)


class DiffConfig(BaseModel):
    """Complete diff configuration from schema-diff.toml."""

    model_config = ConfigDict(extra="forbid")

    ignore: IgnoreRules = Field(default_factory=IgnoreRules)
    excluded_view_prefixes: list[str] = Field(default_factory=lambda: ["pg_stat_statements"])
