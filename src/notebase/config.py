"""Configuration for the query engine.

Values are read from the environment with the ``NOTEBASE_`` prefix, e.g.
``NOTEBASE_LOG_LEVEL=DEBUG`` or ``NOTEBASE_DATE_COERCION=false``.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Property names that are always treated as dates, independent of substring matching
DEFAULT_DATE_PROPERTY_NAMES = ["due", "start", "end", "created", "modified"]
DEFAULT_DATE_PROPERTY_SUBSTRINGS = ["date", "Date"]


class NotebaseConfig(BaseSettings):
    """Runtime settings for context building, caching and logging."""

    log_level: str = Field(default="INFO", description="Log level for the stderr sink")

    date_coercion: bool = Field(
        default=True,
        description="Pre-parse date-like frontmatter properties into date values",
    )
    date_property_names: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DATE_PROPERTY_NAMES),
        description="Exact property names coerced to dates",
    )
    date_property_substrings: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DATE_PROPERTY_SUBSTRINGS),
        description="Case-sensitive substrings that mark a property name as date-like",
    )

    content_extensions: list[str] = Field(
        default_factory=lambda: ["md"],
        description="File extensions recognized as queryable documents",
    )

    formula_cache_scope: Literal["query", "persistent"] = Field(
        default="query",
        description="'query' starts every run with an empty formula cache; "
        "'persistent' keeps it until explicitly invalidated",
    )

    yield_every: int = Field(
        default=50,
        ge=1,
        description="Number of documents processed between cooperative yields",
    )

    model_config = SettingsConfigDict(
        env_prefix="NOTEBASE_",
        extra="ignore",
    )

    def is_date_property(self, name: str) -> bool:
        """Return True if a property name should be coerced to a date."""
        if not self.date_coercion:
            return False
        if name in self.date_property_names:
            return True
        return any(fragment in name for fragment in self.date_property_substrings)
