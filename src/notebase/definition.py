"""
Query and view definitions.

A query definition is the parsed form of a ``.base`` style YAML document:

    filters:                      # global filter tree, applied to every view
      and:
        - file.hasTag("project")
        - 'status != "archived"'
    formulas:
      double: number(note.priority) * 2
    views:
      - type: table
        name: Open
        filters: 'status == "open"'
        order: [priority desc, file.name]
        limit: 10
        columns: [file.name, status, formula.double]

The engine only consumes the resulting structure. ``load_query_definition`` is
the thin YAML adapter used by the CLI and the tests.
"""

from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from notebase.errors import ParseError, ResolutionError

FilterExpression = Union[str, dict[str, list[Any]]]

FILTER_COMBINATORS = ("and", "or", "not")


def validate_filter(value: Any, location: str = "filters") -> FilterExpression:
    """Validate a filter tree and return it in canonical form.

    ``not`` accepts a single sub-filter as well as a list; it is normalized to a list.
    """
    if isinstance(value, str):
        if not value.strip():
            raise ValueError(f"{location}: filter expression must not be empty")
        return value

    if isinstance(value, dict):
        if len(value) != 1:
            raise ValueError(
                f"{location}: filter object must have exactly one of {', '.join(FILTER_COMBINATORS)}"
            )
        key, children = next(iter(value.items()))
        if key not in FILTER_COMBINATORS:
            raise ValueError(f"{location}: unknown filter combinator '{key}'")
        if key == "not" and not isinstance(children, list):
            children = [children]
        if not isinstance(children, list):
            raise ValueError(f"{location}.{key}: expected a list of filters")
        return {
            key: [validate_filter(child, f"{location}.{key}[{i}]") for i, child in enumerate(children)]
        }

    raise ValueError(f"{location}: expected a string or an and/or/not object, got {type(value).__name__}")


class SortKey(BaseModel):
    """One entry of a view's sort order."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str = Field(..., min_length=1, validation_alias=AliasChoices("path", "property"))
    direction: Literal["asc", "desc"] = "asc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"

    @classmethod
    def parse(cls, value: Any) -> "SortKey":
        """Parse ``"path"``, ``"path desc"`` or ``{property, direction}``."""
        if isinstance(value, SortKey):
            return value
        return cls.model_validate(sort_entry_fields(value))


def sort_entry_fields(value: Any) -> dict[str, Any]:
    """Split a sort entry into its path and direction fields."""
    if isinstance(value, SortKey):
        return {"path": value.path, "direction": value.direction}
    if isinstance(value, str):
        parts = value.strip().rsplit(None, 1)
        if len(parts) == 2 and parts[1].lower() in ("asc", "desc"):
            return {"path": parts[0], "direction": parts[1].lower()}
        return {"path": value.strip()}
    if isinstance(value, dict):
        direction = str(value.get("direction", value.get("order", "asc"))).lower()
        return {"path": value.get("property", value.get("path", "")), "direction": direction}
    raise ValueError(f"Invalid sort entry: {value!r}")


class ViewDefinition(BaseModel):
    """A named view: filters, sort order, limit and columns on top of global filters."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    kind: Literal["table", "cards", "list"] = Field(
        default="table", validation_alias=AliasChoices("kind", "type")
    )
    filters: Optional[FilterExpression] = None
    order: list[SortKey] = Field(default_factory=list)
    limit: Optional[int] = Field(default=None, ge=0)
    columns: Optional[list[str]] = None
    include_content: bool = Field(
        default=False, validation_alias=AliasChoices("include_content", "showContent")
    )

    @field_validator("filters", mode="before")
    @classmethod
    def _check_filters(cls, value: Any) -> Any:
        if value is None:
            return None
        return validate_filter(value)

    @field_validator("order", mode="before")
    @classmethod
    def _parse_order(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, dict)):
            value = [value]
        if not isinstance(value, list):
            raise ValueError("order must be a list of property paths")
        return [sort_entry_fields(entry) for entry in value]

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        # "card" is accepted as a synonym of "cards"
        if value == "card":
            return "cards"
        return value


class PropertyConfig(BaseModel):
    """Display settings for a property."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    display_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("display_name", "displayName")
    )


class QueryDefinition(BaseModel):
    """Global filters, formulas and views of one query."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    filters: Optional[FilterExpression] = Field(
        default=None, validation_alias=AliasChoices("filters", "globalFilters", "global_filters")
    )
    formulas: dict[str, str] = Field(default_factory=dict)
    properties: dict[str, PropertyConfig] = Field(default_factory=dict)
    views: list[ViewDefinition] = Field(..., min_length=1)

    @field_validator("filters", mode="before")
    @classmethod
    def _check_filters(cls, value: Any) -> Any:
        if value is None:
            return None
        return validate_filter(value)

    @field_validator("formulas", mode="before")
    @classmethod
    def _check_formulas(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("formulas must be a mapping of name to expression")
        for name, expression in value.items():
            if not isinstance(expression, str) or not expression.strip():
                raise ValueError(f"formula '{name}' must be a non-empty expression string")
        return value

    @field_validator("properties", mode="before")
    @classmethod
    def _default_properties(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("properties must be a mapping")
        return {key: (config or {}) for key, config in value.items()}

    @classmethod
    def from_dict(cls, data: Any) -> "QueryDefinition":
        """Validate a plain mapping, raising ParseError on structural problems."""
        if not isinstance(data, dict):
            raise ParseError(f"Query definition must be a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            raise ParseError(f"Invalid query definition: {problems}") from e

    @property
    def view_names(self) -> list[str]:
        return [view.name for view in self.views]

    def get_view(self, name: str) -> ViewDefinition:
        """Return the view with the given name or raise ResolutionError."""
        for view in self.views:
            if view.name == name:
                return view
        raise ResolutionError(name, self.view_names)

    def display_name(self, column: str) -> str:
        """Display name configured for a property, falling back to the column itself."""
        config = self.properties.get(column)
        if config and config.display_name:
            return config.display_name
        return column


def load_query_definition(text: str) -> QueryDefinition:
    """Parse a YAML query definition."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid YAML in query definition: {e}") from e
    if data is None:
        raise ParseError("Query definition is empty")
    return QueryDefinition.from_dict(data)


def load_query_file(path: str | Path) -> QueryDefinition:
    """Read and parse a YAML query definition file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(f"Cannot read query definition {path}: {e}") from e
    return load_query_definition(text)
