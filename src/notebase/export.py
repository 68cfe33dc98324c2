"""
Export formatter.

Renders a result set as CSV, JSON or a markdown table.
"""

import json
from datetime import date, datetime
from typing import Any, Optional

from notebase.expression.values import to_string
from notebase.models import ResultSet

EXPORT_FORMATS = ("csv", "json", "markdown")


def format_value(value: Any) -> str:
    """Render a cell value. Null renders as an empty string."""
    return to_string(value)


def escape_csv(value: Any) -> str:
    """Escape one CSV field: quote-wrap on comma, quote or newline, doubling inner quotes."""
    text = format_value(value)
    if any(ch in text for ch in (",", '"', "\n", "\r")):
        return '"' + text.replace('"', '""') + '"'
    return text


def escape_markdown_cell(value: Any) -> str:
    text = format_value(value)
    return text.replace("|", "\\|").replace("\r\n", "<br>").replace("\n", "<br>")


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, tuple)):
        return list(value)
    return str(value)


class ExportFormatter:
    """Formats result sets for export."""

    @classmethod
    def resolve_columns(
        cls, result_set: ResultSet, columns: Optional[list[str]] = None
    ) -> list[str]:
        """Explicit columns, or every property of the first result."""
        if columns:
            return list(columns)
        if result_set.documents:
            return list(result_set.documents[0].properties)
        return []

    @classmethod
    def export(
        cls, result_set: ResultSet, format: str, columns: Optional[list[str]] = None
    ) -> str:
        """
        Export a result set.

        Args:
            result_set: Result of a query run
            format: One of csv, json, markdown
            columns: Columns to export (defaults to the properties of the first result)

        Returns:
            The formatted text

        Raises:
            ValueError: If the format is not supported
        """
        fmt = format.lower()
        if fmt == "csv":
            return cls.to_csv(result_set, columns)
        if fmt == "json":
            return cls.to_json(result_set, columns)
        if fmt in ("markdown", "md"):
            return cls.to_markdown(result_set, columns)
        raise ValueError(
            f"Unsupported export format: {format} (supported: {', '.join(EXPORT_FORMATS)})"
        )

    @classmethod
    def to_csv(cls, result_set: ResultSet, columns: Optional[list[str]] = None) -> str:
        fields = cls.resolve_columns(result_set, columns)
        if not fields:
            return ""

        rows = [",".join(escape_csv(field) for field in fields)]
        for document in result_set.documents:
            rows.append(
                ",".join(escape_csv(document.properties.get(field)) for field in fields)
            )
        return "\n".join(rows)

    @classmethod
    def to_json(cls, result_set: ResultSet, columns: Optional[list[str]] = None) -> str:
        data = []
        for document in result_set.documents:
            item = document.to_dict()
            if columns:
                item["properties"] = {
                    column: document.properties.get(column) for column in columns
                }
            data.append(item)
        return json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)

    @classmethod
    def to_markdown(cls, result_set: ResultSet, columns: Optional[list[str]] = None) -> str:
        title = f"# Base Export: {result_set.view.name}" if result_set.view else "# Base Export"
        lines = [title, "", f"Total results: {result_set.total}", ""]

        fields = cls.resolve_columns(result_set, columns)
        if not fields:
            lines.append("_No results_")
            return "\n".join(lines)

        lines.append("| " + " | ".join(escape_markdown_cell(field) for field in fields) + " |")
        lines.append("| " + " | ".join(["---"] * len(fields)) + " |")
        for document in result_set.documents:
            cells = [escape_markdown_cell(document.properties.get(field)) for field in fields]
            lines.append("| " + " | ".join(cells) + " |")

        return "\n".join(lines)
