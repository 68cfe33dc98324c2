"""
Reference data for the expression language: functions, property namespaces and
hints for common evaluation errors.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class FunctionReference:
    name: str
    syntax: str
    description: str
    examples: list[str]
    category: str  # date | global | number | list | string | file


@dataclass(frozen=True)
class ErrorHint:
    error: str
    hint: str
    suggestions: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)


FUNCTIONS: list[FunctionReference] = [
    FunctionReference(
        "date", "date(value)", "Parse a string into a date; dates pass through",
        ['date("2025-03-15")', "date(due_date)"], "date",
    ),
    FunctionReference(
        "now", "now()", "Current date and time",
        ["now()", "(due_date - now()) / 86400000"], "date",
    ),
    FunctionReference(
        "today", "today()", "Today's date at midnight",
        ["today()", "start_date >= today()"], "date",
    ),
    FunctionReference(
        "iff", "iff(condition, a, b)", "Conditional value ('if' is reserved)",
        ['iff(priority > 3, "High", "Low")'], "global",
    ),
    FunctionReference(
        "choice", "choice(condition, a, b)", "Alternative name for iff",
        ['choice(completed, "Done", "Pending")'], "global",
    ),
    FunctionReference(
        "number", "number(value)", "Convert a value to a number",
        ['number("42")', "number(priority)"], "global",
    ),
    FunctionReference(
        "string", "string(value)", "Convert a value to a string",
        ["string(42)", 'string(team_size) + " people"'], "global",
    ),
    FunctionReference(
        "list", "list(value)", "Wrap a non-list value in a list",
        ["list(tags)", 'list("single-item")'], "list",
    ),
    FunctionReference(
        "contains", "contains(collection, value)", "Membership in a list or substring test",
        ['contains(tags, "dev")'], "list",
    ),
    FunctionReference(
        "length", "length(value)", "Length of a string or list",
        ["length(tags)"], "list",
    ),
    FunctionReference("lower", "lower(text)", "Lowercase a string", ["lower(status)"], "string"),
    FunctionReference("upper", "upper(text)", "Uppercase a string", ["upper(status)"], "string"),
    FunctionReference("min", "min(...values)", "Smallest value", ["min(priority, 5)"], "number"),
    FunctionReference("max", "max(...values)", "Largest value", ["max(completion, 0)"], "number"),
    FunctionReference("abs", "abs(number)", "Absolute value", ["abs(days_overdue)"], "number"),
    FunctionReference(
        "round", "round(number, digits?)", "Round half up to the given digits",
        ["round(3.14159, 2)", "round(completion / 10)"], "number",
    ),
    FunctionReference(
        "file.hasTag", "file.hasTag(...tags)", "True if the file has any of the tags",
        ['file.hasTag("project")', 'file.hasTag("#a", "b")'], "file",
    ),
    FunctionReference(
        "file.inFolder", "file.inFolder(path)", "True if the file is inside the folder",
        ['file.inFolder("projects")'], "file",
    ),
    FunctionReference(
        "file.hasLink", "file.hasLink(target)", "True if the file links to the target",
        ['file.hasLink("[[Roadmap]]")'], "file",
    ),
    FunctionReference(
        "file.hasProperty", "file.hasProperty(name)", "True if the frontmatter has the key",
        ['file.hasProperty("due")'], "file",
    ),
]

PROPERTIES: dict[str, dict[str, str]] = {
    "file": {
        "file.name": "File name without extension",
        "file.path": "Full path to the file",
        "file.folder": "Parent folder path",
        "file.ext": "File extension",
        "file.size": "File size in bytes",
        "file.ctime": "Creation time",
        "file.mtime": "Modification time",
        "file.tags": "Tags of the file",
        "file.links": "Outgoing links",
        "file.link": "Wiki link to the file",
    },
    "note": {
        "note.<property>": "Any frontmatter property",
        "<property>": "Bare names resolve against the frontmatter",
    },
    "formula": {
        "formula.<name>": "Value of a formula",
    },
}

CATEGORIES = ("global", "date", "number", "string", "list", "file")

# (fragment of the error message, hint)
COMMON_ERRORS = [
    ("Unexpected '='", "Use '==' to compare values."),
    ("reserved word", "Use iff() or choice() instead of if()."),
    ("Unknown function", "Check the function name; see the function reference."),
    ("Unterminated string", "Close every string with the quote it was opened with."),
    ("Unexpected token", "Check operators, commas and parentheses."),
    ("Cannot apply", "Arithmetic needs numbers; convert with number() or date()."),
    ("Division by zero", "Guard the divisor, e.g. iff(total > 0, done / total, 0)."),
    ("Circular formula", "Formulas must not reference each other in a cycle."),
    ("on null", "The value is missing on this note; check it with file.hasProperty() first."),
]


def get_function(name: str) -> Optional[FunctionReference]:
    return next((f for f in FUNCTIONS if f.name == name), None)


def functions_by_category(category: str) -> list[FunctionReference]:
    return [f for f in FUNCTIONS if f.category == category]


def error_hint(error: Exception | str, expression: Optional[str] = None) -> ErrorHint:
    """Build a hint for an evaluation error, using the expression text when available."""
    message = error if isinstance(error, str) else str(error)

    hint = next(
        (suggestion for fragment, suggestion in COMMON_ERRORS if fragment in message),
        "Check expression syntax and property names.",
    )

    suggestions: list[str] = []
    examples: list[str] = []
    if expression:
        if "date" in expression.lower():
            suggestions.append('Wrap date strings in date(): date("2025-03-15")')
            examples.append("(date(due_date) - now()) / 86400000")
        if "if(" in expression.replace(" ", "") and "iff(" not in expression:
            suggestions.append('Use "iff" or "choice" instead of "if"')
            examples.append('iff(status == "active", "Yes", "No")')

    return ErrorHint(error=message, hint=hint, suggestions=suggestions, examples=examples)


def full_reference() -> str:
    """Render the function and property reference as markdown."""
    lines = ["# Expression Reference", ""]

    for category in CATEGORIES:
        functions = functions_by_category(category)
        if not functions:
            continue
        lines.append(f"## {category.capitalize()} Functions")
        lines.append("")
        for function in functions:
            lines.append(f"### {function.syntax}")
            lines.append(function.description)
            lines.append("")
            lines.extend(f"- `{example}`" for example in function.examples)
            lines.append("")

    lines.append("## Property References")
    lines.append("")
    for prefix, properties in PROPERTIES.items():
        lines.append(f"### {prefix} properties")
        lines.extend(f"- `{key}`: {description}" for key, description in properties.items())
        lines.append("")

    return "\n".join(lines)
