"""
Built-in functions, value methods and file predicates available to expressions.

Every callable here receives already-evaluated argument values and returns a
value; none of them can reach anything outside their arguments.
"""

import math
from datetime import datetime, time
from functools import cmp_to_key
from typing import Any, Callable, Optional

from loguru import logger

from notebase.errors import EvaluationError
from notebase.expression.values import (
    compare_for_sort,
    loose_equals,
    normalize_number,
    to_date,
    to_number,
    to_string,
    truthy,
)
from notebase.utils import normalize_folder, normalize_tag, strip_link_brackets

# Beyond this, round() has nothing left to round in a float
MAX_ROUND_DIGITS = 308


# --- Global functions ---


def fn_date(value: Any = None) -> Optional[datetime]:
    """Parse a string (or epoch milliseconds) into a date; dates pass through."""
    result = to_date(value)
    if result is None and value is not None:
        logger.debug(f"date(): cannot parse {value!r} as a date")
    return result


def fn_now() -> datetime:
    return datetime.now()


def fn_today() -> datetime:
    return datetime.combine(datetime.now().date(), time())


def fn_number(value: Any) -> Optional[int | float]:
    return to_number(value)


def fn_string(value: Any) -> str:
    return to_string(value)


def fn_choice(condition: Any, true_value: Any, false_value: Any = None) -> Any:
    return true_value if truthy(condition) else false_value


def _flatten_values(values: tuple) -> list[Any]:
    if len(values) == 1 and isinstance(values[0], (list, tuple)):
        values = tuple(values[0])
    return [value for value in values if value is not None]


def _extreme(name: str, values: tuple, pick: Callable) -> Any:
    candidates = _flatten_values(values)
    if not candidates:
        return None
    if all(isinstance(value, datetime) for value in candidates):
        return pick(candidates, key=cmp_to_key(compare_for_sort))
    numbers = [to_number(value) for value in candidates]
    if any(number is None for number in numbers):
        raise EvaluationError(f"{name}() expects numbers or dates")
    return pick(numbers)


def fn_min(*values: Any) -> Any:
    return _extreme("min", values, min)


def fn_max(*values: Any) -> Any:
    return _extreme("max", values, max)


def _number_argument(name: str, value: Any) -> int | float:
    number = to_number(value)
    if number is None:
        raise EvaluationError(f"{name}() expects a number, got {value!r}")
    return number


def fn_abs(value: Any) -> Optional[int | float]:
    if value is None:
        return None
    return abs(_number_argument("abs", value))


def fn_round(value: Any, digits: Any = 0) -> Optional[int | float]:
    """Round half up to the given number of digits."""
    if value is None:
        return None
    number = _number_argument("round", value)
    places = int(_number_argument("round", digits))
    places = max(-MAX_ROUND_DIGITS, min(MAX_ROUND_DIGITS, places))
    factor = 10**places
    scaled = number * factor
    if not math.isfinite(scaled):
        return number
    return normalize_number(math.floor(scaled + 0.5) / factor)


def fn_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def fn_contains(collection: Any, value: Any) -> bool:
    if isinstance(collection, (list, tuple)):
        return any(loose_equals(item, value) for item in collection)
    if isinstance(collection, str):
        return to_string(value) in collection
    return False


def fn_length(value: Any) -> int:
    if isinstance(value, (str, list, tuple, dict)):
        return len(value)
    return 0


def fn_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def fn_upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


BUILTIN_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "date": fn_date,
    "now": fn_now,
    "today": fn_today,
    "number": fn_number,
    "string": fn_string,
    "iff": fn_choice,
    "choice": fn_choice,
    "min": fn_min,
    "max": fn_max,
    "abs": fn_abs,
    "round": fn_round,
    "list": fn_list,
    "contains": fn_contains,
    "length": fn_length,
    "lower": fn_lower,
    "upper": fn_upper,
}

# Conditionals evaluate only the branch they return
LAZY_FUNCTIONS = frozenset({"iff", "choice"})

RESERVED_FUNCTION_NAMES = {
    "if": "'if' is a reserved word; use iff(condition, a, b) or choice(condition, a, b)",
}


# --- Value methods ---


def _join(values: list, separator: Any = ", ") -> str:
    return to_string(separator).join(to_string(value) for value in values)


STRING_METHODS: dict[str, Callable[..., Any]] = {
    "contains": lambda text, part: to_string(part) in text,
    "startsWith": lambda text, prefix: text.startswith(to_string(prefix)),
    "endsWith": lambda text, suffix: text.endswith(to_string(suffix)),
    "lower": lambda text: text.lower(),
    "upper": lambda text: text.upper(),
    "trim": lambda text: text.strip(),
}

LIST_METHODS: dict[str, Callable[..., Any]] = {
    "contains": fn_contains,
    "join": _join,
}


def call_value_method(target: Any, name: str, args: list[Any]) -> Any:
    """Call a whitelisted method on a string or list value."""
    if isinstance(target, str):
        method = STRING_METHODS.get(name)
    elif isinstance(target, (list, tuple)):
        method = LIST_METHODS.get(name)
    else:
        method = None

    if method is None:
        raise EvaluationError(f"Unknown method '{name}' on {type(target).__name__}")

    try:
        return method(target, *args)
    except TypeError as e:
        raise EvaluationError(f"Invalid arguments for {name}(): {e}", cause=e)


# --- File predicates ---


def has_tag(file_tags: list[str], *tags: Any) -> bool:
    """True if any of the given tags is on the file, with or without a leading '#'."""
    normalized = {normalize_tag(tag) for tag in file_tags if isinstance(tag, str)}
    return any(normalize_tag(to_string(tag)) in normalized for tag in tags if tag is not None)


def in_folder(file_path: str, folder: Any) -> bool:
    """Prefix match of the file path against a slash-terminated folder path."""
    normalized = normalize_folder(to_string(folder))
    if not normalized:
        return True
    return file_path.replace("\\", "/").lstrip("/").startswith(normalized)


def has_link(file_links: list[str], target: Any) -> bool:
    """True if the file links to the target; ``[[Target]]`` and ``Target`` are equivalent."""
    normalized = strip_link_brackets(to_string(target))
    return any(strip_link_brackets(link) == normalized for link in file_links)


def has_property(properties: dict[str, Any], name: Any) -> bool:
    """Key presence in the raw property map, independent of the value."""
    return to_string(name) in properties
