"""
Value semantics shared by the evaluator, the filters and the exporter.

Values are plain Python objects: ``None`` (null), ``bool``, ``int``/``float``,
``str``, ``datetime``, ``list`` and ``dict``. Dates are naive local datetimes.
"""

import json
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from loguru import logger

from notebase.errors import EvaluationError

_INT_PATTERN = re.compile(r"^[+-]?\d+$")

# Formats tried after ISO-8601 parsing fails
_FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d %B %Y",
    "%B %d, %Y",
    "%b %d, %Y",
)

# Largest float that still represents every integer exactly
_MAX_EXACT_INT = 2**53


def is_number(value: Any) -> bool:
    """True for int/float but not bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_number(value: int | float) -> int | float:
    """Collapse integral floats to ints so that 8 / 2 renders as 4."""
    if isinstance(value, float) and value.is_integer() and abs(value) < _MAX_EXACT_INT:
        return int(value)
    return value


def _naive_local(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_date_string(text: str) -> Optional[datetime]:
    """Parse a date string; returns None when it is not a recognizable date."""
    text = text.strip()
    if not text or not text[0].isdigit() and not text[0].isalpha():
        return None
    try:
        return _naive_local(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def to_date(value: Any) -> Optional[datetime]:
    """Coerce a value to a datetime, or None if it cannot be interpreted as one."""
    if isinstance(value, datetime):
        return _naive_local(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if is_number(value):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        return parse_date_string(value)
    return None


def to_number(value: Any) -> Optional[int | float]:
    """Coerce a value to a number, or None if it is not numeric."""
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if _INT_PATTERN.match(text):
            try:
                return int(text)
            except ValueError:
                # Past the int conversion digit limit; fall back to float
                pass
        try:
            number = float(text)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return normalize_number(number)
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return None


def to_string(value: Any) -> str:
    """Render a value as text. Null renders as an empty string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(normalize_number(value))
    if isinstance(value, datetime):
        if value.hour == value.minute == value.second == value.microsecond == 0:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(to_string(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, default=to_string, ensure_ascii=False)
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError:
            return _large_int_string(value)
    return str(value)


def _large_int_string(value: int) -> str:
    """Scientific notation for ints too long for decimal conversion."""
    exponent = int(math.log10(abs(value)))
    mantissa = value / 10**exponent
    if abs(mantissa) >= 10:
        mantissa, exponent = mantissa / 10, exponent + 1
    elif abs(mantissa) < 1:
        mantissa, exponent = mantissa * 10, exponent - 1
    return f"{mantissa:.15g}e+{exponent}"


def truthy(value: Any) -> bool:
    """Non-null, non-empty, non-zero and non-false values are truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


def loose_equals(left: Any, right: Any) -> bool:
    """Equality with numeric-string and date-string coercion."""
    if left is None or right is None:
        return left is None and right is None

    if isinstance(left, bool) and isinstance(right, bool):
        return left == right

    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            loose_equals(a, b) for a, b in zip(left, right)
        )

    if isinstance(left, datetime) or isinstance(right, datetime):
        left_date, right_date = to_date(left), to_date(right)
        return left_date is not None and left_date == right_date

    if is_number(left) or is_number(right) or isinstance(left, bool) or isinstance(right, bool):
        left_number, right_number = to_number(left), to_number(right)
        return left_number is not None and left_number == right_number

    return left == right


def _sign(difference: int | float) -> int:
    return (difference > 0) - (difference < 0)


def compare(left: Any, right: Any) -> Optional[int]:
    """Three-way comparison; None when the values are not comparable."""
    if left is None or right is None:
        return None

    if isinstance(left, bool) and isinstance(right, bool):
        return _sign(int(left) - int(right))

    if isinstance(left, datetime) or isinstance(right, datetime):
        left_date, right_date = to_date(left), to_date(right)
        if left_date is None or right_date is None:
            return None
        return (left_date > right_date) - (left_date < right_date)

    if is_number(left) or is_number(right):
        left_number, right_number = to_number(left), to_number(right)
        if left_number is None or right_number is None:
            return None
        return (left_number > right_number) - (left_number < right_number)

    if isinstance(left, str) and isinstance(right, str):
        return (left > right) - (left < right)

    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        for a, b in zip(left, right):
            result = compare(a, b)
            if result is None:
                return None
            if result:
                return result
        return _sign(len(left) - len(right))

    return None


_TYPE_RANK = {bool: 0, int: 1, float: 1, datetime: 2, str: 3, list: 4, tuple: 4, dict: 5}


def compare_for_sort(left: Any, right: Any) -> int:
    """Total order for sorting non-null values of mixed types."""
    result = compare(left, right)
    if result is not None:
        return result
    left_rank = _TYPE_RANK.get(type(left), 6)
    right_rank = _TYPE_RANK.get(type(right), 6)
    if left_rank != right_rank:
        return _sign(left_rank - right_rank)
    left_text, right_text = to_string(left), to_string(right)
    return (left_text > right_text) - (left_text < right_text)


def _require_number(operator: str, value: Any) -> int | float:
    number = to_number(value)
    if number is None or isinstance(value, datetime):
        raise EvaluationError(f"Cannot apply '{operator}' to {type(value).__name__} {value!r}")
    return number


def arithmetic(operator: str, left: Any, right: Any) -> Any:
    """Apply +, -, *, / or %. Any null operand yields null."""
    if left is None or right is None:
        return None

    if operator == "+":
        if isinstance(left, str) or isinstance(right, str):
            return to_string(left) + to_string(right)
        if isinstance(left, list) and isinstance(right, list):
            return left + right
        if isinstance(left, datetime) and is_number(right):
            return left + timedelta(milliseconds=right)
        if is_number(left) and isinstance(right, datetime):
            return right + timedelta(milliseconds=left)

    if operator == "-":
        if isinstance(left, datetime) and isinstance(right, datetime):
            return normalize_number((left - right) / timedelta(milliseconds=1))
        if isinstance(left, datetime) and is_number(right):
            return left - timedelta(milliseconds=right)

    left_number = _require_number(operator, left)
    right_number = _require_number(operator, right)

    if operator == "+":
        result = left_number + right_number
    elif operator == "-":
        result = left_number - right_number
    elif operator == "*":
        result = left_number * right_number
    elif operator == "/":
        if right_number == 0:
            raise EvaluationError("Division by zero")
        result = left_number / right_number
    elif operator == "%":
        if right_number == 0:
            raise EvaluationError("Modulo by zero")
        # Sign follows the dividend
        result = math.fmod(left_number, right_number)
    else:
        raise EvaluationError(f"Unknown operator: {operator}")

    return normalize_number(result)


def coerce_property_value(name: str, value: Any, is_date_property) -> Any:
    """Context-build coercion of one frontmatter value.

    YAML date objects always become datetimes. Strings under date-like names
    become datetimes when they parse; otherwise the raw string is kept.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, datetime):
        return _naive_local(value)
    if isinstance(value, str) and is_date_property(name):
        parsed = parse_date_string(value)
        if parsed is not None:
            return parsed
        logger.trace(f"Property '{name}' looks date-like but '{value}' is not a date")
    return value
