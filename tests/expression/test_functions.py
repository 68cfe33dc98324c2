"""Tests for built-in functions and file predicates."""

from datetime import datetime

import pytest

from notebase.errors import EvaluationError
from notebase.expression.functions import (
    fn_abs,
    fn_contains,
    fn_date,
    fn_length,
    fn_list,
    fn_max,
    fn_min,
    fn_number,
    fn_round,
    fn_string,
    fn_today,
    has_link,
    has_property,
    has_tag,
    in_folder,
)


class TestGlobalFunctions:
    """Test global built-ins."""

    def test_date(self):
        """Test parsing dates."""
        assert fn_date("2026-03-15") == datetime(2026, 3, 15)
        assert fn_date(datetime(2026, 3, 15, 10)) == datetime(2026, 3, 15, 10)

    def test_date_unparseable_is_null(self):
        """Test an unparseable date is null."""
        assert fn_date("not a date") is None
        assert fn_date(None) is None

    def test_today_is_midnight(self):
        """Test today() is midnight of the current day."""
        today = fn_today()
        assert (today.hour, today.minute, today.second) == (0, 0, 0)
        assert today.date() == datetime.now().date()

    def test_number(self):
        """Test number() conversion."""
        assert fn_number("4") == 4
        assert fn_number(False) == 0
        assert fn_number("x") is None

    def test_string(self):
        """Test string() conversion."""
        assert fn_string(42) == "42"
        assert fn_string(None) == ""
        assert fn_string(False) == "false"

    def test_list(self):
        """Test list() wraps scalars."""
        assert fn_list(["a"]) == ["a"]
        assert fn_list("a") == ["a"]
        assert fn_list(None) == [None]

    def test_contains(self):
        """Test contains() on lists and strings."""
        assert fn_contains(["a", "b"], "b") is True
        assert fn_contains([1, 2], "2") is True
        assert fn_contains("hello", "ell") is True
        assert fn_contains(None, "a") is False

    def test_length(self):
        """Test length() on strings, lists and null."""
        assert fn_length("abc") == 3
        assert fn_length([1, 2]) == 2
        assert fn_length(None) == 0


class TestNumberFunctions:
    """Test numeric built-ins."""

    def test_min_max(self):
        """Test min() and max()."""
        assert fn_min(3, 1, 2) == 1
        assert fn_max(3, 1, 2) == 3

    def test_min_max_ignore_nulls(self):
        """Test min() and max() skip nulls."""
        assert fn_min(None, 5, 2) == 2
        assert fn_max(None) is None

    def test_min_max_accept_a_list(self):
        """Test min() and max() accept one list."""
        assert fn_max([1, "7", 3]) == 7

    def test_min_max_dates(self):
        """Test min() and max() on dates."""
        assert fn_min(datetime(2026, 2, 1), datetime(2026, 1, 1)) == datetime(2026, 1, 1)

    def test_min_non_numeric(self):
        """Test min() on text raises EvaluationError."""
        with pytest.raises(EvaluationError):
            fn_min(1, "abc")

    def test_abs(self):
        """Test abs()."""
        assert fn_abs(-3) == 3
        assert fn_abs(None) is None

    def test_round(self):
        """Test round() rounds half up."""
        assert fn_round(3.14159, 2) == 3.14
        assert fn_round(2.5) == 3
        assert fn_round(-2.5) == -2
        assert fn_round("1.25", 1) == 1.3
        assert fn_round(None) is None

    def test_round_digits_are_clamped(self):
        """Test huge digit counts return promptly instead of building huge powers."""
        assert fn_round(3.14159, 100000000) == 3.14159
        assert fn_round(1234.5, -100000000) == 0

    def test_round_rejects_text(self):
        """Test round() on text raises EvaluationError."""
        with pytest.raises(EvaluationError, match="expects a number"):
            fn_round("abc")


class TestFilePredicates:
    """Test file.* predicates."""

    def test_has_tag(self):
        """Test hasTag with and without a leading #."""
        assert has_tag(["#project", "#2024"], "project") is True
        assert has_tag(["#other"], "project") is False

    def test_has_tag_any_of(self):
        """Test hasTag matches any of several tags."""
        assert has_tag(["#b"], "a", "#b") is True

    def test_has_tag_case_insensitive(self):
        """Test hasTag ignores case."""
        assert has_tag(["#Project"], "PROJECT") is True

    def test_in_folder(self):
        """Test inFolder includes subfolders."""
        assert in_folder("projects/sub/a.md", "projects") is True
        assert in_folder("projects/sub/a.md", "/projects/sub/") is True
        assert in_folder("projects-old/a.md", "projects") is False

    def test_in_root_folder(self):
        """Test every document is in the root folder."""
        assert in_folder("a.md", "") is True
        assert in_folder("x/a.md", "/") is True

    def test_has_link(self):
        """Test hasLink accepts bracketed targets."""
        assert has_link(["Roadmap"], "[[Roadmap]]") is True
        assert has_link(["Roadmap"], "Roadmap") is True
        assert has_link(["Roadmap"], "Other") is False

    def test_has_property(self):
        """Test hasProperty is true for null values."""
        assert has_property({"due": None}, "due") is True
        assert has_property({}, "due") is False
