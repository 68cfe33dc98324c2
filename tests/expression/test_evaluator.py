"""Tests for ExpressionEvaluator."""

from datetime import datetime

import pytest

from notebase.errors import EvaluationError, ExpressionSyntaxError
from notebase.expression.evaluator import ExpressionEvaluator, evaluate


class TestEvaluatorLiterals:
    """Test evaluating literal expressions."""

    def test_literals(self, note_context):
        """Test string, number, boolean and null literals."""
        evaluator = ExpressionEvaluator(note_context)
        assert evaluator.evaluate('"hello"') == "hello"
        assert evaluator.evaluate("42") == 42
        assert evaluator.evaluate("3.5") == 3.5
        assert evaluator.evaluate("true") is True
        assert evaluator.evaluate("null") is None

    def test_list_literal(self, note_context):
        """Test list literals."""
        assert evaluate('[1, "a", null]', note_context) == [1, "a", None]


class TestEvaluatorNames:
    """Test name resolution across namespaces."""

    def test_bare_name_reads_note(self, note_context):
        """Test a bare name reads the note properties."""
        assert evaluate("status", note_context) == "active"

    def test_note_namespace(self, note_context):
        """Test the note namespace."""
        assert evaluate("note.status", note_context) == "active"

    def test_missing_name_is_null(self, note_context):
        """Test a missing property is null."""
        assert evaluate("nonexistent", note_context) is None
        assert evaluate("note.nonexistent", note_context) is None

    def test_nested_mapping(self, note_context):
        """Test member access into a mapping property."""
        assert evaluate("owner.name", note_context) == "Sam"
        assert evaluate("note.owner.team", note_context) == "core"

    def test_file_properties(self, note_context):
        """Test file namespace properties."""
        assert evaluate("file.name", note_context) == "Alpha"
        assert evaluate("file.path", note_context) == "projects/Alpha.md"
        assert evaluate("file.folder", note_context) == "projects"
        assert evaluate("file.ext", note_context) == "md"
        assert evaluate("file.size", note_context) == 120
        assert evaluate("file.link", note_context) == "[[Alpha]]"
        assert evaluate("file.tags", note_context) == ["#project", "#dev"]

    def test_file_times(self, note_context):
        """Test file creation and modification times."""
        assert evaluate("file.ctime", note_context) == datetime(2026, 1, 1, 9, 30)
        assert evaluate("file.mtime", note_context) == datetime(2026, 1, 10, 18, 0)

    def test_unknown_formula_is_null(self, note_context):
        """Test an unknown formula is null."""
        assert evaluate("formula.missing", note_context) is None

    def test_namespace_value_is_mapping(self, note_context):
        """Test a bare namespace evaluates to a mapping."""
        value = evaluate("file", note_context)
        assert value["name"] == "Alpha"

    def test_index(self, note_context):
        """Test list indexing."""
        assert evaluate("tags[0]", note_context) == "project"
        assert evaluate("tags[5]", note_context) is None
        assert evaluate('owner["name"]', note_context) == "Sam"

    def test_length_member(self, note_context):
        """Test the length member of lists and strings."""
        assert evaluate("tags.length", note_context) == 2
        assert evaluate("status.length", note_context) == 6


class TestEvaluatorComparison:
    """Test comparison semantics."""

    def test_equality(self, note_context):
        """Test string equality."""
        assert evaluate('status == "active"', note_context) is True
        assert evaluate('status != "active"', note_context) is False

    def test_numeric_string_equality(self, note_context):
        """Test numbers equal numeric strings."""
        assert evaluate("progress == 40", note_context) is True

    def test_null_equality(self, note_context):
        """Test null equals only null."""
        assert evaluate("missing == null", note_context) is True
        assert evaluate('missing == ""', note_context) is False

    def test_ordering(self, note_context):
        """Test ordering comparisons."""
        assert evaluate("priority < 2", note_context) is True
        assert evaluate("priority >= 1", note_context) is True
        assert evaluate("progress > 30", note_context) is True

    def test_ordering_with_null_is_false(self, note_context):
        """Test ordering against null is false."""
        assert evaluate("missing < 1", note_context) is False
        assert evaluate("missing > 1", note_context) is False

    def test_date_comparison(self, note_context):
        """Test comparing dates."""
        assert evaluate('due > date("2026-01-01")', note_context) is True
        assert evaluate('due == "2026-01-15"', note_context) is True


class TestEvaluatorLogic:
    """Test boolean operators."""

    def test_and_or(self, note_context):
        """Test symbolic and keyword boolean operators."""
        assert evaluate('status == "active" && priority == 1', note_context) is True
        assert evaluate('status == "done" || priority == 1', note_context) is True
        assert evaluate("done and true", note_context) is False

    def test_not(self, note_context):
        """Test negation."""
        assert evaluate("!done", note_context) is True
        assert evaluate("not missing", note_context) is True

    def test_short_circuit(self, note_context):
        """Test && and || short-circuit."""
        # The right side would fail with a division by zero
        assert evaluate("false && 1 / 0", note_context) is False
        assert evaluate("true || 1 / 0", note_context) is True


class TestEvaluatorArithmetic:
    """Test arithmetic semantics."""

    def test_numbers(self, note_context):
        """Test arithmetic precedence."""
        assert evaluate("1 + 2 * 3", note_context) == 7
        assert evaluate("8 / 2", note_context) == 4
        assert evaluate("7 % 3", note_context) == 1
        assert evaluate("-priority", note_context) == -1

    def test_string_concatenation(self, note_context):
        """Test + concatenates when a side is a string."""
        assert evaluate('"P" + priority', note_context) == "P1"
        assert evaluate('status + "!"', note_context) == "active!"

    def test_null_propagates(self, note_context):
        """Test arithmetic with null is null."""
        assert evaluate("missing + 1", note_context) is None

    def test_division_by_zero(self, note_context):
        """Test division by zero raises EvaluationError."""
        with pytest.raises(EvaluationError, match="Division by zero"):
            evaluate("priority / 0", note_context)

    def test_date_difference_in_milliseconds(self, note_context):
        """Test subtracting dates gives milliseconds."""
        assert evaluate('due - date("2026-01-14")', note_context) == 86400000

    def test_non_numeric_operand(self, note_context):
        """Test arithmetic on text raises EvaluationError."""
        with pytest.raises(EvaluationError):
            evaluate("status * 2", note_context)


class TestEvaluatorCalls:
    """Test function and method calls."""

    def test_builtin(self, note_context):
        """Test calling a builtin function."""
        assert evaluate("number(progress) + 1", note_context) == 41

    def test_iff_is_lazy(self, note_context):
        """Test iff evaluates only the chosen branch."""
        assert evaluate('iff(priority > 0, "high", 1 / 0)', note_context) == "high"
        assert evaluate('choice(done, "yes")', note_context) is None

    def test_if_is_reserved(self, note_context):
        """Test if is rejected with a hint."""
        with pytest.raises(EvaluationError, match="reserved"):
            evaluate('if(done, "a", "b")', note_context)

    def test_unknown_function(self, note_context):
        """Test an unknown function raises EvaluationError."""
        with pytest.raises(EvaluationError, match="Unknown function: nope"):
            evaluate("nope(1)", note_context)

    def test_file_methods(self, note_context):
        """Test file namespace methods."""
        assert evaluate('file.hasTag("project")', note_context) is True
        assert evaluate('file.inFolder("projects")', note_context) is True
        assert evaluate('file.hasLink("[[Roadmap]]")', note_context) is True
        assert evaluate('file.hasProperty("due")', note_context) is True

    def test_unknown_file_method(self, note_context):
        """Test an unknown file method raises EvaluationError."""
        with pytest.raises(EvaluationError, match="Unknown function: file.nope"):
            evaluate("file.nope()", note_context)

    def test_string_methods(self, note_context):
        """Test string value methods."""
        assert evaluate('status.startsWith("act")', note_context) is True
        assert evaluate("status.upper()", note_context) == "ACTIVE"

    def test_list_methods(self, note_context):
        """Test list value methods."""
        assert evaluate('tags.contains("dev")', note_context) is True
        assert evaluate('tags.join("/")', note_context) == "project/dev"

    def test_method_on_null(self, note_context):
        """Test calling a method on null raises EvaluationError."""
        with pytest.raises(EvaluationError, match="on null"):
            evaluate("missing.lower()", note_context)

    def test_no_python_attribute_access(self, note_context):
        """Test member access never reaches Python attributes."""
        assert evaluate("status.__class__", note_context) is None
        with pytest.raises(EvaluationError):
            evaluate("status.format()", note_context)


class TestEvaluatorErrors:
    """Test error reporting."""

    def test_syntax_error_is_evaluation_error(self, note_context):
        """Test syntax errors surface as EvaluationError."""
        with pytest.raises(EvaluationError) as exc_info:
            evaluate('status = "active"', note_context)
        assert isinstance(exc_info.value, ExpressionSyntaxError)
        assert exc_info.value.expression == 'status = "active"'

    def test_runtime_error_carries_expression(self, note_context):
        """Test runtime errors carry the expression text."""
        with pytest.raises(EvaluationError) as exc_info:
            evaluate("1 % 0", note_context)
        assert exc_info.value.expression == "1 % 0"


class TestResolvePath:
    """Test path resolution used by sorting and projection."""

    def test_paths(self, note_context):
        """Test resolving note, file and nested paths."""
        evaluator = ExpressionEvaluator(note_context)
        assert evaluator.resolve_path("status") == "active"
        assert evaluator.resolve_path("note.priority") == 1
        assert evaluator.resolve_path("file.name") == "Alpha"
        assert evaluator.resolve_path("owner.name") == "Sam"
        assert evaluator.resolve_path("missing") is None

    def test_literal_key_with_dot(self, config):
        """Test a property name containing a dot resolves directly."""
        from notebase.models import Document
        from notebase.resolver import build_context

        context = build_context(Document(path="a.md", properties={"v1.2": "x"}), None, config)
        assert ExpressionEvaluator(context).resolve_path("v1.2") == "x"
