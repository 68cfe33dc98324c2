"""
Formula engine.

Evaluates named formula expressions per document and memoizes results by
(document path, expression text).
"""

from typing import Any

from loguru import logger

from notebase.errors import EvaluationError
from notebase.expression.context import EvaluationContext, Namespace
from notebase.expression.evaluator import ExpressionEvaluator
from notebase.reference import error_hint


class FormulaNamespace(Namespace):
    """The ``formula`` namespace of one document.

    Members are evaluated on first access, so formulas may reference other
    formulas regardless of definition order.
    """

    name = "formula"

    def __init__(
        self, engine: "FormulaEngine", formulas: dict[str, str], context: EvaluationContext
    ):
        self.engine = engine
        self.formulas = formulas
        self.context = context
        self._resolving: list[str] = []
        self._cyclic: set[str] = set()

    def get(self, member: str) -> Any:
        expression = self.formulas.get(member)
        if expression is None:
            return None
        if member in self._resolving:
            # Every formula from the re-entered one to the innermost is part of the cycle
            self._cyclic.update(self._resolving[self._resolving.index(member) :])
            raise EvaluationError(f"Circular formula reference: formula.{member}")

        self._resolving.append(member)
        try:
            value = self.engine.evaluate(expression, self.context)
        finally:
            self._resolving.pop()

        if member not in self._cyclic:
            return value

        self.engine.store(expression, self.context, None)
        if self._resolving and self._resolving[-1] in self._cyclic:
            raise EvaluationError(f"Circular formula reference: formula.{member}")
        return None

    def to_dict(self) -> dict[str, Any]:
        return {name: self.get(name) for name in self.formulas}


class FormulaEngine:
    """Evaluates formulas with a (document path, expression text) memoization table."""

    def __init__(self):
        self._cache: dict[tuple[str, str], Any] = {}

    def evaluate(self, expression: str, context: EvaluationContext) -> Any:
        """
        Evaluate one formula expression for a document, using the cache.

        A failing formula evaluates to None; the failure is logged, not raised.
        """
        key = (context.path, expression)
        if key in self._cache:
            return self._cache[key]

        try:
            value = ExpressionEvaluator(context).evaluate(expression)
        except EvaluationError as e:
            hint = error_hint(e, expression)
            logger.debug(
                f"Formula evaluation failed for {context.path}: {expression!r}: {e} ({hint.hint})"
            )
            value = None

        self._cache[key] = value
        return value

    def store(self, expression: str, context: EvaluationContext, value: Any) -> None:
        """Overwrite the cached value of a formula for a document."""
        self._cache[(context.path, expression)] = value

    def attach(self, formulas: dict[str, str], context: EvaluationContext) -> FormulaNamespace:
        """Install the formula namespace on a context so expressions can read formula.*"""
        namespace = FormulaNamespace(self, formulas, context)
        context.formulas = namespace
        return namespace

    def evaluate_all(self, formulas: dict[str, str], context: EvaluationContext) -> dict[str, Any]:
        """Evaluate every formula for a document, in definition order."""
        namespace = self.attach(formulas, context)
        return namespace.to_dict()

    def clear(self) -> None:
        """Clear the whole cache."""
        self._cache.clear()

    def clear_for_document(self, path: str) -> None:
        """Drop cached values for one document, e.g. after it changed."""
        for key in [key for key in self._cache if key[0] == path]:
            del self._cache[key]

    @property
    def cache_size(self) -> int:
        return len(self._cache)
