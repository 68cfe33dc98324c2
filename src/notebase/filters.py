"""
Filter evaluator.

Evaluates a filter tree (string leaves combined with ``and``/``or``/``not``)
against one document's evaluation context.
"""

from typing import Any

from loguru import logger

from notebase.errors import EvaluationError
from notebase.expression.context import EvaluationContext
from notebase.expression.evaluator import ExpressionEvaluator
from notebase.expression.values import truthy
from notebase.reference import error_hint


class FilterEvaluator:
    """Matches documents against filter trees.

    A leaf that fails to evaluate does not match; errors never escape ``matches``.
    """

    def matches(self, filter_expression: Any, context: EvaluationContext) -> bool:
        """
        Check whether a document matches a filter tree.

        Args:
            filter_expression: Expression string, {and: [...]}, {or: [...]}, {not: [...]} or None
            context: Evaluation context of the document

        Returns:
            True if the document matches
        """
        if filter_expression is None:
            return True

        if isinstance(filter_expression, str):
            return self._match_leaf(filter_expression, context)

        if isinstance(filter_expression, dict) and len(filter_expression) == 1:
            key, children = next(iter(filter_expression.items()))
            if not isinstance(children, list):
                children = [children]

            if key == "and":
                return all(self.matches(child, context) for child in children)
            if key == "or":
                return any(self.matches(child, context) for child in children)
            if key == "not":
                # not: [a, b] matches only when neither a nor b matches
                return not any(self.matches(child, context) for child in children)

        logger.warning(f"Unsupported filter shape for {context.path}: {filter_expression!r}")
        return False

    def _match_leaf(self, expression: str, context: EvaluationContext) -> bool:
        try:
            return truthy(ExpressionEvaluator(context).evaluate(expression))
        except EvaluationError as e:
            hint = error_hint(e, expression)
            logger.warning(
                f"Filter evaluation failed for {context.path}: {expression!r}: {e} ({hint.hint})"
            )
            return False
