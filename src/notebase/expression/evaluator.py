"""
Expression evaluator.

Walks the AST produced by the parser and evaluates it against an evaluation
context. Names resolve only against the context namespaces and the built-in
function table; nothing in an expression can reach host objects, attributes
or I/O.
"""

from typing import Any

from notebase.errors import EvaluationError
from notebase.expression.ast import (
    BinaryOpNode,
    CallNode,
    ExpressionNode,
    IdentifierNode,
    IndexNode,
    ListNode,
    LiteralNode,
    MemberNode,
    UnaryOpNode,
)
from notebase.expression.context import EvaluationContext, Namespace
from notebase.expression.functions import (
    BUILTIN_FUNCTIONS,
    LAZY_FUNCTIONS,
    RESERVED_FUNCTION_NAMES,
    call_value_method,
)
from notebase.expression.parser import parse_expression
from notebase.expression.values import (
    arithmetic,
    compare,
    is_number,
    loose_equals,
    normalize_number,
    to_number,
    truthy,
)

NAMESPACE_ROOTS = ("file", "note", "formula")


class ExpressionEvaluator:
    """Evaluates expressions in the context of one document."""

    def __init__(self, context: EvaluationContext):
        self.context = context

    def evaluate(self, expression: str | ExpressionNode) -> Any:
        """
        Evaluate an expression string or AST node.

        Args:
            expression: Expression text or parsed AST

        Returns:
            The resulting value (None for null)

        Raises:
            EvaluationError: If the expression is malformed or fails at runtime
        """
        text = expression if isinstance(expression, str) else None
        try:
            node = parse_expression(expression) if isinstance(expression, str) else expression
            return self._finalize(self._evaluate(node))
        except EvaluationError as e:
            raise e.with_expression(text) if text is not None else e
        except (ArithmeticError, TypeError, ValueError, RecursionError) as e:
            raise EvaluationError(
                f"Evaluation failed: {e}", expression=text, cause=e
            ) from e

    def resolve_path(self, path: str) -> Any:
        """Resolve a property path such as ``file.name``, ``formula.x`` or ``status``.

        Used for sort keys and projection, where paths are not necessarily
        valid expressions (e.g. property names containing spaces).
        """
        root, _, rest = path.partition(".")
        if root in NAMESPACE_ROOTS and rest:
            namespace = self.context.namespace(root)
            value = namespace.get(rest)
            if value is None and "." in rest:
                head, _, tail = rest.partition(".")
                value = self._walk(namespace.get(head), tail)
            return self._finalize(value)

        if path in self.context.note:
            return self.context.note[path]
        if rest:
            return self._finalize(self._walk(self.context.note.get(root), rest))
        return None

    def _walk(self, value: Any, dotted: str) -> Any:
        for part in dotted.split("."):
            value = self._member(value, part)
        return value

    def _finalize(self, value: Any) -> Any:
        if isinstance(value, Namespace):
            return value.to_dict()
        return value

    def _evaluate(self, node: ExpressionNode) -> Any:
        if isinstance(node, LiteralNode):
            return node.value

        if isinstance(node, IdentifierNode):
            return self._identifier(node.name)

        if isinstance(node, MemberNode):
            return self._member(self._evaluate(node.object), node.name)

        if isinstance(node, IndexNode):
            return self._index(self._evaluate(node.object), self._evaluate(node.index))

        if isinstance(node, ListNode):
            return [self._finalize(self._evaluate(item)) for item in node.items]

        if isinstance(node, CallNode):
            return self._call(node)

        if isinstance(node, UnaryOpNode):
            return self._unary(node.operator, self._evaluate(node.operand))

        if isinstance(node, BinaryOpNode):
            return self._binary(node)

        raise EvaluationError(f"Unknown expression type: {type(node).__name__}")

    def _identifier(self, name: str) -> Any:
        """Namespace roots first, then note properties; missing names are null."""
        namespace = self.context.namespace(name)
        if namespace is not None:
            return namespace
        return self.context.note.get(name)

    def _member(self, value: Any, name: str) -> Any:
        if isinstance(value, Namespace):
            return value.get(name)
        if isinstance(value, dict):
            return value.get(name)
        if name == "length" and isinstance(value, (str, list)):
            return len(value)
        return None

    def _index(self, value: Any, index: Any) -> Any:
        if isinstance(value, (list, str)) and is_number(index):
            position = int(index)
            if 0 <= position < len(value):
                return value[position]
            return None
        if isinstance(index, str):
            return self._member(value, index)
        return None

    def _call(self, node: CallNode) -> Any:
        callee = node.callee

        if isinstance(callee, IdentifierNode):
            name = callee.name
            if name in LAZY_FUNCTIONS:
                return self._conditional(name, node.arguments)
            function = BUILTIN_FUNCTIONS.get(name)
            if function is None:
                hint = RESERVED_FUNCTION_NAMES.get(name)
                raise EvaluationError(hint or f"Unknown function: {name}()")
            args = [self._finalize(self._evaluate(arg)) for arg in node.arguments]
            try:
                return function(*args)
            except TypeError as e:
                raise EvaluationError(f"Invalid arguments for {name}(): {e}", cause=e)

        if isinstance(callee, MemberNode):
            target = self._evaluate(callee.object)
            args = [self._finalize(self._evaluate(arg)) for arg in node.arguments]
            if isinstance(target, Namespace):
                return target.call(callee.name, args)
            if target is None:
                raise EvaluationError(f"Cannot call {callee.name}() on null")
            return call_value_method(target, callee.name, args)

        raise EvaluationError("Only named functions can be called")

    def _conditional(self, name: str, arguments: list[ExpressionNode]) -> Any:
        if len(arguments) not in (2, 3):
            raise EvaluationError(f"{name}() requires 2 or 3 arguments")
        if truthy(self._evaluate(arguments[0])):
            return self._finalize(self._evaluate(arguments[1]))
        if len(arguments) == 3:
            return self._finalize(self._evaluate(arguments[2]))
        return None

    def _unary(self, operator: str, value: Any) -> Any:
        if operator == "not":
            return not truthy(value)
        if operator == "-":
            if value is None:
                return None
            number = to_number(value)
            if number is None:
                raise EvaluationError(f"Cannot negate {value!r}")
            return normalize_number(-number)
        raise EvaluationError(f"Unknown operator: {operator}")

    def _binary(self, node: BinaryOpNode) -> Any:
        operator = node.operator

        # Short-circuit
        if operator == "and":
            return truthy(self._evaluate(node.left)) and truthy(self._evaluate(node.right))
        if operator == "or":
            return truthy(self._evaluate(node.left)) or truthy(self._evaluate(node.right))

        left = self._finalize(self._evaluate(node.left))
        right = self._finalize(self._evaluate(node.right))

        if operator == "==":
            return loose_equals(left, right)
        if operator == "!=":
            return not loose_equals(left, right)

        if operator in ("<", ">", "<=", ">="):
            result = compare(left, right)
            if result is None:
                return False
            if operator == "<":
                return result < 0
            if operator == ">":
                return result > 0
            if operator == "<=":
                return result <= 0
            return result >= 0

        return arithmetic(operator, left, right)


def evaluate(expression: str, context: EvaluationContext) -> Any:
    """Evaluate one expression string against a context."""
    return ExpressionEvaluator(context).evaluate(expression)
