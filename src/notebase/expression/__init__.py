"""
Expression language for filters and formulas.

Expressions are parsed by a recursive-descent parser into an AST and evaluated
by a tree-walking evaluator against a per-document context.
"""

from notebase.expression.context import EvaluationContext, FileNamespace, MappingNamespace, Namespace
from notebase.expression.evaluator import ExpressionEvaluator, evaluate
from notebase.expression.lexer import ExpressionLexer, Token, TokenType
from notebase.expression.parser import ExpressionParser, parse_expression
from notebase.expression.values import to_date, to_number, to_string, truthy

__all__ = [
    # Context
    "EvaluationContext",
    "FileNamespace",
    "MappingNamespace",
    "Namespace",
    # Evaluator
    "ExpressionEvaluator",
    "evaluate",
    # Lexer
    "ExpressionLexer",
    "Token",
    "TokenType",
    # Parser
    "ExpressionParser",
    "parse_expression",
    # Values
    "to_date",
    "to_number",
    "to_string",
    "truthy",
]
