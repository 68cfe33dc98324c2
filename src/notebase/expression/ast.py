"""
Abstract Syntax Tree (AST) definitions for expressions.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ExpressionNode:
    """Base class for expression nodes in the AST."""

    pass


@dataclass
class LiteralNode(ExpressionNode):
    """Literal value (string, number, boolean, null)."""

    value: Any


@dataclass
class ListNode(ExpressionNode):
    """List literal (e.g., '["a", "b"]')."""

    items: list[ExpressionNode]


@dataclass
class IdentifierNode(ExpressionNode):
    """Bare name (e.g., 'status', 'file', 'formula')."""

    name: str


@dataclass
class MemberNode(ExpressionNode):
    """Member access (e.g., 'file.name', 'note.status')."""

    object: ExpressionNode
    name: str


@dataclass
class IndexNode(ExpressionNode):
    """Index access (e.g., 'tags[0]', 'note["due date"]')."""

    object: ExpressionNode
    index: ExpressionNode


@dataclass
class CallNode(ExpressionNode):
    """Function or method call (e.g., 'date(due)', 'file.hasTag("x")')."""

    callee: ExpressionNode
    arguments: list[ExpressionNode]


@dataclass
class UnaryOpNode(ExpressionNode):
    """Unary operation: 'not' or '-'."""

    operator: str
    operand: ExpressionNode


@dataclass
class BinaryOpNode(ExpressionNode):
    """Binary operation (e.g., 'status == "active"', 'a and b', 'price * 2')."""

    operator: str  # ==, !=, <, >, <=, >=, +, -, *, /, %, and, or
    left: ExpressionNode
    right: ExpressionNode


def property_path(node: ExpressionNode) -> Optional[str]:
    """Return the dotted path of an identifier/member chain, or None for other nodes.

    >>> property_path(MemberNode(IdentifierNode("file"), "name"))
    'file.name'
    """
    if isinstance(node, IdentifierNode):
        return node.name
    if isinstance(node, MemberNode):
        parent = property_path(node.object)
        if parent is None:
            return None
        return f"{parent}.{node.name}"
    return None
