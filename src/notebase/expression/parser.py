"""
Parser for expressions.

Converts tokens into an Abstract Syntax Tree (AST). Precedence, lowest first:

    or  ->  and  ->  == !=  ->  < <= > >=  ->  + -  ->  * / %  ->  unary  ->  postfix
"""

from functools import lru_cache

from notebase.errors import ExpressionSyntaxError
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
from notebase.expression.lexer import ExpressionLexer, Token, TokenType


class ExpressionParser:
    """Recursive-descent parser for expressions."""

    EQUALITY_OPERATORS = {
        TokenType.EQUALS: "==",
        TokenType.NOT_EQUALS: "!=",
    }

    COMPARISON_OPERATORS = {
        TokenType.LESS_THAN: "<",
        TokenType.GREATER_THAN: ">",
        TokenType.LESS_EQUAL: "<=",
        TokenType.GREATER_EQUAL: ">=",
    }

    ADDITIVE_OPERATORS = {
        TokenType.PLUS: "+",
        TokenType.MINUS: "-",
    }

    MULTIPLICATIVE_OPERATORS = {
        TokenType.STAR: "*",
        TokenType.SLASH: "/",
        TokenType.PERCENT: "%",
    }

    # Keyword tokens that are still valid member names after a dot (note.not, file.null)
    NAME_TOKENS = (
        TokenType.IDENTIFIER,
        TokenType.AND,
        TokenType.OR,
        TokenType.NOT,
        TokenType.BOOLEAN,
        TokenType.NULL,
    )

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    @classmethod
    def parse(cls, expression_text: str) -> ExpressionNode:
        """Parse an expression string into an AST."""
        if not expression_text or not expression_text.strip():
            raise ExpressionSyntaxError("Empty expression", expression=expression_text)
        try:
            lexer = ExpressionLexer(expression_text)
            tokens = lexer.tokenize()
            parser = cls(tokens)
            return parser.parse_expression()
        except ExpressionSyntaxError as e:
            raise e.with_expression(expression_text)

    def parse_expression(self) -> ExpressionNode:
        """Parse a complete expression; trailing tokens are an error."""
        expr = self._parse_or_expression()
        if not self._is_at_end():
            raise self._error(f"Unexpected token: {self._current().value}")
        return expr

    def _parse_or_expression(self) -> ExpressionNode:
        left = self._parse_and_expression()

        while self._check(TokenType.OR):
            self._advance()
            right = self._parse_and_expression()
            left = BinaryOpNode(operator="or", left=left, right=right)

        return left

    def _parse_and_expression(self) -> ExpressionNode:
        left = self._parse_equality_expression()

        while self._check(TokenType.AND):
            self._advance()
            right = self._parse_equality_expression()
            left = BinaryOpNode(operator="and", left=left, right=right)

        return left

    def _parse_equality_expression(self) -> ExpressionNode:
        return self._parse_binary_level(self.EQUALITY_OPERATORS, self._parse_comparison_expression)

    def _parse_comparison_expression(self) -> ExpressionNode:
        return self._parse_binary_level(self.COMPARISON_OPERATORS, self._parse_additive_expression)

    def _parse_additive_expression(self) -> ExpressionNode:
        return self._parse_binary_level(
            self.ADDITIVE_OPERATORS, self._parse_multiplicative_expression
        )

    def _parse_multiplicative_expression(self) -> ExpressionNode:
        return self._parse_binary_level(self.MULTIPLICATIVE_OPERATORS, self._parse_unary_expression)

    def _parse_binary_level(self, operators, parse_operand) -> ExpressionNode:
        """Parse a left-associative chain of one precedence level."""
        left = parse_operand()

        while self._current().type in operators:
            operator = operators[self._advance().type]
            right = parse_operand()
            left = BinaryOpNode(operator=operator, left=left, right=right)

        return left

    def _parse_unary_expression(self) -> ExpressionNode:
        if self._check(TokenType.NOT):
            self._advance()
            return UnaryOpNode(operator="not", operand=self._parse_unary_expression())

        if self._check(TokenType.MINUS):
            self._advance()
            operand = self._parse_unary_expression()
            # Fold negative numeric literals
            if isinstance(operand, LiteralNode) and isinstance(operand.value, (int, float)):
                return LiteralNode(value=-operand.value)
            return UnaryOpNode(operator="-", operand=operand)

        if self._check(TokenType.PLUS):
            self._advance()
            return self._parse_unary_expression()

        return self._parse_postfix_expression()

    def _parse_postfix_expression(self) -> ExpressionNode:
        """Parse member access, indexing and calls following a primary expression."""
        expr = self._parse_primary_expression()

        while True:
            if self._check(TokenType.DOT):
                self._advance()
                if self._current().type not in self.NAME_TOKENS:
                    raise self._error("Expected property name after '.'")
                expr = MemberNode(object=expr, name=self._advance().value)
            elif self._check(TokenType.LBRACKET):
                self._advance()
                index = self._parse_or_expression()
                self._expect(TokenType.RBRACKET, "Expected ']' after index")
                expr = IndexNode(object=expr, index=index)
            elif self._check(TokenType.LPAREN):
                if not isinstance(expr, (IdentifierNode, MemberNode)):
                    raise self._error("Only named functions can be called")
                self._advance()
                args = self._parse_arguments(TokenType.RPAREN)
                self._expect(TokenType.RPAREN, "Expected ')' after function arguments")
                expr = CallNode(callee=expr, arguments=args)
            else:
                return expr

    def _parse_primary_expression(self) -> ExpressionNode:
        """Parse primary expression (literals, names, lists, parentheses)."""
        token = self._current()

        if token.type == TokenType.STRING:
            self._advance()
            return LiteralNode(value=token.value)

        if token.type == TokenType.NUMBER:
            self._advance()
            if "." in token.value:
                return LiteralNode(value=float(token.value))
            return LiteralNode(value=int(token.value))

        if token.type == TokenType.BOOLEAN:
            self._advance()
            return LiteralNode(value=token.value == "true")

        if token.type == TokenType.NULL:
            self._advance()
            return LiteralNode(value=None)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return IdentifierNode(name=token.value)

        if token.type == TokenType.LBRACKET:
            self._advance()
            items = self._parse_arguments(TokenType.RBRACKET)
            self._expect(TokenType.RBRACKET, "Expected ']' after list items")
            return ListNode(items=items)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_or_expression()
            self._expect(TokenType.RPAREN, "Expected ')' after expression")
            return expr

        if token.type == TokenType.EOF:
            raise self._error("Unexpected end of expression")

        raise self._error(f"Unexpected token: {token.value}")

    def _parse_arguments(self, closing: TokenType) -> list[ExpressionNode]:
        """Parse a comma-separated expression list up to (not including) the closing token."""
        args: list[ExpressionNode] = []

        if self._check(closing):
            return args

        args.append(self._parse_or_expression())

        while self._check(TokenType.COMMA):
            self._advance()
            if self._check(closing):
                break  # trailing comma
            args.append(self._parse_or_expression())

        return args

    # Helper methods

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if not self._check(token_type):
            raise self._error(message)
        return self._advance()

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _error(self, message: str) -> ExpressionSyntaxError:
        token = self._current()
        return ExpressionSyntaxError(message, token.line, token.column)


@lru_cache(maxsize=1024)
def parse_expression(expression_text: str) -> ExpressionNode:
    """Parse with memoization by expression text. Parsing is pure, so ASTs are shared."""
    return ExpressionParser.parse(expression_text)
