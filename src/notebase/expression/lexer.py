"""
Lexical analyzer (tokenizer) for filter and formula expressions.
"""

from dataclasses import dataclass
from enum import Enum, auto

from notebase.errors import ExpressionSyntaxError


class TokenType(Enum):
    """Token types for expressions."""

    # Boolean operators (symbolic and keyword forms share a type)
    AND = auto()  # && / and
    OR = auto()  # || / or
    NOT = auto()  # ! / not

    # Comparison
    EQUALS = auto()  # ==
    NOT_EQUALS = auto()  # !=
    LESS_THAN = auto()  # <
    GREATER_THAN = auto()  # >
    LESS_EQUAL = auto()  # <=
    GREATER_EQUAL = auto()  # >=

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()

    # Literals
    STRING = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    NULL = auto()

    IDENTIFIER = auto()

    # Punctuation
    COMMA = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    DOT = auto()

    EOF = auto()


@dataclass
class Token:
    """A token in an expression."""

    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class ExpressionLexer:
    """Tokenizer for expressions."""

    KEYWORDS = {
        "and": TokenType.AND,
        "or": TokenType.OR,
        "not": TokenType.NOT,
        "true": TokenType.BOOLEAN,
        "false": TokenType.BOOLEAN,
        "null": TokenType.NULL,
        "undefined": TokenType.NULL,
    }

    TWO_CHAR_OPERATORS = {
        "==": TokenType.EQUALS,
        "!=": TokenType.NOT_EQUALS,
        "<=": TokenType.LESS_EQUAL,
        ">=": TokenType.GREATER_EQUAL,
        "&&": TokenType.AND,
        "||": TokenType.OR,
    }

    SINGLE_CHAR_TOKENS = {
        "<": TokenType.LESS_THAN,
        ">": TokenType.GREATER_THAN,
        "!": TokenType.NOT,
        "+": TokenType.PLUS,
        "-": TokenType.MINUS,
        "*": TokenType.STAR,
        "/": TokenType.SLASH,
        "%": TokenType.PERCENT,
        ",": TokenType.COMMA,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
        "[": TokenType.LBRACKET,
        "]": TokenType.RBRACKET,
        ".": TokenType.DOT,
    }

    ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the entire input."""
        while self.pos < len(self.text):
            self._skip_whitespace()
            if self.pos >= len(self.text):
                break

            if not self._try_tokenize_one():
                char = self.text[self.pos]
                if char == "=":
                    raise ExpressionSyntaxError(
                        "Unexpected '=' (use '==' for comparison)", self.line, self.column
                    )
                raise ExpressionSyntaxError(f"Unexpected character '{char}'", self.line, self.column)

        self.tokens.append(Token(TokenType.EOF, "", self.line, self.column))
        return self.tokens

    def _try_tokenize_one(self) -> bool:
        """Try to tokenize one token. Returns True if successful."""
        if self._match_string():
            return True

        if self._match_number():
            return True

        # Operators before punctuation so that != is not read as !
        if self._match_operator():
            return True

        if self._match_identifier():
            return True

        return False

    def _skip_whitespace(self):
        """Skip whitespace but track newlines."""
        while self.pos < len(self.text) and self.text[self.pos] in " \t\r\n":
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def _advance(self, count: int = 1):
        self.pos += count
        self.column += count

    def _match_string(self) -> bool:
        """Match string literals."""
        if self.text[self.pos] not in ('"', "'"):
            return False

        quote = self.text[self.pos]
        start_col = self.column
        start_line = self.line
        self._advance()

        value = ""
        while self.pos < len(self.text) and self.text[self.pos] != quote:
            if self.text[self.pos] == "\\":
                self._advance()
                if self.pos < len(self.text):
                    escaped = self.text[self.pos]
                    value += self.ESCAPES.get(escaped, escaped)
                    self._advance()
            else:
                if self.text[self.pos] == "\n":
                    self.line += 1
                    self.column = 0
                value += self.text[self.pos]
                self._advance()

        if self.pos >= len(self.text):
            raise ExpressionSyntaxError("Unterminated string", start_line, start_col)

        self._advance()  # closing quote
        self.tokens.append(Token(TokenType.STRING, value, start_line, start_col))
        return True

    def _match_number(self) -> bool:
        """Match numeric literals. Negative numbers are unary minus in the parser."""
        if not self.text[self.pos].isdigit():
            return False

        start_col = self.column
        value = ""

        while self.pos < len(self.text) and self.text[self.pos].isdigit():
            value += self.text[self.pos]
            self._advance()

        # Decimal part only when a digit follows the dot
        if (
            self.pos + 1 < len(self.text)
            and self.text[self.pos] == "."
            and self.text[self.pos + 1].isdigit()
        ):
            value += "."
            self._advance()
            while self.pos < len(self.text) and self.text[self.pos].isdigit():
                value += self.text[self.pos]
                self._advance()

        self.tokens.append(Token(TokenType.NUMBER, value, self.line, start_col))
        return True

    def _match_operator(self) -> bool:
        """Match operators and punctuation."""
        start_col = self.column

        two_char = self.text[self.pos : self.pos + 2]
        token_type = self.TWO_CHAR_OPERATORS.get(two_char)
        if token_type:
            self.tokens.append(Token(token_type, two_char, self.line, start_col))
            self._advance(2)
            return True

        char = self.text[self.pos]
        token_type = self.SINGLE_CHAR_TOKENS.get(char)
        if token_type:
            self.tokens.append(Token(token_type, char, self.line, start_col))
            self._advance()
            return True

        return False

    def _match_identifier(self) -> bool:
        """Match identifiers and keywords."""
        if not (self.text[self.pos].isalpha() or self.text[self.pos] == "_"):
            return False

        start_col = self.column
        value = ""

        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char.isalnum() or char == "_":
                value += char
                self._advance()
            else:
                break

        token_type = self.KEYWORDS.get(value)
        if token_type:
            self.tokens.append(Token(token_type, value, self.line, start_col))
        else:
            self.tokens.append(Token(TokenType.IDENTIFIER, value, self.line, start_col))

        return True
