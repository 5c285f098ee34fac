"""
Filter expression language.

A filter expression is a conjunction of field comparisons::

    vcpus == 2 && ram >= 2048 && extraSpecs.cpu == "intel-icelake-generic"

Expressions are parsed once into an ordered tuple of clauses and then
evaluated against any number of catalog items. Only ``&&`` is supported;
there is no disjunction, negation or grouping.
"""

import operator
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from catalog_resolver.domain.catalog import PATH_SEPARATOR, CatalogItem
from catalog_resolver.domain.exceptions import InvalidFilterError
from catalog_resolver.domain.values import AttributeValue, ValueKind


class Operator(str, Enum):
    """Comparison operators of the filter language."""

    EQ = "=="
    NE = "!="
    GE = ">="
    LE = "<="
    GT = ">"
    LT = "<"

    @property
    def is_ordering(self) -> bool:
        return self in (Operator.GE, Operator.LE, Operator.GT, Operator.LT)


_ORDERING: dict[Operator, Callable[[float, float], bool]] = {
    Operator.GE: operator.ge,
    Operator.LE: operator.le,
    Operator.GT: operator.gt,
    Operator.LT: operator.lt,
}


class TokenType(str, Enum):
    IDENT = "identifier"
    DOT = "'.'"
    OP = "operator"
    AND = "'&&'"
    STRING = "string"
    NUMBER = "number"
    BOOL = "boolean"
    END = "end of expression"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    position: int
    value: object = None


_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_\-]*")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?")
_OPERATORS = ("==", "!=", ">=", "<=", ">", "<")
_UNSUPPORTED = {
    "||": "Disjunction is not supported",
    "|": "Disjunction is not supported",
    "!": "Negation is not supported",
    "(": "Grouping is not supported",
    ")": "Grouping is not supported",
    "=": "Unknown operator, use '=='",
    "&": "Unknown operator, use '&&'",
}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "'": "'"}


def tokenize(text: str) -> list[Token]:
    """Split an expression into tokens, rejecting unknown characters."""
    tokens: list[Token] = []
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char.isspace():
            pos += 1
            continue
        if text.startswith("&&", pos):
            tokens.append(Token(TokenType.AND, "&&", pos))
            pos += 2
            continue
        op = next((candidate for candidate in _OPERATORS if text.startswith(candidate, pos)), None)
        if op is not None:
            tokens.append(Token(TokenType.OP, op, pos, Operator(op)))
            pos += len(op)
            continue
        if char in ("'", '"'):
            token = _read_string(text, pos)
            tokens.append(token)
            pos += len(token.text)
            continue
        number = _NUMBER_RE.match(text, pos)
        if number and (char.isdigit() or char in "+-."):
            literal = number.group()
            is_float = any(marker in literal for marker in ".eE")
            tokens.append(Token(TokenType.NUMBER, literal, pos, float(literal) if is_float else int(literal)))
            pos = number.end()
            continue
        ident = _IDENT_RE.match(text, pos)
        if ident:
            word = ident.group()
            if word in ("true", "false"):
                tokens.append(Token(TokenType.BOOL, word, pos, word == "true"))
            else:
                tokens.append(Token(TokenType.IDENT, word, pos))
            pos = ident.end()
            continue
        if char == PATH_SEPARATOR:
            tokens.append(Token(TokenType.DOT, char, pos))
            pos += 1
            continue
        unsupported = text[pos : pos + 2] if text.startswith("||", pos) else char
        raise InvalidFilterError(_UNSUPPORTED.get(unsupported, "Unexpected character"), unsupported, pos)
    tokens.append(Token(TokenType.END, "", length))
    return tokens


def _read_string(text: str, start: int) -> Token:
    quote = text[start]
    pos = start + 1
    chars: list[str] = []
    while pos < len(text):
        char = text[pos]
        if char == "\\" and pos + 1 < len(text):
            chars.append(_ESCAPES.get(text[pos + 1], text[pos + 1]))
            pos += 2
            continue
        if char == quote:
            return Token(TokenType.STRING, text[start : pos + 1], start, "".join(chars))
        chars.append(char)
        pos += 1
    raise InvalidFilterError("Unterminated string literal", text[start:], start)


@dataclass(frozen=True)
class Clause:
    """A single ``field op literal`` comparison."""

    path: str
    operator: Operator
    literal: AttributeValue

    def matches(self, item: CatalogItem) -> bool:
        value = item.lookup(self.path)
        if value is None:
            return False
        if self.operator.is_ordering:
            if not (value.is_numeric and self.literal.is_numeric):
                return False
            return _ORDERING[self.operator](value.value, self.literal.value)
        equal = values_equal(value, self.literal)
        return equal if self.operator is Operator.EQ else not equal

    def __str__(self) -> str:
        literal = self.literal.value
        rendered = f'"{literal}"' if self.literal.kind is ValueKind.STRING else self.literal.text()
        return f"{self.path} {self.operator.value} {rendered}"


def values_equal(left: AttributeValue, right: AttributeValue) -> bool:
    """Equality across tagged values; values of different kinds never match."""
    if left.is_numeric and right.is_numeric:
        return left.value == right.value
    if left.kind is not right.kind or not left.is_scalar:
        return False
    return left.value == right.value


@dataclass(frozen=True)
class FilterExpression:
    """A parsed filter expression: all clauses must hold."""

    source: str
    clauses: tuple[Clause, ...]

    def matches(self, item: CatalogItem) -> bool:
        return all(clause.matches(item) for clause in self.clauses)

    def __call__(self, item: CatalogItem) -> bool:
        return self.matches(item)

    def __str__(self) -> str:
        return " && ".join(str(clause) for clause in self.clauses)


class _Parser:
    """Recursive-descent parser over the token list."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        if token.type is not TokenType.END:
            self.index += 1
        return token

    def fail(self, message: str, start: Optional[int] = None) -> InvalidFilterError:
        token = self.current
        begin = token.position if start is None else start
        end = token.position + len(token.text)
        fragment = self.text[begin:end].strip() or self.text[begin:].strip() or self.text.strip()
        return InvalidFilterError(message, fragment, begin)

    def parse(self) -> FilterExpression:
        clauses: list[Clause] = []
        if self.current.type is TokenType.END:
            return FilterExpression(self.text, ())
        clauses.append(self.comparison())
        while self.current.type is TokenType.AND:
            self.advance()
            if self.current.type is TokenType.END:
                raise self.fail("Expected comparison after '&&'", self.tokens[self.index - 1].position)
            clauses.append(self.comparison())
        if self.current.type is not TokenType.END:
            raise self.fail("Expected '&&' between comparisons")
        return FilterExpression(self.text, tuple(clauses))

    def comparison(self) -> Clause:
        start = self.current.position
        path = self.field_path()
        if self.current.type is not TokenType.OP:
            raise self.fail(f"Expected comparison operator after {path!r}", start)
        op = self.advance().value
        literal = self.literal(start)
        return Clause(path, op, literal)

    def field_path(self) -> str:
        start = self.current.position
        if self.current.type is not TokenType.IDENT:
            raise self.fail("Expected field path")
        segments = [self.advance().text]
        while self.current.type is TokenType.DOT:
            self.advance()
            if self.current.type is not TokenType.IDENT:
                raise self.fail("Malformed field path", start)
            segments.append(self.advance().text)
        return PATH_SEPARATOR.join(segments)

    def literal(self, clause_start: int) -> AttributeValue:
        token = self.current
        if token.type in (TokenType.STRING, TokenType.NUMBER, TokenType.BOOL):
            self.advance()
            return AttributeValue.of(token.value)
        raise self.fail("Expected string or number literal", clause_start)


def parse_expression(text: str) -> FilterExpression:
    """
    Parse a filter expression.

    Args:
        text: Raw expression, e.g. ``vcpus == 2 && ram >= 2048``

    Returns:
        The parsed expression; a blank string yields an expression that
        matches every item.

    Raises:
        InvalidFilterError: If the expression is malformed
    """
    return _Parser(text or "").parse()
