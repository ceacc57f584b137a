"""Recursive-descent parser for boolean tag expressions.

Grammar (precedence low -> high)::

    expr     := and_expr ( OR and_expr )*
    and_expr := not_expr ( AND not_expr )*
    not_expr := NOT not_expr | primary
    primary  := "(" expr ")" | leaf
    leaf     := IDENT "=" STRING
              | IDENT "!=" STRING
              | IDENT "exists"
              | IDENT "not" "exists"
              | STRING
"""

from __future__ import annotations

import functools
import logging

from opentimeline.utils.exceptions import ParseError

from ._nodes import (
    And,
    AnonymousTag,
    Not,
    Or,
    Predicate,
    TagEquals,
    TagExists,
    TagNotEquals,
)
from ._tokens import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)

# Expressions are shared by many evaluations, so parse results are cached
PARSE_CACHE_SIZE = 256

# Deepest chain of NOT operators and parentheses accepted in one expression
MAX_NESTING_DEPTH = 100


def parse(expression: str | None) -> Predicate | None:
    """Compile an expression into a predicate tree.

    Args:
        expression: Expression text. ``None``, empty or whitespace-only text
            means "match nothing via expression" and is not an error.

    Returns:
        The predicate, or None for an empty expression.

    Raises:
        ParseError: If the expression is malformed.
    """
    if expression is None or not expression.strip():
        return None
    return _parse_cached(expression)


@functools.lru_cache(maxsize=PARSE_CACHE_SIZE)
def _parse_cached(expression: str) -> Predicate:
    # Note: lru_cache does not cache raised ParseErrors, so malformed
    # expressions are re-tokenized on every call.
    predicate = _Parser(expression).parse()
    logger.debug("Parsed expression %r -> %s", expression, predicate)
    return predicate


def clear_parse_cache() -> None:
    """Drop all cached parse results."""
    _parse_cached.cache_clear()


class _Parser:
    """Single-use parser over one expression's token list."""

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = tokenize(expression)
        self.index = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind is not TokenKind.END:
            self.index += 1
        return token

    def _error(self, reason: str, token: Token | None = None) -> ParseError:
        token = token or self.current
        return ParseError(reason, token.position, self.expression)

    def _enter(self, token: Token) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise self._error(
                f"Expression nested too deeply (limit {MAX_NESTING_DEPTH})", token
            )

    def _expect(self, kind: TokenKind, context: str) -> Token:
        token = self.current
        if token.kind is not kind:
            raise self._error(f"Expected {kind.value} {context}, found {_describe(token)}")
        return self._advance()

    def parse(self) -> Predicate:
        predicate = self._parse_or()
        token = self.current
        if token.kind is TokenKind.RPAREN:
            raise self._error("Unbalanced ')'")
        if token.kind is not TokenKind.END:
            raise self._error(f"Unexpected {_describe(token)}")
        return predicate

    def _parse_or(self) -> Predicate:
        operands = [self._parse_and()]
        while self.current.kind is TokenKind.OR:
            self._advance()
            operands.append(self._parse_and())
        return operands[0] if len(operands) == 1 else Or(tuple(operands))

    def _parse_and(self) -> Predicate:
        operands = [self._parse_not()]
        while self.current.kind is TokenKind.AND:
            self._advance()
            operands.append(self._parse_not())
        return operands[0] if len(operands) == 1 else And(tuple(operands))

    def _parse_not(self) -> Predicate:
        if self.current.kind is TokenKind.NOT:
            self._enter(self._advance())
            operand = self._parse_not()
            self.depth -= 1
            return Not(operand)
        return self._parse_primary()

    def _parse_primary(self) -> Predicate:
        token = self.current
        if token.kind is TokenKind.LPAREN:
            self._enter(self._advance())
            inner = self._parse_or()
            if self.current.kind is not TokenKind.RPAREN:
                raise self._error("Unbalanced '('", token)
            self._advance()
            self.depth -= 1
            return inner
        if token.kind is TokenKind.STRING:
            self._advance()
            return AnonymousTag(token.text)
        if token.kind is TokenKind.IDENT:
            return self._parse_leaf()
        if token.kind is TokenKind.END:
            raise self._error("Unexpected end of expression")
        raise self._error(f"Expected a tag predicate, found {_describe(token)}")

    def _parse_leaf(self) -> Predicate:
        name = self._advance().text
        token = self.current
        if token.kind is TokenKind.EQ:
            self._advance()
            value = self._expect(TokenKind.STRING, f"after '{name} ='")
            return TagEquals(name, value.text)
        if token.kind is TokenKind.NEQ:
            self._advance()
            value = self._expect(TokenKind.STRING, f"after '{name} !='")
            return TagNotEquals(name, value.text)
        if token.kind is TokenKind.EXISTS:
            self._advance()
            return TagExists(name)
        if token.kind is TokenKind.NOT:
            self._advance()
            self._expect(TokenKind.EXISTS, f"after '{name} not'")
            return TagExists(name, negated=True)
        if token.kind is TokenKind.IDENT:
            raise self._error(f"Unknown operator '{token.text}'")
        raise self._error(
            f"Expected '=', '!=', 'exists' or 'not exists' after '{name}', "
            f"found {_describe(token)}"
        )


def _describe(token: Token) -> str:
    if token.kind in (TokenKind.IDENT, TokenKind.STRING):
        return f"{token.kind.value} {token.text!r}"
    return token.kind.value
