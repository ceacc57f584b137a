"""Tokenizer for boolean tag expressions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from opentimeline.utils.exceptions import ParseError

logger = logging.getLogger(__name__)


class TokenKind(StrEnum):
    """Kinds of lexical tokens."""

    IDENT = "identifier"
    STRING = "string"
    LPAREN = "'('"
    RPAREN = "')'"
    EQ = "'='"
    NEQ = "'!='"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    EXISTS = "exists"
    END = "end of expression"


@dataclass(frozen=True)
class Token:
    """A lexical token and the offset where it starts."""

    kind: TokenKind
    text: str
    position: int


# Reserved words, matched case-insensitively
KEYWORDS = {
    "and": TokenKind.AND,
    "or": TokenKind.OR,
    "not": TokenKind.NOT,
    "exists": TokenKind.EXISTS,
}

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
}

# Characters that start an operator this grammar does not support
_OPERATOR_CHARS = set("=!<>&|~^+*%")

_IDENT_EXTRA_CHARS = set("_.:-")


def _is_ident_start(char: str) -> bool:
    return char.isalpha() or char == "_"


def _is_ident_char(char: str) -> bool:
    return char.isalnum() or char in _IDENT_EXTRA_CHARS


def tokenize(expression: str) -> list[Token]:
    """Split an expression into tokens, ending with an END token.

    Args:
        expression: Expression text.

    Returns:
        Token list.

    Raises:
        ParseError: On an unterminated string, a bad escape, an unsupported
            operator or an unexpected character.
    """
    tokens: list[Token] = []
    length = len(expression)
    i = 0
    while i < length:
        char = expression[i]

        if char.isspace():
            i += 1
        elif char == "(":
            tokens.append(Token(TokenKind.LPAREN, char, i))
            i += 1
        elif char == ")":
            tokens.append(Token(TokenKind.RPAREN, char, i))
            i += 1
        elif char == '"':
            value, i_end = _read_string(expression, i)
            tokens.append(Token(TokenKind.STRING, value, i))
            i = i_end
        elif char in _OPERATOR_CHARS:
            operator, i_end = _read_operator(expression, i)
            if operator == "=":
                tokens.append(Token(TokenKind.EQ, operator, i))
            elif operator == "!=":
                tokens.append(Token(TokenKind.NEQ, operator, i))
            else:
                raise ParseError(f"Unknown operator '{operator}'", i, expression)
            i = i_end
        elif _is_ident_start(char):
            start = i
            while i < length and _is_ident_char(expression[i]):
                i += 1
            word = expression[start:i]
            kind = KEYWORDS.get(word.lower(), TokenKind.IDENT)
            tokens.append(Token(kind, word, start))
        else:
            raise ParseError(f"Unexpected character {char!r}", i, expression)

    tokens.append(Token(TokenKind.END, "", length))
    logger.debug("Tokenized expression into %d tokens", len(tokens))
    return tokens


def _read_operator(expression: str, start: int) -> tuple[str, int]:
    end = start
    while end < len(expression) and expression[end] in _OPERATOR_CHARS:
        end += 1
    return expression[start:end], end


def _read_string(expression: str, start: int) -> tuple[str, int]:
    """Read a double-quoted string starting at ``start``.

    Returns:
        The unescaped value and the offset just past the closing quote.
    """
    chars: list[str] = []
    i = start + 1
    length = len(expression)
    while i < length:
        char = expression[i]
        if char == '"':
            return "".join(chars), i + 1
        if char == "\\":
            if i + 1 >= length:
                break
            escape = expression[i + 1]
            if escape in _SIMPLE_ESCAPES:
                chars.append(_SIMPLE_ESCAPES[escape])
                i += 2
            elif escape == "u":
                digits = expression[i + 2 : i + 6]
                if len(digits) != 4 or not all(c in "0123456789abcdefABCDEF" for c in digits):
                    raise ParseError("Invalid unicode escape", i, expression)
                chars.append(chr(int(digits, 16)))
                i += 6
            else:
                raise ParseError(f"Invalid escape sequence '\\{escape}'", i, expression)
        else:
            chars.append(char)
            i += 1
    raise ParseError("Unterminated string", start, expression)
