"""Boolean tag expressions: parsing and evaluation.

Example:
    predicate = parse('era = "ww1" AND NOT country = "Germany"')
    evaluate(predicate, [Tag(name="era", value="ww1"), Tag(name="country", value="France")])
"""

from ._evaluator import build_tag_index, evaluate
from ._nodes import (
    And,
    AnonymousTag,
    Not,
    Or,
    Predicate,
    TagEquals,
    TagExists,
    TagIndex,
    TagNotEquals,
)
from ._parser import MAX_NESTING_DEPTH, clear_parse_cache, parse
from ._tokens import Token, TokenKind, tokenize

__all__ = [
    "MAX_NESTING_DEPTH",
    "And",
    "AnonymousTag",
    "Not",
    "Or",
    "Predicate",
    "TagEquals",
    "TagExists",
    "TagIndex",
    "TagNotEquals",
    "Token",
    "TokenKind",
    "build_tag_index",
    "clear_parse_cache",
    "evaluate",
    "parse",
    "tokenize",
]
