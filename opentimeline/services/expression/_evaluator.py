"""Evaluate predicate trees against an entity's tag multiset."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from opentimeline.memory.entities import Tag

from ._nodes import Predicate, TagIndex


def build_tag_index(tags: Iterable[Tag]) -> TagIndex:
    """Group tag values by name. Anonymous tags are grouped under ``None``.

    Duplicate (name, value) pairs collapse, which does not change any
    predicate's result.

    Args:
        tags: Tag multiset.

    Returns:
        Mapping of tag name to the set of its values.
    """
    index: defaultdict[str | None, set[str]] = defaultdict(set)
    for tag in tags:
        index[tag.name].add(tag.value)
    return dict(index)


def evaluate(predicate: Predicate | None, tags: Iterable[Tag]) -> bool:
    """Evaluate ``predicate`` against a tag multiset.

    Args:
        predicate: Parsed predicate. ``None`` (empty expression) matches nothing.
        tags: The entity's tags.

    Returns:
        True if the tags satisfy the predicate.
    """
    if predicate is None:
        return False
    return predicate.evaluate(build_tag_index(tags))
