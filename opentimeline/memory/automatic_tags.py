"""Automatic tags: derive extra tags from the tags an entity already has.

For example, an entity tagged ``role="king"`` can automatically receive
``kind="person"``. Rules are applied repeatedly until no new tag appears, so
chained rules (king -> person -> living-thing) work in a single expansion.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel, Field

from opentimeline.memory.entities import Tag

logger = logging.getLogger(__name__)


class TagRule(BaseModel):
    """If a tag multiset contains ``when``, it also gains ``add``."""

    when: Tag
    add: Tag


class AutomaticTags(BaseModel):
    """A set of tag implication rules."""

    rules: list[TagRule] = Field(default_factory=list)

    @classmethod
    def from_config(cls, raw_rules: Iterable[dict[str, Any]]) -> AutomaticTags:
        """Build from the ``automatic_tags`` settings list.

        Args:
            raw_rules: Dicts shaped like ``{"when": {...}, "add": {...}}``.

        Returns:
            AutomaticTags instance.
        """
        return cls(rules=[TagRule.model_validate(rule) for rule in raw_rules])

    def __bool__(self) -> bool:
        return bool(self.rules)

    def expand(self, tags: Sequence[Tag]) -> list[Tag]:
        """Return ``tags`` plus every tag implied by the rules.

        Original tags (including duplicates) are kept as-is and derived tags
        are appended once each, in rule order.

        Args:
            tags: The entity's tag multiset.

        Returns:
            The expanded tag list.
        """
        if not self.rules:
            return list(tags)

        expanded = list(tags)
        present = set(expanded)
        changed = True
        while changed:
            changed = False
            for rule in self.rules:
                if rule.when in present and rule.add not in present:
                    expanded.append(rule.add)
                    present.add(rule.add)
                    changed = True

        if len(expanded) != len(tags):
            logger.debug("Automatic tags added %d tag(s)", len(expanded) - len(tags))
        return expanded
