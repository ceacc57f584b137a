"""Tests for automatic tag rules."""

import pytest
from pydantic import ValidationError

from opentimeline.memory.automatic_tags import AutomaticTags, TagRule
from opentimeline.memory.entities import Tag

KING = Tag(name="role", value="king")
PERSON = Tag(name="kind", value="person")
LIVING = Tag(name="kind", value="living")


class TestAutomaticTags:
    """Tests for AutomaticTags.expand."""

    def test_empty_rules_is_falsy_and_identity(self):
        """Test no rules means no change."""
        rules = AutomaticTags()
        assert not rules
        assert rules.expand([KING]) == [KING]

    def test_single_rule(self):
        """Test a matching rule appends the derived tag."""
        rules = AutomaticTags(rules=[TagRule(when=KING, add=PERSON)])
        assert rules.expand([KING]) == [KING, PERSON]

    def test_non_matching_rule(self):
        """Test rules only fire on their trigger tag."""
        rules = AutomaticTags(rules=[TagRule(when=KING, add=PERSON)])
        other = Tag(name="role", value="queen")
        assert rules.expand([other]) == [other]

    def test_chained_rules_reach_fixed_point(self):
        """Test derived tags can trigger later rules regardless of rule order."""
        rules = AutomaticTags(
            rules=[TagRule(when=PERSON, add=LIVING), TagRule(when=KING, add=PERSON)]
        )
        assert rules.expand([KING]) == [KING, PERSON, LIVING]

    def test_existing_tag_not_duplicated(self):
        """Test a derived tag already present is not appended again."""
        rules = AutomaticTags(rules=[TagRule(when=KING, add=PERSON)])
        assert rules.expand([KING, PERSON]) == [KING, PERSON]

    def test_duplicates_in_input_kept(self):
        """Test the original multiset is preserved as-is."""
        rules = AutomaticTags(rules=[TagRule(when=KING, add=PERSON)])
        assert rules.expand([KING, KING]) == [KING, KING, PERSON]

    def test_rule_cycle_terminates(self):
        """Test mutually implying rules still terminate."""
        rules = AutomaticTags(
            rules=[TagRule(when=KING, add=PERSON), TagRule(when=PERSON, add=KING)]
        )
        assert rules.expand([PERSON]) == [PERSON, KING]


class TestFromConfig:
    """Tests for building rules from settings."""

    def test_from_config(self):
        """Test rule dicts are validated into TagRules."""
        rules = AutomaticTags.from_config(
            [
                {
                    "when": {"name": "role", "value": "king"},
                    "add": {"name": "kind", "value": "person"},
                }
            ]
        )
        assert rules.rules == [TagRule(when=KING, add=PERSON)]

    def test_anonymous_tags_allowed(self):
        """Test rules may use anonymous tags."""
        rules = AutomaticTags.from_config([{"when": {"value": "ww1"}, "add": {"value": "war"}}])
        assert rules.expand([Tag(value="ww1")]) == [Tag(value="ww1"), Tag(value="war")]

    def test_invalid_rule(self):
        """Test a rule without a value is rejected."""
        with pytest.raises(ValidationError):
            AutomaticTags.from_config([{"when": {"name": "role"}, "add": {"value": "x"}}])
