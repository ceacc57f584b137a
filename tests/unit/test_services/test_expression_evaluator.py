"""Tests for evaluating tag expressions against tag multisets."""

import pytest

from opentimeline.memory.entities import Tag
from opentimeline.services.expression import build_tag_index, evaluate, parse

WW1_FRANCE = [Tag(name="era", value="ww1"), Tag(name="country", value="France")]


def matches(expression: str, tags: list[Tag]) -> bool:
    return evaluate(parse(expression), tags)


class TestBuildTagIndex:
    """Tests for build_tag_index."""

    def test_groups_values_by_name(self):
        """Test values are grouped per name, anonymous under None."""
        index = build_tag_index(
            [
                Tag(name="country", value="France"),
                Tag(name="country", value="Belgium"),
                Tag(value="battle"),
            ]
        )
        assert index == {"country": {"France", "Belgium"}, None: {"battle"}}

    def test_empty(self):
        """Test no tags gives an empty index."""
        assert build_tag_index([]) == {}


class TestEvaluate:
    """Tests for evaluate."""

    def test_none_matches_nothing(self):
        """Test an empty expression never matches."""
        assert evaluate(None, WW1_FRANCE) is False
        assert evaluate(parse("   "), WW1_FRANCE) is False

    def test_equals(self):
        """Test exact value match."""
        assert matches('era = "ww1"', WW1_FRANCE)
        assert not matches('era = "ww2"', WW1_FRANCE)
        assert not matches('era = "WW1"', WW1_FRANCE)

    def test_equals_with_repeated_name(self):
        """Test any of several values under one name can match."""
        tags = [Tag(name="country", value="France"), Tag(name="country", value="UK")]
        assert matches('country = "UK"', tags)

    def test_not_equals_requires_presence(self):
        """Test != is false when the name is absent."""
        assert matches('country != "Germany"', WW1_FRANCE)
        assert not matches('country != "France"', WW1_FRANCE)
        assert not matches('side != "allies"', WW1_FRANCE)

    def test_not_equals_with_repeated_name(self):
        """Test != is false if any value under the name is equal."""
        tags = [Tag(name="country", value="France"), Tag(name="country", value="UK")]
        assert not matches('country != "UK"', tags)

    def test_exists(self):
        """Test presence checks."""
        assert matches("country exists", WW1_FRANCE)
        assert not matches("side exists", WW1_FRANCE)
        assert matches("side not exists", WW1_FRANCE)
        assert not matches("country not exists", WW1_FRANCE)

    def test_anonymous(self):
        """Test bare strings match anonymous tags only."""
        tags = [Tag(value="battle"), Tag(name="kind", value="siege")]
        assert matches('"battle"', tags)
        assert not matches('"siege"', tags)

    def test_boolean_composition(self):
        """Test AND, OR and NOT combine leaf results."""
        assert matches('era = "ww1" AND country = "France"', WW1_FRANCE)
        assert not matches('era = "ww1" AND country = "Germany"', WW1_FRANCE)
        assert matches('era = "ww2" OR country = "France"', WW1_FRANCE)
        assert matches('NOT era = "ww2"', WW1_FRANCE)
        assert not matches('NOT (era = "ww1" OR side exists)', WW1_FRANCE)

    def test_empty_tag_set(self):
        """Test negative predicates on an untagged entity."""
        assert matches("country not exists", [])
        assert matches('NOT country = "France"', [])
        assert not matches('country != "France"', [])

    @pytest.mark.parametrize(
        "expression",
        [
            'era = "ww1" AND country exists',
            'NOT (era = "ww2" OR country = "Germany")',
            '(country = "France" OR country = "UK") AND era != "ww2"',
        ],
    )
    def test_multiset_duplicates_do_not_change_result(self, expression):
        """Test duplicate tags never flip an outcome."""
        assert matches(expression, WW1_FRANCE) == matches(expression, WW1_FRANCE * 3)
