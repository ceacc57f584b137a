"""Tests for the entity set composer."""

import pytest

from opentimeline.memory.automatic_tags import AutomaticTags, TagRule
from opentimeline.memory.entities import Entity, Tag, Timeline
from opentimeline.memory.timeline_store import StoreSnapshot
from opentimeline.memory.timeline_types import PartialDate
from opentimeline.services.entity_composer import compile_expressions, compose
from opentimeline.services.expression import TagEquals
from opentimeline.utils.exceptions import NotFoundError, ParseError


@pytest.fixture
def store() -> StoreSnapshot:
    """Two timelines over four entities.

    ``t`` links ``a`` and selects ``era = "ww1"``; ``s`` selects ``country exists``.
    """
    entities = {
        eid: Entity(id=eid, name=eid.upper(), start=PartialDate(year=1914))
        for eid in ("a", "b", "c", "d")
    }
    return StoreSnapshot(
        entities=entities,
        tags={
            "a": (Tag(value="misc"),),
            "b": (Tag(name="era", value="ww1"),),
            "c": (Tag(name="country", value="France"),),
            "d": (Tag(name="era", value="ww1"), Tag(name="country", value="Germany")),
        },
        timelines={
            "t": Timeline(id="t", name="T", bool_expression='era = "ww1"'),
            "s": Timeline(id="s", name="S", bool_expression="country exists"),
            "plain": Timeline(id="plain", name="Plain"),
        },
        children={"t": ("s",)},
        links={"t": ("a",), "plain": ("c",)},
    )


class TestCompileExpressions:
    """Tests for compile_expressions."""

    def test_parses_each_timeline(self, store):
        """Test predicates are produced per timeline, None without expression."""
        predicates = compile_expressions(store, ["t", "plain"])
        assert predicates == {"t": TagEquals("era", "ww1"), "plain": None}

    def test_error_attributed_to_timeline(self):
        """Test a malformed expression reports its owning timeline."""
        store = StoreSnapshot(
            timelines={"bad": Timeline(id="bad", name="Bad", bool_expression='era = "')}
        )
        with pytest.raises(ParseError) as exc_info:
            compile_expressions(store, ["bad"])
        assert exc_info.value.timeline_id == "bad"
        assert exc_info.value.position == 6
        assert "Timeline bad" in str(exc_info.value)


class TestCompose:
    """Tests for compose."""

    def test_union_of_links_and_expressions(self, store):
        """Test the result unions links and matches across timelines."""
        composition = compose(store, ["t", "s"])
        assert composition.entity_ids == {"a", "b", "c", "d"}
        assert composition.warnings == []

    def test_single_timeline(self, store):
        """Test one timeline's own selection."""
        assert compose(store, ["t"]).entity_ids == {"a", "b", "d"}

    def test_links_only(self, store):
        """Test a timeline without expression contributes only its links."""
        assert compose(store, ["plain"]).entity_ids == {"c"}

    def test_union_is_monotone(self, store):
        """Test adding a contributing timeline never removes entities."""
        alone = compose(store, ["t"]).entity_ids
        together = compose(store, ["t", "plain"]).entity_ids
        assert alone <= together

    def test_dangling_link_skipped(self, store):
        """Test a link to a missing entity is skipped with a warning."""
        snapshot = StoreSnapshot(
            entities=store.entities,
            tags=store.tags,
            timelines={"p": Timeline(id="p", name="P")},
            links={"p": ("ghost", "b")},
        )
        composition = compose(snapshot, ["p"])
        assert composition.entity_ids == {"b"}
        assert len(composition.warnings) == 1
        assert "ghost" in composition.warnings[0]

    def test_dangling_link_strict(self, store):
        """Test strict mode raises for a dangling link."""
        snapshot = StoreSnapshot(
            timelines={"p": Timeline(id="p", name="P")},
            links={"p": ("ghost",)},
        )
        with pytest.raises(NotFoundError) as exc_info:
            compose(snapshot, ["p"], strict_references=True)
        assert exc_info.value.kind == "entity"
        assert exc_info.value.referenced_by == "p"

    def test_parse_error_fails_whole_composition(self, store):
        """Test one malformed expression fails the composition."""
        snapshot = StoreSnapshot(
            entities=store.entities,
            tags=store.tags,
            timelines={
                "ok": Timeline(id="ok", name="Ok", bool_expression="country exists"),
                "bad": Timeline(id="bad", name="Bad", bool_expression="country =="),
            },
        )
        with pytest.raises(ParseError) as exc_info:
            compose(snapshot, ["ok", "bad"])
        assert exc_info.value.timeline_id == "bad"

    def test_automatic_tags_applied(self, store):
        """Test derived tags take part in matching."""
        rules = AutomaticTags(
            rules=[TagRule(when=Tag(value="misc"), add=Tag(name="era", value="ww1"))]
        )
        assert compose(store, ["s"], automatic_tags=rules).entity_ids == {"c", "d"}
        snapshot = StoreSnapshot(
            entities=store.entities,
            tags=store.tags,
            timelines={"e": Timeline(id="e", name="E", bool_expression='era = "ww1"')},
        )
        assert compose(snapshot, ["e"], automatic_tags=rules).entity_ids == {"a", "b", "d"}

    def test_parallel_matches_serial(self, store):
        """Test the thread pool gives the same result and warning order."""
        serial = compose(store, ["t", "s", "plain"])
        parallel = compose(store, ["t", "s", "plain"], max_workers=4)
        assert parallel.entity_ids == serial.entity_ids
        assert parallel.warnings == serial.warnings

    def test_invalid_worker_count(self, store):
        """Test max_workers must be positive."""
        with pytest.raises(ValueError):
            compose(store, ["t"], max_workers=0)
