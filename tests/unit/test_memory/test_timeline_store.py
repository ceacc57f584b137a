"""Tests for StoreSnapshot and atomic snapshots."""

import threading

from opentimeline.memory.entities import Tag
from opentimeline.memory.timeline_store import (
    SnapshotSource,
    StoreSnapshot,
    TimelineStore,
    take_snapshot,
)
from opentimeline.memory.timeline_types import PartialDate


class TestStoreSnapshot:
    """Tests for capturing and querying snapshots."""

    def test_captures_reachable_timelines_only(self, db):
        """Test only timelines reachable from the root are copied."""
        db.add_timeline("Root", timeline_id="root")
        db.add_timeline("Child", timeline_id="child")
        db.add_timeline("Unrelated", timeline_id="other")
        db.add_subtimeline("root", "child")

        snapshot = StoreSnapshot.capture(db, "root")

        assert set(snapshot.timelines) == {"root", "child"}
        assert snapshot.list_subtimeline_children("root") == ("child",)

    def test_captures_all_entities_and_tags(self, db):
        """Test every entity is copied since expressions scan the whole store."""
        db.add_timeline("Root", timeline_id="root")
        db.add_entity("A", PartialDate(year=1914), tags=[Tag(value="x")], entity_id="a")
        db.add_entity("B", PartialDate(year=1915), entity_id="b")

        snapshot = StoreSnapshot.capture(db, "root")

        assert set(snapshot.entities) == {"a", "b"}
        assert snapshot.get_tags("a") == (Tag(value="x"),)
        assert snapshot.get_tags("b") == ()

    def test_cyclic_edges_do_not_loop(self, db):
        """Test capture terminates on cycles and keeps the cyclic edges."""
        db.add_timeline("A", timeline_id="a")
        db.add_timeline("B", timeline_id="b")
        db.add_subtimeline("a", "b")
        db.add_subtimeline("b", "a")

        snapshot = StoreSnapshot.capture(db, "a")

        assert snapshot.list_subtimeline_children("b") == ("a",)

    def test_missing_root(self, db):
        """Test a missing root yields an empty timeline map."""
        snapshot = StoreSnapshot.capture(db, "ghost")
        assert snapshot.get_timeline("ghost") is None
        assert snapshot.timelines == {}

    def test_dangling_child_kept_as_edge(self, db):
        """Test an edge to a missing timeline is kept for the resolver to report."""
        db.add_timeline("Root", timeline_id="root")
        db.add_subtimeline("root", "ghost")

        snapshot = StoreSnapshot.capture(db, "root")

        assert snapshot.list_subtimeline_children("root") == ("ghost",)
        assert snapshot.get_timeline("ghost") is None

    def test_isolated_from_later_writes(self, db):
        """Test writes after capture are not visible in the snapshot."""
        db.add_timeline("Root", timeline_id="root")
        snapshot = StoreSnapshot.capture(db, "root")

        db.add_entity("Late", PartialDate(year=1920), entity_id="late")
        db.link_entity("root", "late")

        assert snapshot.get_entity("late") is None
        assert snapshot.list_linked_entities("root") == ()

    def test_is_a_store(self):
        """Test snapshots satisfy the store protocol."""
        assert isinstance(StoreSnapshot(), TimelineStore)


class TestTakeSnapshot:
    """Tests for atomic snapshots taken through the store."""

    def test_database_is_a_snapshot_source(self, db):
        """Test the database offers its own snapshot."""
        assert isinstance(db, SnapshotSource)
        assert not isinstance(StoreSnapshot(), SnapshotSource)

    def test_database_snapshot_matches_capture(self, db):
        """Test the atomic snapshot holds the same records as a plain capture."""
        db.add_timeline("Root", timeline_id="root")
        db.add_timeline("Child", timeline_id="child")
        db.add_subtimeline("root", "child")
        db.add_entity("A", PartialDate(year=1914), tags=[Tag(value="x")], entity_id="a")
        db.link_entity("child", "a")

        assert take_snapshot(db, "root") == StoreSnapshot.capture(db, "root")
        assert not db.conn.in_transaction

    def test_plain_store_falls_back_to_capture(self, db):
        """Test stores without snapshot support are captured query by query."""
        db.add_timeline("Root", timeline_id="root")
        plain = StoreSnapshot.capture(db, "root")

        assert take_snapshot(plain, "root") == plain

    def test_writer_waits_for_snapshot(self, db, monkeypatch):
        """Test a write from another thread cannot land inside a snapshot."""
        db.add_timeline("Root", timeline_id="root")
        db.add_entity("A", PartialDate(year=1914), entity_id="a")
        writer_blocked: list[bool] = []
        list_entities = db.list_entities

        def write_late():
            db.add_entity("Late", PartialDate(year=1920), entity_id="late")
            db.add_entity_tag("a", Tag(value="late"))

        writer = threading.Thread(target=write_late)

        def list_entities_with_writer():
            writer.start()
            writer.join(timeout=0.2)
            writer_blocked.append(writer.is_alive())
            return list_entities()

        monkeypatch.setattr(db, "list_entities", list_entities_with_writer)
        snapshot = db.snapshot("root")
        writer.join(timeout=5)

        assert writer_blocked == [True]
        assert set(snapshot.entities) == {"a"}
        assert snapshot.get_tags("a") == ()
        assert db.get_entity("late") is not None
