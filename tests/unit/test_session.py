"""Tests for the explorer session (fetch orchestration and navigation)."""

import asyncio
import random

from domain_explorer.core.gesture.controller import Point, PointerDown, PointerMove, PointerUp
from domain_explorer.core.session import ExplorerSession, ViewSnapshot, capitalize_term
from domain_explorer.core.tree.store import find_node_at_path
from domain_explorer.models.node import DomainNode, Position
from tests.unit.fakes import FakeResolver, GatedResolver


def _session(resolver: FakeResolver) -> ExplorerSession:
    return ExplorerSession(resolver, rng=random.Random(3))


def _opened_science(resolver: FakeResolver) -> ExplorerSession:
    session = _session(resolver)
    session.descend("Science")
    asyncio.run(session.ensure_children())
    return session


def test_capitalize_term_only_touches_first_letter() -> None:
    assert capitalize_term("  quantum eRRors ") == "Quantum eRRors"
    assert capitalize_term("") == ""


def test_new_session_has_materialized_first_level(resolver: FakeResolver) -> None:
    session = _session(resolver)
    assert session.tree.name == "SparkSphere"
    assert "Science" in [c.name for c in session.tree.child_nodes]
    assert asyncio.run(session.ensure_children()).status == "skipped"
    assert resolver.calls == []


def test_ensure_children_fetches_unresolved_node(resolver: FakeResolver) -> None:
    session = _session(resolver)
    session.descend("Science")

    result = asyncio.run(session.ensure_children())

    assert result.status == "applied"
    assert result.added == 3
    assert resolver.calls == [("Science", ("SparkSphere", "Science"), 0)]
    node = session.current_node
    assert node is not None
    assert [c.name for c in node.child_nodes] == ["Physics", "Chemistry", "Biology"]


def test_ensure_children_skips_materialized_node(resolver: FakeResolver) -> None:
    session = _opened_science(resolver)
    assert asyncio.run(session.ensure_children()).status == "skipped"
    assert len(resolver.calls) == 1


def test_failed_fetch_leaves_node_unresolved_and_can_be_retried(resolver: FakeResolver) -> None:
    resolver.fail_on("Science")
    session = _session(resolver)
    session.descend("Science")

    failed = asyncio.run(session.ensure_children())

    assert failed.status == "failed"
    assert session.error == "Failed to load domains."
    node = session.current_node
    assert node is not None and node.is_materialized is False

    resolver.failures.clear()
    retried = asyncio.run(session.ensure_children())
    assert retried.status == "applied"
    assert session.error is None


def test_outstanding_fetch_is_not_issued_twice() -> None:
    gated = GatedResolver()
    gated.add_response("Science", ["Physics"])
    session = _session(gated)
    session.descend("Science")

    async def scenario() -> tuple[str, str, bool]:
        first = asyncio.create_task(session.ensure_children())
        await asyncio.sleep(0)
        fetching = session.is_fetching()
        # Navigate away and back while the fetch is pending.
        session.back()
        session.descend("Science")
        second = await session.ensure_children()
        gated.release()
        return (await first).status, second.status, fetching

    first_status, second_status, fetching = asyncio.run(scenario())

    assert first_status == "applied"
    assert second_status == "pending"
    assert fetching is True
    assert gated.started == 1
    assert session.is_fetching() is False


def test_fetch_result_for_replaced_tree_is_discarded() -> None:
    gated = GatedResolver("Science")
    gated.add_response("Science", ["Physics"])
    gated.add_response("Dinosaurs", ["Fossils"])
    session = _session(gated)
    session.descend("Science")

    async def scenario() -> str:
        pending = asyncio.create_task(session.ensure_children())
        await asyncio.sleep(0)
        await session.search("dinosaurs")
        gated.release()
        return (await pending).status

    assert asyncio.run(scenario()) == "stale"
    assert session.tree.name == "Dinosaurs"
    assert find_node_at_path(session.tree, ["Science"]) is None


def test_load_more_appends_unique_names(resolver: FakeResolver) -> None:
    session = _opened_science(resolver)

    result = asyncio.run(session.load_more())

    assert result.status == "applied"
    assert result.added == 2
    assert resolver.calls[-1] == ("Science", ("SparkSphere", "Science"), 1)
    node = session.current_node
    assert node is not None
    assert [c.name for c in node.child_nodes] == [
        "Physics",
        "Chemistry",
        "Biology",
        "Astronomy",
        "Geology",
    ]
    assert session.load_more_variant == 1


def test_load_more_failure_is_reported(resolver: FakeResolver) -> None:
    session = _opened_science(resolver)
    resolver.fail_on("Science")

    result = asyncio.run(session.load_more())

    assert result.status == "failed"
    assert session.error == "Failed to load more."
    assert session.load_more_variant == 0


def test_search_replaces_root(resolver: FakeResolver) -> None:
    session = _opened_science(resolver)

    result = asyncio.run(session.search("dinosaurs"))

    assert result.status == "applied"
    assert session.tree.name == "Dinosaurs"
    assert session.path == ()
    assert [c.name for c in session.tree.child_nodes] == ["Fossils", "Extinction", "Evolution"]
    assert resolver.calls[-1] == ("Dinosaurs", ("Dinosaurs",), 0)


def test_failed_search_keeps_tree(resolver: FakeResolver) -> None:
    resolver.fail_on("Volcanoes")
    session = _session(resolver)
    tree = session.tree

    result = asyncio.run(session.search("volcanoes"))

    assert result.status == "failed"
    assert session.error == "Search failed."
    assert session.tree is tree


def test_home_rebuilds_default_tree_after_search(resolver: FakeResolver) -> None:
    session = _session(resolver)
    asyncio.run(session.search("dinosaurs"))

    session.home()

    assert session.tree.name == "SparkSphere"
    assert session.path == ()


def test_add_topic_inserts_user_node_once(resolver: FakeResolver) -> None:
    session = _session(resolver)

    assert session.add_topic("poetry") is True
    assert session.add_topic("POETRY") is False
    assert session.add_topic("   ") is False

    added = session.tree.child_nodes[-1]
    assert added.name == "Poetry"
    assert added.source == "user"


def test_click_selects_child(resolver: FakeResolver) -> None:
    session = _session(resolver)
    session.handle_pointer(PointerDown(1, 10, 10, "mouse", timestamp=0))
    session.handle_pointer(PointerUp(1, 11, 10, timestamp=30))

    assert session.select_child("Science", timestamp=30) is True
    assert session.path == ("Science",)


def test_drag_suppresses_selection(resolver: FakeResolver) -> None:
    session = _session(resolver)
    session.handle_pointer(PointerDown(1, 10, 10, "mouse", timestamp=0))
    session.handle_pointer(PointerMove(1, 80, 10, timestamp=10))
    session.handle_pointer(PointerUp(1, 80, 10, timestamp=20))

    assert session.select_child("Science", timestamp=20) is False
    assert session.path == ()


def test_touch_hold_suppresses_selection(resolver: FakeResolver) -> None:
    session = _session(resolver)
    session.handle_pointer(PointerDown(1, 10, 10, "touch", timestamp=0))
    session.handle_pointer(PointerUp(1, 10, 10, timestamp=400))

    assert session.select_child("Science", timestamp=400) is False


def test_select_unknown_child_is_ignored(resolver: FakeResolver) -> None:
    session = _session(resolver)
    assert session.select_child("Alchemy", timestamp=0) is False


def test_navigation_resets_view(resolver: FakeResolver) -> None:
    session = _session(resolver)
    session.zoom_in()
    session.handle_pointer(PointerDown(1, 0, 0, "mouse"))
    session.handle_pointer(PointerMove(1, 40, 40))

    session.descend("Science")

    assert session.gesture.zoom == 1.0
    assert session.gesture.pan == Point(0, 0)


def test_navigate_to_and_back(resolver: FakeResolver) -> None:
    session = _session(resolver)
    session.descend("Science")
    session.descend("Physics")
    assert session.breadcrumbs == ("SparkSphere", "Science", "Physics")
    assert session.center_name == "Physics"

    session.navigate_to(1)
    assert session.path == ("Science",)
    session.back()
    assert session.path == ()
    session.back()
    assert session.path == ()


def test_orbiting_children_writes_positions_back(resolver: FakeResolver) -> None:
    session = _session(resolver)

    first = session.orbiting_children(500)
    tree_after_first = session.tree
    second = session.orbiting_children(500)

    assert all(child.position is not None for child in first)
    assert [c.position for c in session.tree.child_nodes] == [c.position for c in first]
    assert second == first
    assert session.tree is tree_after_first


def test_positions_survive_load_more(resolver: FakeResolver) -> None:
    session = _opened_science(resolver)
    before = {c.name: c.position for c in session.orbiting_children(500)}

    asyncio.run(session.load_more())

    node = session.current_node
    assert node is not None
    carried = {c.name: c.position for c in node.child_nodes}
    for name in ("Physics", "Chemistry", "Biology"):
        assert carried[name] == before[name]
    assert carried["Astronomy"] is None
    assert len(session.orbiting_children(500)) == 5


def test_orbiting_children_of_unresolved_node_is_empty(resolver: FakeResolver) -> None:
    session = _session(resolver)
    session.descend("Art")
    assert session.orbiting_children(500) == ()


def test_visible_children_filters_by_query(resolver: FakeResolver) -> None:
    session = _opened_science(resolver)
    session.query = "PH"
    assert [c.name for c in session.visible_children(500)] == ["Physics"]


def test_snapshot_and_restore(resolver: FakeResolver) -> None:
    session = _session(resolver)
    snapshot = ViewSnapshot(path=("Science",), pan=Point(12, -4), zoom=1.4)

    session.restore(snapshot)

    assert session.snapshot() == snapshot
    assert session.current_node is not None


def test_pinch_can_be_toggled(resolver: FakeResolver) -> None:
    session = _session(resolver)
    session.set_pinch_enabled(True)
    session.handle_pointer(PointerDown(1, 0, 0, "touch"))
    session.handle_pointer(PointerDown(2, 100, 0, "touch"))
    session.handle_pointer(PointerMove(2, 200, 0))
    assert session.gesture.zoom == 2.0


def test_written_positions_use_layout_space(resolver: FakeResolver) -> None:
    session = _session(resolver)
    for child in session.orbiting_children(500):
        assert isinstance(child.position, Position)


def test_root_layout_is_unchanged_after_visiting_a_child(resolver: FakeResolver) -> None:
    session = _session(resolver)
    before = [c.position for c in session.orbiting_children(500)]

    session.descend("Science")
    asyncio.run(session.ensure_children())
    session.orbiting_children(500)
    session.back()

    assert [c.position for c in session.orbiting_children(500)] == before


def test_same_named_topics_get_their_own_layouts(resolver: FakeResolver) -> None:
    resolver.add_response("Science", ["History"])
    resolver.add_response("Art", ["History"])
    resolver.add_response("History", ["Events", "People", "Eras"])
    session = _session(resolver)

    def open_history(parent: str) -> tuple[DomainNode, ...]:
        session.home()
        session.descend(parent)
        asyncio.run(session.ensure_children())
        session.descend("History")
        asyncio.run(session.ensure_children())
        return session.orbiting_children(500)

    under_science = open_history("Science")
    under_art = open_history("Art")

    assert [c.position for c in under_art] != [c.position for c in under_science]
    art_history = find_node_at_path(session.tree, ["Art", "History"])
    assert art_history is not None
    assert [c.position for c in art_history.child_nodes] == [c.position for c in under_art]
