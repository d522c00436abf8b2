"""Explorer session: ties the tree store, layout and gestures to a resolver.

All state lives on the session object owned by the caller. Fetches are the
only suspension points; their results are checked against the latest tree
before being applied, so a result for a tree that has since been replaced
is dropped.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Literal

from loguru import logger

from domain_explorer.config import DEFAULT_ROOT_NAME, DEFAULT_ROOT_TOPICS
from domain_explorer.core.gesture.controller import (
    Effect,
    GestureEvent,
    GestureState,
    Point,
    request_selection,
    reset_view,
    set_pinch_enabled,
    step,
    zoom_in,
    zoom_out,
)
from domain_explorer.core.layout.engine import LayoutMemo
from domain_explorer.core.tree.store import (
    append_children_at_path,
    apply_positions,
    find_node_at_path,
    insert_child_at_path,
    make_root,
    materialize_children,
)
from domain_explorer.models.node import DomainNode
from domain_explorer.protocols import ChildNameResolver, RandomSource

FetchStatus = Literal["applied", "pending", "skipped", "stale", "failed"]


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a fetch-and-merge request."""

    status: FetchStatus
    added: int = 0
    error: str | None = None


@dataclass(frozen=True)
class ViewSnapshot:
    """Ephemeral view state a caller may store and restore."""

    path: tuple[str, ...]
    pan: Point
    zoom: float


def capitalize_term(term: str) -> str:
    """Upper-case the first letter only, leaving the rest as typed."""
    term = term.strip()
    return term[:1].upper() + term[1:]


class ExplorerSession:
    """One user's exploration state.

    Not thread-safe; meant to be driven from a single event loop.
    """

    def __init__(
        self,
        resolver: ChildNameResolver,
        *,
        root_name: str = DEFAULT_ROOT_NAME,
        root_topics: Iterable[str] = DEFAULT_ROOT_TOPICS,
        rng: RandomSource | None = None,
        pinch_enabled: bool = False,
    ) -> None:
        self.resolver = resolver
        self.root_name = root_name
        self.root_topics = tuple(root_topics)
        self.tree: DomainNode = make_root(root_name, self.root_topics, root_id="root")
        self.path: tuple[str, ...] = ()
        self.gesture = GestureState(pinch_enabled=pinch_enabled)
        self.query = ""
        self.error: str | None = None
        self.load_more_variant = 0
        # Bumped whenever the root is replaced; fetch results from an older
        # generation are discarded.
        self._generation = 0
        self._search_seq = 0
        self._in_flight: set[tuple[int, tuple[str, ...], str]] = set()
        self._layout = LayoutMemo(rng=rng)

    # --- Tree state ---

    @property
    def current_node(self) -> DomainNode | None:
        return find_node_at_path(self.tree, self.path)

    @property
    def center_name(self) -> str:
        return self.path[-1] if self.path else self.tree.name

    @property
    def breadcrumbs(self) -> tuple[str, ...]:
        return (self.tree.name, *self.path)

    def is_fetching(self, path: Sequence[str] | None = None) -> bool:
        """Whether any fetch for `path` (default: current path) is outstanding."""
        target = tuple(self.path if path is None else path)
        return any(
            gen == self._generation and p == target for gen, p, _kind in self._in_flight
        )

    def _replace_root(self, root: DomainNode) -> None:
        self._generation += 1
        self.tree = root
        self._layout.invalidate()
        logger.info("Replaced tree root with {!r}", root.name)

    def _child_count(self, path: tuple[str, ...]) -> int:
        node = find_node_at_path(self.tree, path)
        return len(node.child_nodes) if node is not None else 0

    def _is_current(self, generation: int, path: tuple[str, ...]) -> bool:
        if generation != self._generation:
            return False
        return find_node_at_path(self.tree, path) is not None

    # --- Fetching ---

    async def ensure_children(self) -> FetchResult:
        """Fetch children of the current node if they are still unresolved."""
        path = self.path
        node = self.current_node
        if node is None or node.is_materialized:
            return FetchResult("skipped")

        key = (self._generation, path, "children")
        if key in self._in_flight:
            return FetchResult("pending")

        self._in_flight.add(key)
        self.error = None
        try:
            names = await self.resolver.resolve(node.name, (self.tree.name, *path), variant=0)
        except Exception:
            logger.opt(exception=True).warning("Fetching children of {!r} failed", node.name)
            self.error = "Failed to load domains."
            return FetchResult("failed", error=self.error)
        finally:
            self._in_flight.discard(key)

        if not self._is_current(key[0], path):
            logger.warning("Discarding stale children for {}", "/".join(path))
            return FetchResult("stale")

        latest = find_node_at_path(self.tree, path)
        if latest is None or latest.is_materialized:
            return FetchResult("skipped")

        self.tree = materialize_children(self.tree, path, names)
        added = self._child_count(path)
        logger.debug("Loaded {} children for {!r}", added, node.name)
        return FetchResult("applied", added=added)

    async def load_more(self) -> FetchResult:
        """Fetch another batch of names and append the new ones."""
        path = self.path
        node = self.current_node
        if node is None:
            return FetchResult("skipped")

        key = (self._generation, path, "more")
        if key in self._in_flight:
            return FetchResult("pending")

        variant = self.load_more_variant + 1
        self._in_flight.add(key)
        try:
            names = await self.resolver.resolve(
                node.name, (self.tree.name, *path), variant=variant
            )
        except Exception:
            logger.opt(exception=True).warning("Loading more for {!r} failed", node.name)
            self.error = "Failed to load more."
            return FetchResult("failed", error=self.error)
        finally:
            self._in_flight.discard(key)

        if not self._is_current(key[0], path):
            logger.warning("Discarding stale load-more for {}", "/".join(path))
            return FetchResult("stale")

        if self.path == path:
            self.load_more_variant = variant

        before = self._child_count(path)
        self.tree = append_children_at_path(self.tree, path, names)
        after = self._child_count(path)
        logger.debug("Appended {} children to {!r}", after - before, node.name)
        return FetchResult("applied", added=after - before)

    async def search(self, term: str) -> FetchResult:
        """Replace the whole tree with one rooted at `term`."""
        term = capitalize_term(term)
        if not term:
            return FetchResult("skipped")

        self._set_path(())
        self.query = ""
        self.error = None
        self._search_seq += 1
        seq, generation = self._search_seq, self._generation
        try:
            names = await self.resolver.resolve(term, (term,), variant=0)
        except Exception:
            logger.opt(exception=True).warning("Search for {!r} failed", term)
            self.error = "Search failed."
            return FetchResult("failed", error=self.error)

        if seq != self._search_seq or generation != self._generation:
            logger.warning("Discarding stale search results for {!r}", term)
            return FetchResult("stale")

        self._replace_root(make_root(term, names))
        self._set_path(())
        return FetchResult("applied", added=len(self.tree.child_nodes))

    def add_topic(self, term: str) -> bool:
        """Add a user topic under the current node; False if not added."""
        term = capitalize_term(term)
        if not term:
            return False
        updated = insert_child_at_path(self.tree, self.path, term, source="user")
        self.query = ""
        if updated is self.tree:
            return False
        self.tree = updated
        return True

    # --- Navigation ---

    def _set_path(self, path: Sequence[str]) -> None:
        self.path = tuple(path)
        self.gesture = reset_view(self.gesture)
        self.load_more_variant = 0

    def descend(self, name: str) -> None:
        self.query = ""
        self._set_path((*self.path, name))

    def select_child(self, name: str, timestamp: float) -> bool:
        """Descend into `name` if the gesture controller honours the tap."""
        if not any(child.name == name for child in self._current_children()):
            return False
        if not request_selection(self.gesture, timestamp):
            logger.debug("Selection of {!r} suppressed by gesture state", name)
            return False
        self.descend(name)
        return True

    def navigate_to(self, depth: int) -> None:
        """Keep the first `depth` path entries (0 is the root)."""
        self._set_path(self.path[: max(depth, 0)])

    def back(self) -> None:
        if self.path:
            self._set_path(self.path[:-1])

    def home(self) -> None:
        """Return to the root, rebuilding the default tree after a search."""
        self._set_path(())
        if self.tree.name != self.root_name:
            self._replace_root(make_root(self.root_name, self.root_topics, root_id="root"))

    # --- Gestures and view ---

    def handle_pointer(self, event: GestureEvent) -> tuple[Effect, ...]:
        self.gesture, effects = step(self.gesture, event)
        return effects

    def zoom_in(self) -> None:
        self.gesture = zoom_in(self.gesture)

    def zoom_out(self) -> None:
        self.gesture = zoom_out(self.gesture)

    def set_pinch_enabled(self, enabled: bool) -> None:
        self.gesture = set_pinch_enabled(self.gesture, enabled)

    def snapshot(self) -> ViewSnapshot:
        return ViewSnapshot(path=self.path, pan=self.gesture.pan, zoom=self.gesture.zoom)

    def restore(self, snapshot: ViewSnapshot) -> None:
        self.path = snapshot.path
        self.load_more_variant = 0
        self.gesture = replace(self.gesture, pan=snapshot.pan, zoom=snapshot.zoom)

    # --- Layout ---

    def _current_children(self) -> tuple[DomainNode, ...]:
        node = self.current_node
        return node.child_nodes if node is not None else ()

    def orbiting_children(self, container_size: float) -> tuple[DomainNode, ...]:
        """Laid-out children of the current node.

        Positions are written back into the tree so they seed later layouts.
        """
        node = self.current_node
        if node is None or not node.is_materialized:
            return ()

        children = node.child_nodes
        laid_out = self._layout.layout(
            children,
            self.center_name,
            container_size,
            center_key=(self._generation, self.path),
        )
        if any(old.position != new.position for old, new in zip(children, laid_out, strict=True)):
            self.tree = apply_positions(self.tree, self.path, laid_out)
        return tuple(
            replace(child, position=placed.position)
            for child, placed in zip(children, laid_out, strict=True)
        )

    def visible_children(self, container_size: float) -> tuple[DomainNode, ...]:
        """Orbiting children filtered by the current search query."""
        children = self.orbiting_children(container_size)
        needle = self.query.strip().lower()
        if not needle:
            return children
        return tuple(child for child in children if needle in child.name.lower())
