"""Immutable updates of the topic tree: lookup, cloning, child replacement."""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace

from loguru import logger

from domain_explorer.models.node import (
    DomainNode,
    Materialized,
    NodeSource,
    Position,
    topic_node,
)


def find_node_at_path(root: DomainNode, path: Sequence[str]) -> DomainNode | None:
    """Walk `path` from `root` by exact child name.

    Returns None when a step's children are unresolved or the name is absent,
    which callers treat as "not loaded yet".
    """
    node = root
    for name in path:
        match = next((child for child in node.child_nodes if child.name == name), None)
        if match is None:
            return None
        node = match
    return node


def clone_tree(node: DomainNode) -> DomainNode:
    """Return a new tree value with every record newly constructed."""
    position = Position(node.position.x, node.position.y) if node.position else None
    children = node.children
    if isinstance(children, Materialized):
        children = Materialized(tuple(clone_tree(child) for child in children.children))
    return DomainNode(
        id=node.id,
        name=node.name,
        children=children,
        position=position,
        source=node.source,
    )


def clone_along_path(root: DomainNode, path: Sequence[str]) -> DomainNode:
    """Clone the tree containing `path`.

    The whole tree is cloned, not only the path, so that two tree values never
    share node records.
    """
    if find_node_at_path(root, path) is None:
        logger.debug("Cloning tree for unresolved path {}", "/".join(path))
    return clone_tree(root)


def _update_at(
    node: DomainNode,
    path: Sequence[str],
    update: Callable[[DomainNode], DomainNode],
) -> DomainNode | None:
    if not path:
        return update(node)

    head, rest = path[0], path[1:]
    children = node.child_nodes
    for index, child in enumerate(children):
        if child.name != head:
            continue
        updated = _update_at(child, rest, update)
        if updated is None:
            return None
        new_children = children[:index] + (updated,) + children[index + 1 :]
        return replace(node, children=Materialized(new_children))
    return None


def _carry_positions(
    existing: Iterable[DomainNode],
    new_children: Iterable[DomainNode],
) -> tuple[DomainNode, ...]:
    positions = {child.id: child.position for child in existing if child.position is not None}
    return tuple(
        replace(child, position=positions[child.id]) if child.id in positions else child
        for child in new_children
    )


def replace_children_at_path(
    root: DomainNode,
    path: Sequence[str],
    new_children: Sequence[DomainNode],
) -> DomainNode:
    """Return a new root where the node at `path` has `new_children`.

    Cached positions of existing children are carried onto new children with
    the same id. If `path` does not resolve, the cloned root is returned as is.
    """
    new_root = clone_along_path(root, path)

    def _set_children(node: DomainNode) -> DomainNode:
        merged = _carry_positions(node.child_nodes, new_children)
        return replace(node, children=Materialized(merged))

    updated = _update_at(new_root, path, _set_children)
    return new_root if updated is None else updated


def append_unique_children(
    existing_children: Sequence[DomainNode],
    candidate_names: Iterable[str],
    *,
    source: NodeSource = "ai",
) -> list[DomainNode]:
    """Build unresolved nodes for candidates not already among the siblings.

    Names are compared case-insensitively, against the existing children and
    against earlier candidates. Candidate order is preserved.
    """
    seen = {child.name.lower() for child in existing_children}
    result: list[DomainNode] = []
    for raw_name in candidate_names:
        name = raw_name.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        result.append(topic_node(name, source=source))
    return result


def make_root(
    name: str,
    child_names: Iterable[str],
    *,
    root_id: str | None = None,
    source: NodeSource = "ai",
) -> DomainNode:
    """Create a tree whose first level is already materialized."""
    children = tuple(append_unique_children((), child_names, source=source))
    return DomainNode(id=root_id or name, name=name, children=Materialized(children))


def materialize_children(
    root: DomainNode,
    path: Sequence[str],
    names: Iterable[str],
    *,
    source: NodeSource = "ai",
) -> DomainNode:
    """Set the first fetched children of the node at `path`."""
    return replace_children_at_path(root, path, append_unique_children((), names, source=source))


def append_children_at_path(
    root: DomainNode,
    path: Sequence[str],
    names: Iterable[str],
    *,
    source: NodeSource = "ai",
) -> DomainNode:
    """Append not-yet-present names after the existing children at `path`."""
    node = find_node_at_path(root, path)
    if node is None:
        return clone_along_path(root, path)
    existing = node.child_nodes
    extra = append_unique_children(existing, names, source=source)
    return replace_children_at_path(root, path, [*existing, *extra])


def insert_child_at_path(
    root: DomainNode,
    path: Sequence[str],
    name: str,
    *,
    source: NodeSource = "user",
) -> DomainNode:
    """Add one topic under the node at `path`.

    Returns `root` itself when the path is unresolved or the name is taken.
    """
    node = find_node_at_path(root, path)
    if node is None:
        return root
    extra = append_unique_children(node.child_nodes, [name], source=source)
    if not extra:
        return root
    return replace_children_at_path(root, path, [*node.child_nodes, *extra])


def apply_positions(
    root: DomainNode,
    path: Sequence[str],
    laid_out: Iterable[DomainNode],
) -> DomainNode:
    """Store layout output as the cached positions of the children at `path`.

    Unlike `replace_children_at_path`, fresh positions win over cached ones.
    Returns the cloned root unchanged when `path` does not resolve.
    """
    positions = {child.id: child.position for child in laid_out if child.position is not None}
    new_root = clone_along_path(root, path)

    def _set_positions(node: DomainNode) -> DomainNode:
        if not node.is_materialized:
            return node
        children = tuple(
            replace(child, position=positions[child.id]) if child.id in positions else child
            for child in node.child_nodes
        )
        return replace(node, children=Materialized(children))

    updated = _update_at(new_root, path, _set_positions)
    return new_root if updated is None else updated
