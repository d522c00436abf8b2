"""Domain models for the explorable topic tree."""

from dataclasses import dataclass
from typing import Literal

NodeSource = Literal["ai", "user"]


@dataclass(frozen=True)
class Position:
    """A point in the normalized [0, 100] x [0, 100] layout space."""

    x: float
    y: float


@dataclass(frozen=True)
class Unresolved:
    """Children that have not been fetched yet."""


UNRESOLVED = Unresolved()


@dataclass(frozen=True)
class Materialized:
    """Children that are known (possibly none)."""

    children: tuple["DomainNode", ...] = ()


Children = Unresolved | Materialized


@dataclass(frozen=True)
class DomainNode:
    """A single topic in the explorable hierarchy.

    `position` is only meaningful while the node is displayed as a child of
    its current parent.
    """

    id: str
    name: str
    children: Children = UNRESOLVED
    position: Position | None = None
    source: NodeSource = "ai"

    @property
    def is_materialized(self) -> bool:
        return isinstance(self.children, Materialized)

    @property
    def child_nodes(self) -> tuple["DomainNode", ...]:
        """Materialized children, or an empty tuple when unresolved."""
        if isinstance(self.children, Materialized):
            return self.children.children
        return ()


def topic_node(name: str, *, source: NodeSource = "ai") -> DomainNode:
    """Create an unresolved node whose identity is its name."""
    return DomainNode(id=name, name=name, source=source)
