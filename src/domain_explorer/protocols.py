"""Protocols for the collaborators the explorer core depends on."""

from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

SizingFunction = Callable[[str], float]


@runtime_checkable
class ChildNameResolver(Protocol):
    """Protocol for sources of child topic names."""

    async def resolve(
        self,
        topic: str,
        context: Sequence[str],
        *,
        variant: int = 0,
    ) -> list[str]:
        """Return candidate child names for a topic.

        Args:
            topic: Name of the topic being expanded.
            context: Ancestor names from the root down to (and including) the topic.
            variant: 0 for the first fetch, incremented for each "load more".
        """
        ...


@runtime_checkable
class RandomSource(Protocol):
    """Protocol for the pseudo-random source used to seed layouts."""

    def random(self) -> float:
        """Return a float in [0, 1)."""
        ...
