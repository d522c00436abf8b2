"""Orbit layout: relax child nodes around a focal node without overlaps."""

import math
import random
from collections.abc import Hashable, Sequence
from dataclasses import dataclass, replace

from loguru import logger

from domain_explorer.config import (
    LAYOUT_CENTER,
    LAYOUT_CENTER_MARGIN,
    LAYOUT_CENTER_PULL,
    LAYOUT_ITERATIONS,
    LAYOUT_PAIR_MARGIN,
    LAYOUT_SEED_JITTER,
)
from domain_explorer.core.layout.sizing import node_radius
from domain_explorer.models.node import DomainNode, Position
from domain_explorer.protocols import RandomSource, SizingFunction


@dataclass(frozen=True)
class LayoutParams:
    """Tunables for the relaxation loop."""

    iterations: int = LAYOUT_ITERATIONS
    center: float = LAYOUT_CENTER
    seed_jitter: float = LAYOUT_SEED_JITTER
    pair_margin: float = LAYOUT_PAIR_MARGIN
    center_pull: float = LAYOUT_CENTER_PULL
    center_margin: float = LAYOUT_CENTER_MARGIN


DEFAULT_PARAMS = LayoutParams()


@dataclass
class _Body:
    x: float
    y: float
    radius: float


def _seed(node: DomainNode, rng: RandomSource, params: LayoutParams) -> tuple[float, float]:
    if node.position is not None:
        return node.position.x, node.position.y
    spread = params.seed_jitter * 2
    x = params.center + (rng.random() - 0.5) * spread
    y = params.center + (rng.random() - 0.5) * spread
    return x, y


def _separate_pairs(bodies: list[_Body], margin: float) -> bool:
    """Push overlapping pairs apart; return whether any pair moved."""
    moved = False
    for i, first in enumerate(bodies):
        for second in bodies[i + 1 :]:
            dx = second.x - first.x
            dy = second.y - first.y
            distance = math.hypot(dx, dy)
            min_distance = first.radius + second.radius + margin
            # Coincident bodies have no direction to push along.
            if distance <= 0 or distance >= min_distance:
                continue
            push = (min_distance - distance) / 2
            push_x = push * dx / distance
            push_y = push * dy / distance
            first.x -= push_x
            first.y -= push_y
            second.x += push_x
            second.y += push_y
            moved = True
    return moved


def _pull_and_exclude(bodies: list[_Body], center_radius: float, params: LayoutParams) -> None:
    for body in bodies:
        body.x += (params.center - body.x) * params.center_pull
        body.y += (params.center - body.y) * params.center_pull

        dx = body.x - params.center
        dy = body.y - params.center
        distance = math.hypot(dx, dy)
        min_distance = center_radius + body.radius + params.center_margin
        if 0 < distance < min_distance:
            push = min_distance - distance
            body.x += push * dx / distance
            body.y += push * dy / distance


def compute_layout(
    children: Sequence[DomainNode],
    center_name: str,
    *,
    rng: RandomSource | None = None,
    sizing: SizingFunction = node_radius,
    params: LayoutParams = DEFAULT_PARAMS,
) -> tuple[DomainNode, ...]:
    """Place `children` around the focal node named `center_name`.

    When every child already has a cached position the layout is settled and
    is returned as is. Otherwise children with a cached position start from
    it and the others are seeded near the center with random jitter. A fixed
    number of relaxation passes then separates overlapping pairs, pulls every
    child toward the center and keeps it outside the focal node's disk.

    Args:
        children: Nodes to place, in display order.
        center_name: Display name of the focal node (sizes its exclusion disk).
        rng: Random source for seeding; a fresh `random.Random()` when omitted.
        sizing: Maps a display name to a collision radius.
        params: Relaxation tunables.

    Returns:
        The same nodes, in the same order, with `position` set.
    """
    if not children:
        return ()
    # A settled layout stays put until a new child joins it.
    if all(child.position is not None for child in children):
        return tuple(children)

    source = rng if rng is not None else random.Random()
    center_radius = sizing(center_name)
    bodies = [
        _Body(*_seed(child, source, params), radius=sizing(child.name)) for child in children
    ]

    for _ in range(params.iterations):
        _separate_pairs(bodies, params.pair_margin)
        _pull_and_exclude(bodies, center_radius, params)

    # The pull runs last in each pass and can leave pairs slightly inside
    # their margin; finish with separation alone.
    for _ in range(params.iterations):
        if not _separate_pairs(bodies, params.pair_margin):
            break

    return tuple(
        replace(child, position=Position(body.x, body.y))
        for child, body in zip(children, bodies, strict=True)
    )


class LayoutMemo:
    """Recompute a layout only when its inputs change.

    The key is the focal node's identity, the child identities and the
    container size. Names are not unique across a tree, so callers pass a
    `center_key` (a path, say) to tell same-named focal nodes apart. Cached
    positions are not part of the key, so writing a result back into the
    tree does not trigger a new layout.
    """

    def __init__(
        self,
        *,
        rng: RandomSource | None = None,
        sizing: SizingFunction = node_radius,
        params: LayoutParams = DEFAULT_PARAMS,
    ) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._sizing = sizing
        self._params = params
        self._key: tuple[Hashable, tuple[str, ...], float] | None = None
        self._result: tuple[DomainNode, ...] = ()

    def layout(
        self,
        children: Sequence[DomainNode],
        center_name: str,
        container_size: float,
        *,
        center_key: Hashable = None,
    ) -> tuple[DomainNode, ...]:
        """Return the layout for these inputs, reusing the last one if unchanged.

        `center_key` identifies the focal node; it defaults to `center_name`.
        """
        identity = center_name if center_key is None else center_key
        key = (identity, tuple(child.id for child in children), container_size)
        if key == self._key:
            logger.debug("Layout unchanged for {!r}, reusing {} positions", center_name, len(children))
            return self._result

        logger.debug("Computing layout for {!r} with {} children", center_name, len(children))
        self._result = compute_layout(
            children, center_name, rng=self._rng, sizing=self._sizing, params=self._params
        )
        self._key = key
        return self._result

    def invalidate(self) -> None:
        """Forget the last layout."""
        self._key = None
        self._result = ()
