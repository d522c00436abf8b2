"""Node sizing shared by the layout engine and renderers."""

from domain_explorer.config import (
    MAX_SPHERE_SIZE,
    MIN_SPHERE_SIZE,
    SPHERE_RADIUS_FACTOR,
    SPHERE_SIZE_PER_CHAR,
)


def sphere_size(name: str) -> float:
    """Diameter of a node bubble, in percent of the container.

    Grows with the length of the display name, within fixed bounds.
    """
    size = MIN_SPHERE_SIZE + len(name.strip()) * SPHERE_SIZE_PER_CHAR
    return min(size, MAX_SPHERE_SIZE)


def node_radius(name: str) -> float:
    """Collision radius used for overlap tests."""
    return sphere_size(name) * SPHERE_RADIUS_FACTOR
