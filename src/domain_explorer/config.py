"""Configuration constants for the domain explorer."""

from pathlib import Path

# Topic catalogue location for the offline resolver. First file found is used.
TOPIC_FILES: list[Path] = [
    Path("~/.config/domain-explorer/topics.json").expanduser(),
    Path("~/.local/share/domain-explorer/topics.json").expanduser(),
]

# Tree
DEFAULT_ROOT_NAME: str = "SparkSphere"
DEFAULT_ROOT_TOPICS: tuple[str, ...] = (
    "Science",
    "Art",
    "History",
    "Technology",
    "Music",
    "Philosophy",
    "Nature",
    "Sports",
)
TOPIC_PAGE_SIZE: int = 8

# Node sizing, in percent of the container.
MIN_SPHERE_SIZE: float = 11.0
MAX_SPHERE_SIZE: float = 19.0
SPHERE_SIZE_PER_CHAR: float = 0.35
SPHERE_RADIUS_FACTOR: float = 0.56

# Layout relaxation
LAYOUT_CENTER: float = 50.0
LAYOUT_ITERATIONS: int = 300
LAYOUT_SEED_JITTER: float = 15.0
LAYOUT_PAIR_MARGIN: float = 2.0
LAYOUT_CENTER_PULL: float = 0.015
LAYOUT_CENTER_MARGIN: float = 4.0

# Gestures. Distances in screen units, durations in milliseconds.
MAX_POINTERS: int = 10
TOUCH_DRAG_THRESHOLD: float = 10.0
MOUSE_CLICK_TOLERANCE: float = 5.0
TAP_MAX_DURATION_MS: float = 150.0
PINCH_MIN_ZOOM: float = 0.6
PINCH_MAX_ZOOM: float = 2.5
BUTTON_ZOOM_STEP: float = 0.2
BUTTON_MIN_ZOOM: float = 0.6
BUTTON_MAX_ZOOM: float = 2.0


def resolve_topics_file() -> Path | None:
    """Return the first existing topic catalogue, or None."""
    for candidate in TOPIC_FILES:
        if candidate.is_file():
            return candidate
    return None
