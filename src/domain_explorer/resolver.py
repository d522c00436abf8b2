"""Offline child-name resolver backed by a JSON topic catalogue."""

import json
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from domain_explorer.config import TOPIC_PAGE_SIZE
from domain_explorer.errors import ResolverError


class TopicFileResolver:
    """Resolve child names from a `{topic: [child, ...]}` JSON file.

    Topics are matched case-insensitively. Variant `n` returns the `n`-th page
    of `page_size` names, so "load more" walks through longer lists. Unknown
    topics have no children.
    """

    def __init__(self, path: Path, *, page_size: int = TOPIC_PAGE_SIZE) -> None:
        self.path = path
        self.page_size = page_size
        self._catalogue: dict[str, list[str]] | None = None

    def _load(self) -> dict[str, list[str]]:
        if self._catalogue is not None:
            return self._catalogue

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            msg = f"Cannot read topic catalogue {str(self.path)!r}: {e}"
            raise ResolverError(msg) from e

        if not isinstance(raw, dict) or not all(
            isinstance(names, list) and all(isinstance(n, str) for n in names)
            for names in raw.values()
        ):
            msg = f"Topic catalogue {str(self.path)!r} must map names to lists of names"
            raise ResolverError(msg)

        self._catalogue = {str(topic).lower(): names for topic, names in raw.items()}
        logger.debug("Loaded {} topics from {}", len(self._catalogue), self.path)
        return self._catalogue

    async def resolve(
        self,
        topic: str,
        context: Sequence[str],
        *,
        variant: int = 0,
    ) -> list[str]:
        """Return page `variant` of the children listed for `topic`."""
        names = self._load().get(topic.lower(), [])
        start = variant * self.page_size
        page = names[start : start + self.page_size]
        logger.debug(
            "Resolved {} names for {!r} (variant {}, context {})",
            len(page),
            topic,
            variant,
            " > ".join(context),
        )
        return page
