"""Shared test fixtures."""

import json
import random
from pathlib import Path

import pytest

from domain_explorer.models.node import DomainNode, Materialized, Position, topic_node
from tests.unit.fakes import FakeResolver

TOPIC_CATALOGUE = {
    "Science": ["Physics", "Chemistry", "Biology", "Astronomy", "Geology", "Ecology"],
    "Physics": ["Mechanics", "Optics", "Thermodynamics"],
    "Art": ["Painting", "Sculpture"],
}


@pytest.fixture
def sample_tree() -> DomainNode:
    """Root -> Science (materialized: Physics@(10,10), Biology) and Art (unresolved)."""
    physics = DomainNode(
        id="Physics",
        name="Physics",
        children=Materialized((topic_node("Optics"),)),
        position=Position(10.0, 10.0),
    )
    science = DomainNode(
        id="Science",
        name="Science",
        children=Materialized((physics, topic_node("Biology"))),
        position=Position(30.0, 70.0),
    )
    return DomainNode(
        id="root",
        name="SparkSphere",
        children=Materialized((science, topic_node("Art"))),
    )


@pytest.fixture
def resolver() -> FakeResolver:
    fake = FakeResolver()
    fake.add_response("Science", ["Physics", "Chemistry", "Biology"])
    fake.add_response("Science", ["Astronomy", "physics", "Geology"], variant=1)
    fake.add_response("Physics", ["Mechanics", "Optics"])
    fake.add_response("Dinosaurs", ["Fossils", "Extinction", "Evolution"])
    return fake


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def topics_file(tmp_path: Path) -> Path:
    path = tmp_path / "topics.json"
    path.write_text(json.dumps(TOPIC_CATALOGUE))
    return path
