"""Spatial domain explorer: topic tree, orbit layout and gesture handling."""

from domain_explorer.core.gesture.controller import GestureState, request_selection, step
from domain_explorer.core.layout.engine import LayoutMemo, compute_layout
from domain_explorer.core.session import ExplorerSession
from domain_explorer.models.node import DomainNode, Materialized, Position
from domain_explorer.protocols import ChildNameResolver, RandomSource

__all__ = [
    "ChildNameResolver",
    "DomainNode",
    "ExplorerSession",
    "GestureState",
    "LayoutMemo",
    "Materialized",
    "Position",
    "RandomSource",
    "compute_layout",
    "request_selection",
    "step",
]
