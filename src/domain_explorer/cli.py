"""CLI for the domain explorer (layout, gesture replay, offline exploration)."""

import asyncio
import json
import random
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from domain_explorer.config import resolve_topics_file
from domain_explorer.core.gesture.controller import (
    GestureEvent,
    GestureState,
    PanBy,
    PointerDown,
    PointerMove,
    PointerUp,
    TapClassified,
    ZoomTo,
    step,
)
from domain_explorer.core.layout.engine import compute_layout
from domain_explorer.core.session import ExplorerSession
from domain_explorer.errors import ResolverError
from domain_explorer.logging_config import configure_logging
from domain_explorer.models.node import DomainNode, topic_node
from domain_explorer.resolver import TopicFileResolver

app = typer.Typer(help="Domain explorer: lay out topic trees and replay gestures.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
) -> None:
    configure_logging(verbose=verbose, quiet=quiet)


def _nodes_as_dicts(nodes: tuple[DomainNode, ...]) -> list[dict[str, Any]]:
    return [
        {
            "name": n.name,
            "x": round(n.position.x, 3) if n.position else None,
            "y": round(n.position.y, 3) if n.position else None,
        }
        for n in nodes
    ]


def _echo_nodes(nodes: tuple[DomainNode, ...]) -> None:
    for n in nodes:
        if n.position is None:
            typer.echo(f"  {n.name}")
        else:
            typer.echo(f"  {n.name:<30} x={n.position.x:6.2f}  y={n.position.y:6.2f}")


@app.command()
def layout(
    center: str = typer.Argument(..., help="Name of the focal node"),
    children: list[str] = typer.Argument(..., help="Names of the orbiting nodes"),
    seed: Annotated[
        int | None,
        typer.Option("--seed", "-s", help="Random seed for reproducible layouts"),
    ] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Compute orbit positions for CHILDREN around CENTER."""
    nodes = tuple(topic_node(name) for name in children)
    laid_out = compute_layout(nodes, center, rng=random.Random(seed))
    if output_json:
        typer.echo(json.dumps({"center": center, "children": _nodes_as_dicts(laid_out)}, indent=2))
    else:
        typer.echo(f"{center}:")
        _echo_nodes(laid_out)


def _parse_event(raw: dict[str, Any]) -> GestureEvent:
    kind = raw.get("type")
    pointer_id = int(raw.get("id", 0))
    x, y = float(raw["x"]), float(raw["y"])
    timestamp = float(raw.get("t", 0.0))
    if kind == "down":
        return PointerDown(pointer_id, x, y, raw.get("pointer_type", "mouse"), timestamp)
    if kind == "move":
        return PointerMove(pointer_id, x, y, timestamp)
    if kind in ("up", "cancel"):
        return PointerUp(pointer_id, x, y, timestamp)
    msg = f"Unknown pointer event type: {kind!r}"
    raise ValueError(msg)


@app.command()
def gestures(
    events_file: Path = typer.Argument(..., help="JSON list of pointer events"),
    pinch: bool = typer.Option(False, "--pinch", "-p", help="Enable pinch zoom"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Replay pointer events and report pan, zoom and tap decisions."""
    try:
        raw_events = json.loads(events_file.read_text(encoding="utf-8"))
        events = [_parse_event(raw) for raw in raw_events]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error("Cannot read events from {}: {}", events_file, e)
        raise typer.Exit(1) from e

    state = GestureState(pinch_enabled=pinch)
    taps: list[bool] = []
    for event in events:
        state, effects = step(state, event)
        for effect in effects:
            if isinstance(effect, TapClassified):
                taps.append(effect.is_tap)
            elif isinstance(effect, PanBy):
                logger.debug("pan by ({}, {})", effect.dx, effect.dy)
            elif isinstance(effect, ZoomTo):
                logger.debug("zoom to {}", effect.zoom)

    if output_json:
        data = {
            "pan": {"x": state.pan.x, "y": state.pan.y},
            "zoom": state.zoom,
            "taps": taps,
            "drag_committed": state.drag_committed,
        }
        typer.echo(json.dumps(data, indent=2))
    else:
        typer.echo(f"pan=({state.pan.x:.1f}, {state.pan.y:.1f})  zoom={state.zoom:.2f}")
        typer.echo(f"taps: {', '.join('tap' if t else 'drag/hold' for t in taps) or 'none'}")


async def _walk(session: ExplorerSession, path: list[str]) -> None:
    await session.ensure_children()
    for name in path:
        node = session.current_node
        if node is None or not any(c.name == name for c in node.child_nodes):
            msg = f"Topic {name!r} not found under {session.center_name!r}"
            raise KeyError(msg)
        session.descend(name)
        result = await session.ensure_children()
        if result.status == "failed":
            raise ResolverError(result.error or "fetch failed")


@app.command()
def explore(
    topics: Annotated[
        Path | None,
        typer.Option("--topics", "-t", help="Topic catalogue JSON file"),
    ] = None,
    path: Annotated[
        str,
        typer.Option("--path", "-P", help="Topic path to open, e.g. Science/Physics"),
    ] = "",
    seed: Annotated[
        int | None,
        typer.Option("--seed", "-s", help="Random seed for reproducible layouts"),
    ] = None,
    size: float = typer.Option(500.0, "--size", help="Container size in pixels"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Open a topic path from the catalogue and show its orbiting children."""
    catalogue = topics or resolve_topics_file()
    if catalogue is None or not catalogue.exists():
        logger.error("Topic catalogue not found: {}", catalogue)
        raise typer.Exit(1)

    session = ExplorerSession(TopicFileResolver(catalogue), rng=random.Random(seed))
    parts = [p for p in path.split("/") if p]
    try:
        asyncio.run(_walk(session, parts))
    except (KeyError, ResolverError) as e:
        logger.error("{}", e.args[0] if e.args else e)
        raise typer.Exit(1) from e

    children = session.orbiting_children(size)
    if output_json:
        data = {
            "path": list(session.breadcrumbs),
            "center": session.center_name,
            "children": _nodes_as_dicts(children),
        }
        typer.echo(json.dumps(data, indent=2))
    else:
        typer.echo(" / ".join(session.breadcrumbs))
        _echo_nodes(children)
