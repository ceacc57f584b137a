"""Subtimeline cycle detection across the whole timeline graph."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable

import networkx as nx

from opentimeline.memory.entities import SubtimelineEdge

logger = logging.getLogger(__name__)


def compute_cycle_hash(cycle: list[str]) -> str:
    """Compute a deterministic hash for a cycle independent of its start node.

    Edges are sorted lexicographically, so rotations of the same directed cycle
    produce the same hash. A cycle traversed in reverse direction is treated as
    a distinct cycle.

    Args:
        cycle: Timeline IDs in cycle order, without repeating the first ID.

    Returns:
        16-character hex hash string.
    """
    edges = sorted((cycle[i], cycle[(i + 1) % len(cycle)]) for i in range(len(cycle)))
    edge_str = "|".join(f"{src},{tgt}" for src, tgt in edges)
    digest = hashlib.sha256(edge_str.encode()).hexdigest()[:16]
    logger.debug("Computed cycle hash: %s", digest)
    return digest


def build_subtimeline_graph(edges: Iterable[SubtimelineEdge]) -> nx.DiGraph:
    """Build a directed parent -> child graph from subtimeline edges."""
    graph = nx.DiGraph()
    graph.add_edges_from((edge.parent_id, edge.child_id) for edge in edges)
    return graph


def find_subtimeline_cycles(
    edges: Iterable[SubtimelineEdge], max_cycle_length: int | None = None
) -> list[list[str]]:
    """Find every simple cycle in the subtimeline graph.

    Uses NetworkX's simple_cycles algorithm. Each cycle is rotated so that it
    starts at its smallest ID, and the result is sorted, so the output is
    stable across runs.

    Args:
        edges: Subtimeline edges to inspect.
        max_cycle_length: Optional bound on cycle length. Longer cycles are
            ignored.

    Returns:
        List of cycles, each a list of timeline IDs in traversal order
        (first ID not repeated). A self-reference is a one-element cycle.
    """
    graph = build_subtimeline_graph(edges)
    if graph.number_of_nodes() == 0:
        return []

    cycles: list[list[str]] = []
    for cycle_nodes in nx.simple_cycles(graph, length_bound=max_cycle_length):
        start = cycle_nodes.index(min(cycle_nodes))
        cycles.append(cycle_nodes[start:] + cycle_nodes[:start])

    cycles.sort()
    logger.debug("Found %d subtimeline cycles", len(cycles))
    return cycles
