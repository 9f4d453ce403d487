"""Build graph structures from pipeline edges."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import Protocol


class EdgeLike(Protocol):
    source: str
    target: str


def build_adjacency(edges: Iterable[EdgeLike]) -> dict[str, list[str]]:
    """Return successors by source id, in edge order, duplicates kept."""
    successors: dict[str, list[str]] = defaultdict(list)
    for edge in edges:
        successors[edge.source].append(edge.target)
    return dict(successors)
