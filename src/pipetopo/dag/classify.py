"""Fan-out point detection."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class NodeLike(Protocol):
    id: str


def find_fan_out(nodes: Iterable[NodeLike], adjacency: dict[str, list[str]]) -> dict[str, list[str]]:
    """Return successors of every listed node with out-degree greater than one.

    Only ids from ``nodes`` can become keys; an edge source missing from the
    node list is never reported.
    """
    fan_out: dict[str, list[str]] = {}
    for node in nodes:
        successors = adjacency.get(node.id, [])
        if len(successors) > 1:
            fan_out[node.id] = list(successors)
    return fan_out
