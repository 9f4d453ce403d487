"""Sequential chain discovery."""

from __future__ import annotations

from collections.abc import Iterable

from pipetopo.dag.classify import NodeLike


def _walk_from(head: str, adjacency: dict[str, list[str]]) -> list[str]:
    chain: list[str] = []
    visited: set[str] = set()
    current = head
    while True:
        chain.append(current)
        visited.add(current)
        successors = adjacency.get(current, [])
        if len(successors) != 1:
            break
        nxt = successors[0]
        if nxt in visited:
            # cycle back into this walk
            break
        current = nxt
    return chain


def walk_chains(nodes: Iterable[NodeLike], adjacency: dict[str, list[str]]) -> list[list[str]]:
    """Return maximal single-successor chains in node-list order.

    A node heads a chain when its out-degree is at most one and no earlier
    chain contains it. ``consumed`` only gates where chains start, so a merge
    node reached from several heads ends each of those chains, and a fan-out
    node may end a chain without ever heading one.
    """
    consumed: set[str] = set()
    chains: list[list[str]] = []
    for node in nodes:
        if node.id in consumed or len(adjacency.get(node.id, [])) > 1:
            continue
        chain = _walk_from(node.id, adjacency)
        consumed.update(chain)
        chains.append(chain)
    return chains
