"""Pipeline topology decomposition into fan-out points and chains."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from pipetopo.dag.build import EdgeLike, build_adjacency
from pipetopo.dag.chains import walk_chains
from pipetopo.dag.classify import NodeLike, find_fan_out
from pipetopo.util.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Decomposition:
    fan_out: dict[str, list[str]] = field(default_factory=dict)
    chains: list[list[str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fanOut": {node_id: list(targets) for node_id, targets in self.fan_out.items()},
            "chains": [list(chain) for chain in self.chains],
        }


def decompose(nodes: Sequence[NodeLike], edges: Sequence[EdgeLike]) -> Decomposition:
    """Split a pipeline graph into fan-out points and sequential chains.

    Total over any finite input: empty lists, dangling edge references,
    multi-edges and cycles are all accepted.
    """
    adjacency = build_adjacency(edges)
    result = Decomposition(
        fan_out=find_fan_out(nodes, adjacency),
        chains=walk_chains(nodes, adjacency),
    )
    logger.debug(
        "pipeline_decomposed",
        nodes=len(nodes),
        edges=len(edges),
        fan_out=len(result.fan_out),
        chains=len(result.chains),
    )
    return result
