from __future__ import annotations

from pipetopo.config.schema import PipelineSpec
from pipetopo.util.errors import NodeResolutionError


def resolve_chain(chain: list[str], pipeline: PipelineSpec) -> list[str]:
    """Map chain members to their function references, preserving order."""
    by_id = {node.id: node for node in pipeline.nodes}
    faas_ids: list[str] = []
    for node_id in chain:
        node = by_id.get(node_id)
        if node is None:
            raise NodeResolutionError(f"invalid node id: {node_id}")
        if node.data.faas_id is None:
            raise NodeResolutionError(f"node '{node_id}' has no function reference (data.faasId)")
        faas_ids.append(node.data.faas_id)
    return faas_ids
