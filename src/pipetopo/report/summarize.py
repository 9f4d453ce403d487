from __future__ import annotations

from pipetopo.config.schema import PipelineSpec
from pipetopo.dag.decompose import Decomposition


def build_summary(pipeline: PipelineSpec, decomposition: Decomposition) -> dict[str, object]:
    labels = {node.id: node.data.label for node in pipeline.nodes}
    known = set(labels)

    fan_out_rows: list[dict[str, object]] = []
    chain_rows: list[dict[str, object]] = []
    dangling_rows: list[dict[str, object]] = []

    for node_id, targets in decomposition.fan_out.items():
        fan_out_rows.append(
            {"id": node_id, "label": labels.get(node_id, ""), "targets": list(targets)}
        )

    tails: dict[str, int] = {}
    for chain in decomposition.chains:
        tails[chain[-1]] = tails.get(chain[-1], 0) + 1
    for idx, chain in enumerate(decomposition.chains):
        chain_rows.append(
            {
                "index": idx,
                "head": chain[0],
                "tail": chain[-1],
                "length": len(chain),
                "nodes": list(chain),
            }
        )
    merge_points = [node_id for node_id, count in tails.items() if count > 1]

    for edge in pipeline.edges:
        missing = [ref for ref in (edge.source, edge.target) if ref not in known]
        if missing:
            dangling_rows.append({"id": edge.id, "missing": missing})

    return {
        "pipeline": {
            "nodes": len(pipeline.nodes),
            "edges": len(pipeline.edges),
            "fan_out_points": len(fan_out_rows),
            "chains": len(chain_rows),
        },
        "fan_out": fan_out_rows,
        "chains": chain_rows,
        "merge_points": merge_points,
        "dangling_edges": dangling_rows,
    }
