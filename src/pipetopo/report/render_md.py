from __future__ import annotations

from typing import Any


def _arrow(node_ids: list[str]) -> str:
    return " -> ".join(f"`{node_id}`" for node_id in node_ids)


def render_markdown(summary: dict[str, Any]) -> str:
    pipeline = summary["pipeline"]
    fan_out = summary["fan_out"]
    chains = summary["chains"]
    merge_points = summary["merge_points"]
    dangling = summary["dangling_edges"]

    lines: list[str] = []
    lines.append("# Pipeline Topology Report")
    lines.append("")
    lines.append("## Overview")
    lines.append("")
    lines.append(f"- nodes: {pipeline['nodes']}")
    lines.append(f"- edges: {pipeline['edges']}")
    lines.append(f"- fan-out points: {pipeline['fan_out_points']}")
    lines.append(f"- chains: {pipeline['chains']}")
    lines.append("")
    lines.append("## Fan-out Points")
    lines.append("")
    if fan_out:
        lines.append("| id | label | targets |")
        lines.append("|---|---|---|")
        for row in fan_out:
            targets = ", ".join(f"`{target}`" for target in row["targets"])
            lines.append(f"| {row['id']} | {row['label'] or '-'} | {targets} |")
    else:
        lines.append("No fan-out points.")
    lines.append("")
    lines.append("## Chains")
    lines.append("")
    if chains:
        lines.append("| # | head | tail | length | path |")
        lines.append("|---:|---|---|---:|---|")
        for row in chains:
            lines.append(
                f"| {row['index']} | {row['head']} | {row['tail']} | "
                f"{row['length']} | {_arrow(row['nodes'])} |"
            )
    else:
        lines.append("No chains.")
    lines.append("")
    lines.append("## Merge Points")
    lines.append("")
    if merge_points:
        for node_id in merge_points:
            lines.append(f"- `{node_id}`")
    else:
        lines.append("- (none)")
    lines.append("")
    if dangling:
        lines.append("## Dangling Edges")
        lines.append("")
        for row in dangling:
            missing = ", ".join(f"`{ref}`" for ref in row["missing"])
            lines.append(f"- `{row['id']}` references unknown node(s): {missing}")
        lines.append("")
    return "\n".join(lines)
