from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class NodeData:
    label: str = ""
    faas_id: str | None = None


@dataclass(slots=True)
class NodeSpec:
    id: str
    data: NodeData = field(default_factory=NodeData)
    type: str | None = None
    sequence_id: str | None = None
    position: tuple[float, float] | None = None


@dataclass(slots=True)
class EdgeSpec:
    id: str
    source: str
    target: str


@dataclass(slots=True)
class PipelineSpec:
    nodes: list[NodeSpec] = field(default_factory=list)
    edges: list[EdgeSpec] = field(default_factory=list)
