from __future__ import annotations

import errno
import math
import os
import stat
from contextlib import suppress
from pathlib import Path
from typing import Any

import yaml

from pipetopo.config.schema import EdgeSpec, NodeData, NodeSpec, PipelineSpec
from pipetopo.util.errors import PipelineError
from pipetopo.util.logging import get_logger
from pipetopo.util.path_guard import has_symlink_ancestor

logger = get_logger(__name__)

# Only the root is closed; node, data, position and edge mappings carry
# editor-specific keys that are ignored.
_ALLOWED_PIPELINE_KEYS = {"nodes", "edges"}


def _is_finite_real_number(value: object) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    return math.isfinite(value)


def _is_non_blank_str(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip()) and "\x00" not in value


def _ensure_mapping(name: str, raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise PipelineError(f"{name} must be mapping")
    if any(not isinstance(key, str) for key in raw):
        raise PipelineError(f"{name} fields must use string keys")
    return raw


def _optional_str(owner: str, name: str, value: Any) -> str | None:
    # An empty string is the same as an absent field.
    if value is None or value == "":
        return None
    if not _is_non_blank_str(value):
        raise PipelineError(f"{owner} {name} must be non-empty string")
    return value


def _parse_node_data(node_id: str, raw: Any) -> NodeData:
    if raw is None:
        return NodeData()
    data = _ensure_mapping(f"node '{node_id}' data", raw)
    label = data.get("label", "")
    if not isinstance(label, str):
        raise PipelineError(f"node '{node_id}' data.label must be string")
    return NodeData(
        label=label,
        faas_id=_optional_str(f"node '{node_id}'", "data.faasId", data.get("faasId")),
    )


def _parse_position(node_id: str, raw: Any) -> tuple[float, float] | None:
    if raw is None:
        return None
    position = _ensure_mapping(f"node '{node_id}' position", raw)
    x, y = position.get("x"), position.get("y")
    if not (_is_finite_real_number(x) and _is_finite_real_number(y)):
        raise PipelineError(f"node '{node_id}' position must be mapping of numeric x and y")
    return (float(x), float(y))


def _parse_node(raw: Any) -> NodeSpec:
    node = _ensure_mapping("node", raw)
    if "id" not in node or not _is_non_blank_str(node["id"]):
        raise PipelineError("node.id is required and must be non-empty string")
    node_id = node["id"]
    return NodeSpec(
        id=node_id,
        data=_parse_node_data(node_id, node.get("data")),
        type=_optional_str(f"node '{node_id}'", "type", node.get("type")),
        sequence_id=_optional_str(f"node '{node_id}'", "sequenceId", node.get("sequenceId")),
        position=_parse_position(node_id, node.get("position")),
    )


def _parse_edge(raw: Any) -> EdgeSpec:
    edge = _ensure_mapping("edge", raw)
    if "id" not in edge or not _is_non_blank_str(edge["id"]):
        raise PipelineError("edge.id is required and must be non-empty string")
    edge_id = edge["id"]
    for key in ("source", "target"):
        if not _is_non_blank_str(edge.get(key)):
            raise PipelineError(f"edge '{edge_id}' {key} is required and must be non-empty string")
    return EdgeSpec(id=edge_id, source=edge["source"], target=edge["target"])


def _ensure_list(name: str, value: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise PipelineError(f"pipeline.{name} must be a list")
    return value


def validate_pipeline(pipeline: PipelineSpec) -> None:
    ids = [node.id for node in pipeline.nodes]
    if len(set(ids)) != len(ids):
        raise PipelineError("node.id must be unique")


def parse_pipeline(raw: Any) -> PipelineSpec:
    """Build a validated pipeline from an already-decoded payload mapping."""
    if not isinstance(raw, dict):
        raise PipelineError("pipeline root must be a mapping")
    if any(not isinstance(key, str) for key in raw):
        raise PipelineError("pipeline root keys must be strings")
    unknown_root = set(raw.keys()) - _ALLOWED_PIPELINE_KEYS
    if unknown_root:
        raise PipelineError(f"pipeline contains unknown fields: {sorted(unknown_root)}")

    pipeline = PipelineSpec(
        nodes=[_parse_node(node) for node in _ensure_list("nodes", raw.get("nodes"))],
        edges=[_parse_edge(edge) for edge in _ensure_list("edges", raw.get("edges"))],
    )
    validate_pipeline(pipeline)
    return pipeline


def load_pipeline(path: Path) -> PipelineSpec:
    """Read a YAML or JSON pipeline document from ``path``."""
    if has_symlink_ancestor(path):
        raise PipelineError(f"pipeline file path must not include symlink: {path}")
    try:
        meta = path.lstat()
    except FileNotFoundError:
        meta = None
    except (OSError, RuntimeError) as exc:
        raise PipelineError(f"failed to read pipeline file: {path}") from exc

    if meta is not None:
        if stat.S_ISLNK(meta.st_mode):
            raise PipelineError(f"pipeline file must not be symlink: {path}")
        if not stat.S_ISREG(meta.st_mode):
            raise PipelineError(f"failed to read pipeline file: {path}")

    open_flags = os.O_RDONLY
    if hasattr(os, "O_NONBLOCK"):
        open_flags |= os.O_NONBLOCK
    if hasattr(os, "O_NOFOLLOW"):
        open_flags |= os.O_NOFOLLOW
    fd: int | None = None
    try:
        fd = os.open(str(path), open_flags)
        with os.fdopen(fd, "r", encoding="utf-8") as f:
            fd = None
            content = f.read()
    except FileNotFoundError as exc:
        raise PipelineError(f"pipeline file not found: {path}") from exc
    except UnicodeError as exc:
        raise PipelineError(f"failed to decode pipeline file as utf-8: {path}") from exc
    except OSError as exc:
        if exc.errno == errno.ELOOP:
            raise PipelineError(f"pipeline file must not be symlink: {path}") from exc
        raise PipelineError(f"failed to read pipeline file: {path}") from exc
    finally:
        if fd is not None:
            with suppress(OSError):
                os.close(fd)

    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise PipelineError(f"failed to parse pipeline document: {exc}") from exc

    pipeline = parse_pipeline(raw)
    logger.debug(
        "pipeline_loaded", path=str(path), nodes=len(pipeline.nodes), edges=len(pipeline.edges)
    )
    return pipeline
