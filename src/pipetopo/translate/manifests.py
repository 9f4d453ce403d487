"""Knative flow manifests built from a decomposition.

Chains become ``Sequence`` resources and fan-out points become ``Parallel``
resources. Manifests are plain dicts; applying them to a cluster is left to
the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pipetopo.config.schema import PipelineSpec
from pipetopo.dag.decompose import Decomposition
from pipetopo.translate.resolve import resolve_chain
from pipetopo.util.errors import TranslationError
from pipetopo.util.ids import new_resource_suffix
from pipetopo.util.logging import get_logger

logger = get_logger(__name__)

FLOWS_API_VERSION = "flows.knative.dev/v1"
MESSAGING_API_VERSION = "messaging.knative.dev/v1"
SERVING_API_VERSION = "serving.knative.dev/v1"


@dataclass(frozen=True, slots=True)
class TranslateSettings:
    namespace: str = "default"
    name_prefix: str = "mocha"
    channel_kind: str = "InMemoryChannel"
    suffix: str | None = None


def _ref(api_version: str, kind: str, name: str) -> dict[str, str]:
    return {"apiVersion": api_version, "kind": kind, "name": name}


def _metadata_and_channel(name: str, namespace: str, channel_kind: str) -> dict[str, Any]:
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "channelTemplate": {"apiVersion": MESSAGING_API_VERSION, "kind": channel_kind},
        },
    }


def build_sequence(
    faas_ids: list[str], *, name: str, namespace: str, channel_kind: str = "InMemoryChannel"
) -> dict[str, Any]:
    manifest: dict[str, Any] = {"apiVersion": FLOWS_API_VERSION, "kind": "Sequence"}
    manifest.update(_metadata_and_channel(name, namespace, channel_kind))
    manifest["spec"]["steps"] = [
        {"ref": _ref(SERVING_API_VERSION, "Service", faas_id)} for faas_id in faas_ids
    ]
    return manifest


def build_parallel(
    branch_refs: list[dict[str, str]],
    *,
    name: str,
    namespace: str,
    channel_kind: str = "InMemoryChannel",
) -> dict[str, Any]:
    manifest: dict[str, Any] = {"apiVersion": FLOWS_API_VERSION, "kind": "Parallel"}
    manifest.update(_metadata_and_channel(name, namespace, channel_kind))
    manifest["spec"]["branches"] = [{"subscriber": {"ref": dict(ref)}} for ref in branch_refs]
    return manifest


def _chain_tail(target: str, chains: list[list[str]]) -> list[str] | None:
    for chain in chains:
        if target in chain:
            return chain[chain.index(target) :]
    return None


def translate(
    pipeline: PipelineSpec,
    decomposition: Decomposition,
    settings: TranslateSettings | None = None,
) -> list[dict[str, Any]]:
    """Return Sequences for chains and chain tails, then one Parallel per fan-out point.

    A branch target that heads a chain routes to that chain's Sequence, and a
    fan-out target routes to its Parallel. A target inside a chain gets an
    extra Sequence running the chain from that target onward, so the branch
    never runs functions upstream of it.
    """
    settings = settings or TranslateSettings()
    suffix = settings.suffix or new_resource_suffix()
    sequences: list[tuple[str, list[str]]] = [
        (f"{settings.name_prefix}-sequence-{idx}-{suffix}", chain)
        for idx, chain in enumerate(decomposition.chains)
    ]
    parallel_names = {
        node_id: f"{settings.name_prefix}-parallel-{idx}-{suffix}"
        for idx, node_id in enumerate(decomposition.fan_out)
    }
    started_by = {chain[0]: name for name, chain in sequences}

    branch_refs: dict[str, list[dict[str, str]]] = {}
    for node_id, targets in decomposition.fan_out.items():
        refs: list[dict[str, str]] = []
        for target in targets:
            if target not in started_by and target not in parallel_names:
                tail = _chain_tail(target, decomposition.chains)
                if tail is None:
                    raise TranslationError(
                        f"branch target '{target}' does not start any execution unit"
                    )
                name = f"{settings.name_prefix}-sequence-{len(sequences)}-{suffix}"
                sequences.append((name, tail))
                started_by[target] = name
            if target in started_by:
                refs.append(_ref(FLOWS_API_VERSION, "Sequence", started_by[target]))
            else:
                refs.append(_ref(FLOWS_API_VERSION, "Parallel", parallel_names[target]))
        branch_refs[node_id] = refs

    manifests: list[dict[str, Any]] = []
    for name, chain in sequences:
        manifests.append(
            build_sequence(
                resolve_chain(chain, pipeline),
                name=name,
                namespace=settings.namespace,
                channel_kind=settings.channel_kind,
            )
        )
        logger.debug("sequence_translated", name=name, steps=len(chain))

    for node_id, refs in branch_refs.items():
        manifests.append(
            build_parallel(
                refs,
                name=parallel_names[node_id],
                namespace=settings.namespace,
                channel_kind=settings.channel_kind,
            )
        )
        logger.debug("parallel_translated", name=parallel_names[node_id], branches=len(refs))

    return manifests
