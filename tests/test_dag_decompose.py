from __future__ import annotations

from pipetopo.config.schema import EdgeSpec, NodeSpec
from pipetopo.dag.decompose import Decomposition, decompose


def _graph(node_ids: list[str], *pairs: tuple[str, str]) -> tuple[list[NodeSpec], list[EdgeSpec]]:
    nodes = [NodeSpec(id=node_id) for node_id in node_ids]
    edges = [EdgeSpec(id=f"{src}-{dst}", source=src, target=dst) for src, dst in pairs]
    return nodes, edges


def test_decompose_empty_pipeline() -> None:
    result = decompose([], [])
    assert result.fan_out == {}
    assert result.chains == []


def test_decompose_single_node() -> None:
    result = decompose(*_graph(["0"]))
    assert result.fan_out == {}
    assert result.chains == [["0"]]


def test_decompose_linear_sequence() -> None:
    result = decompose(*_graph(["0", "1", "2", "3"], ("0", "1"), ("1", "2"), ("2", "3")))
    assert result.fan_out == {}
    assert result.chains == [["0", "1", "2", "3"]]


def test_decompose_tree_with_merge_point() -> None:
    result = decompose(
        *_graph(
            ["0", "1", "2", "3", "4", "5", "6"],
            ("0", "1"),
            ("0", "2"),
            ("2", "3"),
            ("1", "4"),
            ("1", "5"),
            ("3", "6"),
            ("5", "6"),
        )
    )
    assert result.fan_out == {"0": ["1", "2"], "1": ["4", "5"]}
    assert result.chains == [["2", "3", "6"], ["4"], ["5", "6"]]


def test_decompose_binary_tree() -> None:
    result = decompose(
        *_graph(
            ["0", "1", "2", "3", "4", "5", "6"],
            ("0", "1"),
            ("0", "2"),
            ("1", "3"),
            ("1", "4"),
            ("2", "5"),
            ("2", "6"),
        )
    )
    assert result.fan_out == {"0": ["1", "2"], "1": ["3", "4"], "2": ["5", "6"]}
    assert result.chains == [["3"], ["4"], ["5"], ["6"]]


def test_merge_node_ends_every_converging_chain() -> None:
    result = decompose(*_graph(["p", "q", "r", "m"], ("p", "m"), ("q", "m"), ("r", "m")))
    assert result.chains == [["p", "m"], ["q", "m"], ["r", "m"]]


def test_merge_node_listed_first_heads_its_own_chain_and_still_ends_others() -> None:
    result = decompose(*_graph(["m", "p", "q"], ("p", "m"), ("q", "m")))
    assert result.chains == [["m"], ["p", "m"], ["q", "m"]]


def test_fan_out_node_can_end_a_chain_but_never_head_one() -> None:
    result = decompose(*_graph(["a", "b", "c", "d"], ("a", "b"), ("b", "c"), ("b", "d")))
    assert result.fan_out == {"b": ["c", "d"]}
    assert result.chains == [["a", "b"], ["c"], ["d"]]
    assert all(chain[0] != "b" for chain in result.chains)


def test_multi_edges_make_a_fan_out_point() -> None:
    result = decompose(*_graph(["a", "b"], ("a", "b"), ("a", "b")))
    assert result.fan_out == {"a": ["b", "b"]}
    assert result.chains == [["b"]]


def test_cycle_terminates_without_repeating_nodes() -> None:
    result = decompose(*_graph(["a", "b", "c"], ("a", "b"), ("b", "c"), ("c", "a")))
    assert result.fan_out == {}
    assert result.chains == [["a", "b", "c"]]


def test_self_loop_terminates() -> None:
    result = decompose(*_graph(["a"], ("a", "a")))
    assert result.chains == [["a"]]


def test_cycle_entered_from_a_tail_is_walked_once() -> None:
    result = decompose(*_graph(["x", "a", "b"], ("x", "a"), ("a", "b"), ("b", "a")))
    assert result.chains == [["x", "a", "b"]]


def test_dangling_target_is_followed_by_id() -> None:
    result = decompose(*_graph(["a"], ("a", "ghost")))
    assert result.chains == [["a", "ghost"]]


def test_dangling_source_never_becomes_fan_out_key() -> None:
    result = decompose(*_graph(["a", "b"], ("ghost", "a"), ("ghost", "b")))
    assert result.fan_out == {}
    assert result.chains == [["a"], ["b"]]


def test_decompose_is_idempotent() -> None:
    graph = _graph(["0", "1", "2", "3"], ("0", "1"), ("0", "2"), ("1", "3"), ("2", "3"))
    first = decompose(*graph)
    second = decompose(*graph)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_decomposition_to_dict_uses_output_contract_keys() -> None:
    result = Decomposition(fan_out={"0": ["1", "2"]}, chains=[["1"], ["2"]])
    assert result.to_dict() == {"fanOut": {"0": ["1", "2"]}, "chains": [["1"], ["2"]]}
