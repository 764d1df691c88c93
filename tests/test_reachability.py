import random

import numpy as np
import pytest

from netcontrol.network.graph import Graph
from netcontrol.network.index import GraphIndex
from netcontrol.network.reachability import (
    Reachability,
    adjacency_matrix,
    matrix_powers,
    target_matrix,
)
from netcontrol.utils.errors import InfeasibleTargetError, ValidationError


@pytest.mark.parametrize("method", ["bfs", "matrix"])
def test_chain_example_within_two_steps(chain_graph, method):
    reachability = Reachability.compute(chain_graph, max_path_length=2, method=method)

    assert set(reachability.ancestors["C"]) == {"B", "D", "A"}
    # Ordered by node index (A, B, C, D).
    assert reachability.ancestors["C"] == ["A", "B", "D"]


@pytest.mark.parametrize("method", ["bfs", "matrix"])
def test_chain_example_within_one_step(chain_graph, method):
    reachability = Reachability.compute(chain_graph, max_path_length=1, method=method)

    assert reachability.ancestors["C"] == ["B", "D"]


def test_adjacency_matrix_rows_are_edge_targets(chain_graph):
    index = GraphIndex.build(chain_graph.nodes)
    matrix = adjacency_matrix(index, chain_graph.edges)

    assert matrix[index.index_of("B"), index.index_of("A")]
    assert not matrix[index.index_of("A"), index.index_of("B")]
    assert matrix.sum() == 3


def test_matrix_powers_start_with_identity(chain_graph):
    index = GraphIndex.build(chain_graph.nodes)
    powers = matrix_powers(adjacency_matrix(index, chain_graph.edges), 3)

    assert len(powers) == 4
    assert np.array_equal(powers[0], np.eye(len(index), dtype=bool))
    # A -> B -> C is the only walk of length 2.
    assert powers[2][index.index_of("C"), index.index_of("A")]
    assert powers[2].sum() == 1
    assert powers[3].sum() == 0


def test_target_matrix_selects_target_rows(chain_graph):
    index = GraphIndex.build(chain_graph.nodes)
    matrix = target_matrix(index, ["C", "A"])

    assert matrix.shape == (2, 4)
    assert matrix[0, index.index_of("C")]
    assert matrix[1, index.index_of("A")]


def test_identity_power_is_not_a_path():
    graph = Graph.from_edges([("A", "B")], ["A", "B"])

    reachability = Reachability.compute(graph, max_path_length=3)

    assert reachability.ancestors["A"] == []
    assert reachability.ancestors["B"] == ["A"]


def test_cycle_makes_a_target_its_own_driver():
    graph = Graph.from_edges([("A", "B"), ("B", "A")], ["A"])

    reachability = Reachability.compute(graph, max_path_length=2)

    assert reachability.ancestors["A"] == ["A", "B"]
    assert reachability.path_lengths("A", "A") == [2]
    assert reachability.find_path("A", "A") == ["A", "B", "A"]


def test_bfs_and_matrix_methods_agree():
    rng = random.Random(3)
    nodes = [f"N{i}" for i in range(14)]
    edges = {(rng.choice(nodes), rng.choice(nodes)) for _ in range(30)}
    graph = Graph.from_edges(sorted(edges), nodes[::3])

    for length in (1, 2, 4):
        bfs = Reachability.compute(graph, max_path_length=length, method="bfs")
        matrix = Reachability.compute(graph, max_path_length=length, method="matrix")

        assert bfs.ancestors == matrix.ancestors
        for bfs_projection, matrix_projection in zip(bfs.projections, matrix.projections):
            assert np.array_equal(bfs_projection, matrix_projection)


def test_path_lengths_and_find_path(chain_graph):
    reachability = Reachability.compute(chain_graph, max_path_length=2)

    assert reachability.path_lengths("C", "B") == [1]
    assert reachability.path_lengths("C", "A") == [2]
    assert reachability.find_path("A", "C") == ["A", "B", "C"]
    assert reachability.find_path("D", "C") == ["D", "C"]


def test_find_path_respects_the_length_bound(chain_graph):
    reachability = Reachability.compute(chain_graph, max_path_length=1)

    assert reachability.find_path("A", "C") is None


def test_infeasible_targets_are_all_reported():
    graph = Graph.from_edges([("A", "B"), ("C", "D")], ["A", "C", "D"])
    reachability = Reachability.compute(graph, max_path_length=2)

    assert reachability.infeasible_targets() == ["A", "C"]
    with pytest.raises(InfeasibleTargetError) as exc_info:
        reachability.ensure_feasible()
    assert exc_info.value.targets == ["A", "C"]
    assert exc_info.value.details["max_path_length"] == 2


def test_invalid_method_and_length(chain_graph):
    with pytest.raises(ValidationError):
        Reachability.compute(chain_graph, max_path_length=2, method="dfs")
    with pytest.raises(ValidationError):
        Reachability.compute(chain_graph, max_path_length=0)
