"""
Reachability precomputation for target control.

For every target node this module finds the nodes from which the target can be
reached by a directed walk of length 1..L, where L is the maximum path length
of the run. Two equivalent methods are available:

- ``"matrix"`` builds the adjacency matrix A (rows are edge targets, columns
  are edge sources) and its powers A^0..A^L; the non-zero columns of a target's
  row in A^k are the nodes with a walk of exactly k steps to it.
- ``"bfs"`` walks predecessor frontiers with a hop limit, which needs
  O((N + E) * L) time per target instead of O(N^3 * L) overall.

Both produce the same ancestor sets and the same per-length projection onto
target rows (the C·A^k matrices), which is what path lookups rely on.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from netcontrol.network.graph import Edge, Graph
from netcontrol.network.index import GraphIndex
from netcontrol.utils.errors import InfeasibleTargetError, ValidationError
from netcontrol.utils.logging import logger

METHODS = ("bfs", "matrix")


def adjacency_matrix(index: GraphIndex, edges: Sequence[Edge]) -> np.ndarray:
    """
    Build the boolean adjacency matrix A.

    Args:
        index: Node index
        edges: Directed edges

    Returns:
        N x N array with ``A[target, source] = True`` for every edge
    """
    size = len(index)
    matrix = np.zeros((size, size), dtype=bool)
    for edge in edges:
        matrix[index.index_of(edge.target_node), index.index_of(edge.source_node)] = True
    return matrix


def target_matrix(index: GraphIndex, target_nodes: Sequence[str]) -> np.ndarray:
    """Build C, the T x N selector with ``C[i, index(target_i)] = True``."""
    matrix = np.zeros((len(target_nodes), len(index)), dtype=bool)
    for row, target in enumerate(target_nodes):
        matrix[row, index.index_of(target)] = True
    return matrix


def matrix_powers(matrix_a: np.ndarray, max_path_length: int) -> List[np.ndarray]:
    """
    Compute [A^0, A^1, ..., A^L] as boolean matrices.

    Products are clamped back to booleans after every step so that walk
    counts never overflow on dense graphs.
    """
    powers = [np.eye(matrix_a.shape[0], dtype=bool)]
    operand = matrix_a.astype(np.int64)
    for _ in range(max_path_length):
        powers.append((operand @ powers[-1].astype(np.int64)) > 0)
    return powers


def projected_powers(matrix_c: np.ndarray, powers: Sequence[np.ndarray]) -> List[np.ndarray]:
    """Left-multiply every power of A by C, giving the target rows of each power."""
    operand = matrix_c.astype(np.int64)
    return [(operand @ power.astype(np.int64)) > 0 for power in powers]


@dataclass
class Reachability:
    """
    Per-target ancestor sets within the path length bound.

    Attributes:
        index: Node index the structures are addressed by
        target_nodes: Target nodes, in the order of the projection rows
        max_path_length: Maximum path length L
        ancestors: Target -> nodes reaching it in 1..L steps, ordered by index
        projections: ``projections[k]`` is the T x N boolean C·A^k for k in 0..L
        powers: A^0..A^L when computed with the matrix method, else None
    """
    index: GraphIndex
    target_nodes: List[str]
    max_path_length: int
    ancestors: Dict[str, List[str]]
    projections: List[np.ndarray]
    powers: Optional[List[np.ndarray]] = None
    successors: List[List[int]] = field(default_factory=list, repr=False)

    @classmethod
    def compute(
        cls,
        graph: Graph,
        index: Optional[GraphIndex] = None,
        max_path_length: int = 1,
        method: str = "bfs",
    ) -> "Reachability":
        """
        Run the precomputation for a graph.

        Args:
            graph: Network to analyse
            index: Node index (built from the graph if omitted)
            max_path_length: Maximum path length L (at least 1)
            method: ``"bfs"`` or ``"matrix"``

        Returns:
            Reachability instance
        """
        if method not in METHODS:
            raise ValidationError(f"Unknown reachability method: {method}", field="method")
        if max_path_length < 1:
            raise ValidationError("The maximum path length must be at least 1", field="max_path_length")

        if index is None:
            index = GraphIndex.build(graph.nodes, graph.preferred_nodes)
        targets = list(graph.target_nodes)

        successors: List[List[int]] = [[] for _ in range(len(index))]
        predecessors: List[List[int]] = [[] for _ in range(len(index))]
        for edge in graph.edges:
            source = index.index_of(edge.source_node)
            target = index.index_of(edge.target_node)
            if target not in successors[source]:
                successors[source].append(target)
                predecessors[target].append(source)

        powers = None
        if method == "matrix":
            powers = matrix_powers(adjacency_matrix(index, graph.edges), max_path_length)
            projections = projected_powers(target_matrix(index, targets), powers)
        else:
            projections = _walk_projections(index, targets, predecessors, max_path_length)

        ancestors: Dict[str, List[str]] = {}
        for row, target in enumerate(targets):
            reachable = np.zeros(len(index), dtype=bool)
            # Power 0 is the identity and does not count as a path.
            for projection in projections[1:]:
                reachable |= projection[row]
            ancestors[target] = [index.node_at(int(position)) for position in np.flatnonzero(reachable)]

        logger.debug(
            f"Computed reachability for {len(targets)} target(s) within {max_path_length} step(s)",
            component="network",
            operation="compute",
            context={"method": method, "nodes": len(index), "edges": len(graph.edges)},
        )

        return cls(
            index=index,
            target_nodes=targets,
            max_path_length=max_path_length,
            ancestors=ancestors,
            projections=projections,
            powers=powers,
            successors=successors,
        )

    def infeasible_targets(self) -> List[str]:
        """Targets that no node reaches within the bound."""
        return [target for target in self.target_nodes if not self.ancestors[target]]

    def ensure_feasible(self) -> None:
        """
        Check that every target has at least one candidate driver.

        Raises:
            InfeasibleTargetError: Listing every unreachable target
        """
        infeasible = self.infeasible_targets()
        if infeasible:
            raise InfeasibleTargetError(infeasible, self.max_path_length)

    def path_lengths(self, target: str, driver: str) -> List[int]:
        """Lengths k in 1..L for which a walk of exactly k steps goes from driver to target."""
        row = self.target_nodes.index(target)
        column = self.index.index_of(driver)
        return [
            length for length in range(1, self.max_path_length + 1)
            if self.projections[length][row, column]
        ]

    def find_path(self, driver: str, target: str) -> Optional[List[str]]:
        """
        Find one shortest directed path from driver to target.

        Args:
            driver: Start node
            target: End node (may equal the driver when a cycle exists)

        Returns:
            Node list from driver to target with 1..L steps, or None
        """
        start = self.index.index_of(driver)
        goal = self.index.index_of(target)
        parents: Dict[int, int] = {}
        frontier = [start]

        for _ in range(self.max_path_length):
            next_frontier = []
            for node in frontier:
                for successor in self.successors[node]:
                    if successor in parents:
                        continue
                    parents[successor] = node
                    if successor == goal:
                        path = [goal]
                        current = goal
                        while True:
                            current = parents[current]
                            path.append(current)
                            if current == start:
                                break
                        return [self.index.node_at(position) for position in reversed(path)]
                    next_frontier.append(successor)
            frontier = next_frontier
            if not frontier:
                break

        return None


def _walk_projections(
    index: GraphIndex,
    targets: Sequence[str],
    predecessors: Sequence[Sequence[int]],
    max_path_length: int,
) -> List[np.ndarray]:
    """Build C·A^k for k in 0..L from predecessor frontiers instead of matrix products."""
    projections = [np.zeros((len(targets), len(index)), dtype=bool) for _ in range(max_path_length + 1)]

    for row, target in enumerate(targets):
        frontier = {index.index_of(target)}
        projections[0][row, index.index_of(target)] = True
        for length in range(1, max_path_length + 1):
            next_frontier = set()
            for node in frontier:
                next_frontier.update(predecessors[node])
            if not next_frontier:
                break
            projections[length][row, sorted(next_frontier)] = True
            frontier = next_frontier

    return projections
