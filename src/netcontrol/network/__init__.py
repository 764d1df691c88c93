"""
Network package for netcontrol.

This package holds the directed graph model, the dense node index, and the
reachability precomputation the genetic engine draws its genes from.
"""

from netcontrol.network.graph import Edge, Graph, parse_edge_lines, parse_node_lines
from netcontrol.network.index import GraphIndex
from netcontrol.network.reachability import (
    Reachability,
    adjacency_matrix,
    target_matrix,
    matrix_powers,
    projected_powers,
)

__all__ = [
    "Edge",
    "Graph",
    "parse_edge_lines",
    "parse_node_lines",
    "GraphIndex",
    "Reachability",
    "adjacency_matrix",
    "target_matrix",
    "matrix_powers",
    "projected_powers",
]
