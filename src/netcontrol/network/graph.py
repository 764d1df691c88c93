"""
Directed network model for netcontrol.

A graph is an ordered list of unique node identifiers, a list of directed
edges, and the subsets of target and preferred nodes. Node order matters:
it fixes the dense index used by chromosomes and matrices, so the same graph
always yields the same run for a given random seed.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Any, Optional, Tuple

from netcontrol.utils.errors import GraphError


@dataclass(frozen=True)
class Edge:
    """A directed edge ``source_node -> target_node``."""
    source_node: str
    target_node: str

    def to_dict(self) -> Dict[str, str]:
        return {"source_node": self.source_node, "target_node": self.target_node}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(
            source_node=data.get("source_node", data.get("SourceNode")),
            target_node=data.get("target_node", data.get("TargetNode")),
        )


@dataclass
class Graph:
    """
    Represents the network a run is computed on.

    Attributes:
        nodes: Ordered, unique node identifiers
        edges: Directed edges between nodes
        target_nodes: Nodes that must be controlled
        preferred_nodes: Nodes whose use as drivers is rewarded
    """
    nodes: List[str]
    edges: List[Edge] = field(default_factory=list)
    target_nodes: List[str] = field(default_factory=list)
    preferred_nodes: List[str] = field(default_factory=list)

    def validate(self) -> None:
        """
        Check that every reference in the graph points to a declared node.

        Raises:
            GraphError: If node identifiers are duplicated, if an edge, target
                or preferred node is not in ``nodes``, or if there are no targets
        """
        seen = set()
        duplicates = []
        for node in self.nodes:
            if node in seen and node not in duplicates:
                duplicates.append(node)
            seen.add(node)
        if duplicates:
            raise GraphError("Duplicate node identifiers", nodes=duplicates)

        missing = []
        for edge in self.edges:
            for endpoint in (edge.source_node, edge.target_node):
                if endpoint not in seen and endpoint not in missing:
                    missing.append(endpoint)
        if missing:
            raise GraphError("Edges reference undeclared nodes", nodes=missing)

        if not self.target_nodes:
            raise GraphError("The graph has no target nodes")

        for label, subset in (("target", self.target_nodes), ("preferred", self.preferred_nodes)):
            unknown = [node for node in subset if node not in seen]
            if unknown:
                raise GraphError(f"Unknown {label} nodes", nodes=unknown)
            if len(set(subset)) != len(subset):
                raise GraphError(f"Duplicate {label} nodes", nodes=sorted(
                    {node for node in subset if subset.count(node) > 1}
                ))

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[Tuple[str, str]],
        target_nodes: Iterable[str],
        preferred_nodes: Optional[Iterable[str]] = None,
    ) -> "Graph":
        """
        Build a graph whose nodes are the edge endpoints.

        Nodes are listed in order of first appearance. Duplicate edges are
        dropped, and target or preferred nodes that do not appear in any edge
        are ignored.

        Args:
            edges: ``(source, target)`` pairs
            target_nodes: Target node identifiers
            preferred_nodes: Optional preferred node identifiers

        Returns:
            Graph instance
        """
        nodes: List[str] = []
        node_set = set()
        unique_edges: List[Edge] = []
        edge_set = set()

        for source, target in edges:
            for node in (source, target):
                if node not in node_set:
                    node_set.add(node)
                    nodes.append(node)
            edge = Edge(source, target)
            if edge not in edge_set:
                edge_set.add(edge)
                unique_edges.append(edge)

        def _filter(values: Optional[Iterable[str]]) -> List[str]:
            result: List[str] = []
            for value in values or []:
                if value in node_set and value not in result:
                    result.append(value)
            return result

        return cls(
            nodes=nodes,
            edges=unique_edges,
            target_nodes=_filter(target_nodes),
            preferred_nodes=_filter(preferred_nodes),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": list(self.nodes),
            "edges": [edge.to_dict() for edge in self.edges],
            "target_nodes": list(self.target_nodes),
            "preferred_nodes": list(self.preferred_nodes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Graph":
        return cls(
            nodes=list(data.get("nodes", [])),
            edges=[Edge.from_dict(edge) for edge in data.get("edges", [])],
            target_nodes=list(data.get("target_nodes", [])),
            preferred_nodes=list(data.get("preferred_nodes", [])),
        )


def parse_edge_lines(lines: Iterable[str], separator: str = ";") -> List[Tuple[str, str]]:
    """
    Parse edges written one per line as ``source;target``.

    Blank lines and lines without exactly two non-empty fields are skipped.

    Args:
        lines: Text lines
        separator: Field separator

    Returns:
        List of ``(source, target)`` pairs
    """
    edges = []
    for line in lines:
        parts = [part.strip() for part in line.strip().split(separator)]
        if len(parts) == 2 and all(parts):
            edges.append((parts[0], parts[1]))
    return edges


def parse_node_lines(lines: Iterable[str]) -> List[str]:
    """Parse node identifiers written one per line, skipping blanks and repeats."""
    nodes: List[str] = []
    for line in lines:
        node = line.strip()
        if node and node not in nodes:
            nodes.append(node)
    return nodes
