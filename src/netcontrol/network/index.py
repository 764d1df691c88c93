"""
Dense node index for a network.

Chromosome genes and matrix rows/columns are addressed by this index, so it
must be identical for identical node orderings.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List

from netcontrol.utils.errors import GraphError


@dataclass(frozen=True)
class GraphIndex:
    """
    Bijection between node identifiers and ``[0, N)``, plus preferred flags.

    Attributes:
        node_index: Node identifier -> position in the node list
        index_node: Position -> node identifier
        node_is_preferred: Node identifier -> preferred flag
    """
    node_index: Dict[str, int]
    index_node: List[str]
    node_is_preferred: Dict[str, bool]

    @classmethod
    def build(cls, nodes: Iterable[str], preferred_nodes: Iterable[str] = ()) -> "GraphIndex":
        """
        Build the index from the ordered node list.

        Args:
            nodes: Ordered node identifiers
            preferred_nodes: Identifiers of preferred nodes

        Returns:
            GraphIndex instance

        Raises:
            GraphError: If a node identifier appears more than once
        """
        index_node = list(nodes)
        node_index: Dict[str, int] = {}
        duplicates = []
        for position, node in enumerate(index_node):
            if node in node_index:
                duplicates.append(node)
                continue
            node_index[node] = position
        if duplicates:
            raise GraphError("Duplicate node identifiers", nodes=duplicates)

        preferred = set(preferred_nodes)
        return cls(
            node_index=node_index,
            index_node=index_node,
            node_is_preferred={node: node in preferred for node in index_node},
        )

    def __len__(self) -> int:
        return len(self.index_node)

    def __contains__(self, node: str) -> bool:
        return node in self.node_index

    def index_of(self, node: str) -> int:
        return self.node_index[node]

    def node_at(self, position: int) -> str:
        return self.index_node[position]

    def is_preferred(self, node: str) -> bool:
        return self.node_is_preferred.get(node, False)
