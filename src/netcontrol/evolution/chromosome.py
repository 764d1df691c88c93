"""
Chromosome model.

A chromosome assigns one driver node to every target node. Its fitness and
the counts behind it are cached when the chromosome is built, so a
chromosome never changes after creation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from netcontrol.evolution.fitness import FitnessScore


@dataclass
class Chromosome:
    """
    Target -> driver assignment with its evaluated fitness.

    Attributes:
        genes: Target node -> driver node, in target order
        fitness: Cached fitness value
        distinct_driver_count: Number of distinct drivers among the genes
        preferred_gene_count: Number of genes whose driver is preferred
    """
    genes: Dict[str, str]
    fitness: float = 0.0
    distinct_driver_count: int = 0
    preferred_gene_count: int = 0

    @classmethod
    def from_score(cls, genes: Mapping[str, str], score: FitnessScore) -> "Chromosome":
        return cls(
            genes=dict(genes),
            fitness=score.fitness,
            distinct_driver_count=score.distinct_driver_count,
            preferred_gene_count=score.preferred_gene_count,
        )

    @property
    def drivers(self) -> List[str]:
        """Distinct drivers in order of first use."""
        return list(dict.fromkeys(self.genes.values()))

    def is_feasible(self, ancestors: Mapping[str, List[str]]) -> bool:
        """Check that every gene is drawn from its target's reachability set."""
        if set(self.genes) != set(ancestors):
            return False
        return all(driver in ancestors[target] for target, driver in self.genes.items())

    def same_genes(self, other: "Chromosome") -> bool:
        return self.genes == other.genes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "genes": dict(self.genes),
            "fitness": self.fitness,
            "distinct_driver_count": self.distinct_driver_count,
            "preferred_gene_count": self.preferred_gene_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chromosome":
        return cls(
            genes=dict(data["genes"]),
            fitness=float(data.get("fitness", 0.0)),
            distinct_driver_count=int(data.get("distinct_driver_count", 0)),
            preferred_gene_count=int(data.get("preferred_gene_count", 0)),
        )


@dataclass
class ControlSolution:
    """
    A control configuration derived from a chromosome.

    Attributes:
        fitness: Fitness of the source chromosome
        drivers: Distinct driver nodes
        controls: Target -> driver
        paths: Target -> one shortest driver-to-target path
        path_lengths: Target -> every walk length within the bound
    """
    fitness: float
    drivers: List[str]
    controls: Dict[str, str]
    paths: Dict[str, Optional[List[str]]] = field(default_factory=dict)
    path_lengths: Dict[str, List[int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fitness": self.fitness,
            "drivers": list(self.drivers),
            "controls": dict(self.controls),
            "paths": {target: list(path) if path else None for target, path in self.paths.items()},
            "path_lengths": {target: list(lengths) for target, lengths in self.path_lengths.items()},
        }
