"""
Fitness of a control assignment.

With T target nodes, D distinct driver nodes and P genes whose driver is a
preferred node, the fitness is

    fitness = (T - D + P / (T + 1)) / T

Since P / (T + 1) < 1, using one driver fewer always outweighs any number of
preferred genes; among assignments with the same number of drivers, more
preferred genes score higher. Values lie in [0, 1).
"""

from dataclasses import dataclass
from typing import Callable, Mapping


@dataclass(frozen=True)
class FitnessScore:
    """Fitness together with the counts it was computed from."""
    fitness: float
    distinct_driver_count: int
    preferred_gene_count: int


def compute_fitness(target_count: int, distinct_driver_count: int, preferred_gene_count: int) -> float:
    if target_count == 0:
        return 0.0
    preferred_share = preferred_gene_count / (target_count + 1)
    return (target_count - distinct_driver_count + preferred_share) / target_count


def evaluate_genes(genes: Mapping[str, str], is_preferred: Callable[[str], bool]) -> FitnessScore:
    """
    Score a target -> driver assignment.

    Args:
        genes: Target node -> driver node
        is_preferred: Preferred-node lookup

    Returns:
        FitnessScore
    """
    drivers = list(genes.values())
    distinct = len(set(drivers))
    preferred = sum(1 for driver in drivers if is_preferred(driver))
    return FitnessScore(
        fitness=compute_fitness(len(drivers), distinct, preferred),
        distinct_driver_count=distinct,
        preferred_gene_count=preferred,
    )
