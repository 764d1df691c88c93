"""
Population model and random state serialisation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from netcontrol.evolution.chromosome import Chromosome


def dump_random_state(state: tuple) -> List[Any]:
    """Turn ``random.Random.getstate()`` into JSON-compatible lists."""
    version, internal, gauss_next = state
    return [version, list(internal), gauss_next]


def load_random_state(data: List[Any]) -> tuple:
    """Inverse of ``dump_random_state``, ready for ``random.Random.setstate()``."""
    version, internal, gauss_next = data
    return (version, tuple(internal), gauss_next)


@dataclass
class Population:
    """
    One generation of chromosomes plus the run's fitness history.

    Attributes:
        chromosomes: Chromosomes of this generation
        historic_best_fitness: Best fitness of every generation so far
        historic_average_fitness: Average fitness of every generation so far
        random_state: Random stream state after this generation was produced
    """
    chromosomes: List[Chromosome]
    historic_best_fitness: List[float] = field(default_factory=list)
    historic_average_fitness: List[float] = field(default_factory=list)
    random_state: Optional[List[Any]] = None

    def __len__(self) -> int:
        return len(self.chromosomes)

    @property
    def best(self) -> Chromosome:
        """Fittest chromosome, the earliest one on ties."""
        best = self.chromosomes[0]
        for chromosome in self.chromosomes[1:]:
            if chromosome.fitness > best.fitness:
                best = chromosome
        return best

    @property
    def best_fitness(self) -> float:
        return self.best.fitness if self.chromosomes else 0.0

    @property
    def average_fitness(self) -> float:
        if not self.chromosomes:
            return 0.0
        return sum(chromosome.fitness for chromosome in self.chromosomes) / len(self.chromosomes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chromosomes": [chromosome.to_dict() for chromosome in self.chromosomes],
            "historic_best_fitness": list(self.historic_best_fitness),
            "historic_average_fitness": list(self.historic_average_fitness),
            "random_state": self.random_state,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Population":
        return cls(
            chromosomes=[Chromosome.from_dict(item) for item in data.get("chromosomes", [])],
            historic_best_fitness=[float(value) for value in data.get("historic_best_fitness", [])],
            historic_average_fitness=[float(value) for value in data.get("historic_average_fitness", [])],
            random_state=data.get("random_state"),
        )
