"""
Genetic engine for target control.

The engine owns the precomputed reachability sets of one run and produces
generations from them. Every random decision is drawn from a single
``random.Random`` stream seeded with the run's ``random_seed``; the stream
state is stored on every population so a resumed run continues exactly where
it stopped.
"""

import math
import random
from typing import Dict, List, Mapping, Optional, Sequence

from netcontrol.evolution.chromosome import Chromosome, ControlSolution
from netcontrol.evolution.fitness import FitnessScore, evaluate_genes
from netcontrol.evolution.parameters import Parameters
from netcontrol.evolution.population import Population, dump_random_state, load_random_state
from netcontrol.network.graph import Graph
from netcontrol.network.index import GraphIndex
from netcontrol.network.reachability import Reachability
from netcontrol.utils.errors import EvolutionError
from netcontrol.utils.logging import logger


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class GeneticEngine:
    """
    Builds and evolves populations of control assignments for one network.
    """

    def __init__(
        self,
        graph: Graph,
        parameters: Parameters,
        reachability: Optional[Reachability] = None,
        index: Optional[GraphIndex] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the engine.

        Args:
            graph: Network with target and preferred nodes
            parameters: Algorithm parameters
            reachability: Precomputed reachability (computed here if omitted)
            index: Node index (built from the graph if omitted)
            rng: Random stream (seeded from the parameters if omitted)

        Raises:
            InfeasibleTargetError: If a target has no candidate driver
        """
        self.graph = graph
        self.parameters = parameters
        if index is None:
            index = reachability.index if reachability is not None else GraphIndex.build(
                graph.nodes, graph.preferred_nodes
            )
        self.index = index
        if reachability is None:
            reachability = Reachability.compute(graph, index, parameters.maximum_path_length)
        reachability.ensure_feasible()
        self.reachability = reachability
        self.rng = rng if rng is not None else random.Random(parameters.random_seed)
        self.targets: List[str] = list(reachability.target_nodes)

    @property
    def ancestors(self) -> Dict[str, List[str]]:
        return self.reachability.ancestors

    def evaluate(self, genes: Mapping[str, str]) -> FitnessScore:
        return evaluate_genes(genes, self.index.is_preferred)

    def _build(self, genes: Mapping[str, str]) -> Chromosome:
        return Chromosome.from_score(genes, self.evaluate(genes))

    def random_chromosome(self) -> Chromosome:
        """
        Draw a random feasible chromosome.

        Every gene is drawn uniformly from its target's reachability set, then
        ``random_genes_per_chromosome`` uniformly chosen genes are redrawn.
        """
        genes = {target: self.rng.choice(self.ancestors[target]) for target in self.targets}
        for _ in range(self.parameters.random_genes_per_chromosome):
            target = self.rng.choice(self.targets)
            genes[target] = self.rng.choice(self.ancestors[target])
        return self._build(genes)

    def initial_population(self) -> Population:
        """
        Build generation 0.

        Returns:
            Population with its fitness history seeded by generation 0
        """
        chromosomes = [self.random_chromosome() for _ in range(self.parameters.population_size)]
        population = Population(chromosomes=chromosomes)
        population.historic_best_fitness.append(population.best_fitness)
        population.historic_average_fitness.append(population.average_fitness)
        population.random_state = dump_random_state(self.rng.getstate())

        logger.debug(
            f"Initial population: best fitness = {population.best_fitness:.6f}, "
            f"avg fitness = {population.average_fitness:.6f}",
            component="evolution",
            operation="initial_population",
            context={"size": len(chromosomes), "targets": len(self.targets)},
        )
        return population

    def restore_random_state(self, population: Population) -> None:
        """Continue the random stream from where a persisted population left it."""
        if population.random_state is None:
            return
        try:
            self.rng.setstate(load_random_state(population.random_state))
        except (TypeError, ValueError) as e:
            raise EvolutionError(
                "Stored random state cannot be restored",
                details={"error": str(e)},
            ) from e

    def rank(self, population: Population) -> List[int]:
        """Chromosome indices by fitness, best first; ties keep their original order."""
        chromosomes = population.chromosomes
        return sorted(range(len(chromosomes)), key=lambda position: -chromosomes[position].fitness)

    def select_parents(self, population: Population, ranked: Sequence[int]) -> List[Chromosome]:
        """
        Pick two parents by linear rank-weighted selection.

        The chromosome at rank r (0 = best) of N has weight N - r.
        """
        size = len(ranked)
        weights = [size - rank for rank in range(size)]
        picks = self.rng.choices(ranked, weights=weights, k=2)
        return [population.chromosomes[position] for position in picks]

    def crossover(self, first: Mapping[str, str], second: Mapping[str, str]) -> Dict[str, str]:
        """Take every gene from either parent with equal probability."""
        return {
            target: first[target] if self.rng.random() < 0.5 else second[target]
            for target in self.targets
        }

    def mutate(self, genes: Mapping[str, str]) -> Dict[str, str]:
        """Redraw each gene from its reachability set with ``probability_mutation``."""
        mutated = dict(genes)
        for target in self.targets:
            if self.rng.random() < self.parameters.probability_mutation:
                mutated[target] = self.rng.choice(self.ancestors[target])
        return mutated

    def next_population(self, population: Population) -> Population:
        """
        Produce the next generation.

        The best chromosomes are copied unchanged (at least one unless the
        elite share is zero), a share of new random
        chromosomes is added and the remaining slots are filled with mutated
        crossover children. The input population is left untouched.

        Args:
            population: Current generation

        Returns:
            Next generation with the fitness history extended
        """
        if not population.chromosomes:
            raise EvolutionError("Cannot evolve an empty population")

        size = self.parameters.population_size
        ranked = self.rank(population)

        elite_count = round_half_up(self.parameters.percentage_elite * size)
        if self.parameters.percentage_elite > 0:
            elite_count = max(1, elite_count)
        elite_count = min(size, len(ranked), elite_count)
        random_count = min(size - elite_count, round_half_up(self.parameters.percentage_random * size))

        chromosomes: List[Chromosome] = [
            Chromosome.from_dict(population.chromosomes[position].to_dict())
            for position in ranked[:elite_count]
        ]
        for _ in range(random_count):
            chromosomes.append(self.random_chromosome())
        while len(chromosomes) < size:
            first, second = self.select_parents(population, ranked)
            child = self.mutate(self.crossover(first.genes, second.genes))
            chromosomes.append(self._build(child))

        next_population = Population(
            chromosomes=chromosomes,
            historic_best_fitness=list(population.historic_best_fitness),
            historic_average_fitness=list(population.historic_average_fitness),
        )
        next_population.historic_best_fitness.append(next_population.best_fitness)
        next_population.historic_average_fitness.append(next_population.average_fitness)
        next_population.random_state = dump_random_state(self.rng.getstate())
        return next_population

    def solutions(self, population: Population, limit: Optional[int] = None) -> List[ControlSolution]:
        """
        Expand the best distinct chromosomes into control configurations.

        Args:
            population: Population to read
            limit: Maximum number of configurations (all distinct ones if None)

        Returns:
            Configurations ordered by fitness, best first
        """
        solutions: List[ControlSolution] = []
        seen = set()
        for position in self.rank(population):
            chromosome = population.chromosomes[position]
            key = tuple(sorted(chromosome.genes.items()))
            if key in seen:
                continue
            seen.add(key)
            solutions.append(ControlSolution(
                fitness=chromosome.fitness,
                drivers=chromosome.drivers,
                controls=dict(chromosome.genes),
                paths={
                    target: self.reachability.find_path(driver, target)
                    for target, driver in chromosome.genes.items()
                },
                path_lengths={
                    target: self.reachability.path_lengths(target, driver)
                    for target, driver in chromosome.genes.items()
                },
            ))
            if limit is not None and len(solutions) >= limit:
                break
        return solutions
