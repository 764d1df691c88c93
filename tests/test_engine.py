import json
import random

import pytest

from netcontrol.evolution.chromosome import Chromosome
from netcontrol.evolution.engine import GeneticEngine, round_half_up
from netcontrol.evolution.parameters import Parameters
from netcontrol.evolution.population import Population
from netcontrol.network.graph import Graph
from netcontrol.utils.errors import InfeasibleTargetError


def _evolve(engine, population, generations):
    for _ in range(generations):
        population = engine.next_population(population)
    return population


def _persisted(population):
    return Population.from_dict(json.loads(json.dumps(population.to_dict())))


def test_precomputed_ancestors(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)

    assert engine.ancestors == {
        "C": ["A", "B", "D"],
        "F": ["A", "D", "E"],
        "H": ["B", "D", "G"],
    }


def test_infeasible_graph_is_rejected(small_parameters):
    graph = Graph.from_edges([("A", "B")], ["A", "B"])

    with pytest.raises(InfeasibleTargetError):
        GeneticEngine(graph, small_parameters)


def test_random_chromosomes_are_feasible(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)

    for _ in range(50):
        chromosome = engine.random_chromosome()
        assert list(chromosome.genes) == ["C", "F", "H"]
        assert chromosome.is_feasible(engine.ancestors)


def test_initial_population_seeds_history(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)

    population = engine.initial_population()

    assert len(population) == small_parameters.population_size
    assert population.historic_best_fitness == [population.best_fitness]
    assert population.historic_average_fitness == [pytest.approx(population.average_fitness)]
    assert population.random_state is not None


def test_every_generation_stays_feasible(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)
    population = engine.initial_population()

    for generation in range(1, 21):
        population = engine.next_population(population)
        assert len(population) == small_parameters.population_size
        assert len(population.historic_best_fitness) == generation + 1
        assert all(chromosome.is_feasible(engine.ancestors) for chromosome in population.chromosomes)


def test_best_fitness_never_decreases(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)
    population = _evolve(engine, engine.initial_population(), 30)

    history = population.historic_best_fitness
    assert all(later >= earlier for earlier, later in zip(history, history[1:]))


def test_best_chromosome_is_carried_over(control_graph, small_parameters):
    parameters = small_parameters.with_overrides({"percentage_elite": 0.01})
    engine = GeneticEngine(control_graph, parameters)
    population = engine.initial_population()

    next_population = engine.next_population(population)

    # At least one elite when a small elite share rounds to zero.
    assert next_population.chromosomes[0].genes == population.best.genes
    assert next_population.best_fitness >= population.best_fitness


def test_zero_elite_share_keeps_no_elite(control_graph, small_parameters):
    parameters = small_parameters.with_overrides({"percentage_elite": 0.0, "percentage_random": 1.0})
    engine = GeneticEngine(control_graph, parameters)
    population = engine.initial_population()
    state = engine.rng.getstate()

    next_population = engine.next_population(population)

    engine.rng.setstate(state)
    expected = [engine.random_chromosome().genes for _ in range(parameters.population_size)]
    assert [chromosome.genes for chromosome in next_population.chromosomes] == expected


def test_next_population_leaves_its_input_untouched(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)
    population = engine.initial_population()
    snapshot = json.dumps(population.to_dict())

    engine.next_population(population)

    assert json.dumps(population.to_dict()) == snapshot


def test_same_seed_gives_the_same_run(control_graph, small_parameters):
    first = GeneticEngine(control_graph, small_parameters)
    second = GeneticEngine(control_graph, small_parameters)

    first_population = _evolve(first, first.initial_population(), 10)
    second_population = _evolve(second, second.initial_population(), 10)

    assert first_population.to_dict() == second_population.to_dict()


def test_resumed_run_continues_the_same_stream(control_graph, small_parameters):
    reference = GeneticEngine(control_graph, small_parameters)
    expected = _evolve(reference, reference.initial_population(), 10)

    interrupted = GeneticEngine(control_graph, small_parameters)
    checkpoint = _persisted(_evolve(interrupted, interrupted.initial_population(), 5))

    resumed = GeneticEngine(control_graph, small_parameters)
    resumed.restore_random_state(checkpoint)
    actual = _evolve(resumed, checkpoint, 5)

    assert actual.to_dict() == expected.to_dict()


def test_rank_is_stable_for_ties(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)
    population = Population(chromosomes=[
        Chromosome(genes={}, fitness=0.5),
        Chromosome(genes={}, fitness=0.9),
        Chromosome(genes={}, fitness=0.5),
        Chromosome(genes={}, fitness=0.9),
    ])

    assert engine.rank(population) == [1, 3, 0, 2]


def test_crossover_takes_every_gene_from_a_parent(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)
    first = {"C": "A", "F": "A", "H": "B"}
    second = {"C": "D", "F": "E", "H": "G"}

    for _ in range(20):
        child = engine.crossover(first, second)
        assert all(child[target] in (first[target], second[target]) for target in engine.targets)
        assert Chromosome(genes=child).is_feasible(engine.ancestors)


def test_mutation_probability_bounds(control_graph, small_parameters):
    genes = {"C": "A", "F": "A", "H": "B"}

    frozen = GeneticEngine(control_graph, small_parameters.with_overrides({"probability_mutation": 0.0}))
    assert frozen.mutate(genes) == genes

    wild = GeneticEngine(control_graph, small_parameters.with_overrides({"probability_mutation": 1.0}))
    for _ in range(20):
        mutated = wild.mutate(genes)
        assert Chromosome(genes=mutated).is_feasible(wild.ancestors)


def test_select_parents_prefers_better_ranks(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters, rng=random.Random(0))
    population = Population(chromosomes=[
        Chromosome(genes={"C": "A"}, fitness=0.1),
        Chromosome(genes={"C": "D"}, fitness=0.9),
    ])
    ranked = engine.rank(population)

    picks = [engine.select_parents(population, ranked) for _ in range(500)]
    best_picks = sum(1 for pair in picks for parent in pair if parent.fitness == 0.9)

    # Weights 2:1 for two chromosomes.
    assert 0.55 < best_picks / 1000 < 0.78


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(0.4) == 0
    assert round_half_up(3.0) == 3


def test_search_reaches_the_single_preferred_driver(control_graph):
    parameters = Parameters(
        random_seed=4,
        maximum_path_length=2,
        population_size=30,
        random_genes_per_chromosome=3,
        percentage_elite=0.2,
        percentage_random=0.25,
        probability_mutation=0.05,
    )
    engine = GeneticEngine(control_graph, parameters)

    population = _evolve(engine, engine.initial_population(), 50)

    assert population.best.genes == {"C": "D", "F": "D", "H": "D"}
    assert population.best_fitness == pytest.approx((3 - 1 + 3 / 4) / 3)


def test_solutions_are_distinct_and_expanded(control_graph, small_parameters):
    engine = GeneticEngine(control_graph, small_parameters)
    population = _evolve(engine, engine.initial_population(), 5)

    solutions = engine.solutions(population, limit=3)

    assert 1 <= len(solutions) <= 3
    assert len({tuple(sorted(solution.controls.items())) for solution in solutions}) == len(solutions)
    fitnesses = [solution.fitness for solution in solutions]
    assert fitnesses == sorted(fitnesses, reverse=True)
    for solution in solutions:
        for target, driver in solution.controls.items():
            path = solution.paths[target]
            assert path[0] == driver and path[-1] == target
            assert 1 <= len(path) - 1 <= small_parameters.maximum_path_length
            assert solution.path_lengths[target]
