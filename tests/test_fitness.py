import pytest

from netcontrol.evolution.chromosome import Chromosome
from netcontrol.evolution.fitness import compute_fitness, evaluate_genes


def test_single_driver_without_preferred_nodes():
    assert compute_fitness(3, 1, 0) == pytest.approx(2 / 3)


def test_preferred_genes_raise_fitness():
    assert compute_fitness(3, 1, 3) == pytest.approx((2 + 3 / 4) / 3)
    assert compute_fitness(3, 1, 3) > compute_fitness(3, 1, 2) > compute_fitness(3, 1, 0)


def test_fewer_drivers_outweigh_any_preferred_gain():
    for target_count in (1, 2, 5, 20):
        for drivers in range(1, target_count):
            assert compute_fitness(target_count, drivers, 0) > compute_fitness(
                target_count, drivers + 1, target_count
            )


def test_fitness_range():
    for target_count in (1, 4, 9):
        for drivers in range(1, target_count + 1):
            for preferred in range(target_count + 1):
                value = compute_fitness(target_count, drivers, preferred)
                assert 0.0 <= value < 1.0


def test_evaluate_genes_counts_drivers_and_preferred():
    score = evaluate_genes({"C": "B", "E": "B"}, lambda node: node == "B")

    assert score.distinct_driver_count == 1
    assert score.preferred_gene_count == 2
    assert score.fitness == pytest.approx((2 - 1 + 2 / 3) / 2)


def test_chromosome_feasibility_and_drivers():
    ancestors = {"C": ["A", "B", "D"], "F": ["A", "D", "E"]}
    chromosome = Chromosome(genes={"C": "D", "F": "A"})

    assert chromosome.is_feasible(ancestors)
    assert chromosome.drivers == ["D", "A"]
    assert not Chromosome(genes={"C": "E", "F": "A"}).is_feasible(ancestors)
    assert not Chromosome(genes={"C": "D"}).is_feasible(ancestors)
