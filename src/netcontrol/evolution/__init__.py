"""
Evolution package for netcontrol.

This package contains the genetic algorithm that searches for driver node
assignments: fitness evaluation, the chromosome and population models, the
algorithm parameters and the generation step.
"""

from netcontrol.evolution.chromosome import Chromosome, ControlSolution
from netcontrol.evolution.engine import GeneticEngine, round_half_up
from netcontrol.evolution.fitness import FitnessScore, compute_fitness, evaluate_genes
from netcontrol.evolution.parameters import Parameters
from netcontrol.evolution.population import Population, dump_random_state, load_random_state

__all__ = [
    "Chromosome",
    "ControlSolution",
    "GeneticEngine",
    "round_half_up",
    "FitnessScore",
    "compute_fitness",
    "evaluate_genes",
    "Parameters",
    "Population",
    "dump_random_state",
    "load_random_state",
]
