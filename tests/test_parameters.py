import pydantic
import pytest

from netcontrol.evolution.parameters import Parameters
from netcontrol.utils.errors import ConfigurationError, ParameterError


def test_defaults_are_valid():
    parameters = Parameters()

    assert parameters.population_size >= 2
    assert parameters.percentage_elite + parameters.percentage_random <= 1


def test_pascal_case_keys_are_accepted():
    parameters = Parameters.from_dict({
        "RandomSeed": 5,
        "MaximumIterations": 20,
        "MaximumIterationsWithoutImprovement": 7,
        "MaximumPathLength": 3,
        "PopulationSize": 10,
        "RandomGenesPerChromosome": 1,
        "PercentageRandom": 0.1,
        "PercentageElite": 0.2,
        "ProbabilityMutation": 0.3,
    })

    assert parameters.random_seed == 5
    assert parameters.maximum_iterations_without_improvement == 7
    assert parameters.population_size == 10
    assert parameters.probability_mutation == pytest.approx(0.3)


@pytest.mark.parametrize("values", [
    {"population_size": 1},
    {"maximum_iterations": 0},
    {"maximum_iterations_without_improvement": 0},
    {"maximum_path_length": 0},
    {"random_genes_per_chromosome": -1},
    {"percentage_random": 1.5},
    {"percentage_elite": -0.1},
    {"probability_mutation": 2},
    {"percentage_elite": 0.6, "percentage_random": 0.5},
])
def test_out_of_range_values_raise_parameter_error(values):
    with pytest.raises(ParameterError) as exc_info:
        Parameters.from_dict(values)

    assert isinstance(exc_info.value, ConfigurationError)
    assert exc_info.value.code == "PARAMETER_ERROR"
    assert exc_info.value.details["errors"]


def test_parameters_are_immutable():
    parameters = Parameters()

    with pytest.raises(pydantic.ValidationError):
        parameters.population_size = 3


def test_with_overrides_accepts_both_key_styles():
    base = Parameters(population_size=20)

    updated = base.with_overrides({"PopulationSize": 30, "random_seed": 9})

    assert updated.population_size == 30
    assert updated.random_seed == 9
    assert base.population_size == 20


def test_dict_round_trip():
    parameters = Parameters(random_seed=3, population_size=6)

    assert Parameters.from_dict(parameters.to_dict()) == parameters
