import os

import pytest

from netcontrol.config import SchedulerConfig, reset_config
from netcontrol.evolution.parameters import Parameters
from netcontrol.network.graph import Graph
from netcontrol.storage.database import Database, close_all_databases
from netcontrol.storage.run_store import RunStore


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep configuration files, env overrides and databases inside tmp_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in list(os.environ):
        if key.startswith("NETCONTROL_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("NETCONTROL_STORAGE__DATABASE_PATH", str(tmp_path / "default-runs.db"))
    reset_config()
    yield
    reset_config()
    close_all_databases()


@pytest.fixture
def chain_graph():
    """A->B, B->C, D->C with target C."""
    return Graph.from_edges([("A", "B"), ("B", "C"), ("D", "C")], ["C"])


@pytest.fixture
def control_graph():
    """Three targets that node D reaches in one step each; D is preferred."""
    edges = [
        ("A", "B"), ("B", "C"), ("D", "C"),
        ("A", "E"), ("E", "F"), ("D", "F"),
        ("B", "G"), ("G", "H"), ("D", "H"),
    ]
    return Graph.from_edges(edges, ["C", "F", "H"], ["D"])


@pytest.fixture
def small_parameters():
    return Parameters(
        random_seed=11,
        maximum_iterations=5,
        maximum_iterations_without_improvement=1000,
        maximum_path_length=2,
        population_size=12,
        random_genes_per_chromosome=2,
        percentage_random=0.25,
        percentage_elite=0.25,
        probability_mutation=0.05,
    )


@pytest.fixture
def store(tmp_path):
    database = Database(str(tmp_path / "runs.db"))
    yield RunStore(database)
    database.close()


@pytest.fixture
def scheduler_config():
    return SchedulerConfig(
        idle_delay=0.01,
        checkpoint_retries=3,
        retry_initial_delay=0.0,
        retry_max_delay=0.0,
    )
