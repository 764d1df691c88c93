"""
netcontrol - genetic search for target control configurations of directed networks.

Runs are submitted with a network, target nodes and algorithm parameters, kept
in a persistent queue and executed one at a time by a background scheduler
that checkpoints every generation.
"""

from .version import __version__

# Initialize logging early
from netcontrol.utils.logging import logger

from netcontrol.config import load_config, get_config
from netcontrol.network import Edge, Graph
from netcontrol.evolution import GeneticEngine, Parameters
from netcontrol.runs import Run, RunScheduler, RunStatus, create_run, submit_run

# Package metadata
__title__ = "netcontrol-ga"
__description__ = "Genetic search for target control configurations of directed networks"
__license__ = "MIT"

__all__ = [
    "load_config",
    "get_config",
    "Edge",
    "Graph",
    "GeneticEngine",
    "Parameters",
    "Run",
    "RunScheduler",
    "RunStatus",
    "create_run",
    "submit_run",
    "logger",
    "__version__",
]
