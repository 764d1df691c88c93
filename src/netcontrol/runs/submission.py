"""
Run submission.

Submitted runs are checked up front so configuration problems are reported
to the caller and never reach the scheduler loop.
"""

import time
from typing import Any, Dict, Optional, Union

from netcontrol.evolution.parameters import Parameters
from netcontrol.network.graph import Graph
from netcontrol.network.index import GraphIndex
from netcontrol.network.reachability import Reachability
from netcontrol.runs.models import Run, RunStatus
from netcontrol.utils.async_utils import generate_id
from netcontrol.utils.logging import logger


def create_run(
    name: str,
    graph: Graph,
    parameters: Union[Parameters, Dict[str, Any], None] = None,
    run_id: Optional[str] = None,
) -> Run:
    """
    Validate a network and parameters and build a ``Scheduled`` run.

    Args:
        name: Run name
        graph: Network with target and preferred nodes
        parameters: Parameters or a dictionary of parameter values
        run_id: Identifier to use (generated if omitted)

    Returns:
        New run, not yet persisted

    Raises:
        GraphError: If the graph is malformed
        ParameterError: If a parameter is out of range
        InfeasibleTargetError: If a target cannot be reached within the path length
    """
    if parameters is None:
        parameters = Parameters()
    elif not isinstance(parameters, Parameters):
        parameters = Parameters.from_dict(parameters)

    graph.validate()
    index = GraphIndex.build(graph.nodes, graph.preferred_nodes)
    Reachability.compute(graph, index, parameters.maximum_path_length).ensure_feasible()

    now = time.time()
    return Run(
        id=run_id or generate_id("run-"),
        name=name,
        status=RunStatus.SCHEDULED,
        graph=graph,
        parameters=parameters,
        created_at=now,
        updated_at=now,
    )


def submit_run(
    store: Any,
    name: str,
    graph: Graph,
    parameters: Union[Parameters, Dict[str, Any], None] = None,
) -> Run:
    """
    Create a run and add it to the store's queue.

    Args:
        store: Run store
        name: Run name
        graph: Network with target and preferred nodes
        parameters: Parameters or a dictionary of parameter values

    Returns:
        The persisted run
    """
    run = create_run(name, graph, parameters)
    store.add_run(run)
    logger.success(
        f"Submitted run '{name}' ({run.id})",
        component="scheduler",
        operation="submit",
        context={
            "nodes": len(graph.nodes),
            "edges": len(graph.edges),
            "targets": len(graph.target_nodes),
        },
    )
    return run
