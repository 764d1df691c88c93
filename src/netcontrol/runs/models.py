"""
Run data model.

A run ties a network and its parameters to the evolving population, the
iteration counters and the periods during which it was being processed.
Timestamps are Unix times in seconds.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from netcontrol.evolution.parameters import Parameters
from netcontrol.evolution.population import Population
from netcontrol.network.graph import Graph


class RunStatus(str, Enum):
    """Lifecycle state of a run."""
    SCHEDULED = "Scheduled"
    ONGOING = "Ongoing"
    SCHEDULED_TO_STOP = "ScheduledToStop"
    STOPPED = "Stopped"
    COMPLETED = "Completed"

    @property
    def is_final(self) -> bool:
        return self in (RunStatus.STOPPED, RunStatus.COMPLETED)


@dataclass
class ExecutionWindow:
    """A contiguous period during which a run was processed."""
    started_at: float
    ended_at: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    @property
    def duration(self) -> Optional[float]:
        if self.ended_at is None:
            return None
        return self.ended_at - self.started_at

    def to_dict(self) -> Dict[str, Any]:
        return {"started_at": self.started_at, "ended_at": self.ended_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutionWindow":
        ended_at = data.get("ended_at")
        return cls(
            started_at=float(data["started_at"]),
            ended_at=float(ended_at) if ended_at is not None else None,
        )


@dataclass
class Run:
    """
    A genetic algorithm run.

    Attributes:
        id: Unique identifier
        name: Human readable name
        status: Lifecycle state
        graph: Network with target and preferred nodes
        parameters: Algorithm parameters
        population: Latest persisted generation (None until first built)
        current_iteration: Number of generations produced after generation 0
        current_iteration_without_improvement: Generations since the best fitness last rose
        execution_windows: Processing periods, oldest first
        created_at: Creation time
        updated_at: Time of the last durable change
    """
    id: str
    name: str
    status: RunStatus
    graph: Graph
    parameters: Parameters
    population: Optional[Population] = None
    current_iteration: int = 0
    current_iteration_without_improvement: int = 0
    execution_windows: List[ExecutionWindow] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @property
    def best_fitness(self) -> Optional[float]:
        if self.population is None or not self.population.chromosomes:
            return None
        return self.population.best_fitness

    @property
    def open_window(self) -> Optional[ExecutionWindow]:
        if self.execution_windows and self.execution_windows[-1].is_open:
            return self.execution_windows[-1]
        return None

    def open_execution_window(self, started_at: Optional[float] = None) -> ExecutionWindow:
        window = ExecutionWindow(started_at=started_at if started_at is not None else time.time())
        self.execution_windows.append(window)
        return window

    def close_execution_window(self, ended_at: Optional[float] = None) -> None:
        """Close the open execution window, if any."""
        window = self.open_window
        if window is not None:
            window.ended_at = ended_at if ended_at is not None else time.time()

    def touch(self) -> None:
        self.updated_at = time.time()

    def copy(self) -> "Run":
        """Deep copy through the serialised form."""
        return Run.from_dict(self.to_dict())

    def summary(self) -> Dict[str, Any]:
        """Compact description used for listings."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "current_iteration": self.current_iteration,
            "maximum_iterations": self.parameters.maximum_iterations,
            "best_fitness": self.best_fitness,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "graph": self.graph.to_dict(),
            "parameters": self.parameters.to_dict(),
            "population": self.population.to_dict() if self.population is not None else None,
            "current_iteration": self.current_iteration,
            "current_iteration_without_improvement": self.current_iteration_without_improvement,
            "execution_windows": [window.to_dict() for window in self.execution_windows],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Run":
        population = data.get("population")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            status=RunStatus(data["status"]),
            graph=Graph.from_dict(data["graph"]),
            parameters=Parameters.from_dict(data["parameters"]),
            population=Population.from_dict(population) if population is not None else None,
            current_iteration=int(data.get("current_iteration", 0)),
            current_iteration_without_improvement=int(data.get("current_iteration_without_improvement", 0)),
            execution_windows=[ExecutionWindow.from_dict(item) for item in data.get("execution_windows", [])],
            created_at=float(data.get("created_at", time.time())),
            updated_at=float(data.get("updated_at", time.time())),
        )
