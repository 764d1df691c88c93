"""
Run lifecycle state machine.

Allowed moves:

- Scheduled -> Ongoing, Stopped
- Ongoing -> Completed, Stopped, ScheduledToStop, Scheduled (recovery)
- ScheduledToStop -> Stopped

Stopped and Completed are final. Every status change of a run goes through ``transition``.
"""

import time
from typing import Dict, FrozenSet

from netcontrol.runs.models import Run, RunStatus
from netcontrol.utils.errors import InvalidTransitionError

TRANSITIONS: Dict[RunStatus, FrozenSet[RunStatus]] = {
    RunStatus.SCHEDULED: frozenset({RunStatus.ONGOING, RunStatus.STOPPED}),
    RunStatus.ONGOING: frozenset({
        RunStatus.COMPLETED,
        RunStatus.STOPPED,
        RunStatus.SCHEDULED_TO_STOP,
        RunStatus.SCHEDULED,
    }),
    RunStatus.SCHEDULED_TO_STOP: frozenset({RunStatus.STOPPED}),
    RunStatus.STOPPED: frozenset(),
    RunStatus.COMPLETED: frozenset(),
}


def can_transition(current: RunStatus, requested: RunStatus) -> bool:
    return requested in TRANSITIONS[current]


def transition(run: Run, status: RunStatus) -> Run:
    """
    Move a run to a new status in place.

    Args:
        run: Run to update
        status: Requested status

    Returns:
        The same run, for chaining

    Raises:
        InvalidTransitionError: If the move is not allowed from the current status
    """
    status = RunStatus(status)
    if not can_transition(run.status, status):
        raise InvalidTransitionError(run.id, run.status.value, status.value)
    run.status = status
    run.updated_at = time.time()
    return run


def request_stop(run: Run) -> Run:
    """
    Ask a run to stop.

    A run that has not started is stopped at once; an ongoing run is marked
    ``ScheduledToStop`` and stopped by the scheduler after its current
    generation. Stopping a run that is already being stopped is a no-op.

    Raises:
        InvalidTransitionError: If the run has already finished
    """
    if run.status == RunStatus.SCHEDULED:
        return transition(run, RunStatus.STOPPED)
    if run.status == RunStatus.ONGOING:
        return transition(run, RunStatus.SCHEDULED_TO_STOP)
    if run.status == RunStatus.SCHEDULED_TO_STOP:
        return run
    raise InvalidTransitionError(run.id, run.status.value, RunStatus.STOPPED.value)
