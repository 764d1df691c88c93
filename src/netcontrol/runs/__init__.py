"""
Runs package for netcontrol.

This package holds the run model, its lifecycle state machine, submission
checks and the background scheduler that executes runs.
"""

from netcontrol.evolution.parameters import Parameters
from netcontrol.runs.models import ExecutionWindow, Run, RunStatus
from netcontrol.runs.lifecycle import TRANSITIONS, can_transition, request_stop, transition
from netcontrol.runs.submission import create_run, submit_run
from netcontrol.runs.scheduler import RunScheduler

__all__ = [
    "Parameters",
    "ExecutionWindow",
    "Run",
    "RunStatus",
    "TRANSITIONS",
    "can_transition",
    "request_stop",
    "transition",
    "create_run",
    "submit_run",
    "RunScheduler",
]
