"""
netcontrol error definitions.

This module defines the error types raised throughout netcontrol so that
callers can tell configuration problems (bad graphs, infeasible targets,
invalid parameters) apart from storage and lifecycle failures.
"""

from typing import Optional, Dict, Any, List


class NetControlError(Exception):
    """Base exception class for all netcontrol errors."""

    def __init__(
        self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None
    ):
        """Initialize a NetControlError with optional error code and details.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error context and details
        """
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary."""
        return {"code": self.code, "message": self.message, "details": self.details}


class ConfigurationError(NetControlError):
    """Error raised when a run or the application is misconfigured."""

    def __init__(
        self, message: str, code: str = "CONFIGURATION_ERROR", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


class GraphError(ConfigurationError):
    """Error raised for malformed graphs (duplicate or missing node references)."""

    def __init__(
        self, message: str, nodes: Optional[List[str]] = None, details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if nodes:
            error_details["nodes"] = nodes
        super().__init__(message, "GRAPH_ERROR", error_details)


class InfeasibleTargetError(ConfigurationError):
    """Error raised when target nodes cannot be reached within the path length bound."""

    def __init__(self, targets: List[str], max_path_length: int):
        self.targets = list(targets)
        self.max_path_length = max_path_length
        super().__init__(
            f"{len(targets)} target node(s) cannot be reached within {max_path_length} step(s): "
            f"{', '.join(targets)}",
            "INFEASIBLE_TARGET_ERROR",
            {"targets": self.targets, "max_path_length": max_path_length},
        )


class ParameterError(ConfigurationError):
    """Error raised when algorithm parameters are out of range."""

    def __init__(
        self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message, "PARAMETER_ERROR", error_details)


class ValidationError(NetControlError):
    """Error raised when input validation fails."""

    def __init__(
        self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message, "VALIDATION_ERROR", error_details)


class StorageError(NetControlError):
    """Error raised when the run store cannot read or write a record."""

    def __init__(
        self, message: str, code: str = "STORAGE_ERROR", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


class RunNotFoundError(StorageError):
    """Error raised when a run does not exist in the store."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Run not found: {run_id}", "RUN_NOT_FOUND", {"run_id": run_id})


class InvalidTransitionError(NetControlError):
    """Error raised for an illegal run status transition."""

    def __init__(self, run_id: str, current: str, requested: str):
        self.run_id = run_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Run {run_id} cannot move from {current} to {requested}",
            "INVALID_TRANSITION",
            {"run_id": run_id, "current": current, "requested": requested},
        )


class EvolutionError(NetControlError):
    """Error raised when the genetic engine is given an inconsistent state."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "EVOLUTION_ERROR", details)
