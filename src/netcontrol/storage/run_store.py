"""
Run storage for netcontrol.

Runs are stored one row each: the columns used for querying are kept next to
the full JSON document of the run.
"""

import threading
from typing import Any, Dict, List, Optional

from netcontrol.runs import lifecycle
from netcontrol.runs.models import Run, RunStatus
from netcontrol.storage.database import Database, create_database
from netcontrol.utils.errors import RunNotFoundError, StorageError
from netcontrol.utils.logging import logger


class RunStore:
    """
    Persistent storage for runs.

    Every write runs in a single transaction, so readers see either the
    previous or the new state of a run.
    """

    def __init__(self, db: Database):
        """
        Initialize a run store.

        Args:
            db: Database instance
        """
        self.db = db
        self._lock = threading.RLock()
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        """Initialize the database schema for run storage."""
        with self._lock:
            with self.db.transaction():
                if not self.db.table_exists("runs"):
                    self.db.create_table(
                        "runs",
                        {
                            "run_id": "TEXT NOT NULL",
                            "name": "TEXT NOT NULL",
                            "status": "TEXT NOT NULL",
                            "current_iteration": "INTEGER NOT NULL DEFAULT 0",
                            "best_fitness": "REAL",
                            "run_data": "TEXT NOT NULL",
                            "created_at": "REAL NOT NULL",
                            "updated_at": "REAL NOT NULL",
                        },
                        primary_key="run_id",
                    )

                    self.db.create_index("idx_runs_status", "runs", ["status", "created_at"])
                    self.db.create_index("idx_runs_created_at", "runs", "created_at")

    def _row(self, run: Run) -> Dict[str, Any]:
        return {
            "name": run.name,
            "status": run.status.value,
            "current_iteration": run.current_iteration,
            "best_fitness": run.best_fitness,
            "run_data": self.db.json_serialize(run.to_dict()),
            "created_at": run.created_at,
            "updated_at": run.updated_at,
        }

    def _load(self, row: Dict[str, Any]) -> Run:
        data = self.db.json_deserialize(row["run_data"])
        # The status column is authoritative.
        data["status"] = row["status"]
        return Run.from_dict(data)

    def add_run(self, run: Run) -> Run:
        """
        Add a new run.

        Raises:
            StorageError: If a run with the same ID exists
        """
        with self._lock:
            with self.db.transaction():
                if self._status_of(run.id) is not None:
                    raise StorageError(f"Run already exists: {run.id}", details={"run_id": run.id})
                row = self._row(run)
                row["run_id"] = run.id
                self.db.insert("runs", row)

        logger.debug(f"Added run {run.id}", component="storage", operation="add_run")
        return run

    def save_run(self, run: Run, create: bool = True) -> RunStatus:
        """
        Insert or update a run.

        A stop request that arrived while the run was being processed is
        preserved: writing ``Ongoing`` over ``ScheduledToStop`` keeps
        ``ScheduledToStop``. A run in a final state is never overwritten
        with a different status.

        Args:
            run: Run to persist
            create: Insert the run if it is not stored yet

        Returns:
            The status that was stored

        Raises:
            RunNotFoundError: If the run is not stored and ``create`` is False
        """
        with self._lock:
            with self.db.transaction():
                stored_status = self._status_of(run.id)
                if stored_status is None and not create:
                    raise RunNotFoundError(run.id)
                if stored_status is not None and stored_status.is_final and stored_status != run.status:
                    logger.warning(
                        f"Run {run.id} is already {stored_status.value}; write ignored",
                        component="storage",
                        operation="save_run",
                    )
                    return stored_status

                row = self._row(run)
                if stored_status == RunStatus.SCHEDULED_TO_STOP:
                    if run.status == RunStatus.ONGOING:
                        row["status"] = RunStatus.SCHEDULED_TO_STOP.value
                    elif run.status == RunStatus.SCHEDULED:
                        row["status"] = RunStatus.STOPPED.value

                if stored_status is None:
                    row["run_id"] = run.id
                    self.db.insert("runs", row)
                else:
                    self.db.update("runs", row, "run_id = ?", (run.id,))

        return RunStatus(row["status"])

    def _status_of(self, run_id: str) -> Optional[RunStatus]:
        row = self.db.query_one("SELECT status FROM runs WHERE run_id = ?", (run_id,))
        return RunStatus(row["status"]) if row else None

    def get_run(self, run_id: str) -> Optional[Run]:
        row = self.db.query_one("SELECT * FROM runs WHERE run_id = ?", (run_id,))
        return self._load(row) if row else None

    def reload_run(self, run_id: str) -> Run:
        """
        Read the latest persisted state of a run.

        Raises:
            RunNotFoundError: If the run does not exist
        """
        run = self.get_run(run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        return run

    def get_status(self, run_id: str) -> RunStatus:
        status = self._status_of(run_id)
        if status is None:
            raise RunNotFoundError(run_id)
        return status

    def list_runs_by_status(self, status: RunStatus, limit: Optional[int] = None) -> List[Run]:
        """
        List runs with a given status, oldest first.

        Args:
            status: Status to filter on
            limit: Maximum number of runs

        Returns:
            Runs ordered by creation time, then insertion order
        """
        query = "SELECT * FROM runs WHERE status = ? ORDER BY created_at ASC, rowid ASC"
        params: List[Any] = [RunStatus(status).value]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        return [self._load(row) for row in self.db.query(query, params)]

    def list_runs(self) -> List[Dict[str, Any]]:
        """Summaries of all runs, oldest first."""
        rows = self.db.query(
            "SELECT run_id, name, status, current_iteration, best_fitness, created_at, updated_at "
            "FROM runs ORDER BY created_at ASC, rowid ASC"
        )
        return [
            {
                "id": row["run_id"],
                "name": row["name"],
                "status": row["status"],
                "current_iteration": row["current_iteration"],
                "best_fitness": row["best_fitness"],
                "created_at": row["created_at"],
                "updated_at": row["updated_at"],
            }
            for row in rows
        ]

    def delete_run(self, run_id: str) -> bool:
        """
        Delete a run.

        Returns:
            True if a run was deleted
        """
        with self._lock:
            deleted = self.db.delete("runs", "run_id = ?", (run_id,)) > 0
        if deleted:
            logger.debug(f"Deleted run {run_id}", component="storage", operation="delete_run")
        return deleted

    def request_stop(self, run_id: str) -> Run:
        """
        Ask a run to stop.

        Returns:
            The run with its new status

        Raises:
            RunNotFoundError: If the run does not exist
            InvalidTransitionError: If the run has already finished
        """
        with self._lock:
            with self.db.transaction():
                run = self.reload_run(run_id)
                previous = run.status
                lifecycle.request_stop(run)
                if run.status != previous:
                    self.db.update(
                        "runs",
                        {"status": run.status.value, "run_data": self.db.json_serialize(run.to_dict()),
                         "updated_at": run.updated_at},
                        "run_id = ?",
                        (run_id,),
                    )

        logger.info(
            f"Stop requested for run {run_id}: {previous.value} -> {run.status.value}",
            component="storage",
            operation="request_stop",
        )
        return run


def get_run_store(path: Optional[str] = None) -> RunStore:
    """
    Open the run store.

    Args:
        path: Database file (the configured path if omitted)

    Returns:
        RunStore instance
    """
    if path is None:
        from netcontrol.config import get_config, expand_path
        path = expand_path(get_config().storage.database_path)
    return RunStore(create_database("runs", path))
