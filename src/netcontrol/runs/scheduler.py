"""
Run scheduler.

A single background loop takes the oldest scheduled run, executes it to the
end generation by generation and then looks for the next one. After every
generation the run is checkpointed, so a crash loses at most the generation
in progress. Runs left ``Ongoing`` by a crash are requeued on startup.
"""

import asyncio
import time
from dataclasses import replace
from typing import Any, Callable, List, Optional

from netcontrol.config import SchedulerConfig, get_config
from netcontrol.evolution.engine import GeneticEngine
from netcontrol.evolution.population import Population
from netcontrol.network.reachability import Reachability
from netcontrol.runs.lifecycle import transition
from netcontrol.runs.models import Run, RunStatus
from netcontrol.utils.async_utils import RetryPolicy, call_with_retry, run_blocking
from netcontrol.utils.errors import ConfigurationError, EvolutionError, RunNotFoundError, StorageError
from netcontrol.utils.logging import logger


class RunScheduler:
    """
    Executes persisted runs one at a time, oldest first.
    """

    def __init__(
        self,
        store: Any,
        config: Optional[SchedulerConfig] = None,
        engine_factory: Callable[..., GeneticEngine] = GeneticEngine,
    ):
        """
        Initialize the scheduler.

        Args:
            store: Run store
            config: Scheduler settings (the loaded configuration if omitted)
            engine_factory: Callable building the engine of a run
        """
        self.store = store
        self.config = config or get_config().scheduler
        self.engine_factory = engine_factory
        self.retry_policy = RetryPolicy(
            max_retries=self.config.checkpoint_retries,
            initial_delay=self.config.retry_initial_delay,
            max_delay=self.config.retry_max_delay,
        )
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def stop_event(self) -> asyncio.Event:
        if self._stop_event is None:
            self._stop_event = asyncio.Event()
        return self._stop_event

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _store_call(self, func: Callable[..., Any], *args: Any, operation: str, **kwargs: Any) -> Any:
        """Run a store method in the executor, retrying storage errors except a missing run."""
        return await call_with_retry(
            run_blocking,
            func,
            *args,
            policy=self.retry_policy,
            exceptions=StorageError,
            give_up_on=(RunNotFoundError,),
            operation=operation,
            **kwargs,
        )

    async def _save(self, run: Run, operation: str = "checkpoint") -> RunStatus:
        return await self._store_call(self.store.save_run, run, operation=operation, create=False)

    async def recover(self) -> List[str]:
        """
        Requeue runs interrupted by a crash.

        ``Ongoing`` runs go back to ``Scheduled`` with their open execution
        window closed at their last update; ``ScheduledToStop`` runs are
        stopped.

        Returns:
            IDs of the recovered runs
        """
        recovered = []

        for status, target in (
            (RunStatus.ONGOING, RunStatus.SCHEDULED),
            (RunStatus.SCHEDULED_TO_STOP, RunStatus.STOPPED),
        ):
            runs = await self._store_call(self.store.list_runs_by_status, status, operation="recover")
            for run in runs:
                run.close_execution_window(ended_at=run.updated_at)
                transition(run, target)
                try:
                    await self._save(run, operation="recover")
                except RunNotFoundError:
                    continue
                recovered.append(run.id)
                logger.info(
                    f"Recovered run {run.id}: {status.value} -> {target.value}",
                    component="scheduler",
                    operation="recover",
                    context={"iteration": run.current_iteration},
                )

        return recovered

    async def claim_next(self) -> Optional[Run]:
        """
        Mark the oldest scheduled run as ongoing.

        The claim is persisted before any computation starts.

        Returns:
            The claimed run, or None if nothing is scheduled
        """
        while True:
            runs = await self._store_call(self.store.list_runs_by_status, RunStatus.SCHEDULED, 1, operation="claim")
            if not runs:
                return None

            run = runs[0]
            transition(run, RunStatus.ONGOING)
            run.open_execution_window()
            try:
                stored = await self._save(run, operation="claim")
            except RunNotFoundError:
                continue
            if stored == RunStatus.ONGOING:
                logger.info(
                    f"Claimed run '{run.name}' ({run.id})",
                    component="scheduler",
                    operation="claim",
                    context={"iteration": run.current_iteration},
                )
                return run

            # Stopped between listing and claiming.
            logger.debug(f"Run {run.id} is {stored.value}; skipped", component="scheduler", operation="claim")

    def _build_engine(self, run: Run) -> GeneticEngine:
        with logger.time_operation("compute", component="network", level="debug"):
            reachability = Reachability.compute(
                run.graph,
                max_path_length=run.parameters.maximum_path_length,
                method=self.config.reachability_method,
            )
        return self.engine_factory(run.graph, run.parameters, reachability=reachability)

    async def _advance(self, run: Run, population: Population) -> Run:
        """Checkpoint a new generation and return the run as persisted."""
        previous_best = run.population.best_fitness if run.population is not None else None
        improved = previous_best is None or population.best_fitness > previous_best

        if run.population is None:
            candidate = replace(run, population=population, updated_at=time.time())
        else:
            candidate = replace(
                run,
                population=population,
                current_iteration=run.current_iteration + 1,
                current_iteration_without_improvement=(
                    0 if improved else run.current_iteration_without_improvement + 1
                ),
                updated_at=time.time(),
            )

        stored = await self._save(candidate)
        candidate.status = stored

        if run.population is not None and improved:
            logger.info(
                f"Run {run.id} generation {candidate.current_iteration}: "
                f"best fitness improved to {population.best_fitness:.6f}",
                component="evolution",
                operation="improvement",
            )
        else:
            logger.debug(
                f"Run {run.id} generation {candidate.current_iteration}: "
                f"best fitness = {population.best_fitness:.6f}, avg fitness = {population.average_fitness:.6f}",
                component="evolution",
                operation="generation",
            )
        return candidate

    def _limits_reached(self, run: Run) -> bool:
        parameters = run.parameters
        return (
            run.current_iteration >= parameters.maximum_iterations
            or run.current_iteration_without_improvement >= parameters.maximum_iterations_without_improvement
        )

    def _should_continue(self, run: Run) -> bool:
        return (
            run.status == RunStatus.ONGOING
            and not self._limits_reached(run)
            and not self.stop_event.is_set()
        )

    async def _finish(self, run: Run, status: RunStatus) -> Run:
        run.close_execution_window()
        transition(run, status)
        stored = await self._save(run, operation="finish")
        run.status = stored
        return run

    async def _requeue(self, run: Run, error: BaseException) -> Run:
        """Put a run whose checkpoint could not be written back in the queue."""
        logger.error(
            f"Checkpoint of run {run.id} failed after {self.retry_policy.max_retries} retries",
            component="scheduler",
            operation="checkpoint",
            exception=error,
        )
        if run.status != RunStatus.ONGOING:
            return run
        try:
            return await self._finish(run, RunStatus.SCHEDULED)
        except RunNotFoundError:
            raise
        except StorageError as e:
            # Left Ongoing; recovery requeues it on the next start.
            logger.error(
                f"Could not requeue run {run.id}",
                component="scheduler",
                operation="requeue",
                exception=e,
            )
            return run

    async def execute(self, run: Run) -> Run:
        """
        Execute a claimed run until it completes, is stopped or the
        scheduler shuts down.

        Args:
            run: Run in status ``Ongoing``

        Returns:
            The run in its last persisted state, or as last seen if it was
            deleted while being executed
        """
        try:
            return await self._execute(run)
        except RunNotFoundError:
            logger.warning(
                f"Run {run.id} was deleted while being executed; abandoned",
                component="scheduler",
                operation="execute",
            )
            return run

    async def _execute(self, run: Run) -> Run:
        try:
            engine = await run_blocking(self._build_engine, run)
        except ConfigurationError as e:
            logger.error(
                f"Run {run.id} cannot be executed: {e.message}",
                component="scheduler",
                operation="execute",
                exception=e,
                error_code=e.code,
            )
            return await self._finish(run, RunStatus.STOPPED)

        try:
            if run.population is None:
                population = await run_blocking(engine.initial_population)
                run = await self._advance(run, population)
            else:
                engine.restore_random_state(run.population)

            while self._should_continue(run):
                population = await run_blocking(engine.next_population, run.population)
                run = await self._advance(run, population)
        except RunNotFoundError:
            raise
        except StorageError as e:
            return await self._requeue(run, e)
        except EvolutionError as e:
            logger.error(
                f"Run {run.id} failed: {e.message}",
                component="scheduler",
                operation="execute",
                exception=e,
                error_code=e.code,
            )
            return await self._finish(run, RunStatus.STOPPED)

        if run.status.is_final:
            return run

        if run.status == RunStatus.SCHEDULED_TO_STOP:
            run = await self._finish(run, RunStatus.STOPPED)
            logger.info(f"Run {run.id} stopped at generation {run.current_iteration}",
                        component="scheduler", operation="stopping")
        elif self.stop_event.is_set() and not self._limits_reached(run):
            run = await self._finish(run, RunStatus.SCHEDULED)
            logger.info(f"Run {run.id} requeued at generation {run.current_iteration}",
                        component="scheduler", operation="stopping")
        else:
            run = await self._finish(run, RunStatus.COMPLETED)
            logger.success(
                f"Run '{run.name}' completed after {run.current_iteration} generation(s), "
                f"best fitness = {run.best_fitness:.6f}",
                component="scheduler",
                operation="completed",
            )
        return run

    async def run_once(self) -> bool:
        """
        Claim and execute one run.

        Returns:
            True if a run was processed
        """
        run = await self.claim_next()
        if run is None:
            return False
        await self.execute(run)
        return True

    async def run_forever(self) -> None:
        """Recover interrupted runs, then process the queue until stopped."""
        await self.recover()

        while not self.stop_event.is_set():
            try:
                processed = await self.run_once()
            except StorageError as e:
                logger.error("Run queue unavailable", component="scheduler", operation="run", exception=e)
                processed = False

            if processed or self.stop_event.is_set():
                continue

            logger.debug(
                f"No scheduled run; waiting {self.config.idle_delay}s",
                component="scheduler",
                operation="idle",
            )
            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=self.config.idle_delay)
            except asyncio.TimeoutError:
                pass

    def start(self) -> asyncio.Task:
        """Start the loop as a background task of the running event loop."""
        if self.is_running:
            return self._task
        self.stop_event.clear()
        self._task = asyncio.create_task(self.run_forever())
        logger.info("Scheduler started", component="scheduler", operation="starting")
        return self._task

    async def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the loop after the current generation.

        Args:
            timeout: Seconds to wait before cancelling the task (wait forever if None)
        """
        self.stop_event.set()
        if self._task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
        logger.info("Scheduler stopped", component="scheduler", operation="stopping")
