"""
Top-level composition: two workloads and the failover orchestrator,
each on its own thread, sharing one SimulationState.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .orchestrator import ExecutedStep, FailoverOrchestrator, DisruptionStep, canonical_schedule
from .node_controller import NodeController
from .retry import RetryExecutor, RetryPolicy, exponential_delay, fixed_delay
from .state import SimulationState
from .stats import RunStats
from .store import StoreAccess
from .workloads import ReadWorkload, WriteWorkload

JOIN_POLL_SECONDS = 0.5


@dataclass
class SimulationResult:
    """Outcome of one simulation run."""
    stats: dict
    history: List[ExecutedStep] = field(default_factory=list)
    elapsed: float = 0.0
    workloads_stopped: bool = True


def build_retry_policy(config, operation: str, stats: RunStats = None) -> RetryPolicy:
    """
    Build the retry policy for one kind of store operation.

    Args:
        config: Config with retry_* settings
        operation: Name used in retry log lines ("Insert", "Read")
        stats: Optional stats; each failed attempt is counted
    """
    if config.retry_backoff == 'exponential':
        delay = exponential_delay(config.retry_delay, cap=config.retry_max_delay)
    else:
        delay = fixed_delay(config.retry_delay)

    def on_retry(attempt, error, next_delay):
        if stats is not None:
            stats.increment('failed_attempts')
        if next_delay is None:
            logging.error(f"{operation} attempt {attempt} failed with exception: {error}. Giving up.")
        else:
            logging.warning(f"{operation} attempt {attempt} failed with exception: {error}. "
                            f"Retrying in {next_delay:.1f}s...")

    return RetryPolicy(max_attempts=config.retry_max_attempts, delay=delay, on_retry=on_retry)


class Simulation:
    """Runs the write workload, read workload and orchestrator concurrently."""

    def __init__(self, config, store_factory: Callable[[], StoreAccess],
                 controller: NodeController, schedule: Optional[List[DisruptionStep]] = None,
                 state: SimulationState = None, stats: RunStats = None,
                 stop_nodes: bool = False):
        """
        Args:
            config: Config instance
            store_factory: Builds one store session; called once per workload
            controller: NodeController used by the orchestrator
            schedule: Disruption schedule (defaults to the canonical one)
            state: Shared state (a fresh one if None)
            stats: Shared statistics (fresh if None)
            stop_nodes: Kill nodes started during the run when it ends
        """
        self.config = config
        self.store_factory = store_factory
        self.controller = controller
        self.schedule = schedule if schedule is not None else canonical_schedule(config)
        self.state = state or SimulationState()
        self.stats = stats or RunStats()
        self.stop_nodes = stop_nodes
        self.orchestrator: Optional[FailoverOrchestrator] = None
        self._threads: List[threading.Thread] = []

    def cancel(self):
        """Request cooperative shutdown of every task."""
        self.state.cancel()

    def _open_stores(self):
        # FatalConfigurationError propagates: nothing has started yet
        write_store = self.store_factory()
        try:
            read_store = self.store_factory()
        except Exception:
            write_store.close()
            raise
        return write_store, read_store

    def run(self) -> SimulationResult:
        """
        Run until the orchestrator finishes its schedule (or cancel() is called).

        Raises:
            FatalConfigurationError: If store access cannot be constructed
        """
        write_store, read_store = self._open_stores()

        executor = RetryExecutor(self.state)
        writer = WriteWorkload(
            write_store, executor, build_retry_policy(self.config, "Insert", self.stats),
            self.state, self.stats,
            count=self.config.write_count,
            interval=self.config.write_interval,
            label_prefix=self.config.record_label_prefix,
        )
        reader = ReadWorkload(
            read_store, executor, build_retry_policy(self.config, "Read", self.stats),
            self.state, self.stats,
            interval=self.config.read_interval,
        )
        self.orchestrator = FailoverOrchestrator(self.controller, self.state, self.schedule, self.stats)

        workload_threads = [
            threading.Thread(target=writer.run, name="write-workload", daemon=True),
            threading.Thread(target=reader.run, name="read-workload", daemon=True),
        ]
        orchestrator_thread = threading.Thread(target=self.orchestrator.run,
                                               name="failover-orchestrator", daemon=True)
        self._threads = workload_threads + [orchestrator_thread]

        started = time.monotonic()
        logging.info("Simulation started")
        for thread in self._threads:
            thread.start()

        try:
            # Poll so Ctrl-C on the main thread is delivered promptly
            while orchestrator_thread.is_alive():
                orchestrator_thread.join(JOIN_POLL_SECONDS)
        except KeyboardInterrupt:
            logging.warning("Interrupted; cancelling simulation")
            self.cancel()
        finally:
            self.state.complete()

        try:
            orchestrator_thread.join(self.config.shutdown_timeout)
            workloads_stopped = self._join_workloads(workload_threads)
            self.controller.shutdown(stop_nodes=self.stop_nodes)
        except KeyboardInterrupt:
            # Remaining threads are daemons and exit with the process
            logging.warning("Interrupted again during shutdown; not waiting for remaining tasks")
            workloads_stopped = not any(t.is_alive() for t in workload_threads)

        elapsed = time.monotonic() - started
        logging.info(f"Simulation finished in {elapsed:.1f}s")
        return SimulationResult(
            stats=self.stats.get_snapshot(),
            history=list(self.orchestrator.history),
            elapsed=elapsed,
            workloads_stopped=workloads_stopped,
        )

    def _join_workloads(self, threads: List[threading.Thread]) -> bool:
        deadline = time.monotonic() + self.config.shutdown_timeout
        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))

        still_running = [t.name for t in threads if t.is_alive()]
        if still_running:
            logging.warning(f"Workloads still running after {self.config.shutdown_timeout}s: "
                            f"{', '.join(still_running)}")
            return False
        return True
