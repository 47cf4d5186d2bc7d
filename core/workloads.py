"""
Write and read workloads.

Each workload owns its store session and runs on its own thread. Neither
knows about the orchestrator: the retry policy alone has to carry them
through node disruptions.
"""

import logging

from .retry import RetryCancelled, RetryExecutor, RetryPolicy
from .state import SimulationState
from .stats import RunStats
from .store import Record, StoreAccess


class _CountedCall:
    """Store call wrapper that counts how many times the executor ran it."""

    def __init__(self, func):
        self.func = func
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.func()

    def describe(self) -> str:
        return f"{self.calls} attempt" + ("" if self.calls == 1 else "s")


class WriteWorkload:
    """Inserts a fixed-length sequence of records, one retried insert at a time."""

    def __init__(self, store: StoreAccess, executor: RetryExecutor, policy: RetryPolicy,
                 state: SimulationState, stats: RunStats = None, count: int = 300,
                 interval: float = 1.0, label_prefix: str = "Sid"):
        """
        Args:
            store: Store session owned by this workload (closed on exit)
            executor: RetryExecutor wrapping each insert
            policy: Retry policy for inserts
            state: Shared simulation state
            stats: Optional run statistics
            count: Number of records to write
            interval: Pause after each record in seconds
            label_prefix: Prefix of each record's name
        """
        self.store = store
        self.executor = executor
        self.policy = policy
        self.state = state
        self.stats = stats if stats is not None else RunStats()
        self.count = count
        self.interval = interval
        self.label_prefix = label_prefix

    def run(self) -> int:
        """
        Write records until `count` is reached or the run is cancelled.

        Returns:
            Number of records successfully written
        """
        written = 0
        try:
            for index in range(self.count):
                if self.state.cancelled:
                    logging.info(f"Write workload cancelled before record {index}")
                    break

                record = Record.for_index(index, self.label_prefix)
                insert = _CountedCall(lambda: self.store.insert_one(record))
                try:
                    self.executor.execute(insert, self.policy)
                except RetryCancelled:
                    logging.info(f"Write workload cancelled while retrying record {record.id}")
                    break
                except Exception as e:
                    self.stats.increment('records_lost')
                    logging.error(f"Record {record.id} lost after {insert.describe()}: {e}")
                else:
                    written += 1
                    self.stats.increment('records_written')
                    logging.info(f"Inserted: {record}")

                if index + 1 < self.count and self.state.wait(self.interval):
                    logging.info(f"Write workload cancelled after record {record.id}")
                    break
            else:
                logging.info(f"Write workload finished: {written}/{self.count} records written")
        finally:
            self.store.close()
        return written


class ReadWorkload:
    """Reads the whole collection at a fixed interval until cancelled."""

    def __init__(self, store: StoreAccess, executor: RetryExecutor, policy: RetryPolicy,
                 state: SimulationState, stats: RunStats = None, interval: float = 0.5):
        self.store = store
        self.executor = executor
        self.policy = policy
        self.state = state
        self.stats = stats if stats is not None else RunStats()
        self.interval = interval

    def run(self) -> int:
        """
        Read until cancelled. Failed reads are logged and the loop moves on.

        Returns:
            Number of successful reads
        """
        reads = 0
        try:
            while not self.state.cancelled:
                read = _CountedCall(self.store.find_all)
                try:
                    records = self.executor.execute(read, self.policy)
                except RetryCancelled:
                    logging.info("Read workload cancelled while retrying")
                    break
                except Exception as e:
                    self.stats.increment('reads_failed')
                    logging.error(f"Read exception after {read.describe()}: {e}")
                else:
                    reads += 1
                    self.stats.increment('reads_succeeded')
                    self.stats['last_read_count'] = len(records)
                    logging.info(f"Read {len(records)} records")

                if self.state.wait(self.interval):
                    break
            logging.info(f"Read workload stopped after {reads} successful reads")
        finally:
            self.store.close()
        return reads
