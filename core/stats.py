"""
Thread-safe run statistics shared by the workloads and the orchestrator.
"""

import threading


class RunStats:
    """Thread-safe statistics tracking with atomic operations."""

    def __init__(self):
        """Initialize statistics with thread safety."""
        self._lock = threading.Lock()
        self._stats = {
            'records_written': 0,
            'records_lost': 0,
            'reads_succeeded': 0,
            'reads_failed': 0,
            'failed_attempts': 0,
            'nodes_killed': 0,
            'nodes_started': 0,
            'disruption_anomalies': 0,
            'last_read_count': 0,
        }

    def increment(self, key: str, value: int = 1):
        """Atomically increment a statistic."""
        with self._lock:
            if key in self._stats:
                self._stats[key] += value

    def __getitem__(self, key: str) -> int:
        """Thread-safe get operation."""
        with self._lock:
            return self._stats.get(key, 0)

    def __setitem__(self, key: str, value: int):
        """Thread-safe set operation."""
        with self._lock:
            self._stats[key] = value

    def get_snapshot(self) -> dict:
        """Get a thread-safe snapshot of all statistics."""
        with self._lock:
            return self._stats.copy()
