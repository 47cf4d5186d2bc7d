"""
Process-wide run state shared by the workloads and the orchestrator.
"""

import threading


class SimulationState:
    """
    Cancellation and completion signals for one simulation run.

    Both signals are write-once: setting them again is a no-op. Every
    suspension point in the simulation goes through wait(), so setting
    the cancellation signal wakes sleeping tasks immediately.
    """

    def __init__(self):
        self._cancelled = threading.Event()
        self._completed = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def completed(self) -> bool:
        return self._completed.is_set()

    def cancel(self):
        """Ask all tasks to stop at their next suspension point."""
        self._cancelled.set()

    def complete(self):
        """Mark the run finished. Completion always implies cancellation."""
        self._completed.set()
        self._cancelled.set()

    def wait(self, seconds: float) -> bool:
        """
        Sleep for up to `seconds`, waking early on cancellation.

        Returns:
            True if the run was cancelled, False if the full delay elapsed
        """
        if seconds <= 0:
            return self._cancelled.is_set()
        return self._cancelled.wait(seconds)
