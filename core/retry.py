"""
Bounded retry with fixed or exponential backoff.

Every store operation in the simulation is wrapped by RetryExecutor.execute().
The policy decides how many attempts are made and how long to wait between
them; the executor only sleeps through the shared SimulationState so that a
cancelled run never waits out a full backoff.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type, Union

from utils.defensive import InputValidator, ValidationError


# observer(attempt, error, delay_before_next_attempt); delay is None once exhausted
RetryObserver = Callable[[int, BaseException, Optional[float]], None]
DelaySpec = Union[float, int, Callable[[int], float]]


class RetryCancelled(Exception):
    """Raised when the run is cancelled during an inter-attempt delay."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Cancelled after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def fixed_delay(seconds: float) -> Callable[[int], float]:
    """Constant delay between attempts."""
    seconds = InputValidator.validate_seconds(seconds)
    return lambda attempt: seconds


def exponential_delay(base: float, factor: float = 2.0,
                      cap: Optional[float] = None) -> Callable[[int], float]:
    """
    Delay of base * factor ** (attempt - 1), optionally capped.

    Attempt 1 waits `base`, attempt 2 waits `base * factor`, and so on.
    """
    base = InputValidator.validate_seconds(base)
    if factor < 1:
        raise ValidationError(f"Backoff factor must be >= 1, got {factor}")
    if cap is not None:
        cap = InputValidator.validate_seconds(cap)

    def delay(attempt: int) -> float:
        if base == 0:
            return 0.0
        try:
            value = float(base * (factor ** (attempt - 1)))
        except OverflowError:
            if cap is None:
                raise ValidationError(f"Exponential delay overflows at attempt {attempt}; set a cap")
            return cap
        if cap is not None:
            value = min(value, cap)
        return value

    return delay


def _log_retry(attempt: int, error: BaseException, delay: Optional[float]):
    if delay is None:
        logging.error(f"Attempt {attempt} failed with exception: {error}. Giving up.")
    else:
        logging.warning(f"Attempt {attempt} failed with exception: {error}. Retrying in {delay:.1f}s...")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Immutable retry configuration, shared read-only by every call it wraps.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        delay: Seconds between attempts, or a function of the attempt number
        on_retry: Observer invoked on every failed attempt before the delay
        retry_on: Exception types treated as retryable
    """
    max_attempts: int = 5
    delay: DelaySpec = 2.0
    on_retry: RetryObserver = field(default=_log_retry, compare=False)
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)

    def __post_init__(self):
        InputValidator.validate_int(self.max_attempts, min_val=1)
        if not callable(self.delay):
            InputValidator.validate_seconds(self.delay)

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        if callable(self.delay):
            value = self.delay(attempt)
        else:
            value = self.delay
        if value < 0:
            raise ValidationError(f"Retry delay for attempt {attempt} is negative: {value}")
        return float(value)


class RetryExecutor:
    """Runs operations under a RetryPolicy, sleeping through a SimulationState."""

    def __init__(self, state):
        """
        Args:
            state: SimulationState whose wait() is used for backoff delays
        """
        self.state = state

    def execute(self, operation: Callable[[], Any], policy: RetryPolicy) -> Any:
        """
        Run `operation` with bounded retry.

        Returns:
            Whatever the first successful attempt returns

        Raises:
            The last attempt's exception, unchanged, once attempts are exhausted
            RetryCancelled: If the run is cancelled during a backoff delay
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return operation()
            except policy.retry_on as error:
                exhausted = attempt >= policy.max_attempts
                delay = None if exhausted else policy.delay_for(attempt)
                self._notify(policy, attempt, error, delay)

                if exhausted:
                    raise

                if self.state.wait(delay):
                    raise RetryCancelled(attempt, error) from error

    @staticmethod
    def _notify(policy: RetryPolicy, attempt: int, error: BaseException,
                delay: Optional[float]):
        # The observer is a logging hook; its failures never change the outcome
        try:
            policy.on_retry(attempt, error, delay)
        except Exception as e:
            logging.warning(f"Retry observer raised on attempt {attempt}: {e}")
