"""
Failure containment for pattern detectors.
A detector that raises must not abort an employee's analysis or a team batch.
"""

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class DetectorFailureError(RuntimeError):
    """Raised when a monitored detector fails."""

    def __init__(self, detector: str, cause: Exception):
        super().__init__(f"{detector} failed: {type(cause).__name__}: {cause}")
        self.detector = detector
        self.cause = cause


class DetectorHealth(Enum):
    """Detector health states."""

    HEALTHY = "healthy"  # Last run succeeded
    DEGRADED = "degraded"  # Failing, below the warning threshold
    FAILING = "failing"  # Consecutive failures reached the warning threshold


class DetectorMonitor:
    """
    Runs one detector and tracks its failures.

    The monitor never skips a run: every call executes the detector, so a
    result depends only on the records passed in. Failure counts exist
    for monitoring.

    States:
    - HEALTHY: last call succeeded
    - DEGRADED: recent consecutive failures below warn_threshold
    - FAILING: consecutive failures >= warn_threshold

    Transitions:
    - any -> HEALTHY: a call succeeds
    - HEALTHY -> DEGRADED -> FAILING: consecutive failures accumulate
    """

    def __init__(self, name: str, warn_threshold: int = 5):
        """
        Initialize detector monitor.

        Args:
            name: Detector name for logging and diagnostics
            warn_threshold: Consecutive failures before the detector is reported as failing
        """
        self.name = name
        self.warn_threshold = warn_threshold

        self.consecutive_failures = 0
        self.total_failures = 0
        self.total_runs = 0
        self.state = DetectorHealth.HEALTHY
        self.last_failure_time: float | None = None
        self.last_error: str | None = None
        self._lock = threading.Lock()

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Execute a detector with failure tracking.

        Args:
            func: Detector callable
            *args, **kwargs: Arguments to pass to it

        Returns:
            Result from the detector

        Raises:
            DetectorFailureError: If the detector raised
        """
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._record_failure(e)
            logger.error(
                f"Detector '{self.name}' failure "
                f"({self.consecutive_failures} consecutive): {e}",
                exc_info=True,
            )
            raise DetectorFailureError(self.name, e) from e

        self._record_success()
        return result

    def _record_success(self):
        with self._lock:
            self.total_runs += 1
            if self.state != DetectorHealth.HEALTHY:
                logger.info(f"Detector '{self.name}': {self.state.value.upper()} -> HEALTHY")
            self.consecutive_failures = 0
            self.state = DetectorHealth.HEALTHY

    def _record_failure(self, error: Exception):
        with self._lock:
            self.total_runs += 1
            self.total_failures += 1
            self.consecutive_failures += 1
            self.last_failure_time = time.time()
            self.last_error = f"{type(error).__name__}: {error}"

            if self.consecutive_failures >= self.warn_threshold:
                if self.state != DetectorHealth.FAILING:
                    logger.warning(
                        f"Detector '{self.name}': threshold exceeded. "
                        f"{self.state.value.upper()} -> FAILING"
                    )
                self.state = DetectorHealth.FAILING
            else:
                self.state = DetectorHealth.DEGRADED

    def reset(self):
        """Clear all counters."""
        with self._lock:
            self.consecutive_failures = 0
            self.total_failures = 0
            self.total_runs = 0
            self.state = DetectorHealth.HEALTHY
            self.last_failure_time = None
            self.last_error = None

    def get_state(self) -> dict:
        """Get current detector health for monitoring."""
        with self._lock:
            return {
                "name": self.name,
                "state": self.state.value,
                "consecutive_failures": self.consecutive_failures,
                "total_failures": self.total_failures,
                "total_runs": self.total_runs,
                "warn_threshold": self.warn_threshold,
                "last_failure_time": self.last_failure_time,
                "last_error": self.last_error,
            }
