"""
Result Aggregation Module

Collects per-job outcomes from all workers and builds the final report.

- ResultAggregator: lock-protected success counter and error-code histogram
- format_summary(summary) -> str: printable summary block

Every update is a single critical section, so at any time
total_success + sum(histogram) equals the number of recorded jobs.
"""

import logging
from collections import defaultdict
from threading import Lock

from .models import JobOutcome, SimulationSummary

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Shared outcome counters for one simulation run."""

    def __init__(self):
        self._lock = Lock()
        self._total_success = 0
        self._error_histogram: dict[str, int] = defaultdict(int)

    def record_success(self) -> None:
        with self._lock:
            self._total_success += 1

    def record_failure(self, code) -> None:
        code = str(code)
        with self._lock:
            self._error_histogram[code] += 1

    def record(self, outcome: JobOutcome) -> None:
        """
        Record a finished job outcome.

        Raises:
            ValueError: if the outcome is still pending
        """
        if outcome.is_pending:
            raise ValueError("cannot record a pending outcome")
        if outcome.is_success:
            self.record_success()
        else:
            self.record_failure(outcome.code)

    @property
    def total_success(self) -> int:
        with self._lock:
            return self._total_success

    @property
    def error_histogram(self) -> dict[str, int]:
        with self._lock:
            return dict(self._error_histogram)

    @property
    def completed(self) -> int:
        """Number of outcomes recorded so far."""
        with self._lock:
            return self._total_success + sum(self._error_histogram.values())

    def summary(self, total_jobs: int) -> SimulationSummary:
        """
        Build the run summary.

        Call only after every worker has exited; total_failures is derived as
        total_jobs - total_success rather than summed from the histogram.

        Raises:
            pydantic.ValidationError: if total_jobs disagrees with the recorded outcomes
        """
        with self._lock:
            total_success = self._total_success
            histogram = dict(sorted(self._error_histogram.items()))

        summary = SimulationSummary(
            total_jobs=total_jobs,
            total_success=total_success,
            total_failures=total_jobs - total_success,
            histogram=histogram,
        )
        logger.debug(
            "summary: jobs=%d success=%d failures=%d codes=%s",
            summary.total_jobs,
            summary.total_success,
            summary.total_failures,
            sorted(summary.histogram),
        )
        return summary


def format_summary(summary: SimulationSummary) -> str:
    """Render the summary block printed at the end of a run."""
    lines = [
        "=== Simulation Summary ===",
        f"Total jobs: {summary.total_jobs}",
        f"Successful jobs: {summary.total_success}",
        f"Failed jobs: {summary.total_failures}",
    ]
    if summary.total_failures > 0:
        lines.append("Failure details:")
        for code, count in summary.histogram.items():
            lines.append(f"  Error code {code}: {count}")
    lines.append("==========================")
    return "\n".join(lines)
