"""
Invariant validation helpers for simulation runs.

These functions check properties of summaries and job assignments without raising
exceptions, returning a list of human-readable violation messages instead.
"""

from clustersim.dispatcher import round_robin_assignment
from clustersim.models import SimulationSummary


def check_summary_invariants(summary: SimulationSummary) -> list[str]:
    """
    Validate a SimulationSummary against the outcome-accounting invariants.

    Args:
        summary: Summary produced after every worker has exited.

    Returns:
        List of violation messages. Empty list means all invariants passed.
    """
    violations = []

    # Invariant 1: successes and failures partition the job count
    if summary.total_success + summary.total_failures != summary.total_jobs:
        violations.append(
            f"total_success={summary.total_success} + total_failures={summary.total_failures} "
            f"!= total_jobs={summary.total_jobs}"
        )

    # Invariant 2: every failure appears exactly once in the histogram
    histogram_total = sum(summary.histogram.values())
    if histogram_total != summary.total_failures:
        violations.append(
            f"histogram sums to {histogram_total} but total_failures={summary.total_failures}"
        )

    # Invariant 3: histogram keys exist only once observed
    for code, count in summary.histogram.items():
        if count <= 0:
            violations.append(f"histogram[{code}]={count} is not positive")

    return violations


def check_assignment_invariants(jobs_per_worker: list[int], total_jobs: int) -> list[str]:
    """
    Validate per-worker job counts against round-robin routing.

    Args:
        jobs_per_worker: Jobs processed by each worker, in worker index order.
        total_jobs: Number of jobs dispatched.

    Returns:
        List of violation messages. Empty list means all invariants passed.
    """
    if not jobs_per_worker:
        return ["no workers in pool"]

    violations = []
    expected = round_robin_assignment(total_jobs, len(jobs_per_worker))
    for index, (actual, wanted) in enumerate(zip(jobs_per_worker, expected)):
        if actual != wanted:
            violations.append(f"worker{index} processed {actual} jobs, expected {wanted}")

    if sum(jobs_per_worker) != total_jobs:
        violations.append(f"workers processed {sum(jobs_per_worker)} jobs, expected {total_jobs}")

    return violations
