"""
Dispatcher Module

Generates the job stream and routes it round robin over the worker inboxes:

- Job i gets id "job<i>" and a load drawn uniformly from [min_load, max_load)
- Job i goes to inbox i % W
- After all jobs, exactly one TerminationSignal goes to each inbox

Inboxes are FIFO, so each worker sees its jobs in send order and the
termination signal last. Dispatch is fire-and-forget.
"""

import logging
import random
from typing import Iterator, Optional, Sequence

import simpy

from .models import Job, TerminationSignal

logger = logging.getLogger(__name__)


def generate_jobs(
    total_jobs: int,
    rng: random.Random,
    min_load: float = 1.0,
    max_load: float = 15.0,
) -> Iterator[Job]:
    """Yield total_jobs fresh jobs with uniform random loads in [min_load, max_load)."""
    if total_jobs <= 0:
        raise ValueError(f"total_jobs must be positive, got {total_jobs}")
    if not 0 < min_load < max_load:
        raise ValueError(f"invalid load range [{min_load}, {max_load})")

    span = max_load - min_load
    for i in range(total_jobs):
        # rng.random() is in [0, 1), keeping the upper bound exclusive
        yield Job(id=f"job{i}", load=min_load + rng.random() * span)


def round_robin_assignment(total_jobs: int, num_workers: int) -> list[int]:
    """
    Number of jobs each worker receives under round-robin routing.

    Worker k receives ceil((total_jobs - k) / num_workers) jobs.
    """
    if num_workers <= 0:
        raise ValueError(f"num_workers must be positive, got {num_workers}")
    base, extra = divmod(max(total_jobs, 0), num_workers)
    return [base + (1 if k < extra else 0) for k in range(num_workers)]


class Dispatcher:
    """SimPy process that sends every job, then terminates every worker."""

    def __init__(
        self,
        env: simpy.Environment,
        inboxes: Sequence[simpy.Store],
        total_jobs: int,
        rng: Optional[random.Random] = None,
        min_load: float = 1.0,
        max_load: float = 15.0,
    ):
        if not inboxes:
            raise ValueError("dispatcher needs at least one worker inbox")
        if total_jobs <= 0:
            raise ValueError(f"total_jobs must be positive, got {total_jobs}")
        if not 0 < min_load < max_load:
            raise ValueError(f"invalid load range [{min_load}, {max_load})")

        self.env = env
        self.inboxes = list(inboxes)
        self.total_jobs = total_jobs
        self.rng = rng or random.Random()
        self.min_load = min_load
        self.max_load = max_load
        self.jobs_sent = 0

    def run(self):
        """SimPy process body."""
        logger.info("[t=%.2f] dispatcher: starting (%d jobs, %d workers)",
                    self.env.now, self.total_jobs, len(self.inboxes))

        num_workers = len(self.inboxes)
        for i, job in enumerate(generate_jobs(self.total_jobs, self.rng, self.min_load, self.max_load)):
            target = i % num_workers
            logger.info("[t=%.2f] dispatcher: sending %s with load %.3f to worker%d",
                        self.env.now, job.id, job.load, target)
            yield self.inboxes[target].put(job)
            self.jobs_sent += 1

        for target, inbox in enumerate(self.inboxes):
            yield inbox.put(TerminationSignal())
            logger.info("[t=%.2f] dispatcher: sent termination signal to worker%d", self.env.now, target)
