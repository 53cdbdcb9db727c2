"""
Worker Module

A worker is a long-lived SimPy process bound to one inbox (simpy.Store). It
takes one message at a time:

- Job: process it in fixed time slices, apply the timeout ceiling, optionally
  sample a historical error, record exactly one outcome.
- TerminationSignal: exit the loop.

State machine:
    WAITING_FOR_MESSAGE -> PROCESSING -> RECORDING_OUTCOME -> WAITING_FOR_MESSAGE
    WAITING_FOR_MESSAGE -> EXITED (on TerminationSignal only)

A failed job never stops the worker and is never retried.
"""

import logging
import random
from enum import Enum
from typing import Optional

import simpy

from .error_model import ErrorModel
from .metrics import ResultAggregator
from .models import InjectionPolicy, Job, JobOutcome, TerminationSignal, TIMEOUT_ERROR_CODE

logger = logging.getLogger(__name__)

# Tolerance for float drift when summing time slices.
_EPSILON = 1e-9


class WorkerState(str, Enum):
    WAITING_FOR_MESSAGE = "waiting_for_message"
    PROCESSING = "processing"
    RECORDING_OUTCOME = "recording_outcome"
    EXITED = "exited"


class Worker:
    """Processes jobs from a single exclusively-owned inbox."""

    def __init__(
        self,
        env: simpy.Environment,
        name: str,
        inbox: simpy.Store,
        aggregator: ResultAggregator,
        error_model: Optional[ErrorModel] = None,
        rng: Optional[random.Random] = None,
        time_slice: float = 0.1,
        timeout_ceiling: float = 10.0,
        injection: InjectionPolicy = InjectionPolicy.ON_COMPLETION,
    ):
        if time_slice <= 0:
            raise ValueError(f"time_slice must be positive, got {time_slice}")
        if timeout_ceiling <= 0:
            raise ValueError(f"timeout_ceiling must be positive, got {timeout_ceiling}")

        self.env = env
        self.name = name
        self.inbox = inbox
        self.aggregator = aggregator
        self.error_model = error_model
        self.rng = rng or random.Random()
        self.time_slice = time_slice
        self.timeout_ceiling = timeout_ceiling
        self.injection = injection

        self.state = WorkerState.WAITING_FOR_MESSAGE
        self.jobs_processed = 0

    def run(self):
        """SimPy process body: loop until the termination signal arrives."""
        logger.info("[t=%.2f] %s: starting", self.env.now, self.name)

        while True:
            self.state = WorkerState.WAITING_FOR_MESSAGE
            message = yield self.inbox.get()

            if isinstance(message, TerminationSignal):
                self.state = WorkerState.EXITED
                logger.info(
                    "[t=%.2f] %s: received termination signal after %d jobs, exiting",
                    self.env.now,
                    self.name,
                    self.jobs_processed,
                )
                return

            if not isinstance(message, Job):
                raise TypeError(f"{self.name}: unexpected inbox message {type(message).__name__}")

            job = message
            logger.info("[t=%.2f] %s: received %s with load %.3f", self.env.now, self.name, job.id, job.load)

            self.state = WorkerState.PROCESSING
            outcome, elapsed = yield from self._process(job)

            self.state = WorkerState.RECORDING_OUTCOME
            job.record_outcome(outcome)
            self.aggregator.record(outcome)
            self.jobs_processed += 1

            if outcome.is_success:
                logger.info("[t=%.2f] %s: completed %s in %.3f seconds", self.env.now, self.name, job.id, elapsed)
            else:
                logger.info(
                    "[t=%.2f] %s: %s finished with error code %s",
                    self.env.now,
                    self.name,
                    job.id,
                    outcome.code,
                )

    def _process(self, job: Job):
        """
        Advance the job in time slices.

        The ceiling is checked before every slice and after the last one, so a
        job whose load reaches the ceiling times out after exactly
        timeout_ceiling simulated seconds. Drift tolerance applies only to jobs
        whose load reaches the ceiling; a shorter job always completes.
        Returns (outcome, elapsed).
        """
        tolerance = _EPSILON if job.load >= self.timeout_ceiling else 0.0
        elapsed = 0.0
        while True:
            if elapsed >= self.timeout_ceiling - tolerance:
                logger.info(
                    "[t=%.2f] %s: aborting %s after %.1f seconds",
                    self.env.now,
                    self.name,
                    job.id,
                    elapsed,
                )
                return JobOutcome.error(TIMEOUT_ERROR_CODE), elapsed

            remaining = job.load - elapsed
            if remaining <= _EPSILON:
                break

            sleep_time = min(self.time_slice, remaining)
            yield self.env.timeout(sleep_time)
            elapsed += sleep_time

        return self._completion_outcome(), elapsed

    def _completion_outcome(self) -> JobOutcome:
        if self.injection == InjectionPolicy.NONE or self.error_model is None:
            return JobOutcome.success()
        return self.error_model.sample(self.rng)
