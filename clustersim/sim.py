"""
Simulation Engine Module

Wires the dispatcher, the worker pool and the result aggregator into one
SimPy environment and runs it to completion.

- Each worker "worker<i>" owns a simpy.Store inbox (FIFO)
- One dispatcher process feeds the inboxes round robin
- The aggregator is created before the workers and read only after every
  worker has exited

All randomness derives from config.seed: the dispatcher and every worker get
their own random.Random seeded from one seed source.
"""

import logging
import random
from typing import Optional

import simpy

from .dispatcher import Dispatcher
from .error_model import ErrorModel
from .eval.invariants import check_assignment_invariants, check_summary_invariants
from .metrics import ResultAggregator
from .models import SimulationConfig, SimulationRun
from .workers import Worker, WorkerState

logger = logging.getLogger(__name__)


def worker_name(index: int) -> str:
    return f"worker{index}"


def build_inboxes(env: simpy.Environment, num_workers: int) -> dict[str, simpy.Store]:
    """Create one named FIFO inbox per worker."""
    return {worker_name(i): simpy.Store(env) for i in range(num_workers)}


def run_simulation(config: SimulationConfig, error_model: Optional[ErrorModel] = None) -> SimulationRun:
    """
    Run one full simulation.

    Args:
        config: SimulationConfig with job count, pool size and timing policy
        error_model: historical error sampler for the target site; None disables injection

    Returns:
        SimulationRun with the summary, final simulated time and per-worker job counts

    Raises:
        RuntimeError: if a worker is still alive when the event queue drains
    """
    env = simpy.Environment()
    aggregator = ResultAggregator()
    seed_source = random.Random(config.seed)

    inboxes = build_inboxes(env, config.num_workers)

    dispatcher = Dispatcher(
        env,
        list(inboxes.values()),
        total_jobs=config.total_jobs,
        rng=random.Random(seed_source.getrandbits(64)),
        min_load=config.min_load,
        max_load=config.max_load,
    )

    workers = [
        Worker(
            env,
            name,
            inbox,
            aggregator,
            error_model=error_model,
            rng=random.Random(seed_source.getrandbits(64)),
            time_slice=config.time_slice,
            timeout_ceiling=config.timeout_ceiling,
            injection=config.injection,
        )
        for name, inbox in inboxes.items()
    ]

    logger.debug(
        "run_simulation: jobs=%d workers=%d site=%s seed=%s injection=%s",
        config.total_jobs,
        config.num_workers,
        config.site,
        config.seed,
        config.injection.value,
    )

    env.process(dispatcher.run())
    for worker in workers:
        env.process(worker.run())

    env.run()

    alive = [w.name for w in workers if w.state != WorkerState.EXITED]
    if alive:
        raise RuntimeError(f"workers did not exit: {alive}")

    summary = aggregator.summary(config.total_jobs)
    jobs_per_worker = {w.name: w.jobs_processed for w in workers}

    violations = check_summary_invariants(summary) + check_assignment_invariants(
        list(jobs_per_worker.values()), config.total_jobs
    )
    for violation in violations:
        logger.error("invariant violated: %s", violation)

    logger.info("simulation finished at t=%.2f", env.now)

    return SimulationRun(
        summary=summary,
        simulated_time=env.now,
        jobs_per_worker=jobs_per_worker,
    )
