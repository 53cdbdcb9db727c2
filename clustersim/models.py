"""
Core data models for the cluster job scheduler simulator.

These models define the domain objects used throughout the system:
- Jobs, their outcomes and the inbox termination signal
- Historical error-frequency tables
- Simulation configuration
- Simulation summaries and run results
"""

from enum import Enum
from typing import Annotated, Optional, Union
from pydantic import BaseModel, Field, RootModel, StrictInt, model_validator


# Error code recorded when a job hits the processing ceiling.
TIMEOUT_ERROR_CODE = "-1"

# Code used by historical tables for successful runs.
SUCCESS_CODE = "0"

# Historical counts must be real integers: no "3" strings, no booleans.
OccurrenceCount = Annotated[StrictInt, Field(ge=0)]


class OutcomeKind(str, Enum):
    """Lifecycle state of a job outcome."""
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class InjectionPolicy(str, Enum):
    """
    When historical error injection is applied.

    - ON_COMPLETION: sample the site's error model once a job has finished its
      load inside the ceiling.
    - NONE: never sample; only the timeout ceiling can fail a job.
    """
    ON_COMPLETION = "on-completion"
    NONE = "none"


class JobOutcome(BaseModel):
    """Outcome of a single job: pending, success, or an error code."""

    model_config = {"frozen": True}

    kind: OutcomeKind = Field(..., description="Outcome state")
    code: Optional[str] = Field(default=None, description="Error code when kind is ERROR")

    @model_validator(mode="after")
    def validate_code(self):
        """Only ERROR outcomes carry a code."""
        if self.kind == OutcomeKind.ERROR:
            if self.code is None or self.code == "":
                raise ValueError("ERROR outcome requires a non-empty code")
        elif self.code is not None:
            raise ValueError(f"{self.kind.value} outcome must have code=None")
        return self

    @classmethod
    def pending(cls) -> "JobOutcome":
        return cls(kind=OutcomeKind.PENDING)

    @classmethod
    def success(cls) -> "JobOutcome":
        return cls(kind=OutcomeKind.SUCCESS)

    @classmethod
    def error(cls, code) -> "JobOutcome":
        return cls(kind=OutcomeKind.ERROR, code=str(code))

    @property
    def is_pending(self) -> bool:
        return self.kind == OutcomeKind.PENDING

    @property
    def is_success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @property
    def is_timeout(self) -> bool:
        return self.kind == OutcomeKind.ERROR and self.code == TIMEOUT_ERROR_CODE


class Job(BaseModel):
    """A unit of work with a simulated processing load in seconds."""
    id: str = Field(..., description="Unique job ID, e.g., 'job7'")
    load: float = Field(..., gt=0, description="Simulated processing time in seconds")
    outcome: JobOutcome = Field(default_factory=JobOutcome.pending, description="Set once by the worker")

    def record_outcome(self, outcome: JobOutcome) -> None:
        """
        Set the job outcome.

        Raises:
            ValueError: if the outcome was already set or the new outcome is pending
        """
        if not self.outcome.is_pending:
            raise ValueError(f"Job '{self.id}' outcome already recorded as {self.outcome.kind.value}")
        if outcome.is_pending:
            raise ValueError(f"Job '{self.id}' cannot be completed with a pending outcome")
        self.outcome = outcome


class TerminationSignal(BaseModel):
    """Sentinel sent once to each worker after all jobs are dispatched."""

    model_config = {"frozen": True}


InboxMessage = Union[Job, TerminationSignal]


class ErrorFrequencyTable(RootModel[dict[str, dict[str, OccurrenceCount]]]):
    """
    Historical error-code frequencies keyed by site (queue) name.

    Shape: {"site": {"error_code": occurrence_count, ...}, ...}
    """

    def sites(self) -> list[str]:
        return sorted(self.root)

    def has_site(self, site: str) -> bool:
        return site in self.root

    def site_codes(self, site: str) -> dict[str, int]:
        """Return a copy of the code->count mapping for a site (empty if absent)."""
        return dict(self.root.get(site, {}))


class SimulationConfig(BaseModel):
    """Parameters for a single simulation run."""

    total_jobs: int = Field(..., gt=0, description="Number of jobs to dispatch")
    num_workers: int = Field(default=20, gt=0, description="Size of the worker pool")
    site: str = Field(..., min_length=1, description="Site/queue whose error history is sampled")
    seed: Optional[int] = Field(default=None, description="Seed for all random sources; None = OS entropy")
    time_slice: float = Field(default=0.1, gt=0, description="Processing slice in simulated seconds")
    timeout_ceiling: float = Field(default=10.0, gt=0, description="Abort jobs once elapsed reaches this")
    min_load: float = Field(default=1.0, gt=0, description="Lower bound of generated job loads")
    max_load: float = Field(default=15.0, gt=0, description="Upper bound (exclusive) of generated job loads")
    injection: InjectionPolicy = Field(default=InjectionPolicy.ON_COMPLETION)

    @model_validator(mode="after")
    def validate_load_range(self):
        if self.min_load >= self.max_load:
            raise ValueError(
                f"min_load ({self.min_load}) must be less than max_load ({self.max_load})"
            )
        return self


class SimulationSummary(BaseModel):
    """Aggregate outcome counts for a finished run."""

    total_jobs: int = Field(..., description="Number of jobs dispatched")
    total_success: int = Field(..., description="Jobs that completed successfully")
    total_failures: int = Field(..., description="total_jobs - total_success")
    histogram: dict[str, int] = Field(default_factory=dict, description="Error code -> failure count")

    @model_validator(mode="after")
    def validate_counts(self):
        if self.total_jobs < 0 or self.total_success < 0 or self.total_failures < 0:
            raise ValueError("summary counts must be non-negative")
        if self.total_success + self.total_failures != self.total_jobs:
            raise ValueError("total_success + total_failures must equal total_jobs")
        for code, count in self.histogram.items():
            if count <= 0:
                raise ValueError(f"histogram count for code {code} must be positive")
        if sum(self.histogram.values()) != self.total_failures:
            raise ValueError(
                f"histogram sums to {sum(self.histogram.values())}, "
                f"expected total_failures={self.total_failures}"
            )
        return self


class SimulationRun(BaseModel):
    """Result of a full simulation run."""
    summary: SimulationSummary = Field(..., description="Outcome counts")
    simulated_time: float = Field(..., description="Simulated clock when the last worker exited")
    jobs_per_worker: dict[str, int] = Field(..., description="Worker name -> jobs processed")
