"""
Historical Error Model Module

Turns one site's historical error-code frequency table into a weighted
random outcome sampler.

- ErrorModel.for_site(site, table): build the sampler for a site
- ErrorModel.sample(rng) -> JobOutcome: one weighted draw

Each draw selects a code with probability count / total_weight. The code "0"
counts as historical success, and an optional success_weight adds implicit
success mass. A model with no positive weights always returns success.

The model holds no random state: callers pass their own random.Random, so a
single model can be shared by every worker.
"""

import logging
import random
from typing import Mapping, Optional

from .models import ErrorFrequencyTable, JobOutcome, SUCCESS_CODE

logger = logging.getLogger(__name__)


class ErrorModel:
    """Immutable weighted distribution over a site's outcomes."""

    def __init__(self, site: str, frequencies: Mapping[str, int], success_weight: float = 0.0):
        if success_weight < 0:
            raise ValueError(f"success_weight must be non-negative, got {success_weight}")

        outcomes: list[JobOutcome] = []
        weights: list[float] = []
        for code in sorted(frequencies):
            count = frequencies[code]
            if count < 0:
                raise ValueError(f"Site '{site}' code {code} has negative count {count}")
            if count == 0:
                continue
            if code == SUCCESS_CODE:
                success_weight += count
                continue
            outcomes.append(JobOutcome.error(code))
            weights.append(float(count))

        if success_weight > 0:
            outcomes.append(JobOutcome.success())
            weights.append(float(success_weight))

        self.site = site
        self._outcomes = tuple(outcomes)
        self._weights = tuple(weights)
        self._total_weight = sum(weights)

    @classmethod
    def for_site(
        cls,
        site: str,
        table: ErrorFrequencyTable,
        success_weight: float = 0.0,
    ) -> "ErrorModel":
        """
        Build the model for one site of a historical table.

        A missing site is not an error here: it is reported and yields a model
        that never injects failures.
        """
        if not table.has_site(site):
            logger.warning("Site not found: %s (no historical error injection)", site)
            return cls(site, {}, success_weight=success_weight)

        codes = table.site_codes(site)
        model = cls(site, codes, success_weight=success_weight)
        if model.is_empty:
            logger.warning("Site %s has zero total historical weight; jobs will not be injected", site)
        else:
            logger.debug(
                "error model for %s: %d codes, total weight %.0f, error rate %.3f",
                site,
                len(model.error_codes),
                model.total_weight,
                model.error_rate,
            )
        return model

    @property
    def is_empty(self) -> bool:
        return self._total_weight <= 0

    @property
    def total_weight(self) -> float:
        return self._total_weight

    @property
    def error_codes(self) -> list[str]:
        return [o.code for o in self._outcomes if not o.is_success]

    @property
    def error_rate(self) -> float:
        """Probability that a single draw returns an error."""
        if self.is_empty:
            return 0.0
        error_weight = sum(w for o, w in zip(self._outcomes, self._weights) if not o.is_success)
        return error_weight / self._total_weight

    def probability(self, code: str) -> float:
        """Probability of drawing the given error code (0.0 if unknown)."""
        if self.is_empty:
            return 0.0
        for outcome, weight in zip(self._outcomes, self._weights):
            if outcome.code == code:
                return weight / self._total_weight
        return 0.0

    def sample(self, rng: Optional[random.Random] = None) -> JobOutcome:
        """
        Draw one outcome using the caller's random source.

        Without an rng a fresh, unseeded random.Random is used; the module-level
        random state is never consumed.
        """
        if self.is_empty:
            return JobOutcome.success()
        if rng is None:
            rng = random.Random()
        return rng.choices(self._outcomes, weights=self._weights, k=1)[0]

    def __repr__(self) -> str:
        return f"ErrorModel(site={self.site!r}, codes={self.error_codes!r}, total_weight={self._total_weight})"
