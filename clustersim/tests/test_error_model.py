"""
Tests for the historical error model.

Tests verify:
- Weighted sampling converges to the historical ratios
- Zero-weight codes are never drawn
- Absent sites and zero-weight sites never inject errors
- Code "0" and success_weight contribute success mass
"""

import logging
import random

import pytest

from clustersim.error_model import ErrorModel
from clustersim.models import ErrorFrequencyTable


@pytest.fixture
def table():
    return ErrorFrequencyTable.model_validate(
        {
            "SITE_A": {"A": 3, "B": 1},
            "SITE_ZERO": {"X": 0, "Y": 0},
            "SITE_MIXED": {"0": 9, "137": 1},
        }
    )


class TestWeightedSampling:
    """Test the weighted draw."""

    def test_three_to_one_ratio(self, table):
        """Verify {A: 3, B: 1} samples converge to roughly 3:1."""
        model = ErrorModel.for_site("SITE_A", table)
        rng = random.Random(1234)

        counts = {"A": 0, "B": 0}
        for _ in range(20000):
            outcome = model.sample(rng)
            counts[outcome.code] += 1

        ratio = counts["A"] / counts["B"]
        assert 2.7 < ratio < 3.3, f"ratio {ratio:.3f} not close to 3"

    def test_only_table_codes_are_drawn(self, table):
        """Verify without success mass every draw is one of the site's codes."""
        model = ErrorModel.for_site("SITE_A", table)
        rng = random.Random(7)
        for _ in range(500):
            outcome = model.sample(rng)
            assert not outcome.is_success
            assert outcome.code in {"A", "B"}

    def test_zero_weight_code_never_selected(self):
        """Verify a code with weight 0 is never drawn."""
        model = ErrorModel("S", {"A": 5, "Z": 0})
        rng = random.Random(99)
        assert all(model.sample(rng).code == "A" for _ in range(1000))
        assert model.error_codes == ["A"]

    def test_same_seed_same_sequence(self, table):
        """Verify draws are reproducible given the same random source."""
        model = ErrorModel.for_site("SITE_A", table)
        rng_a, rng_b = random.Random(5), random.Random(5)
        seq_a = [model.sample(rng_a).code for _ in range(100)]
        seq_b = [model.sample(rng_b).code for _ in range(100)]
        assert seq_a == seq_b

    def test_default_source_leaves_global_random_alone(self, table):
        """Verify sampling without an rng does not advance the module-level generator."""
        model = ErrorModel.for_site("SITE_A", table)
        random.seed(0)
        state = random.getstate()
        for _ in range(10):
            assert model.sample().code in {"A", "B"}
        assert random.getstate() == state

    def test_probabilities(self, table):
        """Verify per-code probability is count / total_weight."""
        model = ErrorModel.for_site("SITE_A", table)
        assert model.total_weight == 4
        assert model.probability("A") == pytest.approx(0.75)
        assert model.probability("B") == pytest.approx(0.25)
        assert model.probability("missing") == 0.0
        assert model.error_rate == pytest.approx(1.0)


class TestSuccessMass:
    """Test success contributions to the distribution."""

    def test_code_zero_counts_as_success(self, table):
        """Verify historical code "0" is treated as success weight."""
        model = ErrorModel.for_site("SITE_MIXED", table)
        assert model.error_codes == ["137"]
        assert model.error_rate == pytest.approx(0.1)

        rng = random.Random(3)
        outcomes = [model.sample(rng) for _ in range(5000)]
        failures = sum(1 for o in outcomes if not o.is_success)
        assert 350 < failures < 650

    def test_success_weight_adds_mass(self, table):
        """Verify success_weight dilutes the error rate."""
        model = ErrorModel.for_site("SITE_A", table, success_weight=4)
        assert model.total_weight == 8
        assert model.error_rate == pytest.approx(0.5)

    def test_negative_success_weight_rejected(self):
        """Verify success_weight must be non-negative."""
        with pytest.raises(ValueError):
            ErrorModel("S", {"A": 1}, success_weight=-1)


class TestEmptyModels:
    """Test sites that never inject."""

    def test_absent_site_never_injects(self, table, caplog):
        """Verify a missing site logs a diagnostic and always succeeds."""
        with caplog.at_level(logging.WARNING):
            model = ErrorModel.for_site("NOWHERE", table)

        assert "Site not found: NOWHERE" in caplog.text
        assert model.is_empty
        rng = random.Random(1)
        assert all(model.sample(rng).is_success for _ in range(200))

    def test_zero_total_weight_never_injects(self, table, caplog):
        """Verify a site whose counts are all zero always succeeds."""
        with caplog.at_level(logging.WARNING):
            model = ErrorModel.for_site("SITE_ZERO", table)

        assert "zero total historical weight" in caplog.text
        assert model.is_empty
        assert model.error_rate == 0.0
        assert model.sample(random.Random(2)).is_success
