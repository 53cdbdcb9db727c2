"""
Tests for the command-line entrypoint.

Tests verify:
- A valid run prints the summary and exits 0
- Configuration errors print to stderr and exit 1 before simulating
- Missing required arguments exit non-zero
"""

import json

import pytest

from clustersim.main import main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CLUSTERSIM_WORKERS", "CLUSTERSIM_SEED", "CLUSTERSIM_TIME_SLICE", "CLUSTERSIM_TIMEOUT_CEILING"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def errors_file(tmp_path):
    path = tmp_path / "errors.json"
    path.write_text(json.dumps({"SITE_A": {"0": 8, "137": 2}}))
    return path


class TestSuccessfulRun:
    """Test runs that reach the summary."""

    def test_prints_summary(self, errors_file, capsys):
        """Verify the header and summary are printed and exit code is 0."""
        code = main(["--input", str(errors_file), "--n", "20", "--queue", "SITE_A", "--seed", "1", "--quiet"])

        out = capsys.readouterr().out
        assert code == 0
        assert f"Input File: {errors_file}" in out
        assert "Number of jobs: 20" in out
        assert "Queue Name: SITE_A" in out
        assert "=== Simulation Summary ===" in out
        assert "Total jobs: 20" in out

    def test_absent_site_still_runs(self, errors_file, capsys):
        """Verify an unknown queue degrades to no injection by default."""
        code = main(["--input", str(errors_file), "--n", "10", "--queue", "NOWHERE", "--workers", "3", "--quiet"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Error code 137" not in out

    def test_workers_from_environment(self, errors_file, monkeypatch, capsys):
        """Verify CLUSTERSIM_WORKERS sets the pool size when --workers is omitted."""
        monkeypatch.setenv("CLUSTERSIM_WORKERS", "4")
        code = main(["--input", str(errors_file), "--n", "5", "--queue", "SITE_A", "--mute"])
        assert code == 0
        assert "Total jobs: 5" in capsys.readouterr().out


class TestConfigurationErrors:
    """Test fatal startup errors."""

    def test_missing_file(self, tmp_path, capsys):
        """Verify a missing input file exits 1 with a message on stderr."""
        code = main(["--input", str(tmp_path / "missing.json"), "--n", "5", "--queue", "SITE_A"])

        captured = capsys.readouterr()
        assert code == 1
        assert "Error: Could not open" in captured.err
        assert "Simulation Summary" not in captured.out

    def test_strict_site(self, errors_file, capsys):
        """Verify --strict-site makes an unknown queue fatal."""
        code = main(["--input", str(errors_file), "--n", "5", "--queue", "NOWHERE", "--strict-site"])

        assert code == 1
        assert "Site not found: NOWHERE" in capsys.readouterr().err

    @pytest.mark.parametrize("n", ["0", "-4"])
    def test_non_positive_job_count(self, errors_file, n, capsys):
        """Verify --n must be positive."""
        code = main(["--input", str(errors_file), "--n", n, "--queue", "SITE_A"])
        assert code == 1
        assert "--n" in capsys.readouterr().err

    def test_negative_success_weight(self, errors_file, capsys):
        """Verify --success-weight must be non-negative."""
        code = main(["--input", str(errors_file), "--n", "5", "--queue", "SITE_A", "--success-weight", "-1"])
        assert code == 1

    def test_invalid_workers(self, errors_file, capsys):
        """Verify a zero worker pool is rejected."""
        code = main(["--input", str(errors_file), "--n", "5", "--queue", "SITE_A", "--workers", "0"])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_required_argument(self, errors_file):
        """Verify argparse rejects a missing --queue with a non-zero exit."""
        with pytest.raises(SystemExit) as excinfo:
            main(["--input", str(errors_file), "--n", "5"])
        assert excinfo.value.code != 0

    def test_non_integer_job_count(self, errors_file):
        """Verify a non-integer --n is rejected by the parser."""
        with pytest.raises(SystemExit) as excinfo:
            main(["--input", str(errors_file), "--n", "five", "--queue", "SITE_A"])
        assert excinfo.value.code != 0
