"""Unit tests for reversal/config.py."""
import pytest
from datetime import date

from reversal.config import QuarterWindow, StudyConfig
from reversal.errors import ConfigurationError, ReversalError


class TestQuarterWindow:

    def test_valid_window(self):
        w = QuarterWindow("Q3", date(2023, 7, 3), date(2023, 9, 29))
        assert "2023-07-03" in str(w)

    def test_single_day_window_allowed(self):
        QuarterWindow("Q3", date(2023, 7, 3), date(2023, 7, 3))

    def test_reversed_window_rejected(self):
        with pytest.raises(ConfigurationError):
            QuarterWindow("Q3", date(2023, 9, 29), date(2023, 7, 3))


class TestStudyConfig:

    def test_defaults(self):
        config = StudyConfig()
        assert config.benchmark == "SPY"
        assert config.boundary_policy == "nearest"
        assert config.cutoff == date(2023, 7, 1)
        assert config.fetch_start == config.q3.start
        assert config.fetch_end == config.q4.end
        assert config.limit is None

    def test_invalid_policy(self):
        with pytest.raises(ConfigurationError, match="boundary_policy"):
            StudyConfig(boundary_policy="interpolate")

    def test_overlapping_quarters_rejected(self):
        with pytest.raises(ConfigurationError):
            StudyConfig(q4=QuarterWindow("Q4", date(2023, 9, 1), date(2023, 12, 29)))

    def test_benchmark_fetch_after_q3_rejected(self):
        with pytest.raises(ConfigurationError):
            StudyConfig(benchmark_fetch_start=date(2023, 8, 1))

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit_rejected(self, limit):
        with pytest.raises(ConfigurationError):
            StudyConfig(limit=limit)

    def test_empty_benchmark_rejected(self):
        with pytest.raises(ConfigurationError):
            StudyConfig(benchmark="")

    def test_errors_share_base(self):
        assert issubclass(ConfigurationError, ReversalError)

    def test_repr(self):
        assert "SPY" in repr(StudyConfig())
