"""Unit tests for run_study.py entry point script."""
import pytest
import sys
from datetime import date
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))

import run_study
from reversal.errors import DataFetchError
from reversal.study import ReversalStudy

from conftest import FakeFetcher


class TestArgumentParsing:

    def test_defaults_match_config(self):
        args = run_study.build_parser().parse_args([])
        config = run_study.config_from_args(args)
        assert config.q3 == run_study.DEFAULTS.q3
        assert config.q4 == run_study.DEFAULTS.q4
        assert config.benchmark == "SPY"

    def test_overrides(self):
        args = run_study.build_parser().parse_args([
            "--cutoff", "2022-06-30",
            "--q3-start", "2022-07-01", "--q3-end", "2022-09-30",
            "--q4-start", "2022-10-03", "--q4-end", "2022-12-30",
            "--benchmark-fetch-start", "2022-01-03",
            "--benchmark", "^GSPC", "--boundary-policy", "exact", "--limit", "25",
        ])
        config = run_study.config_from_args(args)
        assert config.cutoff == date(2022, 6, 30)
        assert config.q4.end == date(2022, 12, 30)
        assert config.benchmark == "^GSPC"
        assert config.boundary_policy == "exact"
        assert config.limit == 25

    def test_bad_date_rejected(self):
        with pytest.raises(SystemExit):
            run_study.build_parser().parse_args(["--cutoff", "July 1st"])

    def test_bad_policy_rejected(self):
        with pytest.raises(SystemExit):
            run_study.build_parser().parse_args(["--boundary-policy", "interpolate"])


class TestMain:

    @pytest.fixture
    def patched_study(self, noisy_universe_prices):
        fetcher = FakeFetcher(noisy_universe_prices)

        def _make(config):
            return ReversalStudy(config, fetcher=fetcher)

        with patch.object(run_study, 'ReversalStudy', side_effect=_make) as mock_cls:
            yield mock_cls

    def test_writes_artifacts(self, patched_study, tmp_path):
        tickers = [f"T{i:02d}" for i in range(40)] + ["NOPE"]
        code = run_study.main(["--tickers", *tickers, "--output-dir", str(tmp_path)])

        assert code == 0
        for name in ("returns.csv", "failures.csv", "transition_table.csv",
                     "regression_summary.txt", "return_scatter.png",
                     "transition_table.png", "regression_diagnostics.png"):
            assert (tmp_path / name).exists(), name

        summary = (tmp_path / "regression_summary.txt").read_text()
        assert "Benchmark: SPY" in summary
        assert "Durbin-Watson" in summary
        assert "NOPE" in (tmp_path / "failures.csv").read_text()

    def test_no_plots(self, patched_study, tmp_path):
        code = run_study.main(["--tickers", "T00", "T01", "T02", "T03", "T04", "T05",
                               "--output-dir", str(tmp_path), "--no-plots"])
        assert code == 0
        assert not list(tmp_path.glob("*.png"))

    def test_fatal_error_returns_nonzero(self, tmp_path, capsys):
        with patch.object(ReversalStudy, 'run', side_effect=DataFetchError("page down")):
            code = run_study.main(["--output-dir", str(tmp_path)])
        assert code == 1
        assert "page down" in capsys.readouterr().out
        assert not (tmp_path / "returns.csv").exists()

    def test_invalid_config_returns_nonzero(self, tmp_path):
        code = run_study.main(["--q3-start", "2023-10-01", "--output-dir", str(tmp_path)])
        assert code == 1

    def test_summary_notes_undefined_statistics(self, three_ticker_prices, tmp_path):
        fetcher = FakeFetcher(three_ticker_prices)
        with patch.object(run_study, 'ReversalStudy',
                          side_effect=lambda config: ReversalStudy(config, fetcher=fetcher)):
            code = run_study.main(["--tickers", "A", "B", "C", "--output-dir", str(tmp_path),
                                   "--no-plots"])

        assert code == 0
        summary = (tmp_path / "regression_summary.txt").read_text()
        assert "Undefined for this group (n=2)" in summary
        assert "slope_se" in summary
