"""Shared pytest fixtures for the reversal study tests."""
import matplotlib
matplotlib.use("Agg")

import pytest
import numpy as np
import pandas as pd
from datetime import date

from reversal.config import StudyConfig
from reversal.errors import DataFetchError
from reversal.returns import BenchmarkReturns


def make_series(points, name=None):
    """Build an adjusted-close Series from {iso_date: price}."""
    index = pd.DatetimeIndex([pd.Timestamp(d) for d in points])
    series = pd.Series(list(points.values()), index=index, name=name, dtype=float)
    return series.sort_index()


def boundary_series(config, q3_start, q3_end, q4_start, q4_end, name=None):
    """Series with one observation on each default quarter boundary plus a mid-quarter point."""
    return make_series({
        config.q3.start: q3_start,
        date(2023, 8, 15): (q3_start + q3_end) / 2,
        config.q3.end: q3_end,
        config.q4.start: q4_start,
        date(2023, 11, 15): (q4_start + q4_end) / 2,
        config.q4.end: q4_end,
    }, name=name)


class FakeFetcher:
    """In-memory stand-in for the price provider; records every call."""

    def __init__(self, data):
        self.data = data
        self.calls = []

    def __call__(self, symbol, start, end):
        self.calls.append((symbol, start, end))
        if symbol not in self.data:
            raise DataFetchError(f"No data returned for ticker '{symbol}'")
        series = self.data[symbol]
        window = series[(series.index >= pd.Timestamp(start)) & (series.index <= pd.Timestamp(end))]
        if window.empty:
            raise DataFetchError(f"No data returned for ticker '{symbol}'")
        return window.rename(symbol)


@pytest.fixture
def study_config():
    """Default configuration (2023 Q3/Q4, SPY benchmark)."""
    return StudyConfig()


@pytest.fixture
def benchmark():
    """Benchmark returns of +10% in Q3 and +5% in Q4."""
    return BenchmarkReturns(symbol="SPY", q3=0.10, q4=0.05)


@pytest.fixture
def three_ticker_prices(study_config):
    """
    Benchmark: Q3 +10%, Q4 +5%.
    A outperforms both quarters, B underperforms both,
    C underperforms Q3 then outperforms Q4.
    """
    cfg = study_config
    return {
        'SPY': boundary_series(cfg, 100.0, 110.0, 110.0, 115.5),
        'A': boundary_series(cfg, 100.0, 130.0, 130.0, 143.0),
        'B': boundary_series(cfg, 100.0, 90.0, 90.0, 90.0),
        'C': boundary_series(cfg, 100.0, 105.0, 105.0, 126.0),
    }


@pytest.fixture
def fake_fetcher(three_ticker_prices):
    return FakeFetcher(three_ticker_prices)


@pytest.fixture
def noisy_universe_prices(study_config):
    """Forty synthetic tickers on a business-day calendar with a mild reversal."""
    rng = np.random.default_rng(42)
    dates = pd.bdate_range(study_config.benchmark_fetch_start, study_config.q4.end)
    data = {'SPY': pd.Series(np.linspace(400, 470, len(dates)), index=dates)}

    q3_mask = (dates >= pd.Timestamp(study_config.q3.start)) & (dates <= pd.Timestamp(study_config.q3.end))
    q4_mask = dates > pd.Timestamp(study_config.q3.end)
    for i in range(40):
        q3_ret = rng.normal(0.02, 0.10)
        q4_ret = 0.03 - 0.6 * q3_ret + rng.normal(0, 0.02)
        daily = np.zeros(len(dates))
        daily[q3_mask] = np.log1p(q3_ret) / q3_mask.sum()
        daily[q4_mask] = np.log1p(q4_ret) / q4_mask.sum()
        data[f"T{i:02d}"] = pd.Series(50 * np.exp(np.cumsum(daily)), index=dates)
    return data
