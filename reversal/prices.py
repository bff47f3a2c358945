"""
Price-series provider and quarter-boundary lookup.

The provider is a pure function (symbol, start, end) -> adjusted-close
Series; anything with that signature can stand in for it (tests use
in-memory fakes).
"""

import logging
from datetime import date, timedelta
from typing import Callable

import pandas as pd
import yfinance as yf

from .errors import BoundaryDateError, DataFetchError

logger = logging.getLogger(__name__)

PriceFetcher = Callable[[str, date, date], pd.Series]


def _flatten_columns(df: pd.DataFrame) -> pd.DataFrame:
    # yfinance returns MultiIndex columns with the ticker as second level
    if isinstance(df.columns, pd.MultiIndex):
        df = df.copy()
        df.columns = df.columns.get_level_values(0)
    return df


def fetch_adjusted_close(symbol: str, start: date, end: date) -> pd.Series:
    """
    Fetch the daily adjusted close for [start, end] (both inclusive).

    Raises:
        DataFetchError: If the download fails or returns no usable rows
    """
    try:
        # yfinance treats `end` as exclusive
        df = yf.download(symbol, start=start.isoformat(),
                         end=(end + timedelta(days=1)).isoformat(),
                         progress=False, auto_adjust=False)
    except Exception as e:
        raise DataFetchError(f"Failed to download data for '{symbol}': {e}") from e

    if df is None or df.empty:
        raise DataFetchError(f"No data returned for ticker '{symbol}'")

    df = _flatten_columns(df)
    if 'Adj Close' in df.columns:
        price_col = 'Adj Close'
    elif 'Close' in df.columns:
        price_col = 'Close'
        logger.warning(f"'Adj Close' not found for {symbol}, using 'Close' instead")
    else:
        raise DataFetchError(f"No price column for '{symbol}'. Available: {list(df.columns)}")

    series = df[price_col]
    if isinstance(series, pd.DataFrame):
        series = series.iloc[:, 0]
    series = series.dropna().sort_index()
    if series.empty:
        raise DataFetchError(f"Only missing prices returned for ticker '{symbol}'")
    series.name = symbol
    return series


def _window(series: pd.Series, start: date, end: date) -> pd.Series:
    index = pd.DatetimeIndex(series.index)
    if index.tz is not None:
        index = index.tz_localize(None)
    mask = (index >= pd.Timestamp(start)) & (index < pd.Timestamp(end) + pd.Timedelta(days=1))
    return series[mask]


def boundary_price(series: pd.Series, window, side: str, policy: str = "nearest",
                   symbol: str = "") -> float:
    """
    Look up the start or end price of a quarter window.

    Under 'nearest' the start price is the first observation on/after
    window.start and the end price the last observation on/before
    window.end, both inside the window. Under 'exact' the observation must
    fall on the boundary date itself. Values are never interpolated.

    Raises:
        BoundaryDateError: If no observation qualifies
    """
    if side not in ("start", "end"):
        raise ValueError(f"side must be 'start' or 'end', got {side!r}")
    boundary = window.start if side == "start" else window.end
    symbol = symbol or (series.name or "")

    if policy == "exact":
        in_range = _window(series, boundary, boundary)
    elif policy == "nearest":
        in_range = _window(series, window.start, window.end)
    else:
        raise ValueError(f"Unknown boundary policy {policy!r}")

    in_range = in_range.dropna()
    if in_range.empty:
        raise BoundaryDateError(symbol, boundary, side, policy)

    value = in_range.iloc[0] if side == "start" else in_range.iloc[-1]
    return float(value)


def quarter_prices(series: pd.Series, window, policy: str = "nearest",
                   symbol: str = ""):
    """(start_price, end_price) for one quarter window."""
    return (boundary_price(series, window, "start", policy, symbol),
            boundary_price(series, window, "end", policy, symbol))
