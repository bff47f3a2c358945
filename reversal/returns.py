"""
Benchmark and per-ticker quarterly return calculators.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import List

import pandas as pd

from .errors import BoundaryDateError, DataFetchError, ReversalError
from .prices import PriceFetcher, fetch_adjusted_close, quarter_prices

logger = logging.getLogger(__name__)


def total_return(start_price: float, end_price: float) -> float:
    """Fractional price change (end - start) / start."""
    if start_price <= 0:
        raise ValueError(f"Start price must be positive, got {start_price}")
    return (end_price - start_price) / start_price


@dataclass(frozen=True)
class BenchmarkReturns:
    """Benchmark total return for each quarter."""
    symbol: str
    q3: float
    q4: float


@dataclass(frozen=True)
class ReturnRecord:
    """Observed boundary prices and returns for one ticker."""
    symbol: str
    q3_start_price: float
    q3_end_price: float
    q4_start_price: float
    q4_end_price: float
    q3_return: float
    q4_return: float
    q3_excess: float
    q4_excess: float

    @classmethod
    def from_prices(cls, symbol, q3_prices, q4_prices, benchmark: BenchmarkReturns):
        q3_ret = total_return(*q3_prices)
        q4_ret = total_return(*q4_prices)
        return cls(
            symbol=symbol,
            q3_start_price=q3_prices[0],
            q3_end_price=q3_prices[1],
            q4_start_price=q4_prices[0],
            q4_end_price=q4_prices[1],
            q3_return=q3_ret,
            q4_return=q4_ret,
            q3_excess=q3_ret - benchmark.q3,
            q4_excess=q4_ret - benchmark.q4,
        )


@dataclass(frozen=True)
class TickerFailure:
    """A ticker that was skipped, and why."""
    symbol: str
    stage: str
    reason: str


@dataclass
class ReturnReport:
    """Successful records (ticker input order) plus recorded failures."""
    records: List[ReturnRecord] = field(default_factory=list)
    failures: List[TickerFailure] = field(default_factory=list)

    @property
    def symbols(self) -> List[str]:
        return [r.symbol for r in self.records]

    def to_frame(self) -> pd.DataFrame:
        """Records as a DataFrame indexed and sorted by symbol."""
        columns = list(ReturnRecord.__dataclass_fields__)
        frame = pd.DataFrame([asdict(r) for r in self.records], columns=columns)
        return frame.set_index('symbol').sort_index()

    def failures_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(f) for f in self.failures],
                            columns=['symbol', 'stage', 'reason'])


def compute_benchmark(config, fetcher: PriceFetcher = fetch_adjusted_close) -> BenchmarkReturns:
    """
    Benchmark total return for Q3 and Q4. Failures here are fatal.

    Raises:
        DataFetchError, BoundaryDateError
    """
    series = fetcher(config.benchmark, config.benchmark_fetch_start, config.fetch_end)
    q3_prices = quarter_prices(series, config.q3, config.boundary_policy, config.benchmark)
    q4_prices = quarter_prices(series, config.q4, config.boundary_policy, config.benchmark)
    bench = BenchmarkReturns(
        symbol=config.benchmark,
        q3=total_return(*q3_prices),
        q4=total_return(*q4_prices),
    )
    logger.info(f"Benchmark {bench.symbol}: Q3 {bench.q3:+.2%}, Q4 {bench.q4:+.2%}")
    return bench


def compute_ticker_returns(symbol: str, config, benchmark: BenchmarkReturns,
                           fetcher: PriceFetcher = fetch_adjusted_close) -> ReturnRecord:
    """Fetch one ticker and build its return record. Raises on any failure."""
    series = fetcher(symbol, config.fetch_start, config.fetch_end)
    q3_prices = quarter_prices(series, config.q3, config.boundary_policy, symbol)
    q4_prices = quarter_prices(series, config.q4, config.boundary_policy, symbol)
    return ReturnRecord.from_prices(symbol, q3_prices, q4_prices, benchmark)


def _failure_stage(error: Exception) -> str:
    if isinstance(error, DataFetchError):
        return "fetch"
    if isinstance(error, BoundaryDateError):
        return "boundary"
    return "compute"


def compute_universe_returns(symbols: List[str], config, benchmark: BenchmarkReturns,
                             fetcher: PriceFetcher = fetch_adjusted_close) -> ReturnReport:
    """
    Compute return records for every symbol, sequentially and in input order.

    A ticker that fails (missing data, delisted symbol, network error,
    non-positive start price) is recorded as a TickerFailure and skipped.
    """
    report = ReturnReport()
    for i, symbol in enumerate(symbols, start=1):
        try:
            record = compute_ticker_returns(symbol, config, benchmark, fetcher)
        except (ReversalError, ValueError) as e:
            failure = TickerFailure(symbol=symbol, stage=_failure_stage(e), reason=str(e))
            report.failures.append(failure)
            logger.warning(f"Skipping {symbol} [{failure.stage}]: {e}")
            continue
        report.records.append(record)
        logger.debug(f"[{i}/{len(symbols)}] {symbol}: Q3 {record.q3_return:+.2%}, "
                     f"Q4 {record.q4_return:+.2%}")

    logger.info(f"Computed returns for {len(report.records)} tickers, "
                f"{len(report.failures)} skipped")
    return report
