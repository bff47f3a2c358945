"""
QUARTERLY REVERSAL STUDY
========================
Do Q3 winners give back their gains in Q4, and do Q3 losers bounce?

Pipeline:
1. Universe: index constituents present at the cutoff
2. Benchmark: Q3 / Q4 total return of the benchmark
3. Per ticker: Q3 / Q4 total and excess returns (failures skipped)
4. Classification: outperform / underperform per quarter
5. Transition table + scatter
6. OLS per Q3 group (Q4 ~ Q3) with residual diagnostics
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pandas as pd

from .classify import Classification, partition, transition_table
from .config import StudyConfig
from .prices import PriceFetcher, fetch_adjusted_close
from .regression import GroupFits, fit_by_group
from .returns import (BenchmarkReturns, ReturnReport, compute_benchmark,
                      compute_universe_returns)
from .universe import load_universe, normalize_symbol

logger = logging.getLogger(__name__)


@dataclass
class StudyResult:
    """Everything one run produces; nothing here is mutated after run()."""
    config: StudyConfig
    universe: List[str]
    benchmark: BenchmarkReturns
    report: ReturnReport
    classification: Classification
    transitions: pd.DataFrame
    fits: GroupFits
    figures: Dict[str, object] = field(default_factory=dict)

    @property
    def returns(self) -> pd.DataFrame:
        return self.report.to_frame()


class ReversalStudy:
    """
    Runs the quarterly reversal study end to end.

    The price fetcher and universe loader are injected so the study can
    run against in-memory data.
    """

    def __init__(self, config: Optional[StudyConfig] = None,
                 fetcher: PriceFetcher = fetch_adjusted_close,
                 universe_loader: Callable[[StudyConfig], List[str]] = load_universe):
        self.config = config or StudyConfig()
        self.fetcher = fetcher
        self.universe_loader = universe_loader

        self.universe: Optional[List[str]] = None
        self.benchmark: Optional[BenchmarkReturns] = None
        self.report: Optional[ReturnReport] = None

    def ingest_data(self, symbols: Optional[List[str]] = None) -> ReturnReport:
        """
        Load the universe (unless given), the benchmark, and every ticker's
        returns. Universe and benchmark failures propagate.
        """
        if symbols is None:
            symbols = self.universe_loader(self.config)
        else:
            symbols = [normalize_symbol(s) for s in symbols]
        # one record per ticker, first occurrence wins
        symbols = list(dict.fromkeys(symbols))
        if self.config.limit is not None:
            symbols = symbols[:self.config.limit]
        self.universe = symbols
        logger.info(f"Universe: {len(self.universe)} tickers")

        self.benchmark = compute_benchmark(self.config, self.fetcher)
        self.report = compute_universe_returns(self.universe, self.config,
                                               self.benchmark, self.fetcher)
        return self.report

    def run(self, symbols: Optional[List[str]] = None, plot: bool = False) -> StudyResult:
        """Ingest (if not done yet), classify, tabulate, regress, optionally plot."""
        print("\n" + "=" * 70)
        print("QUARTERLY REVERSAL STUDY")
        print(f"{datetime.now().strftime('%Y-%m-%d %H:%M')}")
        print("=" * 70)

        if self.report is None or symbols is not None:
            self.ingest_data(symbols)

        classification = partition(self.report.records, self.benchmark)
        transitions = transition_table(classification)
        fits = fit_by_group(self.report.records, self.benchmark)

        result = StudyResult(
            config=self.config,
            universe=self.universe,
            benchmark=self.benchmark,
            report=self.report,
            classification=classification,
            transitions=transitions,
            fits=fits,
        )

        if plot:
            from .plots import (plot_regression_diagnostics, plot_return_scatter,
                                plot_transition_table)
            result.figures['return_scatter'] = plot_return_scatter(result.returns, self.benchmark, fits)
            result.figures['transition_table'] = plot_transition_table(transitions)
            result.figures['regression_diagnostics'] = plot_regression_diagnostics(fits)

        self._print_summary(result)
        return result

    def _print_summary(self, result: StudyResult):
        bench = result.benchmark
        print("\n[UNIVERSE]")
        print(f"    Tickers:   {len(result.universe)}")
        print(f"    Computed:  {len(result.report.records)}")
        print(f"    Skipped:   {len(result.report.failures)}")

        print(f"\n[BENCHMARK] {bench.symbol}")
        print(f"    Q3: {bench.q3:+.2%}")
        print(f"    Q4: {bench.q4:+.2%}")

        print("\n[TRANSITIONS] rows=Q3, cols=Q4")
        print(result.transitions.to_string())

        print("\n[REGRESSIONS] Q4 = a + b * Q3")
        for label, fit in result.fits.results.items():
            print(f"    Q3 {label.value:<12} n={fit.n_obs:<4} b={fit.slope:+.3f} "
                  f"(p={fit.slope_pvalue:.3f})  R2={fit.r_squared:.3f}  DW={fit.durbin_watson:.2f}")
        for label, err in result.fits.errors.items():
            print(f"    Q3 {label.value:<12} skipped: {err}")
        print("=" * 70)
