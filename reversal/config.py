"""
Study configuration.

Every fixed constant of the study (cutoff, quarter windows, benchmark)
lives here so a run can be reproduced or re-targeted without code edits.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from .errors import ConfigurationError

CONSTITUENTS_URL = "https://en.wikipedia.org/wiki/List_of_S%26P_500_companies"

BOUNDARY_POLICIES = ("nearest", "exact")


@dataclass(frozen=True)
class QuarterWindow:
    """Closed calendar window [start, end] for one sub-period."""
    name: str
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ConfigurationError(
                f"{self.name} window starts after it ends: {self.start} > {self.end}"
            )

    def __str__(self):
        return f"{self.name} ({self.start:%Y-%m-%d} -> {self.end:%Y-%m-%d})"


@dataclass
class StudyConfig:
    """
    Configuration for one run of the reversal study.

    Attributes:
        cutoff: Tickers added to the index after this date are excluded
        q3: First sub-period (classification period)
        q4: Second sub-period (outcome period)
        benchmark: Benchmark symbol in the price provider's convention
        benchmark_fetch_start: Start of the benchmark fetch window
        constituents_url: Page holding the constituents table
        boundary_policy: 'nearest' resolves boundaries to the nearest trading
            day inside the quarter, 'exact' requires a row on the date itself
        limit: Optional cap on the number of tickers processed
    """
    cutoff: date = date(2023, 7, 1)
    q3: QuarterWindow = field(
        default_factory=lambda: QuarterWindow("Q3", date(2023, 7, 3), date(2023, 9, 29))
    )
    q4: QuarterWindow = field(
        default_factory=lambda: QuarterWindow("Q4", date(2023, 10, 2), date(2023, 12, 29))
    )
    benchmark: str = "SPY"
    benchmark_fetch_start: date = date(2023, 1, 1)
    constituents_url: str = CONSTITUENTS_URL
    boundary_policy: str = "nearest"
    limit: Optional[int] = None

    def __post_init__(self):
        """Validate configuration on creation."""
        if self.boundary_policy not in BOUNDARY_POLICIES:
            raise ConfigurationError(
                f"Invalid boundary_policy '{self.boundary_policy}'. "
                f"Must be one of: {BOUNDARY_POLICIES}"
            )
        if self.q3.end >= self.q4.start:
            raise ConfigurationError(
                f"Q3 must end before Q4 starts: {self.q3.end} >= {self.q4.start}"
            )
        if self.benchmark_fetch_start > self.q3.start:
            raise ConfigurationError(
                f"benchmark_fetch_start {self.benchmark_fetch_start} is after Q3 start {self.q3.start}"
            )
        if not self.benchmark:
            raise ConfigurationError("benchmark symbol must not be empty")
        if self.limit is not None and self.limit <= 0:
            raise ConfigurationError(f"limit must be > 0, got {self.limit}")

    @property
    def fetch_start(self) -> date:
        return self.q3.start

    @property
    def fetch_end(self) -> date:
        return self.q4.end

    @property
    def quarters(self):
        return (self.q3, self.q4)

    def __repr__(self):
        return (f"StudyConfig(cutoff={self.cutoff}, {self.q3}, {self.q4}, "
                f"benchmark='{self.benchmark}', policy='{self.boundary_policy}')")
