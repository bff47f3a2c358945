"""Quarterly reversal study: Q3 -> Q4 performance persistence of index constituents."""

from .classify import Label, classify, partition, transition_table
from .config import QuarterWindow, StudyConfig
from .errors import (BoundaryDateError, ConfigurationError, DataFetchError,
                     InsufficientDataError, RegressionError, ReversalError,
                     UniverseParseError, ZeroVarianceError)
from .regression import RegressionResult, fit_by_group, fit_reversal
from .returns import BenchmarkReturns, ReturnRecord, ReturnReport, TickerFailure, total_return
from .study import ReversalStudy, StudyResult

__version__ = "0.1.0"
