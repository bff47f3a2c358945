"""
Domain-specific exceptions for the reversal study.
"""


class ReversalError(Exception):
    """Base exception for all study errors."""
    pass


class ConfigurationError(ReversalError):
    """Raised when configuration is invalid."""
    pass


class DataFetchError(ReversalError):
    """Raised when reference or price data cannot be fetched or is empty."""
    pass


class UniverseParseError(ReversalError):
    """Raised when the constituents table is missing or malformed."""
    pass


class BoundaryDateError(ReversalError):
    """Raised when no price observation exists for a quarter boundary."""

    def __init__(self, symbol, boundary_date, side, policy):
        self.symbol = symbol
        self.boundary_date = boundary_date
        self.side = side
        self.policy = policy
        super().__init__(
            f"No {side} observation for {symbol} at boundary "
            f"{boundary_date:%Y-%m-%d} (policy={policy})"
        )


class RegressionError(ReversalError):
    """Base class for degenerate regression inputs."""
    pass


class InsufficientDataError(RegressionError):
    """Raised when a regression group has too few observations."""
    pass


class ZeroVarianceError(RegressionError):
    """Raised when the predictor has no variance."""
    pass
