"""
Reversal regressions: Q4 total return ~ Q3 total return, fitted separately
for the Q3 outperformers and Q3 underperformers.

A negative slope inside a group is evidence of quarter-over-quarter
reversal; the residual diagnostics say whether the OLS inference holds.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np
import statsmodels.api as sm
from scipy import stats
from statsmodels.stats.diagnostic import het_breuschpagan
from statsmodels.stats.stattools import durbin_watson, jarque_bera

from .classify import LABELS, Label, classify
from .errors import InsufficientDataError, RegressionError, ZeroVarianceError

logger = logging.getLogger(__name__)

MIN_OBSERVATIONS = 2
# Shapiro-Wilk and Breusch-Pagan need residual degrees of freedom
MIN_DIAGNOSTIC_OBSERVATIONS = 3


@dataclass
class RegressionResult:
    """OLS fit of Q4 return on Q3 return for one group, with diagnostics."""
    group: str
    n_obs: int
    intercept: float
    slope: float
    intercept_se: float
    slope_se: float
    intercept_pvalue: float
    slope_pvalue: float
    r_squared: float
    adj_r_squared: float
    durbin_watson: float
    jarque_bera_pvalue: float
    shapiro_pvalue: Optional[float]
    breusch_pagan_pvalue: Optional[float]
    x: np.ndarray = field(repr=False)
    fitted: np.ndarray = field(repr=False)
    residuals: np.ndarray = field(repr=False)
    model: object = field(repr=False, default=None)

    def predict(self, x):
        return self.intercept + self.slope * np.asarray(x, dtype=float)

    def summary(self) -> str:
        """Full statsmodels summary table."""
        return self.model.summary(
            yname="Q4 return", xname=["const", "Q3 return"],
            title=f"Reversal OLS: Q3 {self.group}",
        ).as_text()

    def to_dict(self) -> Dict:
        """Scalar statistics for export."""
        return {
            'group': self.group,
            'n_obs': self.n_obs,
            'intercept': self.intercept,
            'slope': self.slope,
            'intercept_se': self.intercept_se,
            'slope_se': self.slope_se,
            'intercept_pvalue': self.intercept_pvalue,
            'slope_pvalue': self.slope_pvalue,
            'r_squared': self.r_squared,
            'adj_r_squared': self.adj_r_squared,
            'durbin_watson': self.durbin_watson,
            'jarque_bera_pvalue': self.jarque_bera_pvalue,
            'shapiro_pvalue': self.shapiro_pvalue,
            'breusch_pagan_pvalue': self.breusch_pagan_pvalue,
        }

    def undefined_statistics(self) -> List[str]:
        """Names of scalar statistics that came out NaN or infinite (e.g. n=2, constant Q4)."""
        return [name for name, value in self.to_dict().items()
                if isinstance(value, float) and not np.isfinite(value)]


def fit_reversal(q3_returns, q4_returns, group: str = "all") -> RegressionResult:
    """
    Closed-form OLS of Q4 return on Q3 return (intercept + slope).

    Pairs with a non-finite value are dropped before fitting.

    Raises:
        InsufficientDataError: Fewer than MIN_OBSERVATIONS finite pairs
        ZeroVarianceError: Every Q3 return is identical
    """
    x = np.asarray(q3_returns, dtype=float)
    y = np.asarray(q4_returns, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"Length mismatch: {x.shape} vs {y.shape}")

    finite = np.isfinite(x) & np.isfinite(y)
    x, y = x[finite], y[finite]
    n = len(x)

    if n < MIN_OBSERVATIONS:
        raise InsufficientDataError(
            f"Group '{group}' has {n} observation(s); need at least {MIN_OBSERVATIONS}"
        )
    if np.ptp(x) == 0:
        raise ZeroVarianceError(f"Group '{group}': Q3 returns have zero variance")

    X = sm.add_constant(x, has_constant="add")
    model = sm.OLS(y, X).fit()
    resid = np.asarray(model.resid)

    shapiro_p = None
    bp_p = None
    if n >= MIN_DIAGNOSTIC_OBSERVATIONS:
        shapiro_p = float(stats.shapiro(resid).pvalue)
        bp_p = float(het_breuschpagan(resid, X)[1])

    result = RegressionResult(
        group=group,
        n_obs=n,
        intercept=float(model.params[0]),
        slope=float(model.params[1]),
        intercept_se=float(model.bse[0]),
        slope_se=float(model.bse[1]),
        intercept_pvalue=float(model.pvalues[0]),
        slope_pvalue=float(model.pvalues[1]),
        r_squared=float(model.rsquared),
        adj_r_squared=float(model.rsquared_adj),
        durbin_watson=float(durbin_watson(resid)),
        jarque_bera_pvalue=float(jarque_bera(resid)[1]),
        shapiro_pvalue=shapiro_p,
        breusch_pagan_pvalue=bp_p,
        x=x,
        fitted=np.asarray(model.fittedvalues),
        residuals=resid,
        model=model,
    )
    logger.info(f"OLS [{group}] n={n}: Q4 = {result.intercept:+.4f} "
                f"{result.slope:+.4f} * Q3 (R2={result.r_squared:.3f}, "
                f"DW={result.durbin_watson:.2f})")
    undefined = result.undefined_statistics()
    if undefined:
        logger.warning(f"OLS [{group}] n={n}: undefined statistics {undefined} "
                       f"(too few residual degrees of freedom or constant returns)")
    return result


@dataclass
class GroupFits:
    """One regression per Q3 label; degenerate groups land in `errors`."""
    results: Dict[Label, RegressionResult] = field(default_factory=dict)
    errors: Dict[Label, str] = field(default_factory=dict)


def fit_by_group(records: Iterable, benchmark) -> GroupFits:
    """Partition records by Q3 classification and fit each group."""
    grouped = {label: ([], []) for label in LABELS}
    for record in records:
        xs, ys = grouped[classify(record.q3_return, benchmark.q3)]
        xs.append(record.q3_return)
        ys.append(record.q4_return)

    fits = GroupFits()
    for label, (xs, ys) in grouped.items():
        try:
            fits.results[label] = fit_reversal(xs, ys, group=label.value)
        except RegressionError as e:
            fits.errors[label] = str(e)
            logger.warning(f"Regression skipped for Q3 {label.value}: {e}")
    return fits
