"""
Figures for the reversal study. Every function returns a Figure; saving
is left to the caller.
"""

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy import stats

from .classify import LABELS, Label, classify

plt.style.use('dark_background')
sns.set_palette("flare")

LABEL_COLORS = {Label.OUTPERFORM: 'lime', Label.UNDERPERFORM: '#FF6B6B'}


def plot_return_scatter(frame: pd.DataFrame, benchmark, fits=None):
    """
    Q3 vs Q4 total return per ticker, coloured by Q3 label, with benchmark
    lines and (optionally) each group's fitted regression line.

    Parameters:
        frame (DataFrame): ReturnReport.to_frame() output
        benchmark (BenchmarkReturns): Benchmark returns for both quarters
        fits (GroupFits or None): Group regressions to overlay
    """
    fig, ax = plt.subplots(figsize=(10, 7))

    labels = [classify(r, benchmark.q3) for r in frame['q3_return']]
    for label in LABELS:
        mask = np.array([lab is label for lab in labels], dtype=bool)
        if not mask.any():
            continue
        ax.scatter(frame['q3_return'][mask], frame['q4_return'][mask],
                   color=LABEL_COLORS[label], alpha=0.7, s=25,
                   label=f"Q3 {label.value} (n={mask.sum()})")

    if fits is not None:
        for label, result in fits.results.items():
            xs = np.linspace(result.x.min(), result.x.max(), 50)
            ax.plot(xs, result.predict(xs), color=LABEL_COLORS[label], lw=2,
                    label=f"{label.value} fit: slope {result.slope:+.2f} (p={result.slope_pvalue:.3f})")

    ax.axvline(benchmark.q3, color='white', ls=':', lw=1.5,
               label=f"{benchmark.symbol} Q3 {benchmark.q3:+.1%}")
    ax.axhline(benchmark.q4, color='cyan', ls=':', lw=1.5,
               label=f"{benchmark.symbol} Q4 {benchmark.q4:+.1%}")

    ax.xaxis.set_major_formatter(plt.FuncFormatter(lambda v, _: f"{v:.0%}"))
    ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda v, _: f"{v:.0%}"))
    ax.set_xlabel("Q3 total return")
    ax.set_ylabel("Q4 total return")
    ax.set_title("Quarterly Reversal: Q3 vs Q4 Total Return", fontsize=14, fontweight='bold')
    ax.legend(loc='upper left', fontsize=9)
    ax.grid(alpha=0.2)
    plt.tight_layout()
    return fig


def plot_transition_table(table: pd.DataFrame):
    """Heatmap of the 2x2 Q3 -> Q4 transition counts."""
    fig, ax = plt.subplots(figsize=(6, 5))
    sns.heatmap(table, annot=True, fmt='d', cmap='magma', cbar=False, ax=ax)
    ax.set_title(f"Q3 -> Q4 Transitions (n={int(table.values.sum())})")
    plt.tight_layout()
    return fig


def plot_regression_diagnostics(fits):
    """
    Residuals-vs-fitted (homoscedasticity) and normal Q-Q of residuals,
    one row per fitted group.
    """
    groups = [(label, fits.results[label]) for label in LABELS if label in fits.results]
    n_rows = max(len(groups), 1)
    fig, axes = plt.subplots(n_rows, 2, figsize=(12, 4.5 * n_rows), squeeze=False)

    if not groups:
        for ax in axes[0]:
            ax.text(0.5, 0.5, "No group could be fitted", ha='center', va='center',
                    fontsize=14, transform=ax.transAxes)
            ax.set_axis_off()

    for row, (label, result) in enumerate(groups):
        color = LABEL_COLORS[label]

        ax_res = axes[row, 0]
        ax_res.scatter(result.fitted, result.residuals, color=color, alpha=0.7, s=20)
        ax_res.axhline(0, color='white', lw=1, alpha=0.5)
        ax_res.set_xlabel("Fitted Q4 return")
        ax_res.set_ylabel("Residual")
        ax_res.set_title(f"Q3 {label.value}: Residuals vs Fitted (DW={result.durbin_watson:.2f})")
        ax_res.grid(alpha=0.2)

        ax_qq = axes[row, 1]
        stats.probplot(result.residuals, dist="norm", plot=ax_qq)
        ax_qq.get_lines()[0].set_color(color)
        ax_qq.set_title(f"Q3 {label.value}: Normal Q-Q of Residuals")
        ax_qq.grid(alpha=0.2)

    plt.tight_layout()
    return fig
