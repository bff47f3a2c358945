import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from reversal.config import BOUNDARY_POLICIES, CONSTITUENTS_URL, QuarterWindow, StudyConfig
from reversal.errors import ReversalError
from reversal.study import ReversalStudy

DEFAULTS = StudyConfig()


def _iso_date(value):
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Quarterly reversal study: Q3 vs Q4 returns of index constituents")
    parser.add_argument("--cutoff", type=_iso_date, default=DEFAULTS.cutoff,
                        help="exclude tickers added to the index after this date")
    parser.add_argument("--q3-start", type=_iso_date, default=DEFAULTS.q3.start)
    parser.add_argument("--q3-end", type=_iso_date, default=DEFAULTS.q3.end)
    parser.add_argument("--q4-start", type=_iso_date, default=DEFAULTS.q4.start)
    parser.add_argument("--q4-end", type=_iso_date, default=DEFAULTS.q4.end)
    parser.add_argument("--benchmark", default=DEFAULTS.benchmark)
    parser.add_argument("--benchmark-fetch-start", type=_iso_date,
                        default=DEFAULTS.benchmark_fetch_start)
    parser.add_argument("--constituents-url", default=CONSTITUENTS_URL)
    parser.add_argument("--boundary-policy", choices=BOUNDARY_POLICIES,
                        default=DEFAULTS.boundary_policy)
    parser.add_argument("--limit", type=int, default=None,
                        help="only process the first N tickers")
    parser.add_argument("--tickers", nargs="+", default=None,
                        help="explicit ticker list instead of scraping the index")
    parser.add_argument("--output-dir", type=Path, default=Path("reversal_output"))
    parser.add_argument("--no-plots", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def config_from_args(args) -> StudyConfig:
    return StudyConfig(
        cutoff=args.cutoff,
        q3=QuarterWindow("Q3", args.q3_start, args.q3_end),
        q4=QuarterWindow("Q4", args.q4_start, args.q4_end),
        benchmark=args.benchmark,
        benchmark_fetch_start=args.benchmark_fetch_start,
        constituents_url=args.constituents_url,
        boundary_policy=args.boundary_policy,
        limit=args.limit,
    )


def write_artifacts(result, output_dir: Path):
    """Write tables, regression summaries and figures into output_dir."""
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"Saving returns to {output_dir / 'returns.csv'}...")
    result.returns.to_csv(output_dir / "returns.csv")
    result.report.failures_frame().to_csv(output_dir / "failures.csv", index=False)
    result.transitions.to_csv(output_dir / "transition_table.csv")

    print(f"Saving regression summary to {output_dir / 'regression_summary.txt'}...")
    with open(output_dir / "regression_summary.txt", "w") as f:
        bench = result.benchmark
        f.write(f"Benchmark: {bench.symbol}\n")
        f.write(f"Q3 return: {bench.q3:+.4%}\n")
        f.write(f"Q4 return: {bench.q4:+.4%}\n")
        f.write(f"Tickers: {len(result.report.records)} computed, "
                f"{len(result.report.failures)} skipped\n\n")
        f.write("Transition table (rows=Q3, cols=Q4):\n")
        f.write(result.transitions.to_string())
        f.write("\n\n")
        for label, fit in result.fits.results.items():
            f.write(fit.summary())
            f.write("\nDiagnostics:\n")
            f.write(f"- Durbin-Watson: {fit.durbin_watson:.4f}\n")
            f.write(f"- Jarque-Bera p: {fit.jarque_bera_pvalue:.4f}\n")
            if fit.shapiro_pvalue is not None:
                f.write(f"- Shapiro-Wilk p: {fit.shapiro_pvalue:.4f}\n")
            if fit.breusch_pagan_pvalue is not None:
                f.write(f"- Breusch-Pagan p: {fit.breusch_pagan_pvalue:.4f}\n")
            undefined = fit.undefined_statistics()
            if undefined:
                f.write(f"- Undefined for this group (n={fit.n_obs}): {', '.join(undefined)}\n")
            f.write("\n")
        for label, err in result.fits.errors.items():
            f.write(f"Q3 {label.value}: not fitted ({err})\n")

    for name, fig in result.figures.items():
        path = output_dir / f"{name}.png"
        print(f"Saving plot to {path}...")
        fig.savefig(path, dpi=120)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    try:
        config = config_from_args(args)
        study = ReversalStudy(config)
        result = study.run(symbols=args.tickers, plot=not args.no_plots)
    except ReversalError as e:
        print(f"Error: {e}")
        return 1

    write_artifacts(result, args.output_dir)
    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
