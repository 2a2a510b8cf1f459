"""
Storm Impact Command Line Interface (CLI)
=========================================

Run the whole report top to bottom:

    python -m storm_impact.cli
    python -m storm_impact.cli --csv repdata_data_StormData.csv.bz2 --top 15 --docx report.docx

Steps:
1) load the CSV (compression inferred from the extension)
2) optionally restrict to a year range (needs BGN_DATE)
3) scale damage figures by their magnitude codes
4) group by event type, sum, rank
5) print the ranked tables and save the two bar charts (and the DOCX report)

The CLI never modifies the dataset file.
"""

from __future__ import annotations
from typing import List, Optional
import argparse
import logging
import os
import sys

from .aggregate import StormAnalysis
from .damage import POLICIES, code_breakdown
from .loader import DEFAULT_CSV, load_storm_csv
from .report import (
    DatasetCitation, ReportConfig, generate_docx_report, print_summary, render_charts,
)

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return n


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="storm-impact",
        description="Rank weather event types by health and economic impact (NOAA Storm Events).",
    )
    ap.add_argument("--csv", default=DEFAULT_CSV, help=f"Path to the storm data CSV (default: {DEFAULT_CSV})")
    ap.add_argument("--out", default="figures", help="Directory for the PNG charts (default: figures)")
    ap.add_argument("--top", type=_positive_int, default=10, help="Event types per table/chart (default: 10)")
    ap.add_argument("--since", type=int, default=None, help="First year to include (needs BGN_DATE)")
    ap.add_argument("--until", type=int, default=None, help="Last year to include (needs BGN_DATE)")
    ap.add_argument("--exponents", choices=POLICIES, default="standard",
                    help="How to read PROPDMGEXP/CROPDMGEXP codes (default: standard = K/M/B only)")
    ap.add_argument("--normalize-evtype", action="store_true",
                    help="Upper-case event types and collapse whitespace before grouping")
    ap.add_argument("--full-amounts", action="store_true", help="Print US$ amounts without K/M/B abbreviation")
    ap.add_argument("--dpi", type=_positive_int, default=150, help="Chart resolution (default: 150)")
    ap.add_argument("--docx", default=None, help="Also write a DOCX report to this path")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v for progress, -vv for debug")
    return ap


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(message)s")


def config_from_args(args: argparse.Namespace) -> ReportConfig:
    return ReportConfig(
        top_n=args.top,
        output_dir=args.out,
        dpi=args.dpi,
        abbreviate_money=not args.full_amounts,
        citation=DatasetCitation(file_name=os.path.basename(args.csv)),
        settings={
            "csv": args.csv,
            "top": args.top,
            "exponent policy": args.exponents,
            "normalize event types": args.normalize_evtype,
        },
    )


def run(args: argparse.Namespace) -> List[str]:
    """Run the pipeline for parsed arguments. Returns the paths written."""
    config = config_from_args(args)

    print("Loading dataset...")
    df = load_storm_csv(args.csv, normalize_event_types=args.normalize_evtype)
    analysis = StormAnalysis(data=df, policy=args.exponents, dataset_path=args.csv)
    if args.since is not None or args.until is not None:
        analysis.filter_years(args.since, args.until)
    if analysis.data.empty:
        raise ValueError(f"No events in {args.csv}.")

    health = analysis.health()
    economic = analysis.economic()
    summary = analysis.summary()
    print_summary(summary, health, economic, config)

    written = render_charts(health, economic, config)
    if args.docx:
        written.append(generate_docx_report(
            args.docx, summary, health, economic, written,
            code_breakdown=code_breakdown(analysis.data, args.exponents),
            config=config,
        ))
    print("")
    for path in written:
        print(f"Saved: {path}")
    return written


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the storm-impact CLI."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        run(args)
    except (KeyError, ValueError, OSError, ImportError) as e:
        logger.debug("Report failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
