"""Command-line interface for the visual analysis engine."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable

from .config import EngineConfig, load_config
from .engine import VisualAnalysisEngine
from .errors import VisualAnalysisError
from .insights.mismatch import MismatchAnalyzer
from .io.models import SuiteReport, VisualAnalysisReport
from .io.outputs import write_report, write_suite_table

DEFAULT_OUT_DIR = Path("out") / "analysis"


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the analysis commands."""
    parser = argparse.ArgumentParser(
        description="Compare screenshots against reference designs and explain the differences."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a JSON file with 'analysis' and 'thresholds' options.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compare_parser = subparsers.add_parser(
        "compare", help="Analyse one reference/test image pair."
    )
    compare_parser.add_argument("reference", help="Reference (design) image path.")
    compare_parser.add_argument("test", help="Test (screenshot) image path.")
    compare_parser.add_argument(
        "--out",
        default=str(DEFAULT_OUT_DIR),
        help="Directory for report.json and difference-map.png.",
    )
    compare_parser.add_argument(
        "--report",
        default=None,
        help="Write the JSON report here instead of <out>/report.json.",
    )
    compare_parser.add_argument(
        "--no-diff-map",
        action="store_true",
        help="Skip writing the difference map image.",
    )

    suite_parser = subparsers.add_parser(
        "suite", help="Analyse a BackstopJS result document."
    )
    suite_parser.add_argument("results", help="Path to the BackstopJS JSON results.")
    suite_parser.add_argument(
        "--out",
        default=str(DEFAULT_OUT_DIR),
        help="Directory for suite_report.json and suite_tests.parquet.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def _load_engine_config(path: str | None) -> EngineConfig:
    if not path:
        return EngineConfig()
    return load_config(path)


def _print_pair_summary(report: VisualAnalysisReport) -> None:
    overall = report.insights.overall
    print(f"Score: {overall.score} ({overall.grade}) - {overall.description}")
    print(f"Confidence: {overall.confidence}")
    pixel = report.comparison.pixel_difference
    if pixel is not None:
        print(f"Pixels different: {pixel.percentage_different}% (similarity {pixel.similarity}%)")
    else:
        print("Pixels different: n/a")
    print(f"Regions: {len(report.comparison.regions)}")
    for insight in report.insights.specific:
        print(f"  [{insight.severity}] {insight.category}: {insight.message}")


def _print_suite_summary(report: SuiteReport) -> None:
    summary = report.summary
    print(f"Total tests: {summary.total_tests}")
    print(f"Passed: {summary.passed}  Failed: {summary.failed}  Skipped: {summary.skipped}")
    print(
        f"Critical: {summary.critical_issues}  Warning: {summary.warning_issues}"
        f"  Minor: {summary.minor_issues}"
    )
    print(f"Average difference: {summary.average_difference:.2f}%")
    for bucket, items in (
        ("immediate", report.recommendations.immediate),
        ("short term", report.recommendations.short_term),
        ("long term", report.recommendations.long_term),
        ("preventive", report.recommendations.preventive),
    ):
        for item in items:
            print(f"  [{bucket}] {item.title} ({item.estimated_time})")


def _run_compare(args: argparse.Namespace, config: EngineConfig) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    engine = VisualAnalysisEngine(config)
    report = engine.perform_visual_analysis(
        args.reference,
        args.test,
        output_dir=None if args.no_diff_map else out_dir,
    )
    report_target = Path(args.report) if args.report else out_dir / "report.json"
    report_path = write_report(report_target, report)
    print(f"[report] {report_path}")
    diff_map = report.comparison.diff_map
    if diff_map is not None and diff_map.created:
        print(f"[diff-map] {diff_map.path}")
    elif diff_map is not None:
        print(f"[diff-map] not created ({diff_map.error})")
    _print_pair_summary(report)
    return 0


def _run_suite(args: argparse.Namespace, config: EngineConfig) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    report = MismatchAnalyzer(config).analyze_test_results(args.results)
    report_path = write_report(out_dir / "suite_report.json", report)
    print(f"[report] {report_path}")
    if report.detailed_analysis:
        table_path = write_suite_table(out_dir / "suite_tests.parquet", report)
        print(f"[table] wrote {len(report.detailed_analysis)} rows to {table_path}")
    else:
        print("[table] no failed tests to tabulate")
    _print_suite_summary(report)
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))
    try:
        config = _load_engine_config(args.config)
        if args.command == "compare":
            return _run_compare(args, config)
        return _run_suite(args, config)
    except VisualAnalysisError as exc:
        print(f"[error] {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
