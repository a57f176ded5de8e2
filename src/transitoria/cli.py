"""Command line entry point.

Usage:
    # Analyze one or more ledger exports
    transitoria analyze grootboek_2024.xlsx

    # Scope to one fiscal year and write an Excel report
    transitoria analyze gbr.csv --fiscal-year=2024 --export=report.xlsx

    # Ask Gemini for correction advice (needs GOOGLE_API_KEY)
    transitoria analyze gbr.csv --advise

    # List the postings that were rejected during review
    transitoria analyze gbr.csv --status=rejected

    # Write an empty import template
    transitoria template template.xlsx --locale=en
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from decimal import Decimal

import structlog

from transitoria.advisor import TransitoriaAdvisor
from transitoria.aggregator import MonthlyAggregator
from transitoria.categorizer import PeriodCategorizer
from transitoria.config import configure_logging, get_settings, load_locale
from transitoria.config.locales import LocaleVocabulary, available_locales
from transitoria.exceptions import TransitoriaError
from transitoria.export import export_workbook
from transitoria.importer import LedgerImporter, RowError, write_template
from transitoria.models import Group, LedgerEntry, ReviewStatus
from transitoria.normalizer import KeyNormalizer
from transitoria.overview import audit_log, filter_by_status, ledger_summary, monthly_overview
from transitoria.patterns import PatternClassifier, RecurringPatternAnalyzer, missing_items

logger = structlog.get_logger(__name__)


def format_amount(value: Decimal, thousands: bool = False) -> str:
    """Format a euro amount with Dutch separators; zero renders as '-'."""
    if value == 0:
        return "-"
    if thousands:
        return f"€ {value / 1000:.1f}k".replace(".", ",")
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"€ {text}"


def positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
    if not value > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {text}")
    return value


def non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more: {text}")
    return value


def _common_options(subcommand: bool) -> argparse.ArgumentParser:
    # Subcommand copies must not overwrite a value given before the subcommand
    unset = argparse.SUPPRESS if subcommand else None
    options = argparse.ArgumentParser(add_help=False)
    options.add_argument(
        "--locale",
        choices=available_locales(),
        default=unset,
        help="Vocabulary for month names and column headers (default: settings)",
    )
    options.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if subcommand else False,
        help="Log debug events to stderr",
    )
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="transitoria",
        description="Detect missing and shifted recurring ledger postings",
        parents=[_common_options(subcommand=False)],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    common = _common_options(subcommand=True)

    analyze = subparsers.add_parser("analyze", help="Analyze ledger exports", parents=[common])
    analyze.add_argument("files", nargs="+", help="CSV or XLSX ledger exports")
    analyze.add_argument(
        "--fiscal-year", type=int, default=None, help="Only use postings from this year"
    )
    analyze.add_argument(
        "--limit", type=non_negative_int, default=None, help="Number of missing items to list"
    )
    analyze.add_argument(
        "--shift-threshold",
        type=positive_float,
        default=None,
        help="Shift sensitivity (x average)",
    )
    analyze.add_argument(
        "--status",
        choices=[status.value.lower() for status in ReviewStatus],
        default=None,
        help="List the postings with this review status",
    )
    analyze.add_argument("--export", default=None, help="Write an XLSX report to this path")
    analyze.add_argument("--advise", action="store_true", help="Request AI advice")
    analyze.add_argument(
        "--thousands", action="store_true", help="Show amounts in thousands"
    )

    template = subparsers.add_parser(
        "template", help="Write an empty import template", parents=[common]
    )
    template.add_argument("output", help="Target .xlsx path")

    return parser


def print_report(
    entries: Sequence[LedgerEntry],
    errors: Sequence[RowError],
    groups: Sequence[Group],
    vocab: LocaleVocabulary,
    limit: int,
    thousands: bool = False,
) -> None:
    summary = ledger_summary(entries)
    print(f"Entries: {summary.entry_count}  Total: {format_amount(summary.total_amount)}")
    print(
        f"High risk: {summary.high_risk_count}  Pending: {summary.pending_count}  "
        f"Processed: {len(audit_log(entries))}"
    )
    for error in errors:
        print(f"  skipped {error.source} row {error.row}: {error.message}")

    print("\nMonth   Booked          Allocated")
    for month in monthly_overview(entries, vocabulary=vocab):
        print(
            f"{month.label:<7} {format_amount(month.booked, thousands):<15} "
            f"{format_amount(month.allocated, thousands)}"
        )

    items = missing_items(groups, limit)
    print(f"\nMissing items ({len([g for g in groups if g.gaps])} groups with gaps)")
    for group in items:
        months = ", ".join(vocab.month_labels[i] for i in group.gaps)
        print(f"  {group.key} ({months})")
    shifted = [g for g in groups if g.shifts]
    if shifted:
        print(f"\nShifted postings: {len(shifted)} groups")


def print_entries(entries: Sequence[LedgerEntry], status: ReviewStatus) -> None:
    print(f"\n{status.value} postings ({len(entries)})")
    for entry in entries:
        print(
            f"  {entry.date.isoformat()}  {entry.counterparty}  "
            f"{entry.description}  {format_amount(entry.amount)}"
        )


def run_analyze(args: argparse.Namespace, vocab: LocaleVocabulary) -> int:
    settings = get_settings()
    categorizer = PeriodCategorizer(vocabulary=vocab)
    importer = LedgerImporter(vocabulary=vocab, categorizer=categorizer)
    result = importer.parse_files(args.files)

    analyzer = RecurringPatternAnalyzer(
        aggregator=MonthlyAggregator(KeyNormalizer(vocabulary=vocab)),
        classifier=PatternClassifier(shift_threshold=args.shift_threshold),
    )
    # Every report section works on the same fiscal-year scoped entries
    entries = analyzer.scope(result.entries, args.fiscal_year)
    groups = analyzer.analyze_scoped(entries)

    limit = args.limit if args.limit is not None else settings.missing_items_limit
    print_report(entries, result.errors, groups, vocab, limit, thousands=args.thousands)

    if args.status:
        status = ReviewStatus(args.status.upper())
        print_entries(filter_by_status(entries, status), status)

    if args.export:
        path = export_workbook(args.export, groups, entries, vocabulary=vocab)
        print(f"\nReport written to {path}")

    if args.advise:
        advisor = TransitoriaAdvisor(locale=vocab.tag)
        advice = asyncio.run(advisor.advise(entries, groups))
        print(f"\nAI advice:\n{advice}")

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level="DEBUG" if args.verbose else None)

    try:
        vocab = load_locale(args.locale or get_settings().locale)
        if args.command == "template":
            path = write_template(args.output, vocab)
            print(f"Template written to {path}")
            return 0
        return run_analyze(args, vocab)
    except TransitoriaError as exc:
        logger.error("command_failed", command=args.command, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
