"""
slo-calc CLI — SLO and error budget reports from daily request counters.

Usage:
    slo-calc init
    slo-calc import data.csv api-service --merge
    slo-calc calculate api-service --target 99.9 --window 30 --format markdown
    slo-calc template --type csv
    slo-calc validate data.csv
    slo-calc archive --days 90
    slo-calc burn-rate --target 99.9 --window 30 --time-window 1 --budget 2
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from typing import List, Optional

from slo_calc import __version__
from slo_calc.alerts import WebhookFormat, WebhookNotifier
from slo_calc.analysis.recommendations import evaluate_status
from slo_calc.config import CalcSettings, ServiceSLO, load_settings
from slo_calc.errors import (
    ConfigurationError,
    NotificationError,
    SLOCalcError,
    ThresholdLabelError,
)
from slo_calc.io.importer import DataImporter
from slo_calc.io.renderer import ReportFormat, ReportRenderer
from slo_calc.io.store import DEFAULT_DATA_DIR, DEFAULT_RETENTION_DAYS, DataStore
from slo_calc.records import DailyRecord, SLOConfig
from slo_calc.slo.budget import ErrorBudgetCalculator
from slo_calc.slo.burn_rate import detection_thresholds, multiwindow_thresholds_from_labels
from slo_calc.slo.report import SLOReport, SLOReportBuilder
from slo_calc.templates import TemplateType, generate_template
from slo_calc.validator import find_data_issues

logger = logging.getLogger("slo_calc.cli")

DEFAULT_TARGET_PERCENT = 99.9
DEFAULT_WINDOW_DAYS = 30


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slo-calc",
        description="SLO calculator with manual adjustments for external service impacts",
    )
    parser.add_argument("--data-dir", default=DEFAULT_DATA_DIR, help="Data directory path")
    parser.add_argument("--config", default=None, help="SLO config YAML file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("version", help="Show version")
    subparsers.add_parser("init", help="Initialize SLO data directory structure")

    import_parser = subparsers.add_parser("import", help="Import SLI data from CSV or JSON file")
    import_parser.add_argument("file")
    import_parser.add_argument("slo_name")
    import_parser.add_argument(
        "--merge", action="store_true", help="Merge with existing data instead of replacing"
    )
    import_parser.add_argument(
        "--no-validate", dest="validate", action="store_false", help="Skip data validation"
    )

    calc_parser = subparsers.add_parser("calculate", help="Calculate SLO and Error Budget")
    calc_parser.add_argument("slo_name")
    calc_parser.add_argument("-t", "--target", type=float, default=None,
                             help=f"SLO target percentage (default {DEFAULT_TARGET_PERCENT})")
    calc_parser.add_argument("-w", "--window", type=int, default=None,
                             help=f"Rolling window in days (default {DEFAULT_WINDOW_DAYS})")
    calc_parser.add_argument("-f", "--format", choices=[f.value for f in ReportFormat],
                             default=ReportFormat.MARKDOWN.value, help="Output format")
    calc_parser.add_argument("--slack", action="store_true", help="Send report to Slack")

    template_parser = subparsers.add_parser("template", help="Generate template files")
    template_parser.add_argument("--type", choices=[t.value for t in TemplateType],
                                 default=TemplateType.CSV.value, help="Template type")
    template_parser.add_argument("--output", default=None, help="Output file path")

    validate_parser = subparsers.add_parser("validate", help="Validate SLI data file")
    validate_parser.add_argument("file")

    archive_parser = subparsers.add_parser("archive", help="Archive old reports")
    archive_parser.add_argument("--days", type=int, default=DEFAULT_RETENTION_DAYS,
                                help="Days to keep reports")

    burn_parser = subparsers.add_parser("burn-rate", help="Compute burn-rate alert thresholds")
    burn_parser.add_argument("-t", "--target", type=float, default=DEFAULT_TARGET_PERCENT,
                             help="SLO target percentage")
    burn_parser.add_argument("-w", "--window", type=float, default=DEFAULT_WINDOW_DAYS,
                             help="SLO window in days")
    burn_parser.add_argument("--time-window", type=float, default=1.0,
                             help="Detection time window in hours")
    burn_parser.add_argument("-b", "--budget", type=float, default=100.0,
                             help="Budget consumption percent within the time window")
    burn_parser.add_argument("--pair", action="append", default=[], metavar="LONGH_SHORTM=MULT",
                             help="Long/short window pair, e.g. 1_5=14.4 (repeatable)")
    burn_parser.add_argument("--json", action="store_true", help="Print JSON")

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cli(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    parser = _build_parser()
    parsed = parser.parse_args(args)
    _configure_logging(parsed.verbose)

    if parsed.command is None:
        parser.print_help()
        return 1

    if parsed.command == "version":
        print(f"slo-calc {__version__}")
        return 0

    handlers = {
        "init": _cmd_init,
        "import": _cmd_import,
        "calculate": _cmd_calculate,
        "template": _cmd_template,
        "validate": _cmd_validate,
        "archive": _cmd_archive,
        "burn-rate": _cmd_burn_rate,
    }
    try:
        return handlers[parsed.command](parsed)
    except (SLOCalcError, OSError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        logger.debug("Command %s failed", parsed.command, exc_info=True)
        return 1


def main() -> None:
    sys.exit(cli())


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_init(parsed: argparse.Namespace) -> int:
    store = DataStore(parsed.data_dir)
    store.init()
    print("✅ Initialized SLO data directory structure:")
    print(f"  📁 {store.data_dir}/")
    print("     ├── 📁 input/     - SLI data files")
    print("     ├── 📁 reports/   - Generated reports")
    print("     └── 📁 archive/   - Archived reports")
    print("")
    print("Next steps:")
    print("1. Generate a template: slo-calc template")
    print("2. Import your data: slo-calc import <file> <service-name>")
    print("3. Calculate SLO: slo-calc calculate <service-name>")
    return 0


def _cmd_import(parsed: argparse.Namespace) -> int:
    store = DataStore(parsed.data_dir)
    importer = DataImporter()

    records = importer.import_file(parsed.file, validate=parsed.validate)
    print(f"ℹ️  Imported {len(records)} data points")

    if parsed.merge:
        if store.exists(parsed.slo_name):
            existing = store.load(parsed.slo_name, validate=parsed.validate)
            records = importer.merge(records, existing)
            print(f"ℹ️  Merged with existing data. Total: {len(records)} data points")
        else:
            logger.info("No existing data found, creating new dataset")

    path = store.save(parsed.slo_name, records)
    _print_import_summary(parsed.slo_name, records)
    print(f"✅ Data imported successfully to {path}")
    return 0


def _print_import_summary(slo_name: str, records: List[DailyRecord]) -> None:
    ordered = sorted(records, key=lambda r: r.date)
    total = sum(r.total_requests for r in records)
    successful = sum(r.successful_requests for r in records)
    avg_sli = successful / total * 100 if total > 0 else 0.0

    print("\n📊 Import Summary:")
    print(f"  - Service: {slo_name}")
    if ordered:
        print(f"  - Date Range: {ordered[0].date} to {ordered[-1].date}")
    else:
        print("  - Date Range: N/A")
    print(f"  - Total Days: {len(records)}")
    print(f"  - Days with External Issues: {sum(1 for r in records if r.excluded_failures > 0)}")
    print(f"  - Average Raw SLI: {avg_sli:.3f}%")


def _resolve_config(parsed: argparse.Namespace, service: Optional[ServiceSLO]) -> SLOConfig:
    if parsed.target is not None:
        target = parsed.target / 100.0
    elif service is not None:
        target = service.target
    else:
        target = DEFAULT_TARGET_PERCENT / 100.0

    if parsed.window is not None:
        window = parsed.window
    elif service is not None:
        window = service.window
    else:
        window = DEFAULT_WINDOW_DAYS

    return SLOConfig(name=parsed.slo_name, target=target, window=window)


def _cmd_calculate(parsed: argparse.Namespace) -> int:
    logger.debug("Calculating SLO for %s", parsed.slo_name)
    store = DataStore(parsed.data_dir)
    settings = load_settings(parsed.config, parsed.data_dir)
    service = settings.service(parsed.slo_name)
    config = _resolve_config(parsed, service)

    records = store.load(parsed.slo_name)
    report = SLOReportBuilder().build(records, config)

    renderer = ReportRenderer(settings=settings)
    path = renderer.write(report, ReportFormat(parsed.format), store.reports_dir)

    _print_summary(report)
    print(f"✅ Report saved to: {path}")

    if service is not None:
        _check_alerting_policy(report, service)

    if parsed.slack:
        _notify(report, settings)
    return 0


def _print_summary(report: SLOReport) -> None:
    status = evaluate_status(report)
    budget = report.error_budget
    config = report.config

    print("\n" + "=" * 50)
    print(f"📊 SLO Report: {config.name}")
    print("=" * 50)
    print(f"\n{status.emoji} Overall Status: {status.label}")
    print("\n📈 Performance Metrics:")
    print(f"  - Adjusted SLI: {report.adjusted_sli * 100:.3f}% "
          f"(Target: {config.target * 100:.3f}%)")
    print(f"  - {'✅ Meeting' if report.meets_target else '❌ Missing'} SLO target")
    print("\n💰 Error Budget:")
    print(f"  - Total Budget: {budget.total:.3f}%")
    print(f"  - Consumed: {budget.consumed:.3f}%")
    print(f"  - Remaining: {budget.remaining:.3f}% ({budget.remaining_percentage:.1f}%)")
    print(f"  - Burn Rate: {budget.burn_rate:.4f}% per day")

    exhaustion = ErrorBudgetCalculator().projected_exhaustion(budget, config.window)
    if exhaustion:
        print(f"  - Projected Exhaustion: {exhaustion} days")
    print("\n" + "=" * 50)


def _check_alerting_policy(report: SLOReport, service: ServiceSLO) -> None:
    policy = service.alerting
    budget = report.error_budget
    if budget.remaining_percentage < policy.error_budget_remaining:
        logger.warning(
            "%s: error budget remaining %.1f%% is below the alerting threshold of %.1f%%",
            service.name, budget.remaining_percentage, policy.error_budget_remaining,
        )
    if budget.burn_rate > policy.burn_rate:
        logger.warning(
            "%s: burn rate %.4f%%/day exceeds the alerting threshold of %.4f%%/day",
            service.name, budget.burn_rate, policy.burn_rate,
        )


def _notify(report: SLOReport, settings: CalcSettings) -> None:
    notifier = WebhookNotifier(
        url=settings.webhook_url(),
        fmt=WebhookFormat(settings.notifications.format),
        timeout=settings.notifications.timeout_seconds,
    )
    try:
        notifier.send_report(report).raise_for_status()
    except NotificationError as e:
        logger.warning("Failed to send Slack notification: %s", e)
        return
    print("ℹ️  Slack notification sent")


def _cmd_template(parsed: argparse.Namespace) -> int:
    template_type = TemplateType(parsed.type)
    path = generate_template(template_type, parsed.output)
    print(f"✅ {template_type.value.upper()} template saved to: {path}")
    if template_type is TemplateType.DATADOG:
        print("ℹ️  Make sure to set DD_API_KEY and DD_APP_KEY environment variables")
    return 0


def _cmd_validate(parsed: argparse.Namespace) -> int:
    records = DataImporter().import_file(parsed.file, validate=True)
    ordered = sorted(records, key=lambda r: r.date)

    print("\n✅ Validation Results:")
    print(f"  - File: {parsed.file}")
    print("  - Format: Valid")
    print(f"  - Records: {len(records)}")
    print(f"  - Date Range: {ordered[0].date} to {ordered[-1].date}")

    issues = find_data_issues(records)
    if issues:
        print("\n⚠️  Potential Issues:")
        for issue in issues:
            print(f"  - {issue.message}")
    else:
        print("\n✅ No issues found")

    print("✅ File is valid and ready for import")
    return 0


def _cmd_archive(parsed: argparse.Namespace) -> int:
    store = DataStore(parsed.data_dir)
    moved = store.archive_old_reports(parsed.days)
    print(f"✅ Archived {len(moved)} report(s). Reports older than {parsed.days} days "
          f"moved to {store.archive_dir}/")
    return 0


def _parse_pairs(values: List[str]) -> dict:
    pairs = {}
    for value in values:
        label, sep, multiplier = value.partition("=")
        if not sep:
            raise ThresholdLabelError(value, "expected LONGH_SHORTM=MULTIPLIER")
        try:
            factor = float(multiplier)
        except ValueError:
            raise ThresholdLabelError(value, "multiplier must be numeric") from None
        if not math.isfinite(factor):
            raise ThresholdLabelError(value, "multiplier must be finite")
        pairs[label.strip()] = factor
    return pairs


def _cmd_burn_rate(parsed: argparse.Namespace) -> int:
    for option in ("target", "window", "time_window", "budget"):
        if not math.isfinite(getattr(parsed, option)):
            raise ConfigurationError(f"--{option.replace('_', '-')} must be a finite number")
    result = detection_thresholds(parsed.target, parsed.window, parsed.time_window, parsed.budget)
    labelled = multiwindow_thresholds_from_labels(
        parsed.target, parsed.window, _parse_pairs(parsed.pair)
    )

    if parsed.json:
        payload = {"detection": result.to_dict(), "windows": labelled.to_dict()}
        print(json.dumps(payload, indent=2, allow_nan=False))
    else:
        print("parameters:")
        print(f"  SLO target: {parsed.target}%")
        print(f"  SLO window: {parsed.window:g}d")
        print(f"  Budget consumption: {parsed.budget}%")
        print("\nresults:")
        print(f"  - Max Burn Rate: {result.max_burn_rate_threshold:.2f}")
        print(f"  - Burn Rate: {result.burn_rate_threshold:.2f}")
        print(f"  - Detection time: {result.detection_time_hours:g} hours")
        print(f"  - Allowed error rate in window: {result.allowed_error_rate * 100:.4f}%")
        print(f"  - Detection error rate (threshold): {result.detection_error_rate * 100:.4f}%")
        for label, threshold in labelled.thresholds.items():
            print(f"  - Window {label} x{threshold.pair.multiplier:g}: "
                  f"long {threshold.long_error_rate * 100:.4f}%, "
                  f"short {threshold.short_error_rate * 100:.4f}%")

    for error in labelled.errors:
        print(f"❌ Invalid window label '{error.label}': {error.reason}", file=sys.stderr)
    return 0 if labelled.ok else 1
