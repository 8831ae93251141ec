"""Command-line interface for the compliance scanner."""

import asyncio
import sys
import json
from typing import Optional

from mediguard.config import Config, ScanConfiguration, settings
from mediguard.exceptions import ComplianceScanError
from mediguard.logging_config import setup_logging
from mediguard.scanner import AdCheckResult, ComplianceScanner, ScanReport

_SEVERITY_ICONS = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "⚪",
}


def _print_violations(violations) -> None:
    for violation in violations:
        icon = _SEVERITY_ICONS.get(violation.severity.value, "•")
        print(f"\n{icon} [{violation.severity.value.upper()}] {violation.type.value}")
        print(f"  Text: \"{violation.original_text}\"")
        if violation.page_url and violation.page_url.startswith("http"):
            print(f"  Page: {violation.page_url}")
        print(f"  Rule: {violation.rule}")
        print(f"  Issue: {violation.issue}")
        if violation.suggestion:
            print(f"  Suggestion: {violation.suggestion}")
        if violation.compliant_rewrite:
            print(f"  Compliant: {violation.compliant_rewrite}")


def _print_summary(summary) -> None:
    print(f"\n📊 Violations: {summary.total}")
    print(f"  • Critical: {summary.critical}")
    print(f"  • High: {summary.high}")
    print(f"  • Medium: {summary.medium}")
    print(f"  • Low: {summary.low}")


def print_scan_report(report: ScanReport) -> None:
    """Print a scan report in a formatted way.

    Args:
        report: ScanReport to print
    """
    print(f"\n{'=' * 60}")
    print(f"Compliance Scan for: {report.url}")
    print(f"{'=' * 60}")

    if report.status != "completed":
        print(f"\n❌ Scan failed ({report.reason}): {report.error}")
        print(f"\n{'=' * 60}\n")
        return

    print(f"\nPages scanned: {report.pages_scanned} (transport: {report.transport})")
    if report.degraded:
        print("⚠️  Browser rendering unavailable; pages were fetched as static HTML")
    if not report.llm_enabled:
        print("⚠️  LLM detection disabled; deterministic rules only")
    if report.deadline_reached:
        print("⚠️  Deadline reached; results are partial")

    _print_summary(report.summary)
    _print_violations(report.violations)
    print(f"\n{'=' * 60}\n")


def print_ad_check(result: AdCheckResult) -> None:
    """Print an ad-copy check result in a formatted way."""
    print(f"\n{'=' * 60}")
    print(("✅ " if result.is_compliant else "⚠️  ") + result.message)
    print(f"{'=' * 60}")
    if not result.is_compliant:
        _print_summary(result.summary)
        _print_violations(result.violations)
    if result.compliant_content is not None:
        print(f"\n💡 Compliant version:\n\n{result.compliant_content}")
    print(f"\n{'=' * 60}\n")


def _emit(payload: dict, output_file: Optional[str]) -> None:
    output = json.dumps(payload, indent=2)
    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        print(f"Results written to {output_file}")
    else:
        print(output)


def scan_command(args) -> int:
    """Crawl a website and report violations."""
    overrides = {
        key: value
        for key, value in (
            ("max_pages", args.max_pages),
            ("max_depth", args.max_depth),
            ("timeout_ms", args.timeout_ms),
        )
        if value is not None
    }
    if args.include_subdomains:
        overrides["include_subdomains"] = True
    if args.ignore_robots:
        overrides["respect_robots_txt"] = False
    if args.exclude:
        overrides["exclude_patterns"] = args.exclude

    scan_config = ScanConfiguration.from_env()
    if overrides:
        scan_config = ScanConfiguration(**{**scan_config.model_dump(), **overrides})

    config = Config.from_env()
    if args.no_render:
        config.render_js = False

    def on_progress(url: str, completed: int, total: int) -> None:
        if args.output == "text":
            print(f"[{completed + 1}/{total}] {url}", file=sys.stderr)

    scanner = ComplianceScanner(config)
    report = asyncio.run(
        scanner.scan_website(
            args.url, scan_config, on_progress=on_progress, deadline=args.deadline
        )
    )

    if args.output == "json":
        _emit(report.to_dict(), args.output_file)
    else:
        print_scan_report(report)

    return 0 if report.status == "completed" else 2


def check_command(args) -> int:
    """Check ad copy for violations."""
    if args.file:
        with open(args.file) as f:
            text = f.read()
    elif args.text == "-" or args.text is None:
        text = sys.stdin.read()
    else:
        text = args.text

    scanner = ComplianceScanner(Config.from_env())
    result = scanner.check_ad_copy(text, title=args.title, rewrite=args.rewrite)

    if args.output == "json":
        _emit(result.to_dict(), args.output_file)
    else:
        print_ad_check(result)

    return 0 if result.is_compliant else 1


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        description="MediGuard - Scan healthcare websites and ad copy for advertising compliance"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper() if settings.LOG_LEVEL else "INFO",
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only show warnings and errors on the console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Scan command parser
    scan_parser = subparsers.add_parser(
        "scan", help="Crawl a website and report compliance violations."
    )
    scan_parser.add_argument("url", help="Seed URL of the website to scan")
    scan_parser.add_argument(
        "--max-pages", type=int, help="Maximum pages to crawl (default: 10)"
    )
    scan_parser.add_argument(
        "--max-depth", type=int, help="Maximum link depth from the seed (default: 2)"
    )
    scan_parser.add_argument(
        "--timeout-ms", type=int, help="Per-page navigation timeout in milliseconds"
    )
    scan_parser.add_argument(
        "--include-subdomains",
        action="store_true",
        help="Treat subdomains of the seed host as part of the site",
    )
    scan_parser.add_argument(
        "--exclude",
        action="append",
        help="Path pattern to skip (repeatable; replaces the defaults)",
    )
    scan_parser.add_argument(
        "--ignore-robots",
        action="store_true",
        help="Do not check robots.txt",
    )
    scan_parser.add_argument(
        "--no-render",
        action="store_true",
        help="Fetch static HTML only (no browser)",
    )
    scan_parser.add_argument(
        "--deadline",
        type=float,
        help="Stop crawling and analysis after this many seconds",
    )
    _add_output_args(scan_parser)
    scan_parser.set_defaults(func=scan_command)

    # Check command parser
    check_parser = subparsers.add_parser(
        "check", help="Check ad copy for compliance violations."
    )
    check_parser.add_argument(
        "text", nargs="?", help="Ad copy to check ('-' or omitted reads stdin)"
    )
    check_parser.add_argument("--file", help="Read ad copy from a file")
    check_parser.add_argument("--title", help="Optional headline")
    check_parser.add_argument(
        "--rewrite",
        action="store_true",
        help="Also generate a compliant version of the copy",
    )
    _add_output_args(check_parser)
    check_parser.set_defaults(func=check_command)

    return parser


def _add_output_args(subparser) -> None:
    subparser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    subparser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (only for json format)",
    )


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
        quiet=args.quiet,
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        exit_code = args.func(args)
    except (ComplianceScanError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
