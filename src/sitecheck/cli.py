"""
Command-line interface: crawl a site, check critical pages, check the homepage.

Exit status is 1 whenever a check finds a problem, so the commands can gate CI.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from sitecheck.checks import check_critical_pages, check_homepage
from sitecheck.config import Settings, load_settings
from sitecheck.core import POLITENESS_DELAY_S, SiteCrawler
from sitecheck.drivers import make_driver
from sitecheck.links import LinkValidator
from sitecheck.models import CrawlOptions, CrawlReport


def print_summary(report: CrawlReport) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("=" * 60 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 60 + "\n\n")

    sys.stderr.write(f"Total pages checked:    {len(report.visited)}\n")
    sys.stderr.write(f"Pages with errors:      {len(report.errors)}\n")
    sys.stderr.write(f"Broken links found:     {len(report.broken_links)}\n\n")

    if report.errors:
        sys.stderr.write("Page errors:\n")
        for error in report.errors:
            sys.stderr.write(f"  {error.url}: {error.error}\n")
        sys.stderr.write("\n")

    if report.broken_links:
        sys.stderr.write("Broken links:\n")
        for broken in report.broken_links:
            sys.stderr.write(f"  {broken.source_page}\n")
            sys.stderr.write(f"    Link:  {broken.link}\n")
            sys.stderr.write(f"    Text:  \"{broken.anchor_text}\"\n")
            sys.stderr.write(f"    Error: {broken.status or broken.error}\n\n")

    if report.ok:
        sys.stderr.write(f"All {len(report.visited)} pages and their links are working.\n\n")


def report_to_dict(report: CrawlReport) -> dict:
    payload = asdict(report)
    payload["ok"] = report.ok
    return payload


def generate_output_path(start_url: str) -> Path:
    """Generate output path: crawls/{hostname}_{datetime}.json"""
    parsed = urlparse(start_url)
    hostname = parsed.hostname or "unknown"
    # Sanitize hostname for filename (replace dots with underscores)
    hostname_safe = hostname.replace(".", "_")
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    crawls_dir = Path("crawls")
    crawls_dir.mkdir(exist_ok=True)

    return crawls_dir / f"{hostname_safe}_{timestamp}.json"


def write_output(json_text: str, out: Optional[str], start_url: str, verbose: bool) -> None:
    if out == "-":
        print(json_text)
        return
    # Auto-generate path if not specified
    output_path = Path(out) if out else generate_output_path(start_url)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json_text, encoding="utf-8")
    if verbose:
        sys.stderr.write(f"Results written to: {output_path}\n")


def build_parser() -> argparse.ArgumentParser:
    # Options shared by every subcommand, accepted after the subcommand name
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--base-url", help="Site root; links under it are internal (env: BASE_URL)")
    common.add_argument("--timeout", type=int, help="Navigation timeout in ms (env: TIMEOUT, default: 30000)")
    common.add_argument(
        "--driver",
        choices=("requests", "playwright"),
        default="requests",
        help="Browser driver to use (default: requests)",
    )
    common.add_argument("--verbose", action="store_true", help="Show progress and summary")

    parser = argparse.ArgumentParser(
        prog="sitecheck",
        description="Smoke-test a website: crawl internal pages and validate every link.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    crawl_p = sub.add_parser("crawl", parents=[common], help="Crawl all internal pages and validate their links")
    crawl_p.add_argument("start_url", nargs="?", help="Start URL (default: base URL)")
    crawl_p.add_argument("--max-pages", type=int, help="Maximum pages to visit (env: MAX_PAGES, default: 50)")
    crawl_p.add_argument(
        "--skip-external",
        action="store_true",
        default=None,
        help="Do not validate external links (env: SKIP_EXTERNAL=true)",
    )
    crawl_p.add_argument(
        "--exclude",
        action="append",
        metavar="PATTERN",
        help="Skip URLs containing PATTERN; repeatable (env: EXCLUDE_PATTERNS)",
    )
    crawl_p.add_argument(
        "--delay",
        type=float,
        default=POLITENESS_DELAY_S,
        help=f"Pause between pages in seconds (default: {POLITENESS_DELAY_S})",
    )
    crawl_p.add_argument("--out", help="Output file path, or '-' for stdout (default: auto-generated in crawls/)")
    crawl_p.add_argument("--pretty", action="store_true", help="Pretty-print JSON")

    sub.add_parser("critical", parents=[common], help="Check that critical pages return HTTP 200 (env: CRITICAL_PAGES)")
    sub.add_parser("homepage", parents=[common], help="Check that the homepage loads with a title and content")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Let CLI flags win over environment settings."""
    if args.base_url:
        settings.base_url = args.base_url
    if args.timeout is not None:
        settings.timeout = args.timeout
    if getattr(args, "max_pages", None) is not None:
        settings.max_pages = args.max_pages
    if getattr(args, "skip_external", None):
        settings.skip_external_links = True
    if getattr(args, "exclude", None):
        settings.exclude_patterns = tuple(args.exclude)
    return settings


def has_explicit_base_url(args: argparse.Namespace) -> bool:
    """Check if the base URL came from a flag or the environment (including .env)."""
    return bool(args.base_url or os.environ.get("BASE_URL"))


def run_crawl(settings: Settings, args: argparse.Namespace) -> int:
    start_url = args.start_url or settings.base_url
    if args.start_url and not has_explicit_base_url(args):
        # Without --base-url or BASE_URL the site is the one being started on
        settings.base_url = start_url
    elif not start_url.startswith(settings.base_url):
        sys.stderr.write(f"Start URL {start_url} is not under base URL {settings.base_url}\n")
        return 2
    options: CrawlOptions = settings.crawl_options()
    validator = LinkValidator(settings.social_media_domains, verbose=args.verbose)

    with make_driver(args.driver) as driver:
        crawler = SiteCrawler(
            driver,
            settings.base_url,
            validator=validator,
            timeout_ms=settings.timeout,
            delay_s=args.delay,
            verbose=args.verbose,
        )
        report = crawler.crawl(start_url, options)

    if args.verbose:
        print_summary(report)

    json_text = json.dumps(report_to_dict(report), ensure_ascii=False, indent=2 if args.pretty else None)
    write_output(json_text, args.out, start_url, args.verbose)
    return 0 if report.ok else 1


def run_critical(settings: Settings, args: argparse.Namespace) -> int:
    with make_driver(args.driver) as driver:
        results = check_critical_pages(
            driver,
            settings.base_url,
            settings.critical_pages,
            timeout_ms=settings.timeout,
            verbose=args.verbose,
        )
    failed = [r for r in results if not r.ok]
    for result in failed:
        sys.stderr.write(f"Critical page failed: {result.url} ({result.status or result.error})\n")
    return 1 if failed else 0


def run_homepage(settings: Settings, args: argparse.Namespace) -> int:
    with make_driver(args.driver) as driver:
        result = check_homepage(driver, settings.base_url, timeout_ms=settings.timeout)
    if args.verbose and result.ok:
        sys.stderr.write(f"Homepage OK: \"{result.title}\" ({result.body_length} characters)\n")
    for failure in result.failures:
        sys.stderr.write(f"Homepage check failed: {failure}\n")
    return 0 if result.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the sitecheck CLI."""
    args = build_parser().parse_args(argv)
    settings = apply_overrides(load_settings(), args)

    if args.command == "crawl":
        return run_crawl(settings, args)
    if args.command == "critical":
        return run_critical(settings, args)
    return run_homepage(settings, args)


if __name__ == "__main__":
    raise SystemExit(main())
