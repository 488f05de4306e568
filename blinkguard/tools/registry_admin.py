"""
Registry admin CLI.

Operates directly on the configured registry store (JSON file or SQL, see
config.env) and prints JSON to stdout.

Usage:
    python -m blinkguard.tools.registry_admin list [--verified-only]
    python -m blinkguard.tools.registry_admin check URL
    python -m blinkguard.tools.registry_admin report URL REASON REPORTED_BY
    python -m blinkguard.tools.registry_admin verify URL
    python -m blinkguard.tools.registry_admin unverify URL
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from blinkguard.analysis_engine.service import SafetyAnalysisService
from blinkguard.config.settings import Settings, get_settings
from blinkguard.core.exceptions import BlinkGuardError
from blinkguard.guard_logging import configure_structlog, get_logger
from blinkguard.registry.store import open_registry_store

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and moderate the BlinkGuard malicious-URL registry.")
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="Print all registry entries")
    list_cmd.add_argument("--verified-only", action="store_true", help="Only print verified entries")

    check_cmd = sub.add_parser("check", help="Check a URL against verified entries")
    check_cmd.add_argument("url")

    report_cmd = sub.add_parser("report", help="Add an unverified report")
    report_cmd.add_argument("url")
    report_cmd.add_argument("reason")
    report_cmd.add_argument("reported_by")

    for name, help_text in (("verify", "Mark an entry verified"), ("unverify", "Clear the verified flag")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("url")
    return parser


def run(args: argparse.Namespace, service: SafetyAnalysisService) -> tuple[int, Any]:
    """Execute one command; returns (exit code, JSON-serializable output)."""
    if args.command == "list":
        entries = service.registry()
        if args.verified_only:
            entries = [e for e in entries if e.verified]
        return 0, [e.to_dict() for e in entries]
    if args.command == "check":
        return 0, service.check_url(args.url).to_dict()
    if args.command == "report":
        entry = service.report_url(args.url, args.reason, args.reported_by)
        return 0, {"success": True, "entry": entry.to_dict()}
    if args.command in ("verify", "unverify"):
        updated = service.verify_url(args.url, args.command == "verify")
        return (0 if updated else 1), {"url": args.url, "updated": updated}
    raise ValueError(f"unknown command {args.command}")


def main(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    # stdout carries the JSON result
    configure_structlog(settings.log_level, settings.log_format, stream=sys.stderr)
    try:
        with open_registry_store(settings) as store:
            code, output = run(args, SafetyAnalysisService(store))
    except BlinkGuardError as e:
        logger.error("registry_admin_failed", command=args.command, error=e.message)
        print(json.dumps({"error": e.to_dict()}), file=sys.stderr)
        return 2
    print(json.dumps(output, indent=2))
    return code


if __name__ == "__main__":
    sys.exit(main())
