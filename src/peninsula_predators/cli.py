"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import functools
import http.server
import sys
from typing import Any

import requests

from peninsula_predators import __version__
from peninsula_predators.config import get_settings
from peninsula_predators.errors import SurveyDataError
from peninsula_predators.flows.analyze import analyze_all
from peninsula_predators.flows.build import build_all
from peninsula_predators.flows.fetch import fetch_all


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="peninsula-predators",
        description="Marine predator community analysis for Antarctic Peninsula ship surveys",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info and analysis settings")

    fetch_parser = subparsers.add_parser("fetch", help="Fetch survey tables into data/raw")
    fetch_parser.add_argument(
        "--source",
        type=str,
        default=None,
        help="Base URL or directory of the survey CSVs (default: survey_source from settings)",
    )
    fetch_parser.add_argument(
        "--force",
        action="store_true",
        help="Re-fetch tables even if the cached copies are fresh",
    )

    analyze_parser = subparsers.add_parser("analyze", help="Run the analysis DAG")
    analyze_parser.add_argument(
        "--force",
        action="store_true",
        help="Recompute even if cached results are current",
    )

    subparsers.add_parser("report", help="Build the HTML reports from cached results")

    # 'refresh' command - fetch, analyze and build
    subparsers.add_parser("refresh", help="Fetch data, run the analysis and build the reports")

    # 'serve' command - serve built site locally
    serve_parser = subparsers.add_parser("serve", help="Serve the reports locally")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to serve on (default: api_port from settings)",
    )

    return parser


def _failed(result: dict[str, Any]) -> bool:
    return "error" in result


def cmd_info(args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug or args.debug}")
    print(f"Data directory: {settings.data_dir}")
    print(f"Survey source: {settings.survey_source}")
    if args.debug:
        for name, value in settings.analysis_params().items():
            print(f"  {name}: {value}")
    return 0


def cmd_fetch(args: argparse.Namespace) -> int:
    """Handle the 'fetch' command."""
    try:
        result = fetch_all(source=args.source, force=args.force)
    except (FileNotFoundError, requests.RequestException) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Fetched: {result}")
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Handle the 'analyze' command."""
    try:
        result = analyze_all(force=args.force)
    except SurveyDataError as exc:
        print(f"Invalid survey data: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Analysis failed: {exc}", file=sys.stderr)
        return 1
    if _failed(result):
        print("No survey data found. Run 'peninsula-predators fetch' first.", file=sys.stderr)
        return 1
    if result.get("skipped"):
        print("Analysis results are current.")
    else:
        clusters, stations = result.get("clusters"), result.get("stations")
        print(f"Analysis complete: {clusters} clusters, {stations} stations")
    return 0


def cmd_report(_args: argparse.Namespace) -> int:
    """Handle the 'report' command."""
    result = build_all()
    if _failed(result):
        print(
            "No analysis results found. Run 'peninsula-predators analyze' first.", file=sys.stderr
        )
        return 1
    print(f"Reports written to {result['output']}")
    return 0


def cmd_refresh(args: argparse.Namespace) -> int:
    """Handle the 'refresh' command: fetch, analyze, then build the reports."""
    settings = get_settings()
    print(f"Fetching survey tables from {settings.survey_source}...")
    args.source, args.force = None, False
    if cmd_fetch(args) != 0:
        return 1

    print("Running analysis...")
    if cmd_analyze(args) != 0:
        return 1

    print("Building reports...")
    if cmd_report(args) != 0:
        return 1

    print("Done.")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle the 'serve' command: serve the built reports locally."""
    settings = get_settings()
    port = args.port if args.port is not None else settings.api_port
    site_dir = settings.data_dir / "derived" / "site"

    if not site_dir.exists():
        print(
            "No site directory found. Run 'peninsula-predators refresh' first.", file=sys.stderr
        )
        return 1

    handler = functools.partial(http.server.SimpleHTTPRequestHandler, directory=str(site_dir))

    with http.server.HTTPServer(("", port), handler) as server:
        print(f"Serving reports on http://localhost:{port}/ (Ctrl+C to stop)")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            print("\nServer stopped.")

    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "fetch": cmd_fetch,
        "analyze": cmd_analyze,
        "report": cmd_report,
        "refresh": cmd_refresh,
        "serve": cmd_serve,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
