"""
Tests for CLI functionality.

These tests verify the command-line interface logic with the flows mocked out.
"""

from __future__ import annotations

import argparse
import unittest.mock
from io import StringIO
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
import requests

from peninsula_predators.cli import (
    cmd_analyze,
    cmd_fetch,
    cmd_info,
    cmd_refresh,
    cmd_report,
    cmd_serve,
    create_parser,
    main,
)
from peninsula_predators.errors import SurveyDataError

if TYPE_CHECKING:
    from pathlib import Path


def _mock_server() -> unittest.mock.MagicMock:
    server = unittest.mock.MagicMock()
    server.__enter__ = unittest.mock.Mock(return_value=server)
    server.__exit__ = unittest.mock.Mock(return_value=False)
    server.serve_forever = unittest.mock.Mock(side_effect=KeyboardInterrupt)
    return server


class TestCreateParser:
    """Tests for create_parser function."""

    def test_creates_parser(self) -> None:
        parser = create_parser()
        assert isinstance(parser, argparse.ArgumentParser)
        assert parser.prog == "peninsula-predators"

    def test_parser_has_version(self) -> None:
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["--version"])

    def test_parser_has_debug_flag(self) -> None:
        args = create_parser().parse_args(["--debug", "info"])
        assert args.debug is True

    def test_fetch_defaults(self) -> None:
        args = create_parser().parse_args(["fetch"])
        assert args.command == "fetch"
        assert args.source is None
        assert args.force is False

    def test_fetch_with_source(self) -> None:
        args = create_parser().parse_args(["fetch", "--source", "/tmp/survey", "--force"])
        assert args.source == "/tmp/survey"
        assert args.force is True

    def test_analyze_force(self) -> None:
        args = create_parser().parse_args(["analyze", "--force"])
        assert args.command == "analyze"
        assert args.force is True

    @pytest.mark.parametrize("command", ["info", "report", "refresh"])
    def test_simple_commands(self, command: str) -> None:
        args = create_parser().parse_args([command])
        assert args.command == command

    def test_serve_port(self) -> None:
        parser = create_parser()
        assert parser.parse_args(["serve"]).port is None
        assert parser.parse_args(["serve", "--port", "3000"]).port == 3000


class TestCmdInfo:
    """Tests for cmd_info function."""

    def test_prints_app_info(self) -> None:
        args = argparse.Namespace(debug=False)

        with patch("sys.stdout", new=StringIO()) as mock_stdout:
            exit_code = cmd_info(args)
            output = mock_stdout.getvalue()

        assert exit_code == 0
        assert "Application: peninsula-predators" in output
        assert "Survey source" in output
        assert "k_max" not in output

    def test_debug_prints_analysis_settings(self) -> None:
        args = argparse.Namespace(debug=True)

        with patch("sys.stdout", new=StringIO()) as mock_stdout:
            cmd_info(args)
            output = mock_stdout.getvalue()

        assert "k_max: 8" in output
        assert "gap_method: firstSEmax" in output


class TestCmdFetch:
    """Tests for cmd_fetch function."""

    def test_success(self) -> None:
        args = argparse.Namespace(source="/tmp/survey", force=True)

        with patch("peninsula_predators.cli.fetch_all") as mock_fetch:
            mock_fetch.return_value = {"stations": 3, "sightings": 5, "zooplankton": 4}
            assert cmd_fetch(args) == 0
            mock_fetch.assert_called_once_with(source="/tmp/survey", force=True)

    @pytest.mark.parametrize(
        "error",
        [FileNotFoundError("Survey table not found"), requests.ConnectionError("refused")],
    )
    def test_fetch_errors_return_one(self, error: Exception) -> None:
        args = argparse.Namespace(source=None, force=False)

        with (
            patch("peninsula_predators.cli.fetch_all", side_effect=error),
            patch("sys.stderr", new=StringIO()) as mock_stderr,
        ):
            assert cmd_fetch(args) == 1
            assert "Error:" in mock_stderr.getvalue()


class TestCmdAnalyze:
    """Tests for cmd_analyze function."""

    def test_complete(self) -> None:
        args = argparse.Namespace(force=False)

        with (
            patch("peninsula_predators.cli.analyze_all") as mock_analyze,
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            mock_analyze.return_value = {"skipped": False, "clusters": 3, "stations": 37}
            assert cmd_analyze(args) == 0
            assert "3 clusters, 37 stations" in mock_stdout.getvalue()

    def test_skipped(self) -> None:
        args = argparse.Namespace(force=False)

        with (
            patch("peninsula_predators.cli.analyze_all") as mock_analyze,
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            mock_analyze.return_value = {"skipped": True, "fingerprint": "abc"}
            assert cmd_analyze(args) == 0
            assert "current" in mock_stdout.getvalue()

    def test_passes_force(self) -> None:
        with patch("peninsula_predators.cli.analyze_all") as mock_analyze:
            mock_analyze.return_value = {"skipped": False}
            cmd_analyze(argparse.Namespace(force=True))
            mock_analyze.assert_called_once_with(force=True)

    def test_no_data_returns_one(self) -> None:
        with (
            patch("peninsula_predators.cli.analyze_all", return_value={"error": "no data"}),
            patch("sys.stderr", new=StringIO()),
        ):
            assert cmd_analyze(argparse.Namespace(force=False)) == 1

    def test_invalid_data_returns_one(self) -> None:
        error = SurveyDataError("sightings: rows with missing station_id")

        with (
            patch("peninsula_predators.cli.analyze_all", side_effect=error),
            patch("sys.stderr", new=StringIO()) as mock_stderr,
        ):
            assert cmd_analyze(argparse.Namespace(force=False)) == 1
            assert "missing station_id" in mock_stderr.getvalue()

    def test_analysis_error_returns_one(self) -> None:
        error = ValueError("n_components must be at least 1")

        with (
            patch("peninsula_predators.cli.analyze_all", side_effect=error),
            patch("sys.stderr", new=StringIO()) as mock_stderr,
        ):
            assert cmd_analyze(argparse.Namespace(force=False)) == 1
            assert "Analysis failed: n_components" in mock_stderr.getvalue()


class TestCmdReport:
    """Tests for cmd_report function."""

    def test_success(self) -> None:
        with (
            patch("peninsula_predators.cli.build_all") as mock_build,
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            mock_build.return_value = {"pages": 4, "output": "data/derived/site"}
            assert cmd_report(argparse.Namespace()) == 0
            assert "data/derived/site" in mock_stdout.getvalue()

    def test_no_results_returns_one(self) -> None:
        with (
            patch("peninsula_predators.cli.build_all", return_value={"error": "no data"}),
            patch("sys.stderr", new=StringIO()),
        ):
            assert cmd_report(argparse.Namespace()) == 1


class TestCmdRefresh:
    """Tests for cmd_refresh function."""

    def test_calls_fetch_analyze_build_in_order(self) -> None:
        call_order: list[str] = []

        def mock_fetch(**_kwargs: object) -> dict[str, object]:
            call_order.append("fetch")
            return {"stations": 1}

        def mock_analyze(**_kwargs: object) -> dict[str, object]:
            call_order.append("analyze")
            return {"skipped": True}

        def mock_build() -> dict[str, object]:
            call_order.append("build")
            return {"pages": 4, "output": "site"}

        with (
            patch("peninsula_predators.cli.fetch_all", side_effect=mock_fetch),
            patch("peninsula_predators.cli.analyze_all", side_effect=mock_analyze),
            patch("peninsula_predators.cli.build_all", side_effect=mock_build),
        ):
            exit_code = cmd_refresh(argparse.Namespace())

        assert exit_code == 0
        assert call_order == ["fetch", "analyze", "build"]

    def test_uses_configured_source(self) -> None:
        with (
            patch("peninsula_predators.cli.fetch_all", return_value={}) as mock_fetch,
            patch("peninsula_predators.cli.analyze_all", return_value={"skipped": True}),
            patch("peninsula_predators.cli.build_all", return_value={"output": "site"}),
        ):
            cmd_refresh(argparse.Namespace())
            mock_fetch.assert_called_once_with(source=None, force=False)

    def test_stops_after_failed_analysis(self) -> None:
        with (
            patch("peninsula_predators.cli.fetch_all", return_value={}),
            patch("peninsula_predators.cli.analyze_all", return_value={"error": "no data"}),
            patch("peninsula_predators.cli.build_all") as mock_build,
            patch("sys.stderr", new=StringIO()),
        ):
            assert cmd_refresh(argparse.Namespace()) == 1
            mock_build.assert_not_called()


class TestCmdServe:
    """Tests for cmd_serve function."""

    def test_missing_site_dir_returns_one(self, tmp_path: Path) -> None:
        args = argparse.Namespace(port=8080)

        with (
            patch("peninsula_predators.cli.get_settings") as mock_settings,
            patch("sys.stderr", new=StringIO()),
        ):
            mock_settings.return_value.data_dir = tmp_path
            assert cmd_serve(args) == 1

    def test_uses_port_from_args(self, tmp_path: Path) -> None:
        (tmp_path / "derived" / "site").mkdir(parents=True)
        args = argparse.Namespace(port=9999)

        with (
            patch("peninsula_predators.cli.get_settings") as mock_settings,
            patch(
                "peninsula_predators.cli.http.server.HTTPServer", return_value=_mock_server()
            ) as mock_ctor,
        ):
            mock_settings.return_value.data_dir = tmp_path
            assert cmd_serve(args) == 0
            assert mock_ctor.call_args[0][0] == ("", 9999)

    def test_uses_port_from_settings_when_none(self, tmp_path: Path) -> None:
        (tmp_path / "derived" / "site").mkdir(parents=True)
        args = argparse.Namespace(port=None)

        with (
            patch("peninsula_predators.cli.get_settings") as mock_settings,
            patch(
                "peninsula_predators.cli.http.server.HTTPServer", return_value=_mock_server()
            ) as mock_ctor,
        ):
            mock_settings.return_value.data_dir = tmp_path
            mock_settings.return_value.api_port = 5555
            cmd_serve(args)
            assert mock_ctor.call_args[0][0] == ("", 5555)


class TestMain:
    """Tests for main function."""

    def test_no_command_shows_help(self) -> None:
        with patch("sys.argv", ["peninsula-predators"]), patch("sys.stdout", new=StringIO()):
            assert main() == 0

    @pytest.mark.parametrize(
        ("argv", "handler"),
        [
            (["info"], "cmd_info"),
            (["fetch", "--force"], "cmd_fetch"),
            (["analyze"], "cmd_analyze"),
            (["report"], "cmd_report"),
            (["refresh"], "cmd_refresh"),
            (["serve", "--port", "8001"], "cmd_serve"),
        ],
    )
    def test_dispatches_to_handler(self, argv: list[str], handler: str) -> None:
        with (
            patch("sys.argv", ["peninsula-predators", *argv]),
            patch(f"peninsula_predators.cli.{handler}", return_value=0) as mock_cmd,
        ):
            assert main() == 0
            mock_cmd.assert_called_once()

    def test_unknown_command_shows_help(self) -> None:
        with (
            patch("sys.argv", ["peninsula-predators", "info"]),
            patch("peninsula_predators.cli.create_parser") as mock_parser,
        ):
            mock_parser.return_value.parse_args.return_value = argparse.Namespace(command="unknown")
            assert main() == 1
