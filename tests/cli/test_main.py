"""Tests for the sessionsort command."""

from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from sessionsort.cli.main import SetupFailed, cli
from sessionsort.jobs.organize import SetupError
from sessionsort.models.run import EXIT_SETUP_ERROR, RunStatus, RunSummary

BASE = datetime(2024, 3, 5, 10, 0, 0)


@pytest.fixture(autouse=True)
def mock_setup_logging():
    """Keep CliRunner's temporary streams out of the root logger."""
    with patch("sessionsort.cli.main.setup_logging") as mock:
        yield mock


@pytest.fixture
def shoot(photo_factory, tmp_path) -> Path:
    for name, minutes in [("a.jpg", 0), ("b.jpg", 30), ("c.jpg", 240), ("d.jpg", 250)]:
        photo_factory(name, BASE + timedelta(minutes=minutes))
    return tmp_path / "source"


class TestSessionsortCLI:
    """Tests for the sessionsort entry point."""

    def test_sorts_into_sessions(self, shoot: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        destination = tmp_path / "dest"

        result = runner.invoke(
            cli,
            [
                str(shoot),
                str(destination),
                "--policy",
                "gap",
                "--timestamp-source",
                "mtime",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "COPYING SESSION 1 OF 2: 2024-03-05-10-00-00 (2 files)..." in result.output
        assert "4 copied, 0 skipped, 0 failed (2 of 2 sessions)" in result.output
        assert (destination / "2024-03-05-14-00-00" / "d.jpg").exists()

    def test_second_run_skips(self, shoot: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        args = [
            str(shoot),
            str(tmp_path / "dest"),
            "--policy",
            "gap",
            "--timestamp-source",
            "mtime",
        ]

        runner.invoke(cli, args)
        result = runner.invoke(cli, args)

        assert result.exit_code == 0
        assert "Destination file already exists. Skipping..." in result.output
        assert "0 copied, 4 skipped" in result.output

    def test_dry_run(self, shoot: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        destination = tmp_path / "dest"

        result = runner.invoke(
            cli,
            [
                str(shoot),
                str(destination),
                "--policy",
                "gap",
                "--timestamp-source",
                "mtime",
                "--dry-run",
            ],
        )

        assert result.exit_code == 0
        assert "PLANNED SESSION 1 OF 2" in result.output
        assert "Dry run: 4 files in 2 sessions" in result.output
        assert list(destination.iterdir()) == []

    def test_missing_source(self, tmp_path: Path) -> None:
        runner = CliRunner()

        result = runner.invoke(cli, [str(tmp_path / "nope"), str(tmp_path / "dest")])

        assert result.exit_code == EXIT_SETUP_ERROR
        assert "Source directory does not exist" in result.output

    def test_unknown_policy_is_usage_error(self, tmp_path: Path) -> None:
        runner = CliRunner()

        result = runner.invoke(
            cli, [str(tmp_path), str(tmp_path / "dest"), "--policy", "kmeans"]
        )

        assert result.exit_code == 2

    def test_invalid_setting_is_usage_error(self, tmp_path: Path) -> None:
        runner = CliRunner()

        result = runner.invoke(
            cli, [str(tmp_path), str(tmp_path / "dest"), "--min-points", "0"]
        )

        assert result.exit_code == 2

    def test_missing_arguments(self) -> None:
        result = CliRunner().invoke(cli, [])

        assert result.exit_code == 2

    @patch("sessionsort.cli.main.organize")
    def test_cancelled_run_exits_130(
        self, mock_organize: MagicMock, tmp_path: Path
    ) -> None:
        mock_organize.return_value = RunSummary(
            status=RunStatus.CANCELLED, group_count=3, groups_started=1, copied=2
        )
        runner = CliRunner()

        result = runner.invoke(cli, [str(tmp_path), str(tmp_path / "dest")])

        assert result.exit_code == 130
        assert "2 copied, 0 skipped, 0 failed (1 of 3 sessions)" in result.output

    @patch("sessionsort.cli.main.organize")
    def test_options_reach_settings(
        self, mock_organize: MagicMock, tmp_path: Path, mock_setup_logging: MagicMock
    ) -> None:
        mock_organize.return_value = RunSummary()
        runner = CliRunner()

        result = runner.invoke(
            cli,
            [
                str(tmp_path),
                str(tmp_path / "dest"),
                "--policy",
                "density",
                "--min-points",
                "3",
                "--epsilon-hours",
                "1.5",
                "--noise",
                "drop",
                "--workers",
                "4",
                "--no-preserve-metadata",
                "--log-level",
                "debug",
            ],
        )

        assert result.exit_code == 0, result.output
        settings = mock_organize.call_args.kwargs["settings"]
        assert settings.min_points == 3
        assert settings.epsilon_seconds == 5400.0
        assert settings.noise_policy.value == "drop"
        assert settings.max_workers == 4
        assert settings.preserve_metadata is False
        mock_setup_logging.assert_called_once_with("DEBUG")

    @patch("sessionsort.cli.main.organize")
    def test_setup_error_exit_code(
        self, mock_organize: MagicMock, tmp_path: Path
    ) -> None:
        mock_organize.side_effect = SetupError("Cannot write to destination directory")
        runner = CliRunner()

        result = runner.invoke(cli, [str(tmp_path), str(tmp_path / "dest")])

        assert SetupFailed.exit_code == EXIT_SETUP_ERROR
        assert result.exit_code == EXIT_SETUP_ERROR
        assert "Cannot write to destination directory" in result.output
