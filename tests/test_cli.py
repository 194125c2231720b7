"""Tests for cli module."""

import os
import signal

import pytest

from dirwatch import cli
from dirwatch.config import WatcherConfig
from dirwatch.exceptions import ConfigurationError
from dirwatch.models import compute_identity


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DIRWATCH_DIRECTORY",
        "DIRWATCH_POLL_INTERVAL_MS",
        "DIRWATCH_IGNORE",
        "DIRWATCH_REPORT_EXISTING",
    ):
        monkeypatch.delenv(name, raising=False)


class TestParser:
    """Tests for argument parsing."""

    def test_watch_defaults(self):
        args = cli.build_parser().parse_args(["watch", "./TestFolder"])

        assert args.command == "watch"
        assert args.directory == "./TestFolder"
        assert args.interval is None
        assert args.observers == 3
        assert args.baseline is False
        assert args.func is cli.cmd_watch

    def test_watch_options(self):
        args = cli.build_parser().parse_args([
            "-v", "watch", "docs",
            "--interval", "500",
            "--ignore", "*.tmp", "*~",
            "--observers", "1",
            "--baseline",
            "--no-directories",
        ])

        assert args.verbose is True
        assert args.interval == 500
        assert args.ignore == ["*.tmp", "*~"]
        assert args.observers == 1
        assert args.baseline is True
        assert args.no_directories is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestBuildConfig:
    """Tests for merging environment and flags."""

    def test_flags_override_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DIRWATCH_DIRECTORY", "/from/env")
        monkeypatch.setenv("DIRWATCH_POLL_INTERVAL_MS", "9000")
        args = cli.build_parser().parse_args([
            "watch", str(tmp_path), "--interval", "100", "--baseline",
        ])

        config = cli.build_config(args)

        assert config.directory == tmp_path
        assert config.poll_interval_ms == 100
        assert config.report_existing is False

    def test_environment_used_without_flags(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DIRWATCH_DIRECTORY", str(tmp_path))
        monkeypatch.setenv("DIRWATCH_IGNORE", "*.tmp")
        args = cli.build_parser().parse_args(["watch"])

        config = cli.build_config(args)

        assert config.directory == tmp_path
        assert config.ignore_patterns == ["*.tmp"]
        assert config.poll_interval_ms == WatcherConfig().poll_interval_ms

    def test_invalid_interval(self, tmp_path):
        args = cli.build_parser().parse_args(["watch", str(tmp_path), "--interval", "0"])

        with pytest.raises(ConfigurationError):
            cli.build_config(args)


class TestMain:
    """Tests for the main entry point."""

    def test_snapshot_command(self, tmp_path, capsys):
        path = tmp_path / "a.txt"
        path.write_text("0123456789")
        (tmp_path / "skip.tmp").write_text("x")

        code = cli.main(["snapshot", str(tmp_path), "--ignore", "*.tmp"])

        st = os.stat(path)
        out = capsys.readouterr().out
        assert code == 0
        assert out == f"a.txt\t10\t{st.st_mtime_ns}\t{compute_identity(st)}\n"

    def test_snapshot_missing_directory(self, tmp_path):
        assert cli.main(["snapshot", str(tmp_path / "missing")]) == 1

    def test_watch_missing_directory(self, tmp_path):
        handler = signal.getsignal(signal.SIGINT)

        assert cli.main(["watch", str(tmp_path / "missing")]) == 1
        # Refused before any signal handler is installed
        assert signal.getsignal(signal.SIGINT) is handler

    def test_watch_without_directory(self):
        assert cli.main(["watch"]) == 1

    def test_invalid_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DIRWATCH_POLL_INTERVAL_MS", "soon")

        assert cli.main(["snapshot", str(tmp_path)]) == 1
