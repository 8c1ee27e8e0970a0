"""
Unit tests for the command line entry point.
"""

import pytest

from echoserver import __version__
from echoserver.__main__ import build_config, build_parser, main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ECHO_HOST", "ECHO_PORT", "ECHO_BACKLOG", "ECHO_BUFFER_SIZE",
                 "ECHO_RESOLVE_NAMES", "ECHO_LOG_LEVEL", "ECHO_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


def parse(*argv):
    return build_config(build_parser().parse_args(list(argv)))


class TestBuildConfig:
    """Tests for CLI flag handling."""

    def test_defaults(self):
        config = parse()
        assert config.host == "0.0.0.0"
        assert config.port == 54000
        assert config.resolve_names is True

    def test_flags_override(self):
        config = parse("--host", "127.0.0.1", "-p", "7000", "--buffer-size", "512",
                       "--no-resolve", "-l", "DEBUG", "--log-format", "json")

        assert config.host == "127.0.0.1"
        assert config.port == 7000
        assert config.buffer_size == 512
        assert config.resolve_names is False
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("ECHO_PORT", "6000")

        assert parse().port == 6000
        assert parse("--port", "6001").port == 6001


class TestMain:
    """Tests for main() argument errors."""

    def test_invalid_port_exits_with_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--port", "70000"])

        assert exc_info.value.code == 2
        assert "Invalid port" in capsys.readouterr().err

    def test_invalid_env_value_exits_with_usage_error(self, monkeypatch):
        monkeypatch.setenv("ECHO_PORT", "not-a-number")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out
