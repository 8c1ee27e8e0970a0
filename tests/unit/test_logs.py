"""
Unit tests for logging helpers.
"""

import errno

from echoserver.errors import StartupError, describe_error
from echoserver.logs import ConnectionLog


def make_entry(**overrides) -> ConnectionLog:
    values = dict(
        connection_id="1a2b3c4d",
        peer="localhost:51822",
        bytes_echoed=11,
        duration_ms=4.2149,
        close_reason="peer-closed",
    )
    values.update(overrides)
    return ConnectionLog(**values)


class TestConnectionLog:
    """Tests for ConnectionLog formatting."""

    def test_to_text(self):
        assert make_entry().to_text() == (
            "[1a2b3c4d] localhost:51822 closed (peer-closed) 11 bytes echoed in 4.21ms"
        )

    def test_to_dict_rounds_duration(self):
        entry = make_entry().to_dict()

        assert entry["duration_ms"] == 4.21
        assert entry["close_reason"] == "peer-closed"
        assert set(entry) == {"connection_id", "peer", "bytes_echoed", "duration_ms", "close_reason"}


class TestDescribeError:
    """Tests for OSError diagnostics."""

    def test_includes_errno(self):
        error = ConnectionResetError(errno.ECONNRESET, "Connection reset by peer")
        assert describe_error(error) == f"Connection reset by peer (errno={errno.ECONNRESET})"

    def test_without_errno(self):
        assert describe_error(ConnectionError("send() accepted 0 bytes")) == "send() accepted 0 bytes"

    def test_startup_error_keeps_errno(self):
        error = StartupError("bind() failed", errno.EADDRINUSE)
        assert error.errno == errno.EADDRINUSE
        assert str(error) == "bind() failed"
