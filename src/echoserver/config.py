"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables of the echo server live in one dataclass. Components receive
the config object instead of reading globals or the environment themselves,
which keeps them easy to construct in tests:

    config = ServerConfig(host="127.0.0.1", port=0)   # OS picks a free port
    server = EchoServer(config)

=============================================================================
WHERE VALUES COME FROM
=============================================================================

    1. Defaults in this file      port 54000 on all interfaces
    2. Environment variables      ServerConfig.from_env()
    3. Command line flags         python -m echoserver --port 7000

Later sources override earlier ones. Whatever the source, validate() runs
once at startup so a bad value fails immediately rather than on the first
connection.

=============================================================================
"""

import os
import socket
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass
class ServerConfig:
    """
    Configuration for the echo server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, reuse_address, accept_timeout

    ECHO SETTINGS
    - buffer_size, resolve_names

    LIFECYCLE
    - shutdown_grace

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    IPv4 address to bind to. "0.0.0.0" accepts on every local interface.
    """

    port: int = 54000
    """
    Port to listen on. 0 asks the OS for any free port (used by tests).
    """

    backlog: int = socket.SOMAXCONN
    """
    Length of the kernel's pending-connection queue.
    """

    reuse_address: bool = True
    """
    Set SO_REUSEADDR so a restart does not fail while old connections
    sit in TIME_WAIT.
    """

    accept_timeout: Optional[float] = 1.0
    """
    How long one accept() call may block before the loop re-checks the
    running flag. Shutdown closes the listening socket, which normally wakes
    accept() at once; the timeout bounds the latency on platforms where it
    does not. None means plain blocking accept().
    """

    # ─────────────────────────────────────────────────────────────────────
    # ECHO SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 4096
    """
    Capacity of the transfer chunk: the most bytes read (and then echoed)
    in one iteration of a connection's loop.
    """

    resolve_names: bool = True
    """
    Try a reverse lookup of each peer for the "connected" log line. Falls
    back to the numeric address whenever the lookup fails.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE
    # ─────────────────────────────────────────────────────────────────────

    shutdown_grace: float = 5.0
    """
    Seconds to wait for open connections to finish after shutdown before
    the process exits anyway.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    log_format: str = "text"
    """
    Format of the per-connection summary line: 'text' or 'json'.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        ECHO_HOST           Bind address (default: 0.0.0.0)
        ECHO_PORT           Port (default: 54000)
        ECHO_BACKLOG        Listen backlog (default: SOMAXCONN)
        ECHO_BUFFER_SIZE    Transfer chunk size (default: 4096)
        ECHO_RESOLVE_NAMES  Reverse-resolve peers, 0/1 (default: 1)
        ECHO_LOG_LEVEL      Logging level (default: INFO)
        ECHO_LOG_FORMAT     text or json (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("ECHO_HOST", "0.0.0.0"),
            port=int(os.getenv("ECHO_PORT", "54000")),
            backlog=int(os.getenv("ECHO_BACKLOG", str(socket.SOMAXCONN))),
            buffer_size=int(os.getenv("ECHO_BUFFER_SIZE", "4096")),
            resolve_names=_env_flag("ECHO_RESOLVE_NAMES", True),
            log_level=os.getenv("ECHO_LOG_LEVEL", "INFO"),
            log_format=os.getenv("ECHO_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.accept_timeout is not None and self.accept_timeout <= 0:
            raise ValueError("accept_timeout must be > 0")

        if self.shutdown_grace < 0:
            raise ValueError("shutdown_grace must be >= 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}. Use 'text' or 'json'.")
