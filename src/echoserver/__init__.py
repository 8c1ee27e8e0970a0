"""
=============================================================================
ECHOSERVER - Multi-client TCP Echo Server
=============================================================================

Accepts TCP connections and writes every byte it receives straight back to
the sender, for as many simultaneous clients as connect, until they hang up
or the server is told to stop.

    $ python -m echoserver
    2026-10-19 06:30:00 [INFO] echoserver.server: Server listening on 0.0.0.0:54000

    $ nc 127.0.0.1 54000
    hello
    hello

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    echoserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m echoserver)
    ├── server.py            # EchoServer: bootstrap, threads, signals
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # StartupError and error formatting
    ├── logs.py              # Logging setup, connection summaries
    └── core/
        ├── state.py         # ServerState: running flag, shutdown trigger
        ├── socket_server.py # Listening socket + accept loop
        ├── connection.py    # Accepted client socket wrapper
        └── handler.py       # Per-connection echo loop

=============================================================================
QUICK START
=============================================================================

    from echoserver import EchoServer, ServerConfig

    server = EchoServer(ServerConfig(port=54000))
    raise SystemExit(server.run())   # Ctrl+C to stop

=============================================================================
"""

__version__ = "1.0.0"

from .server import EchoServer
from .config import ServerConfig
from .core import ServerState
from .errors import EchoServerError, StartupError

__all__ = [
    "EchoServer",
    "ServerConfig",
    "ServerState",
    "EchoServerError",
    "StartupError",
    "__version__",
]
