"""
=============================================================================
LISTENING SOCKET AND ACCEPT LOOP
=============================================================================

SocketServer owns the listening socket. It binds, listens, and then sits in
accept() handing every new client to a callback. It never reads from or
writes to a client itself, so one slow client can never stop the next one
from being accepted.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create an IPv4 stream socket
    2. setsockopt  SO_REUSEADDR so restarts don't hit "Address in use"
    3. bind()      Reserve HOST:PORT
    4. listen()    Start queueing incoming connections (backlog)
    5. accept()    Block until a client arrives, get a NEW socket for it
    6. close()     Done by ServerState.request_shutdown(), exactly once

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── one per server
                    │   0.0.0.0:54000       │     never carries data
                    └───────────┬───────────┘
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │Connection │         │Connection │         │Connection │
    │ + thread  │         │ + thread  │         │ + thread  │
    └───────────┘         └───────────┘         └───────────┘

=============================================================================
WHEN accept() FAILS
=============================================================================

    running?   meaning                        action
    ────────   ────────────────────────────   ─────────────────────
    False      we closed the socket ourselves  leave the loop, silent
    True       transient error (EMFILE, ...)   log it, keep accepting

The loop only stops when the running flag is false at the moment accept()
returns.

=============================================================================
"""

import socket
import logging
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from ..errors import StartupError, describe_error
from .connection import Connection
from .state import ServerState


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Listening socket plus accept loop.

    Usage:
        state = ServerState()
        server = SocketServer(config, state)
        if server.open():                  # bind + listen, may raise StartupError
            server.serve(spawn_handler)    # blocks until state.request_shutdown()

    `connection_handler` receives each accepted Connection and must return
    without doing any I/O on it (start a thread and return).
    """

    def __init__(self, config: ServerConfig, state: ServerState):
        self.config = config
        self.state = state
        self._socket: Optional[socket.socket] = None
        self._address: Optional[Tuple[str, int]] = None

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port). Reflects the real port when config.port is 0.
        """
        if self._address is not None:
            return self._address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        if self.config.reuse_address:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # accept() wakes up at least this often to re-check the flag
        sock.settimeout(self.config.accept_timeout)
        return sock

    def open(self) -> bool:
        """
        Create, bind and listen.

        Returns:
            False if shutdown was requested before the listener came up; the
            socket is closed again and serve() returns at once.

        Raises:
            StartupError: Any step failed. The half-built socket is closed.
        """
        try:
            sock = self._create_socket()
        except OSError as e:
            raise StartupError(f"socket() failed: {describe_error(e)}", e.errno) from e

        try:
            sock.bind((self.config.host, self.config.port))
        except OSError as e:
            sock.close()
            raise StartupError(
                f"bind() to {self.config.host}:{self.config.port} failed: {describe_error(e)}",
                e.errno,
            ) from e

        try:
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            raise StartupError(f"listen() failed: {describe_error(e)}", e.errno) from e

        self._address = sock.getsockname()[:2]

        if not self.state.attach_listener(sock):
            # Shutdown arrived before we were up; nothing will ever close it
            sock.close()
            logger.debug("Shutdown requested before listener started")
            return False

        self._socket = sock
        return True

    def serve(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Accept connections until shutdown is requested.

        Args:
            connection_handler: Called with every accepted Connection.
        """
        if self._socket is None:
            if self.state.shutdown_requested:
                return  # Stopped before or while opening
            raise RuntimeError("open() must be called before serve()")

        while self.state.running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self.state.running:
                    break  # Listener closed by request_shutdown()
                logger.error(f"accept() failed: {describe_error(e)}")
                continue

            conn = Connection(socket=client_socket, address=client_address[:2])

            if not self.state.running:
                # Raced with shutdown; don't start work we were told to stop
                conn.close()
                break

            logger.debug(f"[{conn.id}] Accepted connection from {conn.client_ip}:{conn.client_port}")
            connection_handler(conn)

        self._socket = None
        logger.debug("Accept loop finished")
