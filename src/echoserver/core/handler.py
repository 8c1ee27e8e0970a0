"""
=============================================================================
ECHO HANDLER
=============================================================================

Runs the echo loop for one connection on its own thread:

    ┌────────────────────────────────────────────────────────────────────┐
    │  log "Client connected: <peer>"                                     │
    │                                                                     │
    │  while state.running:                                               │
    │      data = recv(buffer_size)                                       │
    │      ├── b""        → log "Client disconnected"      → stop         │
    │      ├── OSError    → log "recv() failed (errno=N)"  → stop         │
    │      └── data       → send_all(data)                                │
    │                       └── OSError → log "send() failed" → stop      │
    │                                                                     │
    │  finally: close socket (exactly once), log connection summary       │
    └────────────────────────────────────────────────────────────────────┘

Every byte read in an iteration is written back in that same iteration,
before the next read. Nothing is carried between iterations and nothing is
shared between connections: each recv() returns a fresh bytes object that
goes out of scope once echoed.

A failure on one connection ends that connection only. Nothing raised in
here reaches the accept loop or any other handler.

=============================================================================
"""

import logging
from enum import Enum

from ..config import ServerConfig
from ..errors import describe_error
from ..logs import ConnectionLog, log_connection
from .connection import Connection
from .state import ServerState


logger = logging.getLogger(__name__)


class CloseReason(Enum):
    """Why a connection's echo loop ended."""
    PEER_CLOSED = "peer-closed"      # recv() returned b"" (orderly close)
    RECV_ERROR = "recv-error"        # recv() raised
    SEND_ERROR = "send-error"        # send() raised or accepted 0 bytes
    SHUTDOWN = "shutdown"            # running flag was cleared
    INTERNAL_ERROR = "internal-error"  # unexpected exception in the loop


class EchoHandler:
    """
    Echoes everything received on one connection back to it.

    Usage:
        handler = EchoHandler(conn, state, config)
        summary = handler.run()   # blocks until the connection ends
    """

    def __init__(self, conn: Connection, state: ServerState, config: ServerConfig):
        self.conn = conn
        self.state = state
        self.config = config
        self.close_reason = CloseReason.SHUTDOWN

    def run(self) -> ConnectionLog:
        """
        Run the echo loop until disconnect, I/O error, or shutdown.

        Always closes the connection. Never raises.

        Returns:
            The summary that was logged for this connection.
        """
        conn = self.conn
        peer = conn.peer_name(self.config.resolve_names)
        logger.info(f"[{conn.id}] Client connected: {peer}")

        try:
            self.close_reason = self._echo_loop()
        except Exception as e:
            logger.exception(f"[{conn.id}] Connection error: {e}")
            self.close_reason = CloseReason.INTERNAL_ERROR
        finally:
            conn.close()

        summary = ConnectionLog(
            connection_id=conn.id,
            peer=peer,
            bytes_echoed=conn.bytes_echoed,
            duration_ms=conn.age * 1000,
            close_reason=self.close_reason.value,
        )
        log_connection(summary, self.config.log_format)
        return summary

    def _echo_loop(self) -> CloseReason:
        conn = self.conn
        buffer_size = self.config.buffer_size

        while self.state.running:
            try:
                data = conn.recv_chunk(buffer_size)
            except OSError as e:
                logger.error(f"[{conn.id}] recv() failed: {describe_error(e)}")
                return CloseReason.RECV_ERROR

            if not data:
                logger.info(f"[{conn.id}] Client disconnected")
                return CloseReason.PEER_CLOSED

            try:
                conn.send_all(data)
            except OSError as e:
                logger.error(f"[{conn.id}] send() failed: {describe_error(e)}")
                return CloseReason.SEND_ERROR

        logger.debug(f"[{conn.id}] Server shutting down, closing connection")
        return CloseReason.SHUTDOWN
