"""
=============================================================================
SHARED SERVER STATE AND SHUTDOWN
=============================================================================

One ServerState object is created per server and handed to every
component that needs to know whether the server is still running:

                          ┌──────────────────┐
          attach_listener │   ServerState    │ request_shutdown
    SocketServer ────────►│  running (flag)  │◄──────── signal handler,
                          │  listen socket   │          any thread
                          └────────┬─────────┘
                                   │ running?
                  ┌────────────────┼────────────────┐
                  ▼                ▼                ▼
            accept loop       EchoHandler      EchoHandler ...

=============================================================================
HOW SHUTDOWN UNBLOCKS accept()
=============================================================================

The accept loop spends nearly all of its life blocked inside accept().
Flipping a flag alone would not wake it, so request_shutdown() also shuts
down and closes the listening socket. The blocked accept() then fails with
an OSError; the loop sees running == False and leaves quietly.

Connections are NOT touched. Each handler notices the cleared flag at the
top of its next iteration, so shutdown waits for at most one pending read
per open connection.

=============================================================================
"""

import socket
import threading
import logging
from typing import Optional


logger = logging.getLogger(__name__)


class ServerState:
    """
    Running flag plus the listening socket, shared by reference.

    request_shutdown() may be called from a signal handler, from any thread,
    and any number of times. Only the first call has an effect.
    """

    def __init__(self):
        # Event gives an atomic flag plus wait() for free
        self._running = threading.Event()
        self._shutdown_requested = False

        # Reentrant: a signal handler runs on the main thread and may
        # interrupt the main thread while it already holds this lock.
        self._lock = threading.RLock()

        self._listen_socket: Optional[socket.socket] = None
        self._stopped = threading.Event()

    @property
    def running(self) -> bool:
        """True while the listener is up and shutdown has not been requested."""
        return self._running.is_set()

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    @property
    def listen_socket(self) -> Optional[socket.socket]:
        return self._listen_socket

    def attach_listener(self, sock: socket.socket) -> bool:
        """
        Record the bound, listening socket and mark the server running.

        Returns:
            False if shutdown was requested before the listener came up.
            The caller still owns `sock` in that case and must close it
            (closing an already closed socket is harmless).
        """
        with self._lock:
            if self._shutdown_requested:
                return False
            self._listen_socket = sock
            self._running.set()

            # A signal handler on this thread can run request_shutdown()
            # anywhere above; the RLock does not keep it out.
            if self._shutdown_requested:
                self._running.clear()
                if self._listen_socket is sock:
                    self._listen_socket = None
                return False
            return True

    def request_shutdown(self) -> bool:
        """
        Stop the server: clear the running flag and close the listener.

        Returns:
            True for the call that performed the transition, False for
            every later call.
        """
        with self._lock:
            if self._shutdown_requested:
                return False
            self._shutdown_requested = True
            self._running.clear()

            sock, self._listen_socket = self._listen_socket, None
            self._stopped.set()

        if sock is not None:
            _close_listener(sock)
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown is requested. Returns False on timeout."""
        return self._stopped.wait(timeout)


def _close_listener(sock: socket.socket) -> None:
    # shutdown() is what wakes a thread blocked in accept() on Linux;
    # close() alone leaves it sleeping on the old descriptor.
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass  # Listening sockets are "not connected" on some platforms

    try:
        sock.close()
    except OSError as e:
        logger.debug(f"Closing listening socket failed: {e}")
