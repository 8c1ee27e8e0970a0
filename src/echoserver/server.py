"""
=============================================================================
ECHO SERVER
=============================================================================

EchoServer wires the core components together and owns the process-level
lifecycle: logging the startup line, spawning one thread per connection,
installing signal handlers, and tearing everything down.

=============================================================================
LIFECYCLE
=============================================================================

    run()
     ├──► install signal handlers (SIGINT, SIGTERM, SIGHUP / SIGBREAK)
     ├──► start()
     │      └──► SocketServer.open()      bind + listen
     │           log "Server listening on 0.0.0.0:54000"
     │
     ├──► serve_forever()                 blocks in the accept loop
     │      └──► per connection: Thread(EchoHandler.run)
     │
     │   ... Ctrl+C / SIGTERM / shutdown() from another thread ...
     │      └──► ServerState.request_shutdown()
     │           └──► running = False, listener closed, accept() wakes
     │
     └──► teardown
            ├──► wait up to shutdown_grace for open connections
            ├──► restore signal handlers
            └──► log "Server stopped", return 0

    A startup failure (socket, bind, listen) is logged and run() returns 1.

=============================================================================
CONCURRENCY MODEL
=============================================================================

One thread for the accept loop, plus one daemon thread per connection.
There is no pool and no cap: every accepted client gets its own thread
immediately. Handler threads are daemons so a client that never sends
anything again cannot keep the process alive past shutdown_grace.

=============================================================================
"""

import signal
import threading
import time
import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import ServerState, SocketServer, Connection, EchoHandler
from .errors import StartupError


logger = logging.getLogger(__name__)


# Interactive interrupt, termination, console close/hangup, console break
SHUTDOWN_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM", "SIGHUP", "SIGBREAK")
    if hasattr(signal, name)
)


class EchoServer:
    """
    Multi-client TCP echo server.

    Usage:
        server = EchoServer(ServerConfig(port=54000))
        exit_code = server.run()       # blocks until Ctrl+C / SIGTERM

    Embedding (e.g. in tests):
        server = EchoServer(ServerConfig(host="127.0.0.1", port=0))
        server.start()
        thread = threading.Thread(target=server.serve_forever)
        thread.start()
        ...
        server.shutdown()
        thread.join()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self.state = ServerState()
        self._socket_server = SocketServer(self.config, self.state)

        # Live handler threads, so teardown can wait for them
        self._handlers: set[threading.Thread] = set()
        self._handlers_lock = threading.Lock()

        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self.state.running

    @property
    def active_connections(self) -> int:
        with self._handlers_lock:
            return len(self._handlers)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> bool:
        """
        Bind and listen.

        Returns:
            False if shutdown() was called first. Nothing is listening then
            and serve_forever() returns at once.

        Raises:
            StartupError: The listening socket could not be set up.
        """
        if not self._socket_server.open():
            logger.info("Shutdown requested before startup, not listening")
            return False

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        return True

    def serve_forever(self) -> None:
        """Run the accept loop on the calling thread until shutdown."""
        self._socket_server.serve(self._spawn_handler)

    def shutdown(self) -> bool:
        """
        Request shutdown. Safe from any thread or signal handler, any number
        of times.

        Returns:
            True if this call initiated the shutdown.
        """
        first = self.state.request_shutdown()
        if first:
            logger.info("Shutting down...")
        return first

    def wait_for_connections(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for open connection threads to finish.

        Returns:
            True if all finished, False if some were still running at timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            with self._handlers_lock:
                pending = list(self._handlers)
            if not pending:
                return True

            for thread in pending:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                thread.join(remaining)
                if deadline is not None and time.monotonic() >= deadline:
                    return self.active_connections == 0

    def run(self) -> int:
        """
        Start, serve until a shutdown request, and tear down.

        Returns:
            Process exit status: 0 after a clean shutdown, 1 if the server
            could not start.
        """
        self._install_signal_handlers()
        try:
            try:
                self.start()
            except StartupError as e:
                logger.error(f"Failed to start server: {e}")
                return 1

            try:
                self.serve_forever()
            finally:
                self.shutdown()
                if not self.wait_for_connections(self.config.shutdown_grace):
                    logger.warning(
                        f"{self.active_connections} connection(s) still open "
                        f"after {self.config.shutdown_grace}s, exiting anyway"
                    )
                logger.info("Server stopped")
        finally:
            self._restore_signal_handlers()

        return 0

    # =========================================================================
    # CONNECTION DISPATCH
    # =========================================================================

    def _spawn_handler(self, conn: Connection) -> None:
        """Start a thread for `conn` and return immediately."""
        thread = threading.Thread(
            target=self._run_handler,
            args=(conn,),
            name=f"echo-{conn.id}",
            daemon=True,
        )
        with self._handlers_lock:
            self._handlers.add(thread)

        try:
            thread.start()
        except RuntimeError as e:
            # Out of threads: drop this client, keep accepting others
            with self._handlers_lock:
                self._handlers.discard(thread)
            logger.error(f"[{conn.id}] Could not start handler thread: {e}")
            conn.close()

    def _run_handler(self, conn: Connection) -> None:
        try:
            EchoHandler(conn, self.state, self.config).run()
        finally:
            with self._handlers_lock:
                self._handlers.discard(threading.current_thread())

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _install_signal_handlers(self) -> None:
        """
        Route termination signals to shutdown().

        Python only allows installing handlers from the main thread; when
        run() is called elsewhere shutdown() must be called explicitly.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}")
            self.shutdown()

        for sig in SHUTDOWN_SIGNALS:
            try:
                self._original_handlers[sig] = signal.signal(sig, shutdown_handler)
            except (OSError, ValueError) as e:
                logger.debug(f"Cannot handle {sig!r}: {e}")

    def _restore_signal_handlers(self) -> None:
        for sig, handler in self._original_handlers.items():
            if handler is not None:  # Installed from C, can't be restored
                signal.signal(sig, handler)
        self._original_handlers.clear()
