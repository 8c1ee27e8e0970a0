"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from echoserver import EchoServer, ServerConfig


@pytest.fixture
def config() -> ServerConfig:
    """Test configuration: localhost, OS-assigned port, no DNS lookups."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        accept_timeout=0.2,
        resolve_names=False,
        shutdown_grace=2.0,
        log_level="DEBUG",
    )


class RunningServer:
    """An EchoServer serving on a background thread."""

    def __init__(self, server: EchoServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def address(self):
        return self.server.address

    def start(self):
        """Bind synchronously, then serve in a background thread."""
        self.server.start()
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()

    def connect(self, timeout: float = 5.0) -> socket.socket:
        sock = socket.create_connection(self.address, timeout=timeout)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        return sock

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self.server.wait_for_connections(timeout=5.0)

    @property
    def accept_loop_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A started echo server, shut down after the test."""
    srv = RunningServer(EchoServer(config))
    srv.start()

    yield srv

    srv.stop()


def recv_exactly(sock: socket.socket, count: int) -> bytes:
    """Read until `count` bytes have arrived or the peer closes."""
    chunks = []
    received = 0
    while received < count:
        chunk = sock.recv(count - received)
        if not chunk:
            break
        chunks.append(chunk)
        received += len(chunk)
    return b"".join(chunks)


def recv_until_eof(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


class FakeSocket:
    """
    Minimal stand-in for a connected socket.

    recv() pops from `incoming` (an item may be an exception to raise);
    send() returns the next value in `send_results`, or len(data).
    """

    def __init__(self, incoming=None, send_results=None):
        self.incoming = list(incoming or [])
        self.send_results = list(send_results or [])
        self.sent = bytearray()
        self.close_calls = 0
        self.shutdown_calls = 0

    def setblocking(self, flag):
        pass

    def recv(self, size):
        if not self.incoming:
            return b""
        item = self.incoming.pop(0)
        if isinstance(item, BaseException):
            raise item
        assert len(item) <= size
        return item

    def send(self, data):
        data = bytes(data)
        if self.send_results:
            result = self.send_results.pop(0)
            if isinstance(result, BaseException):
                raise result
            self.sent += data[:result]
            return result
        self.sent += data
        return len(data)

    def shutdown(self, how):
        self.shutdown_calls += 1

    def close(self):
        self.close_calls += 1
