"""
=============================================================================
CONNECTION
=============================================================================

A Connection wraps one accepted client socket and its peer address. It is
owned by exactly one EchoHandler (and therefore one thread) from accept to
close; no other code reads from or writes to the socket.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

TCP does not preserve message boundaries. A client that sends "wor" and then
"ld!" may see the server read "world!" in one recv(), or "w" then "orld!".
An echo server does not care: whatever one recv() returns is written back
unchanged before the next recv(). Order is preserved because reads and
writes alternate strictly on a single thread.

=============================================================================
PARTIAL WRITES
=============================================================================

send() may accept fewer bytes than it was given when the kernel's send
buffer is full. send_all() keeps calling send() with the remainder:

    data:   [##########################]   26 bytes
    send →  [##########]                   10 accepted
    send →            [################]   16 accepted, done

A send() that accepts 0 bytes cannot make progress and is treated as a
broken connection.

=============================================================================
"""

import socket
import time
import uuid
import logging
from dataclasses import dataclass, field


logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """
    An accepted client connection.

    Attributes:
        socket: The client socket.
        address: Peer (ip, port) tuple as returned by accept().
        id: Short unique identifier used to prefix log lines.
        created_at: Time the connection was accepted.
        bytes_echoed: Bytes written back to the peer so far.
        closed: True once close() has run.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)
    bytes_echoed: int = 0
    closed: bool = False

    def __post_init__(self):
        # Accepted sockets may inherit the listener's accept timeout on some
        # platforms. Echo I/O has no timeout.
        self.socket.setblocking(True)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    def peer_name(self, resolve: bool = True) -> str:
        """
        Identify the peer for log lines.

        Tries a reverse lookup ("host:service") first when `resolve` is set.
        Any lookup failure falls back to the numeric "ip:port" form; this
        never raises.
        """
        if resolve:
            try:
                host, service = socket.getnameinfo(self.address, 0)
                return f"{host}:{service}"
            except (OSError, UnicodeError):
                pass
        return f"{self.client_ip}:{self.client_port}"

    def recv_chunk(self, size: int) -> bytes:
        """
        Read at most `size` bytes.

        Returns:
            The bytes read; b"" when the peer closed its sending side.

        Raises:
            OSError: The read failed.
        """
        return self.socket.recv(size)

    def send_all(self, data: bytes) -> None:
        """
        Write every byte of `data`, retrying partial writes.

        Raises:
            ConnectionError: send() accepted zero bytes.
            OSError: send() failed.
        """
        view = memoryview(data)
        total = 0
        while total < len(view):
            sent = self.socket.send(view[total:])
            if sent == 0:
                raise ConnectionError("send() accepted 0 bytes")
            total += sent
        self.bytes_echoed += total

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True

        try:
            # Send FIN right away rather than when the object is collected
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Socket closed after {self.bytes_echoed} bytes")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
