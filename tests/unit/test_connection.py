"""
Unit tests for the Connection wrapper.
"""

import socket

import pytest

from conftest import FakeSocket
from echoserver.core.connection import Connection


@pytest.fixture
def socket_pair():
    """A connected (server_side, client_side) pair."""
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    server_side.close()
    client_side.close()


class TestPeerName:
    """Tests for peer identity used in log lines."""

    def test_numeric_when_resolution_disabled(self):
        conn = Connection(socket=FakeSocket(), address=("10.0.0.7", 40123))
        assert conn.peer_name(resolve=False) == "10.0.0.7:40123"

    def test_resolved_name(self, monkeypatch):
        monkeypatch.setattr(socket, "getnameinfo", lambda addr, flags: ("client.example", "40123"))
        conn = Connection(socket=FakeSocket(), address=("10.0.0.7", 40123))

        assert conn.peer_name() == "client.example:40123"

    @pytest.mark.parametrize("error", [
        socket.gaierror(socket.EAI_NONAME, "Name or service not known"),
        socket.timeout("timed out"),
        OSError("lookup failed"),
    ])
    def test_falls_back_to_numeric_on_failure(self, monkeypatch, error):
        def failing_lookup(addr, flags):
            raise error

        monkeypatch.setattr(socket, "getnameinfo", failing_lookup)
        conn = Connection(socket=FakeSocket(), address=("10.0.0.7", 40123))

        assert conn.peer_name() == "10.0.0.7:40123"


class TestIO:
    """Tests for recv_chunk() and send_all()."""

    def test_recv_chunk_respects_size(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        client_side.sendall(b"abcdefgh")

        assert conn.recv_chunk(3) == b"abc"

    def test_recv_chunk_empty_on_orderly_close(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        client_side.shutdown(socket.SHUT_WR)

        assert conn.recv_chunk(4096) == b""

    def test_send_all_delivers_everything(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        conn.send_all(b"hello")

        assert client_side.recv(16) == b"hello"
        assert conn.bytes_echoed == 5

    def test_send_all_retries_partial_writes(self):
        fake = FakeSocket(send_results=[2, 1, 3])
        conn = Connection(socket=fake, address=("127.0.0.1", 1))

        conn.send_all(b"abcdef")

        assert bytes(fake.sent) == b"abcdef"
        assert conn.bytes_echoed == 6

    def test_send_all_zero_write_is_fatal(self):
        fake = FakeSocket(send_results=[2, 0])
        conn = Connection(socket=fake, address=("127.0.0.1", 1))

        with pytest.raises(ConnectionError):
            conn.send_all(b"abcdef")

    def test_send_all_propagates_socket_error(self):
        fake = FakeSocket(send_results=[BrokenPipeError(32, "Broken pipe")])
        conn = Connection(socket=fake, address=("127.0.0.1", 1))

        with pytest.raises(OSError):
            conn.send_all(b"abc")


class TestClose:
    """Tests for close()."""

    def test_close_is_idempotent(self):
        fake = FakeSocket()
        conn = Connection(socket=fake, address=("127.0.0.1", 1))

        conn.close()
        conn.close()

        assert conn.closed is True
        assert fake.close_calls == 1

    def test_context_manager_closes(self):
        fake = FakeSocket()
        with Connection(socket=fake, address=("127.0.0.1", 1)) as conn:
            assert conn.closed is False

        assert fake.close_calls == 1

    def test_peer_sees_eof_after_close(self, socket_pair):
        server_side, client_side = socket_pair
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))

        conn.close()

        assert client_side.recv(16) == b""
