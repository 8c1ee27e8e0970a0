"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The connection lifecycle and shutdown coordination:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Owns the listening socket (bind, listen)                          │
    │  • Runs the accept() loop                                            │
    │  • Hands every new Connection to a callback, never touches its I/O   │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ one thread per connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ECHO HANDLER + CONNECTION                         │
    │  • recv() up to one chunk, send_all() the same bytes, repeat         │
    │  • Ends on orderly close, I/O error, or shutdown                     │
    │  • Closes its socket exactly once                                    │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SERVER STATE                                 │
    │  • Running flag read by everyone above                               │
    │  • request_shutdown(): clear flag, close listener, idempotent        │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .state import ServerState
from .connection import Connection
from .handler import EchoHandler, CloseReason
from .socket_server import SocketServer

__all__ = [
    "ServerState",     # Running flag + listener, shutdown trigger
    "Connection",      # One accepted client socket
    "EchoHandler",     # Echo loop for one connection
    "CloseReason",     # Why a connection ended
    "SocketServer",    # Listening socket + accept loop
]
