"""
=============================================================================
ERROR TYPES
=============================================================================

Failures in an echo server fall into a small taxonomy. Only one class of
them ever becomes a Python exception that crosses a component boundary:

    ┌──────────────────────────┬──────────────────────────────────────────┐
    │ Class                    │ What happens                              │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ Fatal to the process     │ StartupError raised by the listener,      │
    │ (socket / bind / listen) │ turned into exit status 1 by the server   │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ Fatal to a connection    │ OSError caught in the handler, logged,    │
    │ (recv / send / 0-write)  │ socket closed. Nobody else notices.       │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ Transient to listener    │ OSError from accept() while running:      │
    │                          │ logged, loop continues                    │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ Expected shutdown        │ OSError from accept() after shutdown:     │
    │                          │ silent                                    │
    └──────────────────────────┴──────────────────────────────────────────┘

=============================================================================
"""

from typing import Optional


class EchoServerError(Exception):
    """Base class for errors raised by the echo server."""


class StartupError(EchoServerError):
    """
    The listening socket could not be created, bound, or put in listen mode.

    Attributes:
        errno: The underlying OS error code, if one was available.
    """

    def __init__(self, message: str, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno


def describe_error(error: OSError) -> str:
    """
    Render an OSError as a short diagnostic for log lines.

    The numeric code is kept because it is the only thing that is stable
    across platforms and locales.

        >>> describe_error(ConnectionResetError(104, "Connection reset by peer"))
        'Connection reset by peer (errno=104)'
    """
    if error.errno is None:
        return str(error) or type(error).__name__
    return f"{error.strerror or error} (errno={error.errno})"
