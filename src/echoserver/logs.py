"""
=============================================================================
LOGGING
=============================================================================

Every module logs through the standard `logging` package with its own
namespaced logger (`logging.getLogger(__name__)`). Handlers in `logging`
take a lock around each emit, so lines written by many connection threads
at once never interleave mid-line. Nothing orders unrelated lines beyond
that, and nothing needs to.

Two kinds of output:

    EVENT LINES (echoserver.*):
        2026-10-19 06:30:12 [INFO] echoserver.core.handler: [1a2b3c4d] Client connected: localhost:51822

    CONNECTION SUMMARY (echoserver.connections), one per closed connection:
        text:  [1a2b3c4d] localhost:51822 closed (peer-closed) 11 bytes echoed in 4.21ms
        json:  {"connection_id": "1a2b3c4d", "peer": "localhost:51822", ...}

The summary logger can be tuned on its own:

    logging.getLogger("echoserver.connections").setLevel(logging.WARNING)

=============================================================================
"""

import json
import logging
from dataclasses import dataclass


logger = logging.getLogger("echoserver.connections")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger and the echoserver logger level."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("echoserver").setLevel(numeric_level)


@dataclass
class ConnectionLog:
    """
    Summary of one connection, written when it closes.

    Fields:
        connection_id:  Short id also used as the prefix of event lines
        peer:           Peer identity as logged on connect
        bytes_echoed:   Total bytes reflected back to the peer
        duration_ms:    Time from accept to close
        close_reason:   Why the loop ended (see CloseReason)
    """

    connection_id: str
    peer: str
    bytes_echoed: int
    duration_ms: float
    close_reason: str

    def to_dict(self) -> dict:
        return {
            "connection_id": self.connection_id,
            "peer": self.peer,
            "bytes_echoed": self.bytes_echoed,
            "duration_ms": round(self.duration_ms, 2),
            "close_reason": self.close_reason,
        }

    def to_text(self) -> str:
        return (
            f"[{self.connection_id}] {self.peer} closed ({self.close_reason}) "
            f"{self.bytes_echoed} bytes echoed in {self.duration_ms:.2f}ms"
        )


def log_connection(entry: ConnectionLog, log_format: str = "text") -> None:
    """Emit a connection summary in the configured format."""
    if log_format == "json":
        logger.info(json.dumps(entry.to_dict()))
    else:
        logger.info(entry.to_text())
