"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the lifetime of its single request.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

There is no keep-alive. Every connection goes through the same states:

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
                │                                     ▲
                └──── read error / timeout ───────────┘

The server closes the socket after writing exactly one response, whatever
the request said about Connection: keep-alive.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

A request can arrive split over any number of recv() calls. Rather than
buffering by hand, the connection exposes a buffered binary reader
(socket.makefile("rb")). The parser pulls lines from it, and the PUT
handler pulls exactly Content-Length bytes from the same reader, so
whatever was buffered past the head is still there for the body.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, for logging and cleanup."""
    NEW = "new"                # Just accepted
    READING = "reading"        # Parsing the request head
    PROCESSING = "processing"  # Pipeline is running
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        read_timeout: Seconds a single read may block, or None to block
            indefinitely.
        id: Short identifier used in log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.

    Usage:
        with Connection(client_socket, address) as conn:
            request = parser.parse(conn.reader, conn.address)
            conn.send_response(response.to_bytes())
    """

    socket: socket.socket
    address: tuple
    read_timeout: Optional[float] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        # Blocking unless a read timeout is configured
        self.socket.settimeout(self.read_timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def reader(self) -> BinaryIO:
        """
        Buffered binary stream over the socket.

        Created on first use. The request parser and the PUT handler read
        from the same object, so bytes buffered past the head are not lost.
        """
        if self._reader is None:
            self._reader = self.socket.makefile("rb")
            self.state = ConnectionState.READING
        return self._reader

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        Uses sendall() so a partially filled send buffer does not truncate
        the response.

        Returns:
            True if the send succeeded, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            # ConnectionResetError and BrokenPipeError are OSErrors
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): tell the client the response is complete
        2. Drain briefly so unread request bytes do not turn into a RST
        3. close() the reader and the socket
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # socket.timeout is an OSError

        if self._reader is not None:
            try:
                self._reader.close()
            except OSError:
                pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.age:.3f}s")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
