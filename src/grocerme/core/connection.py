"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Buffered request reading and response writing on one accepted socket.

    ┌─────────────────────────────────────────────────────────────────┐
    │                With Keep-Alive (HTTP/1.1)                        │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   TCP Connect                                                    │
    │       ├── POST /signin   → 200 + Set-Cookie                      │
    │       ├── GET  /me       → 200                                   │
    │       ├── GET  /lists    → 200                                   │
    │   TCP Close (client asked, or idle > keep_alive_timeout)         │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

TCP hands us bytes in arbitrary chunks, so read_request() buffers until
it has the full header block, then reads exactly Content-Length more
bytes. Anything beyond that is the start of the next pipelined request
and stays in the buffer.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional
import logging
import socket
import time
import uuid


logger = logging.getLogger(__name__)


class RequestTooLarge(Exception):
    """The buffered request passed max_request_size."""


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client (ip, port).
        id: Short id for log lines.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    created_at: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request.

        Returns:
            The request bytes, or None if the client closed the connection
            (or went idle past keep_alive_timeout between requests).

        Raises:
            TimeoutError: The first request did not arrive in time.
            RequestTooLarge: The request exceeded max_request_size.
        """
        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                if not self._fill():
                    return None

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                if not self._fill():
                    break  # peer closed mid-body; the parser reports the short body

            request_end = body_start + content_length
            data, self._buffer = self._buffer[:request_end], self._buffer[request_end:]
            self.requests_handled += 1
            return data

        except socket.timeout:
            if self.requests_handled > 0 and not self._buffer:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")
        finally:
            self.socket.settimeout(self.timeout)

    def _fill(self) -> bool:
        """recv() once into the buffer. False when the peer has closed."""
        try:
            chunk = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return False
        if not chunk:
            return False
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLarge(f"Request too large: {len(self._buffer)} bytes")
        return True

    @staticmethod
    def _content_length(headers: bytes) -> int:
        # Just enough header parsing to know how much body to wait for
        for line in headers.decode("latin-1").split("\r\n"):
            name, sep, value = line.partition(":")
            if sep and name.strip().lower() == "content-length":
                try:
                    return max(int(value.strip()), 0)
                except ValueError:
                    return 0
        return 0

    def send_response(self, data: bytes) -> bool:
        """sendall() the response. False if the client has gone away."""
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self) -> None:
        """Shut down the write side, then release the socket."""
        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # already disconnected
        try:
            self.socket.close()
        except OSError as e:
            logger.debug(f"[{self.id}] Close failed: {e}")
        logger.debug(
            f"[{self.id}] Closed after {self.requests_handled} requests, "
            f"{time.time() - self.created_at:.2f}s"
        )
