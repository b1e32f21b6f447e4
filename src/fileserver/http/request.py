"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads one HTTP/1.1 request head from a connection's byte stream and turns it
into a structured HTTPRequest. The body is NOT read here: the request keeps a
reference to the stream, positioned at the first body byte, and only the PUT
handler consumes it.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │    PUT /notes/todo.txt HTTP/1.1\r\n                            │ │
    │  │    ─┬─ ───────┬─────── ────┬───                                │ │
    │  │   Method    Target      Version                                │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Authorization: Basic YWxpY2U6c2VjcmV0\r\n                   │ │
    │  │    Content-Length: 5\r\n                                       │ │
    │  │    \r\n                          ◄── blank line ends the head  │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    hello                         ◄── request.body stream here  │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. The request line is split on SINGLE spaces and must give exactly three
   tokens once trailing spaces are dropped. "GET /" and "GET / x HTTP/1.1"
   are both 400 Bad Request, "GET / HTTP/1.1 " is accepted.

2. The version is checked BEFORE any header is read. Only the exact token
   "HTTP/1.1" is accepted; anything else is 505.

3. The method token is not validated by the parser. Unknown methods are
   answered with 405 after authentication has run.

4. Headers are read until a blank line or end of stream. Names are
   lower-cased, values trimmed, and a repeated name overwrites the earlier
   value (last one wins).

5. Content-Length is lenient: a missing, non-numeric or negative value is
   treated as 0 instead of rejecting the request. Only an optional sign and
   ASCII digits count as numeric.

=============================================================================
KNOWN LIMITATION
=============================================================================

No limit is placed on the request-line length, header count or header size.
A hostile client can make a worker buffer an arbitrarily long line. This is
an open risk, not something the parser silently caps.

=============================================================================
"""

import io
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Dict, Optional


SUPPORTED_VERSION = "HTTP/1.1"

# Optional sign and ASCII digits, nothing else
_CONTENT_LENGTH = re.compile(r"[+-]?[0-9]+")


class HTTPParseError(Exception):
    """
    Raised when a request head cannot be parsed.

    Carries the HTTP status code the server should answer with:

        400 Bad Request                - Malformed request line or header
        505 HTTP Version Not Supported - Anything but HTTP/1.1

    ``client_message`` is the short body sent back; the exception message
    itself may quote the offending line and is only logged.
    """

    def __init__(self, message: str, status_code: int = 400, client_message: str = "Malformed request"):
        super().__init__(message)
        self.status_code = status_code
        self.client_message = client_message


class MalformedRequest(HTTPParseError):
    """Empty or unsplittable request line, or a header without a colon."""

    def __init__(self, message: str, client_message: str = "Malformed request"):
        super().__init__(message, status_code=400, client_message=client_message)


class UnsupportedVersion(HTTPParseError):
    """The request line names a protocol version other than HTTP/1.1."""

    def __init__(self, version: str):
        super().__init__(
            f"Unsupported HTTP version: {version}",
            status_code=505,
            client_message="Only HTTP/1.1 is supported",
        )
        self.version = version


class Method(str, Enum):
    """
    The methods this server implements.

    Any other token stays a plain string on the request and is answered
    with 405 Method Not Allowed.
    """
    GET = "GET"
    HEAD = "HEAD"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def from_token(cls, token: str) -> Optional["Method"]:
        """Map a request-line token to a Method, or None if unsupported."""
        try:
            return cls(token)
        except ValueError:
            return None


@dataclass(frozen=True)
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    Attributes:
        method:         Method token exactly as sent ("GET", "POST", ...)
        target:         Request target exactly as sent, not decoded and not
                        resolved against the filesystem
        version:        Protocol version (always "HTTP/1.1" once parsed)
        headers:        Lower-cased header name → trimmed value
        body:           Byte stream positioned at the start of the body
        client_address: (ip, port) of the client, for logging
    """

    method: str
    target: str
    version: str = SUPPORTED_VERSION
    headers: Dict[str, str] = field(default_factory=dict)
    body: BinaryIO = field(default_factory=io.BytesIO, repr=False, compare=False)
    client_address: tuple = ("", 0)

    @property
    def known_method(self) -> Optional[Method]:
        """The Method enum member, or None for unsupported tokens."""
        return Method.from_token(self.method)

    @property
    def content_length(self) -> int:
        """
        Get the Content-Length header value as integer.

        Returns 0 if the header is missing, unparsable or negative.
        """
        value = self.headers.get("content-length", "0")
        if not _CONTENT_LENGTH.fullmatch(value):
            return 0
        return max(int(value), 0)

    @property
    def authorization(self) -> Optional[str]:
        """The raw Authorization header value, if sent."""
        return self.headers.get("authorization")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """Get a header value (case-insensitive lookup)."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses a request head from a binary stream.

    ==========================================================================
    PARSER FLOW
    ==========================================================================

        stream.readline()
              │
              ▼
        ┌──────────────────────────────────────────────────────────────────┐
        │  1. Request line                                                 │
        │     │  missing/empty?        → MalformedRequest (400)            │
        │     │  not 3 tokens?         → MalformedRequest (400)            │
        │     │  version != HTTP/1.1?  → UnsupportedVersion (505)          │
        │     ▼                                                            │
        │  2. Header lines until blank line / EOF                          │
        │     │  no colon?             → MalformedRequest (400)            │
        │     ▼                                                            │
        │  3. HTTPRequest(body=stream)                                     │
        └──────────────────────────────────────────────────────────────────┘

    Lines are decoded as UTF-8 with surrogateescape: non-ASCII file names
    arrive intact, and bytes that are not valid UTF-8 survive as lone
    surrogates that the filesystem encodes back to the same bytes.
    ==========================================================================
    """

    ENCODING = "utf-8"
    ERRORS = "surrogateescape"

    def parse(
        self,
        stream: BinaryIO,
        client_address: tuple = ("", 0),
    ) -> HTTPRequest:
        """
        Parse one request head from the stream.

        Args:
            stream: Buffered binary stream (e.g. socket.makefile("rb")).
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest whose body is the same stream.

        Raises:
            HTTPParseError: If the request is malformed.
            OSError: If reading from the stream fails.
        """
        request_line = self._read_line(stream)
        if not request_line:
            raise MalformedRequest("Empty request line", client_message="Invalid request received")

        method, target, version = self._parse_request_line(request_line)
        headers = self._parse_headers(stream)

        return HTTPRequest(
            method=method,
            target=target,
            version=version,
            headers=headers,
            body=stream,
            client_address=client_address,
        )

    def _read_line(self, stream: BinaryIO) -> Optional[str]:
        """
        Read one line without its terminator.

        Accepts both CRLF and bare LF. Returns None at end of stream.
        """
        raw = stream.readline()
        if not raw:
            return None
        if raw.endswith(b"\r\n"):
            raw = raw[:-2]
        elif raw.endswith(b"\n") or raw.endswith(b"\r"):
            raw = raw[:-1]
        return raw.decode(self.ENCODING, self.ERRORS)

    def _parse_request_line(self, line: str) -> tuple:
        """
        Split "METHOD SP TARGET SP VERSION" and check the version.

        Returns:
            Tuple of (method, target, version)
        """
        # Trailing spaces do not make extra tokens
        parts = line.rstrip(" ").split(" ")
        if len(parts) != 3:
            raise MalformedRequest(f"Malformed request line: {line!r}")

        method, target, version = parts
        if version != SUPPORTED_VERSION:
            raise UnsupportedVersion(version)

        return method, target, version

    def _parse_headers(self, stream: BinaryIO) -> Dict[str, str]:
        """
        Read header lines into a dict with lower-cased names.

        A repeated header name overwrites the earlier value.
        """
        headers: Dict[str, str] = {}

        while True:
            line = self._read_line(stream)
            if not line:
                break  # Blank line or end of stream ends the head

            name, colon, value = line.partition(":")
            name = name.strip()
            if not colon or not name:
                raise MalformedRequest(f"Malformed header line: {line!r}")

            headers[name.lower()] = value.strip()

        return headers


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(data: bytes, client_address: tuple = ("", 0)) -> HTTPRequest:
    """
    Parse a request held entirely in memory.

    Wraps the bytes in a BytesIO so the returned request's body stream
    yields whatever follows the blank line.
    """
    return RequestParser().parse(io.BytesIO(data), client_address)
