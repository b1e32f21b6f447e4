"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

Builds the one response each connection gets and serializes it to bytes.

=============================================================================
TWO WIRE SHAPES
=============================================================================

Every normal response has the same fixed header set:

    HTTP/1.1 200 OK\r\n
    Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n
    Content-Type: text/html\r\n
    Content-Length: 27\r\n
    \r\n
    <html>...</html>

The 401 challenge is a distinct, minimal shape with no Content-Type and no
body:

    HTTP/1.1 401 Unauthorized\r\n
    Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n
    WWW-Authenticate: Basic realm="667 Server"\r\n
    Content-Length: 0\r\n
    \r\n

=============================================================================
BODY RULES
=============================================================================

    ┌──────────────┬──────────────────────────┬─────────────────────────┐
    │ Response     │ Content-Length header    │ Bytes after blank line  │
    ├──────────────┼──────────────────────────┼─────────────────────────┤
    │ normal       │ len(body)                │ body                    │
    │ HEAD         │ real file size           │ nothing                 │
    │ 204          │ len(body)                │ nothing, ever           │
    │ 401          │ 0                        │ nothing                 │
    └──────────────┴──────────────────────────┴─────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus


DEFAULT_REALM = "667 Server"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Built by a handler, serialized exactly once by to_bytes().

    Attributes:
        status:         HTTP status code (enum)
        content_type:   Content-Type value, or None to omit the header
        body:           Body bytes
        headers:        Extra headers written after Date (e.g. WWW-Authenticate)
        content_length: Declared length when it differs from len(body) (HEAD)
        suppress_body:  Never transmit the body (set for 204 and HEAD)
    """

    status: HTTPStatus = HTTPStatus.OK
    content_type: Optional[str] = "text/plain"
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    content_length: Optional[int] = None
    suppress_body: bool = False
    version: str = "HTTP/1.1"

    def __post_init__(self):
        if self.status == HTTPStatus.NO_CONTENT:
            self.suppress_body = True

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def declared_length(self) -> int:
        """The value written in the Content-Length header."""
        if self.content_length is not None:
            return self.content_length
        return len(self.body)

    @property
    def transmitted_body(self) -> bytes:
        """The bytes actually written after the blank line."""
        return b"" if self.suppress_body else self.body

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """
        Set an extra response header.

        Returns self for method chaining.
        """
        self.headers[name] = value
        return self

    def to_bytes(self, now: Optional[datetime] = None) -> bytes:
        """
        Serialize the response to bytes for sending over socket.

        Args:
            now: Timestamp for the Date header (defaults to current UTC time).

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        date = format_http_date(now or datetime.now(timezone.utc))

        lines = [self.status_line, f"Date: {date}"]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")
        if self.content_type is not None:
            lines.append(f"Content-Type: {self.content_type}")
        lines.append(f"Content-Length: {self.declared_length}")

        # Empty line separates headers from body
        lines.append("")
        header_bytes = "\r\n".join(lines).encode("iso-8859-1") + b"\r\n"

        return header_bytes + self.transmitted_body


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 1123).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    The weekday and month names are fixed English abbreviations, so the
    output never depends on the process locale.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One constructor per outcome the file handler and server can produce.
# Error bodies are short text/plain messages.
#
# =============================================================================

def text_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Create a text/plain response carrying a short message."""
    return HTTPResponse(status=status, content_type="text/plain", body=message.encode("utf-8"))


def ok(body: Union[str, bytes], content_type: str = "text/plain") -> HTTPResponse:
    """Create a 200 OK response with the full body."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return HTTPResponse(status=HTTPStatus.OK, content_type=content_type, body=body)


def head_ok(size: int, content_type: str) -> HTTPResponse:
    """
    Create a 200 OK response for HEAD.

    Content-Length reports the real file size; no body bytes are sent.
    """
    return HTTPResponse(
        status=HTTPStatus.OK,
        content_type=content_type,
        content_length=size,
        suppress_body=True,
    )


def head_of(response: HTTPResponse) -> HTTPResponse:
    """
    Turn a GET-shaped response into its HEAD counterpart.

    Status and headers stay the same, Content-Length keeps announcing the
    body, and the body itself is not transmitted.
    """
    return replace(response, content_length=response.declared_length, suppress_body=True)


def created(message: str = "File successfully created or updated") -> HTTPResponse:
    """Create a 201 Created response."""
    return text_response(HTTPStatus.CREATED, message)


def no_content() -> HTTPResponse:
    """
    Create a 204 No Content response.

    The body is suppressed by HTTPResponse itself, whatever it holds.
    """
    return HTTPResponse(status=HTTPStatus.NO_CONTENT, content_type="text/plain")


def bad_request(message: str = "Malformed request") -> HTTPResponse:
    """Create a 400 Bad Request response."""
    return text_response(HTTPStatus.BAD_REQUEST, message)


def unauthorized(realm: str = DEFAULT_REALM) -> HTTPResponse:
    """
    Create a 401 Unauthorized challenge.

    This is the minimal shape: Date, WWW-Authenticate and Content-Length: 0.
    No Content-Type is written.
    """
    return HTTPResponse(
        status=HTTPStatus.UNAUTHORIZED,
        content_type=None,
        headers={"WWW-Authenticate": f'Basic realm="{realm}"'},
    )


def forbidden(message: str = "Invalid credentials") -> HTTPResponse:
    """Create a 403 Forbidden response."""
    return text_response(HTTPStatus.FORBIDDEN, message)


def not_found(message: str = "File not found") -> HTTPResponse:
    """Create a 404 Not Found response."""
    return text_response(HTTPStatus.NOT_FOUND, message)


def method_not_allowed(message: str = "Unsupported HTTP method") -> HTTPResponse:
    """Create a 405 Method Not Allowed response."""
    return text_response(HTTPStatus.METHOD_NOT_ALLOWED, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """
    Create a 500 Internal Server Error response.

    Keep the message generic: it goes to the client.
    """
    return text_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)


def service_unavailable(message: str = "Server overloaded") -> HTTPResponse:
    """Create a 503 Service Unavailable response."""
    return text_response(HTTPStatus.SERVICE_UNAVAILABLE, message)


def version_not_supported(message: str = "Only HTTP/1.1 is supported") -> HTTPResponse:
    """Create a 505 HTTP Version Not Supported response."""
    return text_response(HTTPStatus.HTTP_VERSION_NOT_SUPPORTED, message)
