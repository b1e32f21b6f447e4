"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can produce, with their reason phrases.

=============================================================================
WHERE EACH CODE COMES FROM
=============================================================================

    ┌──────┬──────────────────────────────┬───────────────────────────────┐
    │ Code │ Reason phrase                │ Produced by                   │
    ├──────┼──────────────────────────────┼───────────────────────────────┤
    │ 200  │ OK                           │ GET / HEAD of an existing file│
    │ 201  │ Created                      │ PUT                           │
    │ 204  │ No Content                   │ DELETE                        │
    │ 400  │ Bad Request                  │ request line / header framing │
    │ 401  │ Unauthorized                 │ .password present, no creds   │
    │ 403  │ Forbidden                    │ wrong creds, escaped root     │
    │ 404  │ Not Found                    │ GET / HEAD / DELETE on missing│
    │ 405  │ Method Not Allowed           │ anything but GET/HEAD/PUT/DEL │
    │ 500  │ Internal Server Error        │ filesystem failure            │
    │ 503  │ Service Unavailable          │ bounded worker queue is full  │
    │ 505  │ HTTP Version Not Supported   │ version other than HTTP/1.1   │
    └──────┴──────────────────────────────┴───────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200                            # File content returned
    CREATED = 201                       # File created or replaced by PUT
    NO_CONTENT = 204                    # File removed by DELETE

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400                   # Malformed request line or header
    UNAUTHORIZED = 401                  # Directory is protected, no credentials
    FORBIDDEN = 403                     # Credentials did not match
    NOT_FOUND = 404                     # Target does not exist
    METHOD_NOT_ALLOWED = 405            # Unsupported method token

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500         # Read/write/delete failed at the OS level
    SERVICE_UNAVAILABLE = 503           # Bounded queue rejected the connection
    HTTP_VERSION_NOT_SUPPORTED = 505    # Only HTTP/1.1 is spoken

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx (success) status code."""
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        """Check if this is a 4xx (client error) status code."""
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        """Check if this is a 5xx (server error) status code."""
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """Check if this is an error status code (4xx or 5xx)."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",

    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",

    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
