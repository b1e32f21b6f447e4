"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST PARSER (request.py)                                         │
    │   b"GET /a.txt HTTP/1.1\r\n..."  →  HTTPRequest(method="GET", ...)  │
    ├─────────────────────────────────────────────────────────────────────┤
    │ RESPONSE WRITER (response.py)                                       │
    │   HTTPResponse(status=200, ...)  →  b"HTTP/1.1 200 OK\r\n..."       │
    ├─────────────────────────────────────────────────────────────────────┤
    │ STATUS CODES (status_codes.py)                                      │
    │   HTTPStatus.NOT_FOUND → 404, phrase="Not Found"                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │ MIME TYPES (mime_types.py)                                          │
    │   "png" → image/png, unknown → application/octet-stream            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    MalformedRequest,
    UnsupportedVersion,
    Method,
    parse_request,
)
from .response import (
    HTTPResponse,
    format_http_date,
    text_response,
    ok,                     # 200 OK
    head_ok,                # 200 OK, HEAD shape
    head_of,                # any response, HEAD shape
    created,                # 201 Created
    no_content,             # 204 No Content
    bad_request,            # 400 Bad Request
    unauthorized,           # 401 Unauthorized
    forbidden,              # 403 Forbidden
    not_found,              # 404 Not Found
    method_not_allowed,     # 405 Method Not Allowed
    internal_error,         # 500 Internal Server Error
    service_unavailable,    # 503 Service Unavailable
    version_not_supported,  # 505 HTTP Version Not Supported
)
from .status_codes import HTTPStatus
from .mime_types import MimeRegistry, extension_of, DEFAULT_MIME_TYPE
