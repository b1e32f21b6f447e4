"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One log record per handled request, written to the "fileserver.access"
logger once the response is known.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [19/Oct/2026:10:55:36 +0000] "GET /a.txt" 200 27 0.41ms│
    │ ─────────   ──────────────────────────────  ───────────  ─── ── ─────│
    │ client IP   timestamp                       method/target st  len  ms │
    └─────────────────────────────────────────────────────────────────────┘

    JSON:
    {"request_id": "a1b2c3d4", "method": "GET", "target": "/a.txt",
     "client_ip": "127.0.0.1", "status_code": 200, "content_length": 27,
     "duration_ms": 0.41, ...}

The Authorization header is never logged.

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("fileserver.access")


@dataclass
class RequestLog:
    """Structured access log entry for one request."""

    request_id: str
    method: str
    target: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache-style single line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Must be first in the pipeline so requests refused by the auth gate are
    logged too.

    Args:
        log_format: "text" or "json".
        log_level: Level used for successful requests. 4xx responses are
            logged at WARNING and 5xx at ERROR regardless.
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.target} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            target=request.target,
            client_ip=request.client_address[0] if request.client_address else "-",
            user_agent=request.user_agent,
            status_code=int(response.status),
            content_length=response.declared_length,
            duration_ms=duration_ms,
            timestamp=datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            message = json.dumps(entry.to_dict())
        else:
            message = entry.to_text()

        if response.status.is_server_error:
            logger.error(message)
        elif response.status.is_client_error:
            logger.warning(message)
        else:
            logger.log(self.log_level, message)

        return response
