"""
=============================================================================
BASIC AUTH MIDDLEWARE
=============================================================================

Runs the per-directory credential check before any method dispatch.

Because the gate sits in front of the file handler, a protected directory
answers 401/403 even for methods the server does not implement: a POST to
a gated file without credentials gets the 401 challenge, not 405.

    ┌──────────────────────┬──────────────────────────────────────────────┐
    │ AuthDecision         │ Result                                       │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ NO_AUTH_REQUIRED     │ next(request)                                │
    │ AUTHORIZED           │ next(request)                                │
    │ MISSING_CREDENTIALS  │ 401 + WWW-Authenticate: Basic realm="..."    │
    │ INVALID_CREDENTIALS  │ 403 Forbidden                                │
    └──────────────────────┴──────────────────────────────────────────────┘

=============================================================================
"""

import logging
from typing import Optional

from .base import Middleware, NextHandler
from ..auth.gate import AuthDecision, AuthGate
from ..handlers.files import DocumentRoot, PathEscapeError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, forbidden, head_of, unauthorized


logger = logging.getLogger(__name__)


class BasicAuthMiddleware(Middleware):
    """
    Refuses requests whose target directory holds a credentials file the
    client cannot satisfy.

    Args:
        document_root: Resolves targets the same way the file handler does.
        gate: The credential check (defaults to ``.password`` files).
    """

    def __init__(self, document_root: DocumentRoot, gate: Optional[AuthGate] = None):
        self.document_root = document_root
        self.gate = gate or AuthGate()

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        try:
            path = self.document_root.resolve(request.target)
        except PathEscapeError:
            # The file handler answers escapes with 403
            return next(request)

        decision = self.gate.check(path, request.headers)
        if decision.allowed:
            return next(request)

        if decision is AuthDecision.MISSING_CREDENTIALS:
            logger.info(f"Credentials required for {request.target}")
            response = unauthorized(self.gate.realm)
        else:
            logger.warning(
                f"Rejected credentials from {request.client_address[0]} "
                f"for {request.target}"
            )
            response = forbidden("Invalid credentials")

        if request.method == "HEAD":
            return head_of(response)
        return response
