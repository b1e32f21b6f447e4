"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Defines the middleware protocol and the pipeline that chains middleware in
front of the file handler.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Request ──────────────────────────────────────────────►           │
    │                                                                      │
    │   ┌──────────┐      ┌──────────────┐      ┌──────────────┐          │
    │   │  Access  │─────►│  Basic Auth  │─────►│ File Handler │          │
    │   │   Log    │      │    Gate      │      │ GET/HEAD/... │          │
    │   └────┬─────┘      └──────┬───────┘      └──────┬───────┘          │
    │        │                   │                     │                   │
    │        │                   │ 401 / 403           │                   │
    │        │                   │ (short-circuit)     │                   │
    │        ▼                   ▼                     ▼                   │
    │                                                                      │
    │   ◄────────────────────────────────────────────── Response          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A middleware either answers the request itself (the auth gate refusing a
client) or hands it on with next(request) and sees the response on the way
back (the access log measuring duration).

=============================================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# Signature shared by the file handler and every wrapped stage
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for all middleware.

    Subclasses implement __call__(request, next) and must either return a
    response of their own or return next(request), possibly modified.

    Example:
        class TimingHeader(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Elapsed", "0")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process a request.

        Args:
            request: The parsed HTTP request.
            next: The rest of the chain.

        Returns:
            The response to send.
        """

    @property
    def name(self) -> str:
        """Middleware name used in debug logs."""
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered list of middleware wrapped around a final handler.

    The first middleware added is the outermost one and sees the request
    first.

    Usage:
        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware()).add(BasicAuthMiddleware(root))
        app = pipeline.wrap(file_handler.handle)
        response = app(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append a middleware. Returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Append several middleware at once."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the callable chain ending in ``handler``.

        Given [A, B] and handler, the result calls A, which calls B, which
        calls handler. Wrapping runs in reverse so the first-added
        middleware ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler,
    ) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
