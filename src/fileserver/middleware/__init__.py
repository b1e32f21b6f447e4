"""
Middleware wrapped around the file handler.

    LoggingMiddleware ──► BasicAuthMiddleware ──► FileHandler.handle
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .auth import BasicAuthMiddleware
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "BasicAuthMiddleware",
    "LoggingMiddleware",
    "RequestLog",
]
