"""Request handlers."""

from .files import FileHandler, DocumentRoot, PathEscapeError, COPY_CHUNK_SIZE

__all__ = ["FileHandler", "DocumentRoot", "PathEscapeError", "COPY_CHUNK_SIZE"]
