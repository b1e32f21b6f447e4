"""
=============================================================================
FILE HANDLER
=============================================================================

Serves and mutates files under the document root: GET, HEAD, PUT, DELETE.

=============================================================================
FLOW
=============================================================================

    Request: PUT /notes/todo.txt   (Content-Length: 5, body "hello")

    1. DocumentRoot.resolve("/notes/todo.txt") → <root>/notes/todo.txt
    2. Dispatch on the method token
    3. PUT: open for writing (create or truncate), copy 5 body bytes
    4. 201 Created

=============================================================================
PER-METHOD CONTRACT
=============================================================================

    ┌────────┬──────────────────────────────────┬──────────────────────────┐
    │ Method │ Success                          │ Failure                  │
    ├────────┼──────────────────────────────────┼──────────────────────────┤
    │ GET    │ 200 + bytes + registry type      │ 404 missing, 500 read    │
    │ HEAD   │ 200, real size, no body          │ 404 missing, 500 stat    │
    │ PUT    │ 201                              │ 500 open/write           │
    │ DELETE │ 204, no body                     │ 404 missing, 500 remove  │
    │ other  │                                  │ 405                      │
    └────────┴──────────────────────────────────┴──────────────────────────┘

PUT copies at most Content-Length bytes and stops quietly if the client
closes the stream early. The short file is kept and 201 is still returned.

=============================================================================
PATH RESOLUTION
=============================================================================

The target is joined onto the root as-is. ".." segments are NOT collapsed,
so "/../etc/passwd" escapes the root unless the optional containment check
is switched on (ServerConfig.contain_paths). With containment, the path is
canonicalized and anything outside the root is answered with 403.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from ..http.mime_types import MimeRegistry
from ..http.request import HTTPRequest, Method
from ..http.response import (
    HTTPResponse,
    ok,
    head_ok,
    head_of,
    created,
    no_content,
    forbidden,
    not_found,
    method_not_allowed,
    internal_error,
)


logger = logging.getLogger(__name__)

# Chunk size for copying request bodies to disk
COPY_CHUNK_SIZE = 64 * 1024


class PathEscapeError(ValueError):
    """A target resolved outside the document root while containment is on."""


class DocumentRoot:
    """
    Maps request targets to filesystem paths.

    Args:
        root: Directory files are served from.
        contain: Canonicalize paths and refuse ones outside the root.
    """

    def __init__(self, root: Union[str, Path], contain: bool = False):
        self.root = Path(root)
        self.contain = contain

    def resolve(self, target: str) -> Path:
        """
        Join the request target onto the root.

        Leading slashes are stripped so an absolute target never replaces
        the root itself ("/a.txt" → <root>/a.txt).

        Raises:
            PathEscapeError: If containment is on and the path leaves the root.
        """
        path = self.root / target.lstrip("/")

        if self.contain:
            resolved = path.resolve()
            try:
                resolved.relative_to(self.root.resolve())
            except ValueError:
                raise PathEscapeError(f"Path escapes document root: {target}")

        return path


class FileHandler:
    """
    Dispatches a parsed request to the matching filesystem operation.

    Holds no per-request state. One instance serves every worker.

    Usage:
        handler = FileHandler(DocumentRoot("/var/www"), MimeRegistry.default())
        response = handler.handle(request)
    """

    def __init__(self, document_root: DocumentRoot, mime_types: Optional[MimeRegistry] = None):
        self.document_root = document_root
        self.mime_types = mime_types or MimeRegistry.default()

        self._dispatch: Dict[Method, Callable[[Path, HTTPRequest], HTTPResponse]] = {
            Method.GET: self._get,
            Method.HEAD: self._head,
            Method.PUT: self._put,
            Method.DELETE: self._delete,
        }

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Handle a request that has already passed authentication.

        Args:
            request: The parsed HTTP request.

        Returns:
            The response to send.
        """
        method = request.known_method
        if method is None:
            return method_not_allowed()

        try:
            path = self.document_root.resolve(request.target)
        except PathEscapeError:
            logger.warning(f"Path traversal attempt: {request.target}")
            response = forbidden("Access denied")
            return head_of(response) if method is Method.HEAD else response

        return self._dispatch[method](path, request)

    # =========================================================================
    # METHOD HANDLERS
    # =========================================================================

    def _get(self, path: Path, request: HTTPRequest) -> HTTPResponse:
        """GET: read the whole file and return it."""
        if not path.is_file():
            return not_found()

        try:
            content = path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading file {path}: {e}")
            return internal_error("Error reading file")

        return ok(content, content_type=self.mime_types.content_type_for(path))

    def _head(self, path: Path, request: HTTPRequest) -> HTTPResponse:
        """HEAD: same status and headers as GET, no body."""
        if not path.is_file():
            return head_of(not_found())

        try:
            size = path.stat().st_size
        except OSError as e:
            logger.error(f"Error reading file {path}: {e}")
            return head_of(internal_error("Error reading file"))

        return head_ok(size, self.mime_types.content_type_for(path))

    def _put(self, path: Path, request: HTTPRequest) -> HTTPResponse:
        """
        PUT: create or truncate the file and copy Content-Length bytes.

        A body shorter than Content-Length is not an error.
        """
        remaining = request.content_length

        try:
            with path.open("wb") as f:
                while remaining > 0:
                    chunk = request.body.read(min(remaining, COPY_CHUNK_SIZE))
                    if not chunk:
                        logger.debug(
                            f"Body for {request.target} ended {remaining} bytes short"
                        )
                        break
                    f.write(chunk)
                    remaining -= len(chunk)
        except OSError as e:
            logger.error(f"Error writing file {path}: {e}")
            return internal_error("Error writing file")

        return created()

    def _delete(self, path: Path, request: HTTPRequest) -> HTTPResponse:
        """DELETE: remove a file or an empty directory."""
        if not path.exists():
            return not_found()

        try:
            if path.is_dir() and not path.is_symlink():
                path.rmdir()
            else:
                path.unlink()
        except OSError as e:
            logger.error(f"Error deleting file {path}: {e}")
            return internal_error("Failed to delete file")

        return no_content()
