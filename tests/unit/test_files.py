"""
Unit tests for the file handler and document root.
"""

import io
import os
from pathlib import Path

import pytest

from fileserver.handlers import DocumentRoot, FileHandler, PathEscapeError, COPY_CHUNK_SIZE
from fileserver.http import HTTPRequest, HTTPStatus, MimeRegistry


def make_request(method: str, target: str, body: bytes = b"", content_length=None) -> HTTPRequest:
    headers = {}
    if content_length is None and body:
        content_length = len(body)
    if content_length is not None:
        headers["content-length"] = str(content_length)
    return HTTPRequest(method=method, target=target, headers=headers, body=io.BytesIO(body))


@pytest.fixture
def handler(docroot: Path) -> FileHandler:
    return FileHandler(DocumentRoot(docroot))


class TestDocumentRoot:

    def test_strips_leading_slashes(self, tmp_path: Path):
        root = DocumentRoot(tmp_path)

        assert root.resolve("/a.txt") == tmp_path / "a.txt"
        assert root.resolve("//a.txt") == tmp_path / "a.txt"
        assert root.resolve("/") == tmp_path

    def test_no_containment_by_default(self, tmp_path: Path):
        root = DocumentRoot(tmp_path)

        assert root.resolve("/../etc/passwd") == tmp_path / ".." / "etc" / "passwd"

    def test_containment_rejects_escape(self, tmp_path: Path):
        root = DocumentRoot(tmp_path, contain=True)

        with pytest.raises(PathEscapeError):
            root.resolve("/../etc/passwd")

    def test_containment_allows_inner_dotdot(self, tmp_path: Path):
        (tmp_path / "a").mkdir()
        root = DocumentRoot(tmp_path, contain=True)

        assert root.resolve("/a/../b.txt") == tmp_path / "a" / ".." / "b.txt"


class TestGet:

    def test_returns_file_bytes_and_type(self, handler: FileHandler, docroot: Path):
        response = handler.handle(make_request("GET", "/image.png"))

        assert response.status == HTTPStatus.OK
        assert response.content_type == "image/png"
        assert response.body == (docroot / "image.png").read_bytes()

    def test_unknown_extension_is_octet_stream(self, handler: FileHandler):
        response = handler.handle(make_request("GET", "/data.bin"))

        assert response.content_type == "application/octet-stream"

    def test_nested_file(self, handler: FileHandler):
        response = handler.handle(make_request("GET", "/docs/readme.txt"))

        assert response.body == b"read me"
        assert response.content_type == "text/plain"

    def test_missing_file(self, handler: FileHandler):
        response = handler.handle(make_request("GET", "/nope.txt"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b"File not found"

    def test_directory_is_not_found(self, handler: FileHandler):
        assert handler.handle(make_request("GET", "/docs")).status == HTTPStatus.NOT_FOUND

    def test_custom_registry(self, docroot: Path):
        (docroot / "logo.svg").write_text("<svg/>")
        mime = MimeRegistry.default().add("svg", "image/svg+xml")
        handler = FileHandler(DocumentRoot(docroot), mime)

        assert handler.handle(make_request("GET", "/logo.svg")).content_type == "image/svg+xml"

    @pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs non-root POSIX permissions")
    def test_unreadable_file_is_500(self, handler: FileHandler, docroot: Path):
        secret = docroot / "locked.txt"
        secret.write_text("x")
        secret.chmod(0)
        try:
            response = handler.handle(make_request("GET", "/locked.txt"))
        finally:
            secret.chmod(0o644)

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b"Error reading file"


class TestHead:

    def test_same_headers_as_get_without_body(self, handler: FileHandler, docroot: Path):
        get = handler.handle(make_request("GET", "/index.html"))
        head = handler.handle(make_request("HEAD", "/index.html"))

        assert head.status == get.status
        assert head.content_type == get.content_type
        assert head.declared_length == (docroot / "index.html").stat().st_size
        assert head.declared_length == get.declared_length
        assert head.transmitted_body == b""

    def test_missing_file(self, handler: FileHandler):
        head = handler.handle(make_request("HEAD", "/nope.txt"))

        assert head.status == HTTPStatus.NOT_FOUND
        assert head.transmitted_body == b""
        assert head.declared_length == len(b"File not found")

    def test_escape_with_containment(self, docroot: Path):
        handler = FileHandler(DocumentRoot(docroot, contain=True))
        head = handler.handle(make_request("HEAD", "/../x"))

        assert head.status == HTTPStatus.FORBIDDEN
        assert head.transmitted_body == b""


class TestPut:

    def test_creates_file(self, handler: FileHandler, docroot: Path):
        response = handler.handle(make_request("PUT", "/new.txt", b"fresh"))

        assert response.status == HTTPStatus.CREATED
        assert response.body == b"File successfully created or updated"
        assert (docroot / "new.txt").read_bytes() == b"fresh"

    def test_truncates_existing(self, handler: FileHandler, docroot: Path):
        handler.handle(make_request("PUT", "/notes.txt", b"ab"))

        assert (docroot / "notes.txt").read_bytes() == b"ab"

    def test_empty_body(self, handler: FileHandler, docroot: Path):
        response = handler.handle(make_request("PUT", "/empty.txt"))

        assert response.status == HTTPStatus.CREATED
        assert (docroot / "empty.txt").read_bytes() == b""

    def test_copies_only_content_length_bytes(self, handler: FileHandler, docroot: Path):
        request = make_request("PUT", "/part.txt", b"0123456789", content_length=4)
        handler.handle(request)

        assert (docroot / "part.txt").read_bytes() == b"0123"

    def test_short_body_keeps_what_arrived(self, handler: FileHandler, docroot: Path):
        request = make_request("PUT", "/short.txt", b"abc", content_length=100)
        response = handler.handle(request)

        assert response.status == HTTPStatus.CREATED
        assert (docroot / "short.txt").read_bytes() == b"abc"

    def test_invalid_content_length_writes_empty_file(self, handler: FileHandler, docroot: Path):
        request = make_request("PUT", "/bad.txt", b"payload", content_length="lots")
        response = handler.handle(request)

        assert response.status == HTTPStatus.CREATED
        assert (docroot / "bad.txt").read_bytes() == b""

    def test_large_body_spans_chunks(self, handler: FileHandler, docroot: Path):
        body = os.urandom(COPY_CHUNK_SIZE * 2 + 17)
        handler.handle(make_request("PUT", "/big.bin", body))

        assert (docroot / "big.bin").read_bytes() == body

    def test_missing_parent_directory_is_500(self, handler: FileHandler):
        response = handler.handle(make_request("PUT", "/no/such/dir.txt", b"x"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b"Error writing file"

    def test_put_onto_directory_is_500(self, handler: FileHandler):
        response = handler.handle(make_request("PUT", "/docs", b"x"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR


class TestDelete:

    def test_removes_file(self, handler: FileHandler, docroot: Path):
        response = handler.handle(make_request("DELETE", "/notes.txt"))

        assert response.status == HTTPStatus.NO_CONTENT
        assert response.transmitted_body == b""
        assert not (docroot / "notes.txt").exists()

    def test_missing_file(self, handler: FileHandler):
        response = handler.handle(make_request("DELETE", "/nope.txt"))

        assert response.status == HTTPStatus.NOT_FOUND

    def test_empty_directory(self, handler: FileHandler, docroot: Path):
        (docroot / "empty").mkdir()

        assert handler.handle(make_request("DELETE", "/empty")).status == HTTPStatus.NO_CONTENT
        assert not (docroot / "empty").exists()

    def test_non_empty_directory_is_500(self, handler: FileHandler, docroot: Path):
        response = handler.handle(make_request("DELETE", "/docs"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b"Failed to delete file"
        assert (docroot / "docs" / "readme.txt").exists()

    def test_then_get_is_404(self, handler: FileHandler):
        handler.handle(make_request("DELETE", "/index.html"))

        assert handler.handle(make_request("GET", "/index.html")).status == HTTPStatus.NOT_FOUND


class TestDispatch:

    @pytest.mark.parametrize("method", ["POST", "PATCH", "OPTIONS", "get", "TRACE"])
    def test_unsupported_methods(self, handler: FileHandler, method: str):
        response = handler.handle(make_request(method, "/index.html"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.body == b"Unsupported HTTP method"

    def test_escape_with_containment(self, docroot: Path):
        handler = FileHandler(DocumentRoot(docroot, contain=True))
        response = handler.handle(make_request("GET", "/../../etc/passwd"))

        assert response.status == HTTPStatus.FORBIDDEN
