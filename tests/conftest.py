"""
pytest configuration and fixtures.
"""

import logging
import socket
import threading
from typing import Dict, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig


@pytest.fixture(autouse=True)
def reset_package_logger():
    """FileServer.run() sets the package log level; undo it between tests."""
    yield
    logging.getLogger("fileserver").setLevel(logging.NOTSET)


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /index.html HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_put_request() -> bytes:
    """Sample HTTP PUT request with a body."""
    body = b"hello world"
    head = (
        "PUT /notes/todo.txt HTTP/1.1\r\n"
        "Host: localhost:8080\r\n"
        f"Content-Length: {len(body)}\r\n"
        "\r\n"
    )
    return head.encode("ascii") + body


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """A document root with a few files in it."""
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_text("<html><body>Hello</body></html>")
    (root / "notes.txt").write_text("plain text")
    (root / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n" + bytes(range(256)))
    (root / "data.bin").write_bytes(b"\x00\x01\x02")
    (root / "docs").mkdir()
    (root / "docs" / "readme.txt").write_text("read me")
    return root


@pytest.fixture
def protected_dir(docroot: Path) -> Path:
    """A subdirectory gated by a .password file."""
    private = docroot / "private"
    private.mkdir()
    (private / ".password").write_text("alice:secret\nbob:hunter2\n")
    (private / "report.txt").write_text("top secret")
    return private


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


# =============================================================================
# RAW HTTP CLIENT
# =============================================================================

class RawResponse:
    """A response read off the wire, split into its parts."""

    def __init__(self, raw: bytes):
        self.raw = raw
        head, _, self.body = raw.partition(b"\r\n\r\n")
        lines = head.decode("iso-8859-1").split("\r\n")

        self.status_line = lines[0]
        version, code, *reason = self.status_line.split(" ")
        self.version = version
        self.status = int(code)
        self.reason = " ".join(reason)

        self.header_names = []
        self.headers: Dict[str, str] = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            self.header_names.append(name)
            self.headers[name.lower()] = value.strip()

    @property
    def content_length(self) -> Optional[int]:
        value = self.headers.get("content-length")
        return int(value) if value is not None else None


def send_raw(address: Tuple[str, int], data: bytes, timeout: float = 5.0) -> RawResponse:
    """Send raw bytes, half-close, and read the response until EOF."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        sock.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)

    return RawResponse(b"".join(chunks))


def request(
    address: Tuple[str, int],
    method: str,
    target: str,
    body: bytes = b"",
    headers: Optional[Dict[str, str]] = None,
) -> RawResponse:
    """Build and send a well-formed HTTP/1.1 request."""
    lines = [f"{method} {target} HTTP/1.1", "Host: localhost"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if body:
        lines.append(f"Content-Length: {len(body)}")
    head = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
    return send_raw(address, head + body)


# =============================================================================
# TEST SERVER
# =============================================================================

class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return ("127.0.0.1", self.server.address[1])

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, method: str, target: str, **kwargs) -> RawResponse:
        return request(self.address, method, target, **kwargs)

    def send_raw(self, data: bytes) -> RawResponse:
        return send_raw(self.address, data)


def make_config(root: Path, **overrides) -> ServerConfig:
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        document_root=str(root),
        workers=4,
        log_level="WARNING",
    ).with_overrides(**overrides)


@pytest.fixture
def server_factory() -> Generator:
    """Start servers with custom config; every one is stopped afterwards."""
    started = []

    def factory(root: Path, **overrides) -> TestServer:
        test_srv = TestServer(FileServer(make_config(root, **overrides)))
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield factory

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def test_server(server_factory, docroot: Path) -> TestServer:
    """A running server over the docroot fixture."""
    return server_factory(docroot)
