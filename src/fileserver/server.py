"""
=============================================================================
FILE SERVER
=============================================================================

Ties the components together: socket server, thread pool, request parser,
middleware pipeline and file handler.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. ACCEPT           SocketServer accepts, wraps the socket in Connection
    2. QUEUE            ThreadPool.submit(); full bounded queue → 503, close
    3. PARSE            RequestParser reads the head from conn.reader
                        HTTPParseError → 400 / 505, close
                        OSError / timeout → log, close without a response
    4. PIPELINE         LoggingMiddleware → BasicAuthMiddleware → FileHandler
                        unexpected exception → 500
    5. SEND             one response, then the connection always closes

No request ever sees a second response, and no connection is reused.

=============================================================================
SHUTDOWN
=============================================================================

shutdown() stops the accept loop. run() then waits for queued connections
to finish (bounded by SHUTDOWN_TIMEOUT) and stops the workers. A worker
stuck on a stalled client is a daemon thread and does not hold the process.

=============================================================================
"""

import logging
from typing import Callable, Optional, Tuple

from .auth import AuthGate
from .config import ServerConfig
from .core import Connection, ConnectionState, SocketServer, ThreadPool
from .handlers import DocumentRoot, FileHandler
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    MimeRegistry,
    RequestParser,
    head_of,
    internal_error,
    service_unavailable,
    text_response,
)
from .middleware import BasicAuthMiddleware, LoggingMiddleware, MiddlewarePipeline


logger = logging.getLogger(__name__)

# Seconds run() waits for queued connections after the accept loop stops
SHUTDOWN_TIMEOUT = 5.0


class FileServer:
    """
    HTTP/1.1 file server: GET, HEAD, PUT and DELETE under a document root,
    with optional per-directory Basic authentication.

    Usage:
        server = FileServer(ServerConfig(port=8080, document_root="/var/www"))
        server.run()  # Blocks until SIGINT/SIGTERM or shutdown()

    From another thread:
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready()
        host, port = server.address
        ...
        server.shutdown()

    Raises:
        ValueError: From the constructor, if the configuration is invalid.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        mime_types: Optional[MimeRegistry] = None,
    ):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            workers=self.config.workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser()

        document_root = DocumentRoot(self.config.document_root, contain=self.config.contain_paths)
        self._file_handler = FileHandler(document_root, mime_types or MimeRegistry.default())

        gate = AuthGate(self.config.password_file, self.config.realm)

        self._middleware = MiddlewarePipeline()
        self._middleware.use(
            LoggingMiddleware(log_format=self.config.log_format),
            BasicAuthMiddleware(document_root, gate),
        )
        self._handler: Callable[[HTTPRequest], HTTPResponse] = self._middleware.wrap(
            self._file_handler.handle
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def stats(self) -> dict:
        return self._thread_pool.stats

    def run(self, configure_logging: bool = True):
        """
        Serve until shutdown() is called or SIGINT/SIGTERM arrives.

        Args:
            configure_logging: Install the root log handler. Embedders that
                configure logging themselves pass False.

        Raises:
            OSError: If the listening socket cannot be bound.
        """
        if configure_logging:
            self._setup_logging()

        # Bind before starting workers so a busy port fails cleanly
        self._socket_server.bind()

        self._thread_pool.start()
        host, port = self.address
        logger.info(
            f"Serving {self.config.document_root} on {host}:{port} "
            f"with {self.config.workers} workers"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Stop accepting connections. run() returns once workers drain."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections."""
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("fileserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._thread_pool.shutdown(wait=True, timeout=SHUTDOWN_TIMEOUT)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Queue a connection for a worker (runs on the accept thread)."""
        submitted = self._thread_pool.submit(self._process_connection, args=(conn,))

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            with conn:
                conn.send_response(service_unavailable().to_bytes())

    def _process_connection(self, conn: Connection):
        """
        Serve the single request on a connection (runs on a worker).

        The connection is closed on every path out of this method.
        """
        with conn:
            try:
                request = self._parser.parse(conn.reader, conn.address)
            except HTTPParseError as e:
                logger.info(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                self._send_error(conn, HTTPStatus(e.status_code), e.client_message)
                return
            except OSError as e:
                # Includes socket.timeout when read_timeout is set
                logger.warning(f"[{conn.id}] Dropping connection from {conn.client_ip}: {e}")
                return

            conn.state = ConnectionState.PROCESSING
            try:
                response = self._handler(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                response = internal_error()
                if request.method == "HEAD":
                    response = head_of(response)

            conn.send_response(response.to_bytes())

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Send an error for a request that never reached the pipeline."""
        conn.send_response(text_response(status, message).to_bytes())
