"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the file server can be told at startup, in one frozen dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌────────────────────┐     ┌────────────────────┐     ┌──────────────┐
    │ Defaults           │ ──► │ Environment        │ ──► │ CLI args     │
    │ (this module)      │     │ FILESERVER_*       │     │ __main__.py  │
    └────────────────────┘     └────────────────────┘     └──────────────┘
                                  lowest ──────────────────► highest

The only two values an operator must think about are the port and the
document root. Everything else has a default matching the plain behaviour:
ten workers, an unbounded wait queue, no read timeout, no path containment.

=============================================================================
FAIL FAST
=============================================================================

validate() is called before any socket is opened. A bad port or a missing
document root stops the process with a clear message instead of starting a
server that cannot serve anything.

=============================================================================
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional


LOG_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the file server.

    Frozen: one instance is shared read-only by the accept loop and every
    worker.

    Example:
        ServerConfig(port=8080, document_root="/var/www", workers=10)
    """

    # NETWORK
    host: str = "0.0.0.0"
    port: int = 8080
    """Port to listen on. 0 lets the OS pick a free port."""

    backlog: int = 128
    """Pending connections the kernel queues before refusing new ones."""

    # FILES
    document_root: str = "."
    """Directory request targets are resolved against."""

    contain_paths: bool = False
    """
    Canonicalize resolved paths and answer 403 for anything outside the
    document root. Off by default: targets are joined onto the root as-is.
    """

    # AUTHENTICATION
    password_file: str = ".password"
    """Name of the per-directory credentials file."""

    realm: str = "667 Server"
    """Realm sent in the WWW-Authenticate challenge."""

    # THREAD POOL
    workers: int = 10
    """Fixed number of worker threads."""

    queue_size: int = 0
    """Connections allowed to wait for a worker. 0 means unbounded."""

    read_timeout: Optional[float] = None
    """
    Seconds a single socket read may block. None (default) blocks forever,
    so a stalled client holds its worker until it disconnects.
    """

    # LOGGING
    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @property
    def root_path(self) -> Path:
        return Path(self.document_root)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        FILESERVER_HOST          Bind address (default: 0.0.0.0)
        FILESERVER_PORT          Port (default: 8080)
        FILESERVER_ROOT          Document root (default: .)
        FILESERVER_WORKERS       Worker threads (default: 10)
        FILESERVER_READ_TIMEOUT  Read timeout in seconds (default: none)
        FILESERVER_LOG_LEVEL     Logging level (default: INFO)

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        read_timeout = os.getenv("FILESERVER_READ_TIMEOUT")

        return cls(
            host=os.getenv("FILESERVER_HOST", "0.0.0.0"),
            port=int(os.getenv("FILESERVER_PORT", "8080")),
            document_root=os.getenv("FILESERVER_ROOT", "."),
            workers=int(os.getenv("FILESERVER_WORKERS", "10")),
            read_timeout=float(read_timeout) if read_timeout else None,
            log_level=os.getenv("FILESERVER_LOG_LEVEL", "INFO").upper(),
        )

    def with_overrides(self, **changes) -> "ServerConfig":
        """
        Return a copy with some fields replaced.

        Keys whose value is None are ignored, so unset CLI options can be
        passed straight through.
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)

    def validate(self) -> None:
        """
        Check every value before the server starts.

        Raises:
            ValueError: Describing the first invalid value found.
        """
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not self.root_path.is_dir():
            raise ValueError(f"Document root is not a directory: {self.document_root}")

        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

        if self.queue_size < 0:
            raise ValueError(f"queue_size must be >= 0, got {self.queue_size}")

        if self.backlog < 1:
            raise ValueError(f"backlog must be >= 1, got {self.backlog}")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be > 0, got {self.read_timeout}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {self.log_format!r}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")

        if not self.password_file or "/" in self.password_file:
            raise ValueError(f"password_file must be a plain file name, got {self.password_file!r}")
