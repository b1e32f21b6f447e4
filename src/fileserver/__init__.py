"""
=============================================================================
FILESERVER
=============================================================================

A minimal HTTP/1.1 origin server built on raw sockets and a thread pool.

Each connection carries exactly one request. The server answers GET, HEAD,
PUT and DELETE against files under a document root, and any directory that
holds a ``.password`` file is protected with HTTP Basic authentication.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │  accept ──► thread pool ──► parse ──► access log ──► auth gate      │
    │                                                          │           │
    │                                                          ▼           │
    │                         close ◄── write response ◄── file handler   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    $ python -m fileserver 8080 /var/www

    $ curl -X PUT --data-binary @notes.txt http://localhost:8080/notes.txt
    File successfully created or updated

    $ echo "alice:secret" > /var/www/private/.password
    $ curl -u alice:secret http://localhost:8080/private/report.html

Or embedded:

    from fileserver import FileServer, ServerConfig

    server = FileServer(ServerConfig(port=8080, document_root="/var/www"))
    server.run()

Not supported: keep-alive, chunked transfer-encoding, range requests, TLS,
pipelining and directory listings.

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer
from .config import ServerConfig

__all__ = ["FileServer", "ServerConfig", "__version__"]
