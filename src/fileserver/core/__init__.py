"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the file server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ SOCKET SERVER (socket_server.py)                                    │
    │   binds, listens, runs the accept() loop on the caller's thread     │
    └─────────────────────────────────┬───────────────────────────────────┘
                                      │ one Connection per accept()
                                      ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │ THREAD POOL (thread_pool.py)                                        │
    │   fixed workers (default 10), unbounded queue unless configured     │
    └─────────────────────────────────┬───────────────────────────────────┘
                                      │ worker runs the connection
                                      ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │ CONNECTION (connection.py)                                          │
    │   buffered reader, sendall(), graceful close, one request only      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .thread_pool import ThreadPool, Worker, WorkerState, Task
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",
    "ThreadPool",
    "Worker",
    "WorkerState",
    "Task",
    "Connection",
    "ConnectionState",
]
