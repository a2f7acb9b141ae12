"""
=============================================================================
CORE - socket-level building blocks
=============================================================================

SocketServer:
    Owns the listening socket and the accept loop.

Connection:
    One client socket: buffered request reads, sendall() writes,
    keep-alive timeout between requests.

Worker threads come from concurrent.futures.ThreadPoolExecutor, created
by GrocerServer.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, RequestTooLarge

__all__ = [
    "SocketServer",
    "Connection",
    "RequestTooLarge",
]
