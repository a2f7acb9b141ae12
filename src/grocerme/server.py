"""
=============================================================================
GROCERME SERVER
=============================================================================

Ties the transport to the application: accept sockets, read requests on
worker threads, dispatch them through the router, write responses back.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SERVER ARCHITECTURE                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    ┌──────────────┐   submit    ┌────────────────────┐              │
    │    │ SocketServer │────────────►│ ThreadPoolExecutor │              │
    │    │ accept loop  │             │ (max_workers)      │              │
    │    └──────────────┘             └─────────┬──────────┘              │
    │                                           │ worker thread           │
    │                                           ▼                          │
    │                             _process_connection(conn)               │
    │                                read → parse → router.handle         │
    │                                → send → keep-alive?                 │
    │                                                                      │
    │    Router.handle:                                                    │
    │        Logging → CORS → [route handler | gate → handler | 404]      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ERRORS AT THIS LAYER
=============================================================================

    ┌──────────────────────────────┬──────────────────────────────────────┐
    │ What went wrong              │ What the client gets                 │
    ├──────────────────────────────┼──────────────────────────────────────┤
    │ Unparseable request          │ 400/405/413/505 {"error"}, close     │
    │ Request bigger than limit    │ 413 {"error"}, close                 │
    │ First request never arrives  │ 408 {"error"}, close                 │
    │ Handler raised               │ 500 {"error"}, logged with traceback │
    └──────────────────────────────┴──────────────────────────────────────┘

A handler exception never takes the worker down; the connection stays
usable for the next request if the client asked for keep-alive.

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: "Why freeze the router before serving?"
A: "Workers read the route table concurrently with no lock. Freezing
   makes that safe: nothing can change it after the first accept."

Q: "What happens during graceful shutdown?"
A: "Stop accepting, let in-flight requests finish (executor shutdown
   with wait=True), then exit. Idle keep-alive connections end on their
   own after keep_alive_timeout."

=============================================================================
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple
import logging
import threading

from .config import AppConfig
from .core.connection import Connection, RequestTooLarge
from .core.socket_server import SocketServer
from .http.request import HTTPParseError, RequestParser
from .http.response import error_response, internal_error
from .http.router import Router
from .http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


def setup_logging(config: AppConfig) -> None:
    """Configure the root logger from config.log_level."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("grocerme").setLevel(level)


class GrocerServer:
    """
    HTTP/1.1 server for one Router.

    Example:
        config = AppConfig.from_env()
        config.validate()
        server = GrocerServer(config, create_app(config))
        server.run()   # blocks until SIGINT/SIGTERM
    """

    def __init__(self, config: AppConfig, app: Router):
        self.config = config
        self.app = app
        self._parser = RequestParser(max_request_size=config.max_request_size)
        self._socket_server = SocketServer(config)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._running = False

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """The bound (host, port), once listening."""
        return self._socket_server.bound_address

    def run(self) -> None:
        """Serve until shutdown() or a termination signal."""
        self.app.freeze()
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="grocerme-worker",
        )
        self._running = True

        logger.info(f"Starting {self.config.server_name} with {self.config.max_workers} workers")
        for line in self.app.format_routes().splitlines():
            logger.debug(line)

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def start_in_background(self, timeout: float = 5.0) -> threading.Thread:
        """
        run() on a daemon thread and wait until the socket is listening.

        Raises:
            RuntimeError: The server did not come up within timeout.
        """
        thread = threading.Thread(target=self.run, name="grocerme-server", daemon=True)
        thread.start()
        if not self._socket_server.wait_until_ready(timeout):
            raise RuntimeError("Server did not start listening in time")
        return thread

    def shutdown(self) -> None:
        self._socket_server.shutdown()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _shutdown(self) -> None:
        logger.info("Shutting down server...")
        self._running = False
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        logger.info("Server stopped")

    # =========================================================================
    # PER-CONNECTION WORK (worker threads)
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        try:
            self._executor.submit(self._process_connection, conn)
        except RuntimeError:
            # executor already shut down
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server shutting down")
            conn.close()

    def _process_connection(self, conn: Connection) -> None:
        """Keep-alive loop: read, parse, dispatch, send, repeat."""
        try:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLarge as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break
                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.info(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                    self._send_error(conn, e.status_code, str(e))
                    break

                try:
                    response = self.app.handle(request)
                except Exception as e:
                    logger.exception(f"[{conn.id}] Handler error: {e}")
                    response = internal_error()

                keep_alive = request.is_keep_alive and self.config.keep_alive
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break
                if not keep_alive:
                    break
        except Exception as e:
            logger.exception(f"[{conn.id}] Connection error: {e}")
        finally:
            conn.close()

    def _send_error(self, conn: Connection, status: int, message: str) -> None:
        """Error sent before a request reached the router."""
        response = error_response(status, message)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))
