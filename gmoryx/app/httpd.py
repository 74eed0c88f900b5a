# gmoryx/app/httpd.py
# embeddable http server: FastAPI routes served by uvicorn on a background thread
import logging
import socket
import threading
from typing import Callable, Dict, Optional, Tuple

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.routing import Route

from .errors import HandlerRenderFailure, ShutdownFailure

logger = logging.getLogger(__name__)

DEFAULT_HOST = '0.0.0.0'
HANDLER_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def parse_bind_address(value: str) -> Tuple[str, int]:
    """
    Split "host:port" the way net.Listen reads it. ":8080" binds all
    interfaces, "[::1]:8080" is a v6 literal.
    """
    host, sep, port = value.rpartition(':')
    if not sep:
        raise ValueError(f"bind address {value!r} has no port")
    if host.startswith('[') and host.endswith(']'):
        host = host[1:-1]
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"bind address {value!r} has an invalid port") from None
    if not 0 <= port_num <= 65535:
        raise ValueError(f"port {port_num} out of range")
    return host or DEFAULT_HOST, port_num


class ResponseWriter:
    """Collects what a handler writes; turned into one response afterwards."""

    def __init__(self, server_identity: Optional[str] = None):
        self.server_identity = server_identity
        self.status_code = 200
        self.headers: Dict[str, str] = {}
        self._chunks = []

    def set_server_header(self):
        if self.server_identity:
            self.headers["Server"] = self.server_identity

    def write(self, data) -> int:
        if isinstance(data, str):
            try:
                data = data.encode('utf-8')
            except UnicodeEncodeError as e:
                raise HandlerRenderFailure(f"cannot encode body: {e}") from e
        elif not isinstance(data, (bytes, bytearray)):
            raise HandlerRenderFailure(f"cannot write {type(data).__name__}")
        self._chunks.append(bytes(data))
        return len(data)

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    def to_response(self) -> Response:
        return Response(content=self.body, status_code=self.status_code,
                        headers=self.headers, media_type="text/html")


Handler = Callable[[ResponseWriter, Request], None]


class HttpServer:
    def __init__(self, log_level: str = 'info', shutdown_timeout: float = 5.0):
        self.app = FastAPI(title="GMOryx HTTPD", docs_url=None, redoc_url=None,
                           openapi_url=None)
        self.log_level = log_level
        self.shutdown_timeout = shutdown_timeout
        self.server_identity: Optional[str] = None
        self._routes: Dict[str, Route] = {}
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._sock: Optional[socket.socket] = None
        self._error: Optional[BaseException] = None

    def set_server_identity(self, name: Optional[str]):
        self.server_identity = name or None

    def register_handler(self, pattern: str, handler: Handler):
        # ServeMux rules: "/x/" matches the subtree, "/x" only itself
        path = pattern + "{rest:path}" if pattern.endswith('/') else pattern

        route = Route(path, self._endpoint(handler, pattern), methods=HANDLER_METHODS,
                      include_in_schema=False)
        # ids taken before the swap so a replaced route is dropped too
        managed = set(map(id, self._routes.values()))
        self._routes[pattern] = route

        # first match wins in starlette: routes added through the app first,
        # then exact patterns before subtrees, longest first
        others = [r for r in self.app.router.routes if id(r) not in managed]
        ordered = sorted(self._routes, key=lambda p: (p.endswith('/'), -len(p)))
        self.app.router.routes[:] = others + [self._routes[p] for p in ordered]
        logger.debug("handler registered for %s", pattern)

    @property
    def server_address(self) -> Optional[Tuple[str, int]]:
        if self._sock is None:
            return None
        return self._sock.getsockname()[:2]

    def _endpoint(self, handler: Handler, label: str):
        def endpoint(request: Request) -> Response:
            w = ResponseWriter(self.server_identity)
            try:
                handler(w, request)
            except Exception:
                logger.exception("handler for %s failed", label)
                return Response(status_code=500)
            return w.to_response()
        return endpoint

    def listen_and_serve(self, bind_address: str, handler: Optional[Handler] = None):
        """
        Bind and serve in the background. A handler given here takes every
        request and the registered patterns are not consulted.
        """
        if self._sock is not None:
            raise RuntimeError("server is already listening")
        host, port = parse_bind_address(bind_address)
        # bind here, not in uvicorn, so a busy port fails the caller
        sock = _listen(host, port)

        app = self.app
        if handler is not None:
            app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
            app.router.routes.append(Route("/{rest:path}", self._endpoint(handler, "*"),
                                           methods=HANDLER_METHODS, include_in_schema=False))
        config = uvicorn.Config(app, log_level=self.log_level,
                                server_header=False, lifespan='off')
        self._server = uvicorn.Server(config)
        self._sock = sock
        self._error = None
        self._thread = threading.Thread(target=self._serve, args=(self._server, sock),
                                        daemon=True, name="gmoryx-httpd")
        self._thread.start()
        logger.info("listening on %s:%s", *self.server_address)

    def _serve(self, server, sock):
        try:
            server.run(sockets=[sock])
        except (Exception, SystemExit) as e:
            logger.exception("http server stopped unexpectedly")
            self._error = e

    def shutdown(self):
        server, thread, sock = self._server, self._thread, self._sock
        self._server = self._thread = self._sock = None
        if server is None:
            return

        server.should_exit = True
        thread.join(self.shutdown_timeout)
        sock.close()
        if thread.is_alive():
            raise ShutdownFailure(
                f"server thread still running after {self.shutdown_timeout}s")

        error, self._error = self._error, None
        if error is not None:
            raise ShutdownFailure(f"server failed while serving: {error}") from error
        logger.info("server stopped")


def _listen(host: str, port: int, backlog: int = 128) -> socket.socket:
    family = socket.AF_INET6 if ':' in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock
