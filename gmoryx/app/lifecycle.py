# gmoryx/app/lifecycle.py
# start/stop sequencing for the embedded server, driven by host resume/pause
import enum
import logging
import threading
from typing import Optional

from .addresses import AddressResolver, display_url
from .api import root_handler
from .config import ServerConfig
from .errors import ShutdownFailure, StartupFailure
from .httpd import HttpServer

logger = logging.getLogger(__name__)


class ServerState(enum.Enum):
    STOPPED = 'stopped'
    STARTING = 'starting'
    RUNNING = 'running'
    STOPPING = 'stopping'


class ServerLifecycle:
    """
    Owns the server state. activate() and deactivate() may be called any
    number of times in any order; the server is bound at most once per
    activation and shut down at most once per deactivation.
    """

    def __init__(self, server=None, resolver: Optional[AddressResolver] = None,
                 config: Optional[ServerConfig] = None, handler=root_handler):
        self.config = config if config is not None else ServerConfig()
        if server is None:
            server = HttpServer(log_level=self.config.log_level,
                                shutdown_timeout=self.config.shutdown_timeout)
        self.server = server
        self.resolver = resolver if resolver is not None else AddressResolver()
        self.handler = handler
        self._state = ServerState.STOPPED
        self._lock = threading.Lock()

    @property
    def state(self) -> ServerState:
        return self._state

    def activate(self) -> Optional[str]:
        """
        Register "/" and start listening. Returns the text to show the user,
        or None when the server was not stopped to begin with.
        """
        with self._lock:
            if self._state is not ServerState.STOPPED:
                logger.debug("activate ignored, server is %s", self._state.value)
                return None

            self._state = ServerState.STARTING
            try:
                if self.config.server_identity:
                    self.server.set_server_identity(self.config.server_identity)
                self.server.register_handler("/", self.handler)
                self.server.listen_and_serve(self.config.bind_address)
            except Exception as e:
                self._state = ServerState.STOPPED
                logger.error("server failed to start on %s: %s", self.config.bind_address, e)
                raise StartupFailure(f"cannot start server on {self.config.bind_address}: {e}",
                                     cause=e) from e

            self._state = ServerState.RUNNING
            # ":0" binds an ephemeral port; show the one we got
            bound = getattr(self.server, "server_address", None)
            port = bound[1] if bound else self.config.port
            logger.info("server running on %s, port %s", self.config.bind_address, port)

        return display_url(self.resolver.resolve_primary_address(), port)

    def deactivate(self):
        with self._lock:
            if self._state is not ServerState.RUNNING:
                logger.debug("deactivate ignored, server is %s", self._state.value)
                return

            self._state = ServerState.STOPPING
            try:
                self.server.shutdown()
            except Exception as e:
                failure = e if isinstance(e, ShutdownFailure) else ShutdownFailure(str(e))
                logger.warning("server shutdown failed, marking stopped anyway: %s", failure)
            else:
                logger.info("deactivated")
            finally:
                self._state = ServerState.STOPPED
