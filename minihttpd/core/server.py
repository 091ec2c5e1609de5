"""TCP acceptor feeding a bounded worker pool."""

import socket
import threading
from contextlib import suppress
from pathlib import Path

from minihttpd.api.routes import create_router
from minihttpd.core.connection import ConnectionHandler
from minihttpd.core.lifespan import Lifespan, create_lifespan
from minihttpd.core.logger import LogIcon, logger
from minihttpd.core.reader import ENCODING
from minihttpd.core.response import service_unavailable
from minihttpd.core.router import Router
from minihttpd.core.settings import Settings, settings as st
from minihttpd.events.admission import AdmissionEvent
from minihttpd.events.worker_pool import WorkerPoolEvent

REJECT_TIMEOUT = 1.0


class Server:
    """Accepts connections until stopped and hands each one to a worker.

    Admission is capped at ``MAX_WORKERS + MAX_PENDING`` connections; beyond
    that new clients get a 503 straight from the accept loop.
    """

    def __init__(
        self,
        port: int,
        public_dir: str | Path,
        settings: Settings | None = None,
        router: Router | None = None,
    ) -> None:
        if router is None:
            router = create_router()
        self.port = port
        self.root = Path(public_dir)
        self.settings = settings or st
        self.handler = ConnectionHandler(router, self.root, self.settings)
        self.lifespan: Lifespan = create_lifespan(self.settings)
        self.lifespan.register(WorkerPoolEvent).register(AdmissionEvent)
        self.address: tuple | None = None
        self._ready = threading.Event()
        self._stopping = threading.Event()

    def wait_ready(self, timeout: float | None = None) -> bool:
        return self._ready.wait(timeout)

    def stop(self) -> None:
        """Stop accepting; ``serve_forever`` drains in-flight connections and returns."""
        self._stopping.set()

    def serve_forever(self) -> None:
        try:
            listener = socket.create_server((self.settings.API_HOST, self.port), backlog=self.settings.BACKLOG)
        except OSError as ex:
            logger.critical("Failed to bind listening socket", icon=LogIcon.CRITICAL, port=self.port, error=str(ex))
            return

        state = self.lifespan.startup()
        try:
            with listener:
                listener.settimeout(self.settings.ACCEPT_POLL_INTERVAL)
                self.address = listener.getsockname()
                logger.info(
                    "Server started",
                    icon=LogIcon.START,
                    address=f"{self.address[0]}:{self.address[1]}",
                    root=str(self.root.resolve()),
                    workers=self.settings.MAX_WORKERS,
                )
                self._ready.set()
                self._accept_loop(listener, state.worker_pool, state.admission)
        finally:
            self.lifespan.shutdown()

    def _accept_loop(self, listener: socket.socket, pool, admission: threading.BoundedSemaphore) -> None:
        while not self._stopping.is_set():
            try:
                client, address = listener.accept()
            except TimeoutError:
                continue
            except OSError as ex:
                logger.critical("Accept failed", icon=LogIcon.CRITICAL, error=str(ex))
                return

            if not admission.acquire(blocking=False):
                logger.warning("Server saturated, rejecting connection", icon=LogIcon.EXHAUSTION, client=str(address))
                self._reject(client)
                continue

            future = pool.submit(self.handler, client, address)
            future.add_done_callback(lambda _: admission.release())

    @staticmethod
    def _reject(client: socket.socket) -> None:
        try:
            client.settimeout(REJECT_TIMEOUT)
            client.sendall(service_unavailable().head.encode(ENCODING))
        except OSError as ex:
            logger.warning("Failed to send rejection", icon=LogIcon.NETWORK, error=str(ex))
        finally:
            with suppress(OSError):
                client.close()
