"""Per-connection request handling: parse the request line, route, respond, close."""

import socket
import uuid
from contextlib import suppress
from pathlib import Path

import structlog

from minihttpd.core.logger import LogIcon, logger
from minihttpd.core.reader import read_line
from minihttpd.core.response import write_response
from minihttpd.core.router import Router
from minihttpd.core.settings import Settings
from minihttpd.models.core import Request


class ConnectionHandler:
    """Owns one accepted socket for its whole lifetime."""

    def __init__(self, router: Router, root: Path, settings: Settings) -> None:
        self.router = router
        self.root = root
        self.settings = settings

    def __call__(self, client: socket.socket, address: tuple) -> None:
        structlog.contextvars.bind_contextvars(
            connection_id=uuid.uuid4().hex[:8],
            client=f"{address[0]}:{address[1]}" if len(address) >= 2 else str(address),
        )
        reader = writer = None
        try:
            client.settimeout(self.settings.READ_TIMEOUT)
            reader = client.makefile("rb")
            writer = client.makefile("wb")
            self.handle(reader, writer)
        except TimeoutError:
            logger.warning("Client timed out", icon=LogIcon.TIMEOUT)
        except OSError as ex:
            logger.warning("Client error", icon=LogIcon.NETWORK, error=str(ex))
        except Exception:
            logger.exception("Unhandled error while handling request", icon=LogIcon.ERROR)
        finally:
            for resource in (writer, reader, client):
                if resource is not None:
                    with suppress(OSError):
                        resource.close()
            structlog.contextvars.clear_contextvars()

    def handle(self, reader, writer) -> None:
        """Serve a single request; malformed or unrouted requests get no response."""
        request_line = read_line(reader)
        if not request_line:
            return

        tokens = request_line.split(" ")
        if len(tokens) < 2:
            logger.warning("Malformed request line", icon=LogIcon.WARNING, line=request_line[:80])
            return

        method, path = tokens[0], tokens[1]
        if method == "GET" and path == "/":
            path = self.settings.INDEX_PATH
        logger.info("Received request", icon=LogIcon.NETWORK, method=method, path=path)

        handler = self.router.resolve(method, path)
        if handler is None:
            logger.warning("No route for request", icon=LogIcon.FORBIDDEN, method=method, path=path)
            return

        response = handler(Request(method, path, reader, self.root))
        if response is not None:
            write_response(writer, response, self.settings.CHUNK_SIZE)
