"""Test fixtures for minihttpd unit tests."""

import io
import socket
import threading
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from minihttpd.core.lifespan import State
from minihttpd.core.server import Server
from minihttpd.core.settings import Settings
from minihttpd.models.core import Request

INDEX_HTML = b"<html><body>hello</body></html>"
LOGO_PNG = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + bytes(range(256))


# -----------------------------------------------------------------------------
# Raw HTTP helpers
# -----------------------------------------------------------------------------


@dataclass
class RawResponse:
    """A response split into status line, headers and body bytes."""

    status_line: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def status_code(self) -> int:
        return int(self.status_line.split(" ")[1])


def split_response(raw: bytes) -> RawResponse:
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return RawResponse(status_line=lines[0], headers=headers, body=body)


def build_multipart(boundary: str, parts: list[tuple[str, str | None, bytes]]) -> bytes:
    """Encode ``(name, filename, data)`` parts as a multipart/form-data body."""
    chunks = []
    for name, filename, data in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        chunks.append(f"--{boundary}\r\nContent-Disposition: {disposition}\r\n".encode("latin-1"))
        if filename is not None:
            chunks.append(b"Content-Type: application/octet-stream\r\n")
        chunks.append(b"\r\n" + data + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode("latin-1"))
    return b"".join(chunks)


def upload_request(boundary: str, body: bytes, content_length: int | None = None) -> bytes:
    length = len(body) if content_length is None else content_length
    return (
        b"Host: localhost\r\n"
        + f"Content-Type: multipart/form-data; boundary={boundary}\r\n".encode("latin-1")
        + f"Content-Length: {length}\r\n\r\n".encode("latin-1")
        + body
    )


# -----------------------------------------------------------------------------
# Served root
# -----------------------------------------------------------------------------


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    """A served root with an index page, an image and a credential file."""
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "logo.png").write_bytes(LOGO_PNG)
    (root / "notes.txt").write_bytes(b"plain notes")
    (root / "login.txt").write_text("username=admin\npassword=secret\n")
    (tmp_path / "secret.txt").write_bytes(b"outside the root")
    return root


@pytest.fixture
def make_request(public_dir: Path) -> Callable[..., Request]:
    """Factory fixture building a Request over an in-memory stream."""

    def _make(method: str = "GET", path: str = "/", data: bytes = b"") -> Request:
        return Request(method, path, io.BytesIO(data), public_dir)

    return _make


# -----------------------------------------------------------------------------
# Live server
# -----------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        API_HOST="127.0.0.1",
        READ_TIMEOUT=5.0,
        ACCEPT_POLL_INTERVAL=0.05,
        DEBUG=True,
    )


@pytest.fixture
def test_state() -> State:
    """Create a test state container."""
    return State()


@pytest.fixture
def running_server(public_dir: Path, test_settings: Settings) -> Generator[Server, None, None]:
    """A server bound to an ephemeral port, stopped and drained after the test."""
    server = Server(0, public_dir, settings=test_settings)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    assert server.wait_ready(timeout=5)
    yield server
    server.stop()
    thread.join(timeout=10)


@pytest.fixture
def exchange(running_server: Server) -> Callable[[bytes], RawResponse]:
    """Send raw request bytes and read until the server closes the connection."""

    def _exchange(raw: bytes) -> RawResponse:
        with socket.create_connection(running_server.address[:2], timeout=5) as sock:
            sock.sendall(raw)
            received = bytearray()
            while chunk := sock.recv(4096):
                received.extend(chunk)
        return split_response(bytes(received))

    return _exchange


@pytest.fixture
def multipart() -> Callable[..., bytes]:
    """Expose the multipart body builder to tests."""
    return build_multipart


@pytest.fixture
def upload_headers() -> Callable[..., bytes]:
    """Expose the upload header block builder to tests."""
    return upload_request


@pytest.fixture
def parse_raw() -> Callable[[bytes], RawResponse]:
    """Expose the raw response splitter to tests."""
    return split_response
