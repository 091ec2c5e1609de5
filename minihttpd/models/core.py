"""Core models for request/response handling."""

from enum import StrEnum
from pathlib import Path
from typing import BinaryIO

from pydantic import BaseModel, ConfigDict


class ContentType(StrEnum):
    """Content types served for static files, keyed by file extension."""

    HTML = "text/html"
    PNG = "image/png"
    OCTET_STREAM = "application/octet-stream"

    @classmethod
    def for_path(cls, path: Path) -> "ContentType":
        match path.suffix:
            case ".html":
                return cls.HTML
            case ".png":
                return cls.PNG
            case _:
                return cls.OCTET_STREAM


class Request:
    """One parsed request line plus the stream positioned right after it."""

    __slots__ = ("method", "path", "stream", "root")

    def __init__(self, method: str, path: str, stream: BinaryIO, root: Path) -> None:
        self.method = method
        self.path = path
        self.stream = stream
        self.root = root

    def __repr__(self) -> str:
        return f"Request({self.method} {self.path})"


class Response:
    """Status line, headers and either an in-memory body or a file to stream."""

    __slots__ = ("status_code", "reason", "headers", "body", "file")

    def __init__(
        self,
        status_code: int,
        reason: str,
        headers: dict[str, str] | None = None,
        body: bytes | str = b"",
        file: Path | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.headers = headers or {}
        self.body = body.encode("latin-1") if isinstance(body, str) else body
        self.file = file

    def __repr__(self) -> str:
        return f"Response({self.status_code} {self.reason})"

    @property
    def head(self) -> str:
        """Status line and header block, terminated by the blank line."""
        lines = [f"HTTP/1.1 {self.status_code} {self.reason}"]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        return "\r\n".join(lines) + "\r\n\r\n"


class Credentials(BaseModel):
    """The single username/password pair held in the credential file."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str

    def matches(self, username: str, password: str) -> bool:
        return self.username == username and self.password == password


class UploadForm:
    """Fields and files collected from a multipart/form-data body."""

    __slots__ = ("fields", "files")

    def __init__(
        self,
        fields: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes]] | None = None,
    ) -> None:
        self.fields = fields or {}
        self.files = files or {}

    def __bool__(self) -> bool:
        return bool(self.fields or self.files)

    def field(self, name: str) -> str | None:
        """Get a text field value by name."""
        return self.fields.get(name)

    def file(self, name: str) -> tuple[str, bytes] | None:
        """Get ``(filename, data)`` for a file field by name."""
        return self.files.get(name)
