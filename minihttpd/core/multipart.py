"""Streaming multipart/form-data parser over raw bytes.

Bodies are split only on the byte-exact delimiter ``CRLF--boundary`` followed
by ``--`` or by optional whitespace and CRLF, so boundary-like sequences inside
binary payloads never end a part early.
"""

import re
from enum import StrEnum

from minihttpd.core.reader import ENCODING

CRLF = b"\r\n"
MAX_HEADER_BYTES = 16 * 1024

_PARAM_RE = re.compile(r';\s*([^=;\s]+)\s*=\s*(?:"((?:[^"\\]|\\.)*)"|([^;]*))')
_NEED_MORE = object()


class MultipartError(ValueError):
    """Malformed multipart framing."""


class ParserState(StrEnum):
    SEEKING_BOUNDARY = "seeking-boundary"
    READING_PART_HEADERS = "reading-part-headers"
    READING_PART_BODY = "reading-part-body"
    DONE = "done"


class DelimiterKind(StrEnum):
    PART = "part"
    CLOSE = "close"


def parse_header_params(value: str) -> tuple[str, dict[str, str]]:
    """Split ``form-data; name="a"; filename=b`` into its token and parameters."""
    token, _, rest = value.partition(";")
    params: dict[str, str] = {}
    for match in _PARAM_RE.finditer(";" + rest):
        key, quoted, bare = match.groups()
        params[key.lower()] = quoted.replace('\\"', '"') if quoted is not None else bare.strip()
    return token.strip().lower(), params


def extract_boundary(content_type: str | None) -> str | None:
    """Return the boundary of a multipart/form-data content type, if declared."""
    if not content_type:
        return None
    token, params = parse_header_params(content_type)
    if token != "multipart/form-data":
        return None
    return params.get("boundary") or None


class Part:
    """One boundary-delimited segment: its header block and raw body bytes."""

    __slots__ = ("headers", "name", "filename", "_chunks")

    def __init__(self, headers: dict[str, str]) -> None:
        self.headers = headers
        _, params = parse_header_params(headers.get("content-disposition", ""))
        self.name = params.get("name")
        self.filename = params.get("filename")
        self._chunks: list[bytes] = []

    def __repr__(self) -> str:
        return f"Part(name={self.name!r}, filename={self.filename!r}, size={len(self.data)})"

    def append(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    @property
    def data(self) -> bytes:
        return b"".join(self._chunks)

    @property
    def text(self) -> str:
        return self.data.decode(ENCODING)


class MultipartParser:
    """Incremental parser: ``feed`` raw chunks in any split, then ``close``."""

    def __init__(self, boundary: str | bytes) -> None:
        if isinstance(boundary, str):
            boundary = boundary.encode(ENCODING)
        if not boundary:
            raise MultipartError("Empty boundary")
        self.delimiter = b"--" + boundary
        self.body_delimiter = CRLF + self.delimiter
        self.state = ParserState.SEEKING_BOUNDARY
        self.parts: list[Part] = []
        self._buffer = bytearray()
        self._current: Part | None = None

    def feed(self, data: bytes) -> None:
        if self.state is ParserState.DONE:
            return
        self._buffer.extend(data)
        while self._step():
            pass

    def close(self) -> list[Part]:
        """Finish parsing; a part cut off by end of input is dropped."""
        self._current = None
        self._buffer.clear()
        return self.parts

    def _step(self) -> bool:
        match self.state:
            case ParserState.SEEKING_BOUNDARY:
                return self._seek_boundary()
            case ParserState.READING_PART_HEADERS:
                return self._read_headers()
            case ParserState.READING_PART_BODY:
                return self._read_body()
            case _:
                return False

    def _delimiter_kind(self, end: int):
        """Classify what follows a delimiter ending at ``end``."""
        buffer = self._buffer
        if len(buffer) - end < 2:
            return _NEED_MORE
        if buffer[end:end + 2] == b"--":
            return DelimiterKind.CLOSE, end + 2
        index = end
        while index < len(buffer) and buffer[index] in b" \t":
            index += 1
        if len(buffer) - index < 2:
            return _NEED_MORE
        if buffer[index:index + 2] == CRLF:
            return DelimiterKind.PART, index + 2
        return None

    def _seek_boundary(self) -> bool:
        index = self._buffer.find(self.delimiter)
        while index != -1:
            kind = self._delimiter_kind(index + len(self.delimiter))
            if kind is _NEED_MORE:
                del self._buffer[:index]
                return False
            if kind is not None:
                return self._enter(*kind)
            index = self._buffer.find(self.delimiter, index + 1)

        keep = len(self.delimiter) - 1
        if len(self._buffer) > keep:
            del self._buffer[:len(self._buffer) - keep]
        return False

    def _enter(self, kind: DelimiterKind, consumed: int) -> bool:
        del self._buffer[:consumed]
        if kind is DelimiterKind.CLOSE:
            self.state = ParserState.DONE
            self._buffer.clear()
            return False
        self.state = ParserState.READING_PART_HEADERS
        return True

    def _read_headers(self) -> bool:
        if self._buffer.startswith(CRLF):
            block, consumed = b"", 2
        else:
            end = self._buffer.find(CRLF + CRLF)
            if end == -1:
                if len(self._buffer) > MAX_HEADER_BYTES:
                    raise MultipartError("Part header block too large")
                return False
            block, consumed = bytes(self._buffer[:end]), end + 4

        headers: dict[str, str] = {}
        for line in block.decode(ENCODING).split("\r\n"):
            name, sep, value = line.partition(":")
            if sep:
                headers[name.strip().lower()] = value.strip()

        del self._buffer[:consumed]
        self._current = Part(headers)
        self.state = ParserState.READING_PART_BODY
        return True

    def _read_body(self) -> bool:
        index = self._buffer.find(self.body_delimiter)
        while index != -1:
            kind = self._delimiter_kind(index + len(self.body_delimiter))
            if kind is _NEED_MORE:
                break
            if kind is not None:
                self._current.append(bytes(self._buffer[:index]))
                self.parts.append(self._current)
                self._current = None
                # Leave "--boundary" at the front for the seeking state.
                del self._buffer[:index + len(CRLF)]
                self.state = ParserState.SEEKING_BOUNDARY
                return True
            index = self._buffer.find(self.body_delimiter, index + 1)

        if index == -1:
            index = max(0, len(self._buffer) - (len(self.body_delimiter) - 1))
        self._current.append(bytes(self._buffer[:index]))
        del self._buffer[:index]
        return False
