"""Binary-safe request reading primitives.

Lines are decoded as latin-1 so every byte maps to exactly one character and
nothing past the CRLF terminator is consumed. The same stream can then be read
raw (upload bodies) or through a text wrapper (login bodies).
"""

from collections.abc import Callable, Iterator
from typing import BinaryIO

CR = 0x0D
LF = 0x0A
ENCODING = "latin-1"


def read_line(stream: BinaryIO) -> str | None:
    """Read one CRLF-terminated line, or None when the stream is already at EOF.

    A CR not followed by LF is kept as a literal byte.
    """
    line = bytearray()
    seen_cr = False
    while True:
        byte = stream.read(1)
        if not byte:
            break
        value = byte[0]
        if seen_cr and value == LF:
            return line.decode(ENCODING)
        if seen_cr:
            line.append(CR)
        seen_cr = value == CR
        if not seen_cr:
            line.append(value)

    if seen_cr:
        line.append(CR)
    if not line:
        return None
    return line.decode(ENCODING)


def read_headers(next_line: Callable[[], str | None]) -> dict[str, str]:
    """Collect ``Name: value`` lines until a blank line or EOF.

    Header names are lower-cased; a repeated header keeps its last value.
    """
    headers: dict[str, str] = {}
    while (line := next_line()) is not None and line != "":
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip().lower()] = value.strip()
    return headers


def parse_content_length(headers: dict[str, str], default: int = 0) -> int:
    """Return the declared body length; raises ValueError when not numeric."""
    raw = headers.get("content-length")
    if raw is None:
        return default
    return int(raw)


def iter_body(stream: BinaryIO, length: int, chunk_size: int) -> Iterator[bytes]:
    """Yield exactly ``length`` bytes in chunks, stopping early only at EOF."""
    remaining = length
    while remaining > 0:
        chunk = stream.read(min(chunk_size, remaining))
        if not chunk:
            return
        remaining -= len(chunk)
        yield chunk


def read_exact(stream: BinaryIO, length: int, chunk_size: int = 8192) -> bytes:
    """Read ``length`` bytes, or fewer if the stream ends first."""
    return b"".join(iter_body(stream, length, chunk_size))
