"""Response construction and writing."""

from pathlib import Path
from typing import BinaryIO

from minihttpd.core.reader import ENCODING
from minihttpd.models.core import ContentType, Response


def ok(body: bytes | str = b"", content_type: ContentType | None = None) -> Response:
    headers = {"Content-Type": str(content_type)} if content_type else {}
    return Response(200, "OK", headers=headers, body=body)


def file_response(path: Path) -> Response:
    return Response(200, "OK", headers={"Content-Type": str(ContentType.for_path(path))}, file=path)


def found(location: str) -> Response:
    return Response(302, "Found", headers={"Location": location})


def bad_request(message: str) -> Response:
    return Response(400, "Bad Request", body=message)


def unauthorized(message: str) -> Response:
    return Response(401, "Unauthorized", body=message)


def not_found() -> Response:
    return Response(404, "Not Found")


def service_unavailable() -> Response:
    return Response(503, "Service Unavailable", headers={"Connection": "close"})


def write_response(out: BinaryIO, response: Response, chunk_size: int = 1024) -> None:
    """Write the head, then the body or the file contents in chunks, then flush.

    No framing is added; any Content-Length is the caller's business.
    """
    out.write(response.head.encode(ENCODING))
    if response.body:
        out.write(response.body)
    if response.file is not None:
        with response.file.open("rb") as file_handle:
            while chunk := file_handle.read(chunk_size):
                out.write(chunk)
    out.flush()
