"""Multipart file upload endpoint."""

import re
from functools import partial
from pathlib import Path
from typing import BinaryIO

from beartype import beartype

from minihttpd.core.logger import LogIcon, logger
from minihttpd.core.multipart import MultipartError, MultipartParser, extract_boundary
from minihttpd.core.reader import iter_body, parse_content_length, read_headers, read_line
from minihttpd.core.response import bad_request, ok
from minihttpd.core.router import Router
from minihttpd.core.settings import Settings
from minihttpd.models.core import Request, Response, UploadForm

router = Router()

READ_CHUNK_SIZE = 8192
FILENAME_FIELD = "filename"
FILE_FIELD = "file"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@beartype
def sanitize_filename(name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", name)


def parse_upload(stream: BinaryIO, boundary: str, length: int) -> UploadForm:
    """Stream exactly ``length`` body bytes through the multipart parser."""
    parser = MultipartParser(boundary)
    received = 0
    for chunk in iter_body(stream, length, READ_CHUNK_SIZE):
        received += len(chunk)
        parser.feed(chunk)
    if received < length:
        logger.warning("Upload body truncated", icon=LogIcon.UPLOAD, expected=length, received=received)

    form = UploadForm()
    for part in parser.close():
        if part.name is None:
            continue
        if part.filename is None:
            form.fields[part.name] = part.text.strip()
        else:
            form.files[part.name] = (part.filename, part.data)
    return form


def store_upload(root: Path, name: str, data: bytes) -> Path:
    """Write ``data`` to ``<root>/uploads/<name>.png``; last writer wins."""
    upload_dir = root / Settings.UPLOAD_DIR
    upload_dir.mkdir(parents=True, exist_ok=True)
    target = upload_dir / f"{name}{Settings.UPLOAD_SUFFIX}"
    target.write_bytes(data)
    return target


@router.post("/upload")
def upload(request: Request) -> Response:
    headers = read_headers(partial(read_line, request.stream))
    boundary = extract_boundary(headers.get("content-type"))
    try:
        length = parse_content_length(headers, default=-1)
    except ValueError:
        length = -1

    if boundary is None or length <= 0:
        logger.warning("Invalid upload request", icon=LogIcon.UPLOAD, boundary=boundary, length=length)
        return bad_request("Invalid request")

    try:
        form = parse_upload(request.stream, boundary, length)
    except MultipartError as ex:
        logger.warning("Malformed multipart body", icon=LogIcon.UPLOAD, error=str(ex))
        return bad_request("Malformed multipart body")

    filename = form.field(FILENAME_FIELD)
    payload = form.file(FILE_FIELD)
    if filename is None or payload is None:
        return bad_request("Failed to extract file or filename")

    # Every upload gets the .png suffix whatever its actual content type.
    stored = store_upload(request.root, sanitize_filename(filename), payload[1])
    logger.info("Upload stored", icon=LogIcon.UPLOAD, path=str(stored), size=len(payload[1]))
    return ok(f"File Uploaded Successfully as {stored.name}")
