"""Login endpoint backed by the flat credential file."""

import io
from pathlib import Path

from beartype import beartype

from minihttpd.core.logger import LogIcon, logger
from minihttpd.core.reader import ENCODING, parse_content_length, read_headers
from minihttpd.core.response import bad_request, found, unauthorized
from minihttpd.core.router import Router
from minihttpd.core.settings import Settings
from minihttpd.models.core import Credentials, Request, Response

router = Router()

SUCCESS_LOCATION = "/upload.html"


@beartype
def parse_form_data(body: str) -> dict[str, str]:
    """Split ``a=1&b=2`` into a mapping.

    Pairs without exactly one ``=`` are dropped; a repeated key keeps its last value.
    No percent-decoding is applied.
    """
    form: dict[str, str] = {}
    # "key=" counts as one "=" and is kept with an empty value, unlike a split that drops trailing empties.
    for pair in body.split("&"):
        if pair.count("=") != 1:
            continue
        key, value = pair.split("=")
        form[key] = value
    return form


def load_credentials(path: Path) -> Credentials | None:
    """Read ``username=`` and ``password=`` lines in any order; None if either is absent."""
    values: dict[str, str] = {}
    with path.open(encoding=ENCODING) as file_handle:
        for line in file_handle:
            if line.count("=") != 1:
                continue
            key, value = line.split("=")
            key = key.strip()
            if key in ("username", "password"):
                values[key] = value.strip()

    if "username" not in values or "password" not in values:
        return None
    return Credentials(**values)


def validate_login(root: Path, username: str, password: str) -> bool:
    """Check the submitted pair against the credential file, re-read on every call."""
    # Plaintext comparison against the flat file. Unsuitable for real deployments.
    try:
        credentials = load_credentials(root / Settings.LOGIN_FILE)
    except OSError as ex:
        logger.error("Error reading login file", icon=LogIcon.AUTH, error=str(ex))
        return False
    return credentials is not None and credentials.matches(username, password)


def _read_text_line(reader: io.TextIOWrapper) -> str | None:
    line = reader.readline()
    if not line:
        return None
    return line.removesuffix("\r\n")


def read_form_body(reader: io.TextIOWrapper) -> str:
    """Skip headers, then read exactly Content-Length characters as the body."""
    headers = read_headers(lambda: _read_text_line(reader))
    length = parse_content_length(headers)
    if length < 0:
        raise ValueError(f"Negative Content-Length: {length}")
    return reader.read(length).strip() if length else ""


@router.post("/login")
def login(request: Request) -> Response:
    # Latin-1 keeps one character per byte, so Content-Length counts match.
    reader = io.TextIOWrapper(request.stream, encoding=ENCODING, newline="\r\n")
    try:
        body = read_form_body(reader)
    except ValueError as ex:
        logger.warning("Invalid login request", icon=LogIcon.AUTH, error=str(ex))
        return bad_request("Invalid Content-Length")
    finally:
        reader.detach()

    form = parse_form_data(body)
    logger.info("Received login request", icon=LogIcon.AUTH, fields=sorted(form))

    if "username" not in form or "password" not in form:
        return bad_request("Missing username or password")

    if validate_login(request.root, form["username"], form["password"]):
        logger.info("Login accepted", icon=LogIcon.SUCCESS, username=form["username"])
        return found(SUCCESS_LOCATION)

    logger.info("Login rejected", icon=LogIcon.FORBIDDEN, username=form["username"])
    return unauthorized("Invalid Credentials")
