"""Static file endpoint."""

from pathlib import Path

from minihttpd.core.logger import LogIcon, logger
from minihttpd.core.response import file_response, not_found
from minihttpd.core.router import WILDCARD, Router
from minihttpd.models.core import Request, Response

router = Router()


def resolve_static(root: Path, url_path: str) -> Path | None:
    """Map a URL path to a regular file inside ``root``, or None."""
    candidate = root / url_path.replace("..", "").lstrip("/")
    # Overlong names and unreadable directories raise instead of reporting a miss.
    try:
        if candidate.is_file() and candidate.resolve().is_relative_to(root.resolve()):
            return candidate
    except (OSError, ValueError):
        pass
    return None


@router.get(WILDCARD)
def serve_static(request: Request) -> Response:
    """Serve a file below the served root, or 404 when missing or outside it."""
    candidate = resolve_static(request.root, request.path)
    if candidate is None:
        logger.info("Static file not found", icon=LogIcon.FORBIDDEN, path=request.path)
        return not_found()

    logger.info("Serving static file", icon=LogIcon.DOWNLOAD, path=request.path)
    return file_response(candidate)
