"""minihttpd - minimal HTTP-like server for static files, login and uploads."""

import sys

from minihttpd.core.logger import LogIcon, logger
from minihttpd.core.server import Server
from minihttpd.core.settings import settings as st

USAGE = "Usage: minihttpd <port> <public_directory>"


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        port, public_dir = st.API_PORT, st.PUBLIC_DIR
    elif len(args) == 2 and args[0].isdigit():
        port, public_dir = int(args[0]), args[1]
    else:
        print(USAGE, file=sys.stderr)
        return 2

    logger.info("STARTING %s | PORT=%s", st.API_NAME, port, icon=LogIcon.START)
    Server(port, public_dir).serve_forever()
    return 1


if __name__ == "__main__":
    sys.exit(main())
