"""Route table for the server."""

from minihttpd.api.login import router as login_router
from minihttpd.api.static import router as static_router
from minihttpd.api.upload import router as upload_router
from minihttpd.core.router import Router


def create_router() -> Router:
    return Router().include_router(static_router).include_router(login_router).include_router(upload_router)
