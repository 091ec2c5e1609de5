"""Router mapping (method, path) pairs to request handlers."""

from collections.abc import Callable

from minihttpd.models.core import Request, Response

Handler = Callable[[Request], Response | None]

WILDCARD = "*"


class Router:
    """Handler registry with exact-path routes and a per-method ``*`` fallback."""

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], Handler] = {}

    def add_route(self, method: str, endpoint: str, handler: Handler) -> None:
        self._routes[(method.upper(), endpoint)] = handler

    def route(self, method: str, endpoint: str) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, endpoint, handler)
            return handler

        return decorator

    def get(self, endpoint: str) -> Callable[[Handler], Handler]:
        return self.route("GET", endpoint)

    def post(self, endpoint: str) -> Callable[[Handler], Handler]:
        return self.route("POST", endpoint)

    def include_router(self, router: "Router") -> "Router":
        """Merge another router's routes. Returns self for chaining."""
        self._routes.update(router._routes)
        return self

    def resolve(self, method: str, path: str) -> Handler | None:
        """Exact match first, then the wildcard route for the method."""
        return self._routes.get((method, path)) or self._routes.get((method, WILDCARD))
