"""Declarative route table consumed by the documentation builder.

    router = Router()
    router.get("/api/users", list_users, pipe_through=["api"])
    router.post("/api/users", create_user, pipe_through=["api"])
    router.routes(["put", "patch"], "/api/users/:id", update_user)

Paths use `:name` placeholders for path parameters.
"""

from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

HTTP_VERBS = ("get", "post", "put", "patch", "delete", "head", "options")


class RouteInfo(BaseModel):
    """A raw route-table entry: where it lives and which handler serves it."""

    model_config = ConfigDict(frozen=True)

    verb: str
    path: str
    handler: Any = None
    pipe_through: list[str] = []


class Router:
    """Collects the routes to document, in declaration order."""

    def __init__(self):
        self._routes: list[RouteInfo] = []

    def route(self, verb: str, path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        verb = verb.lower()
        if verb not in HTTP_VERBS:
            raise ValueError(f"Unsupported HTTP verb: {verb}")
        self._routes.append(RouteInfo(verb=verb, path=path, handler=handler, pipe_through=list(pipe_through)))
        return self

    def routes(self, verbs: Iterable[str], path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        """Register the same handler for several verbs on one path."""
        pipe_through = list(pipe_through)
        for verb in verbs:
            self.route(verb, path, handler, pipe_through)
        return self

    def get(self, path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        return self.route("get", path, handler, pipe_through)

    def post(self, path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        return self.route("post", path, handler, pipe_through)

    def put(self, path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        return self.route("put", path, handler, pipe_through)

    def patch(self, path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        return self.route("patch", path, handler, pipe_through)

    def delete(self, path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        return self.route("delete", path, handler, pipe_through)

    def head(self, path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        return self.route("head", path, handler, pipe_through)

    def options(self, path: str, handler: Callable | None = None, pipe_through: Iterable[str] = ()) -> "Router":
        return self.route("options", path, handler, pipe_through)

    def route_infos(self) -> list[RouteInfo]:
        return list(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
