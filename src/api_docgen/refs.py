"""Discovery of every named definition reachable from a set of routes."""

from dataclasses import dataclass, field
from typing import Any

import structlog

from api_docgen.definitions import ContentBody, Definition
from api_docgen.errors import DocgenError, ReferenceResolutionError
from api_docgen.field import Field, get_refs
from api_docgen.route import NO_BODY, Route

logger = structlog.get_logger()

# Route attributes that can hold refs; metadata, tags and auth never do
ROUTE_REF_FIELDS = ("headers", "path_params", "query_params", "body", "responses")

REF_KINDS = ("schema", "response", "request_body", "headers")


@dataclass
class ReferenceMap:
    """Serialized definitions keyed by definition, one mapping per kind."""

    schemas: dict[Definition, Field] = field(default_factory=dict)
    responses: dict[Definition, ContentBody] = field(default_factory=dict)
    request_bodies: dict[Definition, ContentBody] = field(default_factory=dict)
    headers: dict[Definition, dict[str, Field]] = field(default_factory=dict)

    def for_kind(self, kind: str) -> dict[Definition, Any]:
        return {
            "schema": self.schemas,
            "response": self.responses,
            "request_body": self.request_bodies,
            "headers": self.headers,
        }[kind]

    def add(self, definition: Definition, serialized: Any) -> None:
        self.for_kind(definition.kind)[definition] = serialized

    def __contains__(self, definition: object) -> bool:
        return isinstance(definition, Definition) and definition in self.for_kind(definition.kind)

    def __len__(self) -> int:
        return len(self.schemas) + len(self.responses) + len(self.request_bodies) + len(self.headers)


def collect_refs(routes: list[Route]) -> ReferenceMap:
    """Collect and serialize every definition reachable from the routes.

    Depth-first over the definition graph. A definition is inserted into the
    map before its own refs are visited, so cycles stop at the second visit.
    """
    refs = ReferenceMap()
    for route in routes:
        for definition in refs_for_route(route):
            _collect(definition, refs)
    logger.debug(
        "Collected refs",
        schemas=len(refs.schemas),
        responses=len(refs.responses),
        request_bodies=len(refs.request_bodies),
        headers=len(refs.headers),
    )
    return refs


def refs_for_route(route: Route) -> list[Any]:
    """Refs written directly in a route's own fields, without following them."""
    found: list[Any] = []
    for name in ROUTE_REF_FIELDS:
        for item in _route_fields(getattr(route, name)):
            for ref in get_refs(item):
                if not any(ref is seen for seen in found):
                    found.append(ref)
    return found


def nested_refs(definition: Definition, serialized: Any) -> list[Any]:
    """Refs held inside a serialized definition. Headers never hold any."""
    if definition.kind == "schema":
        return get_refs(serialized)
    if definition.kind in ("response", "request_body"):
        found = [header.ref for header in serialized.headers if header.kind == "ref"]
        for media in serialized.content.values():
            found.extend(get_refs(media.shape))
        return found
    return []


def _collect(root: Any, refs: ReferenceMap) -> None:
    stack = [root]
    while stack:
        definition = stack.pop()
        _check_ref(definition)
        if definition in refs:
            continue
        serialized = _serialize(definition)
        refs.add(definition, serialized)
        stack.extend(reversed(nested_refs(definition, serialized)))


def _route_fields(value: Any) -> list[Field]:
    if isinstance(value, Field):
        return [value]
    if isinstance(value, dict):
        return [item for item in value.values() if item != NO_BODY]
    return []


def _check_ref(definition: Any) -> None:
    if not isinstance(definition, Definition) or definition.kind not in REF_KINDS:
        raise ReferenceResolutionError(f"{definition!r} is referenced but is not a Schema, Response, RequestBody or Headers definition")


def _serialize(definition: Definition) -> Any:
    try:
        serialized = definition.serialize()
    except ReferenceResolutionError:
        raise
    except (DocgenError, TypeError, ValueError) as e:
        raise ReferenceResolutionError(f"Cannot build {definition!r}: {e}") from e

    expected = {
        "schema": Field,
        "response": ContentBody,
        "request_body": ContentBody,
        "headers": dict,
    }[definition.kind]
    if not isinstance(serialized, expected):
        raise ReferenceResolutionError(f"{definition!r} did not build into a {expected.__name__}")
    return serialized
