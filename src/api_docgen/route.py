"""Normalized route records.

A `Route` is built once per route-table entry by deep-merging, in order:

1. the defaults of every pipeline the route goes through,
2. the handler's own annotation,

so the handler wins on conflicting keys. Nested mappings merge key by key;
scalars and lists are replaced wholesale.
"""

from collections.abc import Callable, Mapping
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict

from api_docgen.annotations import ANNOTATION_KEYS, fetch_doc_annotation
from api_docgen.config import Config, PipelineConfig
from api_docgen.definitions import Headers, Schema
from api_docgen.errors import AnnotationError, DocgenError, ReferenceResolutionError
from api_docgen.field import Field, normalize
from api_docgen.router import RouteInfo

logger = structlog.get_logger()

NO_BODY = "ok"

PARAM_FIELDS = ("headers", "path_params", "query_params")


class Route(BaseModel):
    """One documented endpoint/verb pairing."""

    model_config = ConfigDict(frozen=True)

    path: str
    verb: str
    id: str = ""
    description: str = ""
    tags: list[str] = []
    auth: dict[str, list[str]] = {}
    headers: dict[str, Field] = {}
    path_params: dict[str, Field] = {}
    query_params: dict[str, Field] = {}
    body: Field = Field()
    responses: dict[str, Field | Literal["ok"]] = {}
    metadata: dict[str, Any] = {}
    pipe_through: list[str] = []


def build_route(info: RouteInfo, config: Config) -> Route:
    """Merge pipeline defaults and the handler annotation into a `Route`."""
    annotation = fetch_doc_annotation(info.handler)
    if annotation is None:
        logger.debug("Undocumented route", verb=info.verb, path=info.path)
        description, metadata = "", {}
    else:
        description, metadata = annotation

    try:
        metadata = _select_multi_annotation(metadata, info)
        unknown = sorted(set(metadata) - set(ANNOTATION_KEYS))
        if unknown:
            raise AnnotationError(f"unknown annotation keys: {', '.join(unknown)}")

        data: dict[str, Any] = {}
        for name in info.pipe_through:
            pipeline = config.pipelines.get(name, PipelineConfig())
            defaults = {key: getattr(pipeline, key) for key in PipelineConfig.model_fields}
            data = deep_merge(data, _prepare(defaults))
        data = deep_merge(data, _prepare(metadata))

        tags = data.get("tags", [])
        return Route(
            path=info.path,
            verb=info.verb,
            id=str(data.get("id", "")),
            description=_parse_description(description, config),
            tags=[tags] if isinstance(tags, str) else list(tags),
            auth=data.get("auth", {}),
            headers=_normalize_params(data.get("headers", {})),
            path_params=_normalize_params(data.get("path_params", {})),
            query_params=_normalize_params(data.get("query_params", {})),
            body=normalize(data.get("body", {})),
            responses=_normalize_responses(data.get("responses", {})),
            metadata=dict(data.get("metadata", {})),
            pipe_through=list(info.pipe_through),
        )
    except ReferenceResolutionError:
        raise
    except (DocgenError, TypeError, ValueError) as e:
        raise AnnotationError(f"Invalid annotation for {info.verb.upper()} {info.path}: {e}") from e


def build_routes(router: Any, config: Config) -> list[Route]:
    """Build a `Route` for every entry in the router, in declaration order."""
    routes = [build_route(info, config) for info in router.route_infos()]
    logger.debug("Built routes", count=len(routes))
    return routes


def matches_filter(route: Route, route_filter: Mapping | Callable[[Route], bool]) -> bool:
    """True if the route matches a structural mapping filter or a predicate."""
    if callable(route_filter):
        return bool(route_filter(route))
    if isinstance(route_filter, Mapping):
        for key, expected in route_filter.items():
            if not hasattr(route, key):
                return False
            actual = getattr(route, key)
            if key == "verb" and isinstance(expected, str):
                expected = expected.lower()
            if actual != expected:
                return False
        return True
    return False


def filter_routes(routes: list[Route], filters: list) -> list[Route]:
    """Drop every route that matches any of the filters."""
    if not filters:
        return routes
    return [route for route in routes if not any(matches_filter(route, f) for f in filters)]


def deep_merge(left: Mapping, right: Mapping) -> dict:
    """Merge `right` into `left`; nested mappings merge, everything else is replaced."""
    merged = dict(left)
    for key, value in right.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def normalize_auth(auth: Any) -> dict[str, list[str]]:
    """Normalize auth declarations into `{scheme: [scopes]}`.

    Accepts a scheme name, a mapping of scheme -> scopes, or a list mixing both.
    """
    if not auth:
        return {}
    if isinstance(auth, str):
        return {auth: []}
    if isinstance(auth, Mapping):
        return {str(scheme): [scopes] if isinstance(scopes, str) else list(scopes or []) for scheme, scopes in auth.items()}
    if isinstance(auth, (list, tuple)):
        result: dict[str, list[str]] = {}
        for item in auth:
            result.update(normalize_auth(item))
        return result
    raise AnnotationError(f"auth must be a scheme name, a mapping or a list, got {auth!r}")


def _prepare(data: Mapping) -> dict:
    """Bring raw annotation values into a shape that deep-merges predictably."""
    prepared = dict(data)
    if "auth" in prepared:
        prepared["auth"] = normalize_auth(prepared["auth"])
    for key in PARAM_FIELDS:
        if key in prepared:
            prepared[key] = _expand_params(prepared[key])
    if "responses" in prepared:
        responses = prepared["responses"]
        if not isinstance(responses, Mapping):
            raise AnnotationError(f"responses must be a mapping of status code -> response, got {responses!r}")
        prepared["responses"] = {str(code): value for code, value in responses.items()}
    return prepared


def _expand_params(params: Any) -> dict:
    # A Schema or Headers definition stands for its fields
    if isinstance(params, Schema):
        return dict(params.serialize().properties)
    if isinstance(params, Headers):
        return dict(params.serialize())
    if not isinstance(params, Mapping):
        raise AnnotationError(f"params must be a mapping, Schema or Headers, got {params!r}")
    # "uuid" -> {"type": "uuid"} so a route can override a pipeline param's
    # type while keeping its other metadata
    return {
        str(name): {"type": value} if isinstance(value, (str, type)) else value
        for name, value in params.items()
    }


def _normalize_params(params: Mapping) -> dict[str, Field]:
    return {name: normalize(value) for name, value in params.items()}


def _normalize_responses(responses: Mapping) -> dict[str, Field | str]:
    normalized: dict[str, Field | str] = {}
    for code, value in responses.items():
        if value is None or value == NO_BODY:
            normalized[code] = NO_BODY
        else:
            normalized[code] = normalize(value)
    return normalized


def _parse_description(description: Any, config: Config) -> str:
    if isinstance(description, Mapping):
        return description.get(config.locale) or ""
    return description or ""


def _select_multi_annotation(metadata: dict, info: RouteInfo) -> dict:
    # One handler serving several routes keeps a block per path or per verb
    if not metadata.get("multi"):
        return metadata
    for key in (info.path, info.verb):
        if key in metadata:
            block = metadata[key]
            if not isinstance(block, Mapping):
                raise AnnotationError(f"multi annotation block for {key!r} must be a mapping, got {block!r}")
            return dict(block)
    return {}
