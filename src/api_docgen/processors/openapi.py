"""OpenAPI 3.0 processor.

Renders normalized routes and the collected reference map into an OpenAPI 3.0
JSON document. Shared definitions are emitted once under `components` and
linked with `$ref`; header sets are always expanded in place because OpenAPI 3
has no reusable header-set component.
"""

import json
import re
from typing import Any

from api_docgen.config import Config
from api_docgen.definitions import ContentBody, Definition
from api_docgen.errors import FieldError, ReferenceResolutionError
from api_docgen.field import Field
from api_docgen.processors.base import Processor
from api_docgen.refs import ReferenceMap
from api_docgen.route import NO_BODY, Route

OPENAPI_VERSION = "3.0.0"

REF_PREFIXES = {
    "schema": "#/components/schemas/",
    "response": "#/components/responses/",
    "request_body": "#/components/requestBodies/",
}

# Scalar tags rendered as formatted strings
STRING_FORMATS = {
    "uuid": "uuid",
    "email": "email",
    "uri": "uri",
    "date": "date",
    "datetime": "date-time",
    "date-time": "date-time",
    "password": "password",
    "byte": "byte",
    "binary": "binary",
}

SCHEMA_METADATA_KEYS = ("default", "enum", "format", "maximum", "minimum")

PARAM_LOCATIONS = (
    ("header", "headers"),
    ("path", "path_params"),
    ("query", "query_params"),
)

PATH_PARAM_RE = re.compile(r"/:([^/]+)")


class OpenAPIProcessor(Processor):
    def process(self, config: Config, routes: list[Route], refs: ReferenceMap) -> str:
        document = self.process_headers(config)
        document["paths"] = self.process_routes(routes, config)
        document["components"] = self.process_refs(refs, config)
        try:
            return json.dumps(document, indent=2)
        except (TypeError, ValueError) as e:
            raise FieldError(f"Document holds a value that cannot be written as JSON: {e}") from e

    def process_headers(self, config: Config) -> dict:
        return {
            "openapi": OPENAPI_VERSION,
            "info": {
                "title": config.title,
                "description": config.description,
                "version": config.version,
            },
            "servers": [{"url": url} for url in config.server_urls],
        }

    def process_routes(self, routes: list[Route], config: Config) -> dict:
        """Group operations by OpenAPI path, then by verb."""
        paths: dict[str, dict] = {}
        for route in routes:
            paths.setdefault(path_with_params(route.path), {})[route.verb] = self._process_route(route, config)
        return dict(sorted(paths.items()))

    def process_refs(self, refs: ReferenceMap, config: Config) -> dict:
        return {
            "requestBodies": {
                name: self._process_content_body(body, refs, require_description=False)
                for name, body in _sorted_by_name(refs.request_bodies)
            },
            "responses": {
                name: self._process_content_body(body, refs, require_description=True)
                for name, body in _sorted_by_name(refs.responses)
            },
            "schemas": {name: process_schema_field(field) for name, field in _sorted_by_name(refs.schemas)},
            "securitySchemes": camelize_map(config.auth),
        }

    def _process_route(self, route: Route, config: Config) -> dict:
        # `summary` is the short one-line description of an operation
        operation = {
            "operationId": route.id,
            "summary": route.description,
            "tags": route.tags,
            "security": [{scheme: route.auth[scheme]} for scheme in sorted(route.auth)],
            "parameters": self._process_params(route),
            "responses": self._process_responses(route, config),
        }

        body = self._process_body(route.body, config)
        if body:
            operation["requestBody"] = body
        return operation

    def _process_params(self, route: Route) -> list[dict]:
        params = []
        for location, attr in PARAM_LOCATIONS:
            fields = getattr(route, attr)
            for name in sorted(fields):
                params.append(process_param(name, fields[name], location))
        return params

    def _process_body(self, body: Field, config: Config) -> dict:
        if body.is_empty:
            return {}
        if _is_ref_to(body, "request_body"):
            return process_schema_field(body)
        return {"content": {config.default_content_type: {"schema": process_schema_field(body)}}}

    def _process_responses(self, route: Route, config: Config) -> dict:
        responses = {}
        for status_code, response in route.responses.items():
            if response == NO_BODY:
                responses[status_code] = {"description": "OK"}
            elif _is_ref_to(response, "response"):
                responses[status_code] = process_schema_field(response)
            else:
                responses[status_code] = {
                    "description": "",
                    "content": {config.default_content_type: {"schema": process_schema_field(response)}},
                }
        return responses

    def _process_content_body(self, body: ContentBody, refs: ReferenceMap, require_description: bool) -> dict:
        result: dict[str, Any] = {}
        if body.description or require_description:
            result["description"] = body.description or ""

        result["content"] = {
            content_type: _process_media_type(media.shape, media.examples)
            for content_type, media in body.content.items()
        }

        headers = self._process_header_sets(body.headers, refs)
        if headers:
            result["headers"] = headers
        return result

    def _process_header_sets(self, header_sets: list[Field], refs: ReferenceMap) -> dict:
        # Every set, shared or inline, is expanded in full
        headers: dict[str, dict] = {}
        for header_set in header_sets:
            if header_set.kind == "ref":
                fields = refs.headers.get(header_set.ref)
                if fields is None:
                    fields = header_set.ref.serialize()
            else:
                fields = header_set.properties
            for name, field in fields.items():
                headers[name] = process_header_field(field)
        return headers


def process_schema_field(field: Field) -> dict:
    """Render a field as an OpenAPI schema object."""
    if field.kind == "ref":
        return {"$ref": ref_path(field.ref)}

    if field.kind == "object":
        result: dict[str, Any] = {
            "type": "object",
            "properties": {name: process_schema_field(prop) for name, prop in field.properties.items()},
        }
        required = [name for name, prop in field.properties.items() if prop.required]
        if required:
            result["required"] = required
    elif field.kind == "list":
        items = [process_schema_field(item) for item in field.of]
        if len(items) == 1:
            result = {"type": "array", "items": items[0]}
        else:
            result = {"type": "array", "items": {"oneOf": items} if items else {}}
    elif field.kind == "one_of":
        result = {"oneOf": [process_schema_field(item) for item in field.of]}
    elif field.kind == "primitive":
        result = {"type": field.type}
        for key in SCHEMA_METADATA_KEYS:
            value = getattr(field, key)
            if value is not None:
                result[key] = value
        if field.type in STRING_FORMATS:
            result["type"] = "string"
            result["format"] = STRING_FORMATS[field.type]
    else:
        result = {}

    return put_description(result, field)


def process_param(name: str, field: Field, location: str) -> dict:
    param: dict[str, Any] = {"in": location, "name": name, "schema": process_schema_field(field)}
    # OpenAPI requires path params to be marked required
    if field.required or location == "path":
        param["required"] = True
    return set_param_description(param)


def process_header_field(field: Field) -> dict:
    header: dict[str, Any] = {"schema": process_schema_field(field)}
    if field.required:
        header["required"] = True
    return set_param_description(header)


def put_description(result: dict, field: Field) -> dict:
    if field.description:
        result["description"] = field.description
    return result


def set_param_description(param: dict) -> dict:
    """Move the schema's description up to the parameter itself."""
    schema = param["schema"]
    if "description" in schema:
        param["description"] = schema["description"]
        param["schema"] = {k: v for k, v in schema.items() if k != "description"}
    return param


def ref_path(definition: Any) -> str:
    kind = getattr(definition, "kind", None)
    if not isinstance(definition, Definition) or kind not in REF_PREFIXES:
        raise ReferenceResolutionError(f"Cannot link to {definition!r}: only schemas, responses and request bodies have components")
    return REF_PREFIXES[kind] + definition.name


def path_with_params(path: str) -> str:
    """Convert `/foo/:id` style params into OpenAPI `/foo/{id}` style."""
    return PATH_PARAM_RE.sub(lambda m: "/{" + m.group(1) + "}", path)


def camelize_map(data: Any) -> Any:
    """Recursively convert mapping keys from snake_case to camelCase."""
    if not isinstance(data, dict):
        return data
    return {camelize(key): camelize_map(value) for key, value in data.items()}


def camelize(key: Any) -> Any:
    if not isinstance(key, str) or "_" not in key:
        return key
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _process_media_type(shape: Field, examples: dict) -> dict:
    result: dict[str, Any] = {}
    if not shape.is_empty:
        result["schema"] = process_schema_field(shape)
    if examples:
        result["examples"] = {name: {"value": example} for name, example in examples.items()}
    return result


def _is_ref_to(field: Any, kind: str) -> bool:
    return isinstance(field, Field) and field.kind == "ref" and getattr(field.ref, "kind", None) == kind


def _sorted_by_name(definitions: dict[Definition, Any]) -> list[tuple[str, Any]]:
    by_name: dict[str, tuple[Definition, Any]] = {}
    for definition, serialized in definitions.items():
        existing = by_name.get(definition.name)
        if existing is not None and existing[0] is not definition:
            raise ReferenceResolutionError(f"Two different {definition.kind} definitions are named {definition.name!r}")
        by_name[definition.name] = (definition, serialized)
    return [(name, by_name[name][1]) for name in sorted(by_name)]
