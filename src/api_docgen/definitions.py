"""Reusable named definitions: Schema, Response, RequestBody and Headers.

Definitions are declared with a builder function. The builder runs lazily the
first time the definition is serialized, so module-level definitions can
reference each other in any order, including cyclically:

    @schema("User", description="A user record")
    def User(s):
        s.field("id", "uuid", required=True)
        s.field("parent", Parent)

    @schema("Parent")
    def Parent(s):
        s.field("child", User)

    @response("UserResponse")
    def UserResponse(r):
        r.description("A single user")
        r.headers(RateLimitHeaders)
        with r.content("application/json") as c:
            c.schema(User)
            c.example("response", {"id": "1"})

Plain data literals work too: `Schema("Comment", fields={"id": "uuid"})`.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from api_docgen.errors import FieldError, ReferenceResolutionError
from api_docgen.field import Field, normalize, normalize_map


class MediaType(BaseModel):
    """Shape and examples for one content type of a request body or response."""

    model_config = ConfigDict(frozen=True)

    shape: Field = Field()
    examples: dict[str, Any] = {}


class ContentBody(BaseModel):
    """Serialized form of a Response or RequestBody."""

    model_config = ConfigDict(frozen=True)

    description: str | None = None
    headers: list[Field] = []
    content: dict[str, MediaType] = {}


class Definition(ABC):
    """Base class for the four named definition kinds."""

    kind: ClassVar[str] = ""

    def __init__(self, name: str, description: str | None = None, builder: Callable | None = None):
        if not name:
            raise FieldError(f"{type(self).__name__} definitions need a name")
        self.name = name
        self.description = description
        self._builder = builder
        self._serialized: Any = None
        self._building = False

    def serialize(self) -> Any:
        """Return the canonical form of this definition, building it once."""
        if self._serialized is None:
            if self._building:
                raise ReferenceResolutionError(f"{self!r} includes itself while being built")
            self._building = True
            try:
                self._serialized = self._build()
            finally:
                self._building = False
        return self._serialized

    @abstractmethod
    def _build(self) -> Any:
        """Run the builder and return the frozen canonical form."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class ObjectBuilder:
    """Collects fields and partials, then freezes them into an object Field."""

    def __init__(self):
        self._fields: list[tuple[str, Any]] = []
        self._partials: list[Any] = []

    def field(self, name: str, field_type: Any, **opts) -> "ObjectBuilder":
        if isinstance(field_type, (list, tuple)):
            raw = {"type": "list", "of": list(field_type), **opts}
        elif opts:
            raw = {"type": field_type, **opts}
        else:
            raw = field_type
        self._fields.append((str(name), raw))
        return self

    def partial(self, source: Any) -> "ObjectBuilder":
        """Merge the properties of another schema (or an object mapping) into this one."""
        self._partials.append(source)
        return self

    @property
    def has_fields(self) -> bool:
        return bool(self._fields or self._partials)

    def freeze(self, description: str | None = None) -> Field:
        properties = {name: normalize(raw) for name, raw in self._fields}
        for partial in self._partials:
            properties.update(_partial_properties(partial))
        return Field(kind="object", properties=properties, description=description)


class Schema(Definition):
    kind = "schema"

    def __init__(
        self,
        name: str,
        description: str | None = None,
        fields: Mapping | None = None,
        builder: Callable[[ObjectBuilder], None] | None = None,
    ):
        super().__init__(name, description, builder)
        self._fields = dict(fields or {})

    def _build(self) -> Field:
        builder = ObjectBuilder()
        for name, raw in self._fields.items():
            builder.field(name, raw)
        if self._builder:
            self._builder(builder)
        return builder.freeze(self.description)


class HeadersBuilder:
    def __init__(self):
        self._headers: list[tuple[str, Any]] = []

    def header(self, name: str, header_type: Any, **opts) -> "HeadersBuilder":
        raw = {"type": header_type, **opts} if opts else header_type
        self._headers.append((str(name), raw))
        return self

    def freeze(self) -> dict[str, Field]:
        return {name: normalize(raw) for name, raw in self._headers}


class Headers(Definition):
    kind = "headers"

    def __init__(
        self,
        name: str,
        headers: Mapping | None = None,
        builder: Callable[[HeadersBuilder], None] | None = None,
    ):
        super().__init__(name, None, builder)
        self._headers = dict(headers or {})

    def _build(self) -> dict[str, Field]:
        builder = HeadersBuilder()
        for name, raw in self._headers.items():
            builder.header(name, raw)
        if self._builder:
            self._builder(builder)
        return builder.freeze()


class ContentBuilder(ObjectBuilder):
    """Shape and examples for a single content type.

    The shape is either set with `schema(...)` or assembled inline from
    `field(...)` / `partial(...)` calls.
    """

    def __init__(self, content_type: str):
        super().__init__()
        self.content_type = content_type
        self._schema: Any = None
        self._examples: dict[str, Any] = {}

    def schema(self, value: Any, of: list | None = None) -> "ContentBuilder":
        # schema("list", of=[User]) / schema("one_of", of=[A, B])
        self._schema = {"type": value, "of": of} if of is not None else value
        return self

    def example(self, name: str, value: Any) -> "ContentBuilder":
        self._examples[str(name)] = value
        return self

    def __enter__(self) -> "ContentBuilder":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def freeze(self, description: str | None = None) -> MediaType:
        if self._schema is not None:
            shape = normalize(self._schema)
        elif self.has_fields:
            shape = super().freeze()
        else:
            shape = Field()
        return MediaType(shape=shape, examples=self._examples)


class ContentBodyBuilder:
    def __init__(self):
        self._description: str | None = None
        self._headers: list[Field] = []
        self._content: list[ContentBuilder] = []

    def description(self, text: str) -> "ContentBodyBuilder":
        self._description = text
        return self

    def headers(self, source: Any) -> "ContentBodyBuilder":
        """Attach a header set: a `Headers` definition or an inline mapping."""
        self._headers.append(header_set(source))
        return self

    def content(self, content_type: str) -> ContentBuilder:
        builder = ContentBuilder(content_type)
        self._content.append(builder)
        return builder

    def freeze(self) -> ContentBody:
        return ContentBody(
            description=self._description,
            headers=self._headers,
            content={c.content_type: c.freeze() for c in self._content},
        )


class _ContentBodyDefinition(Definition):
    def __init__(
        self,
        name: str,
        description: str | None = None,
        headers: list | None = None,
        content: Mapping | None = None,
        builder: Callable[[ContentBodyBuilder], None] | None = None,
    ):
        super().__init__(name, description, builder)
        self._headers = list(headers or [])
        self._content = dict(content or {})

    def _build(self) -> ContentBody:
        builder = ContentBodyBuilder()
        if self.description:
            builder.description(self.description)
        for source in self._headers:
            builder.headers(source)
        for content_type, data in self._content.items():
            content = builder.content(content_type)
            if isinstance(data, Mapping) and "schema" in data:
                content.schema(data["schema"])
                for name, example in (data.get("examples") or {}).items():
                    content.example(name, example)
            else:
                content.schema(data)
        if self._builder:
            self._builder(builder)
        return builder.freeze()


class Response(_ContentBodyDefinition):
    kind = "response"


class RequestBody(_ContentBodyDefinition):
    kind = "request_body"


def schema(name: str, description: str | None = None) -> Callable[[Callable], Schema]:
    """Declare a `Schema` from a builder function."""

    def decorator(fn: Callable[[ObjectBuilder], None]) -> Schema:
        return Schema(name, description=description, builder=fn)

    return decorator


def headers(name: str) -> Callable[[Callable], Headers]:
    """Declare a `Headers` set from a builder function."""

    def decorator(fn: Callable[[HeadersBuilder], None]) -> Headers:
        return Headers(name, builder=fn)

    return decorator


def response(name: str) -> Callable[[Callable], Response]:
    """Declare a `Response` from a builder function."""

    def decorator(fn: Callable[[ContentBodyBuilder], None]) -> Response:
        return Response(name, builder=fn)

    return decorator


def request_body(name: str) -> Callable[[Callable], RequestBody]:
    """Declare a `RequestBody` from a builder function."""

    def decorator(fn: Callable[[ContentBodyBuilder], None]) -> RequestBody:
        return RequestBody(name, builder=fn)

    return decorator


def header_set(source: Any) -> Field:
    """Normalize a header set into a Field: a ref for `Headers`, an object otherwise."""
    if isinstance(source, Headers):
        return Field(kind="ref", ref=source)
    if isinstance(source, Mapping):
        return Field(kind="object", properties=normalize_map(source))
    raise FieldError(f"Headers must be a Headers definition or a mapping, got {source!r}")


def _partial_properties(source: Any) -> dict[str, Field]:
    if isinstance(source, Schema):
        return source.serialize().properties
    field = normalize(source)
    if field.kind != "object":
        raise FieldError(f"Partials must be schemas or object mappings, got {source!r}")
    return field.properties
