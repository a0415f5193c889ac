import pytest

from api_docgen.definitions import (
    ContentBody,
    Definition,
    Headers,
    MediaType,
    RequestBody,
    Response,
    Schema,
    header_set,
)
from api_docgen.errors import FieldError, ReferenceResolutionError
from api_docgen.field import Field
from mocks import (
    Comment,
    PaginatedUsersResponse,
    PaginationHeaders,
    Parent,
    RateLimitHeaders,
    User,
    UserResponse,
    UserWithTimestamps,
)


class TestSchema:
    def test_builder_fields_in_declaration_order(self):
        field = User.serialize()
        assert field.kind == "object"
        assert field.description == "A user record"
        assert list(field.properties) == ["id", "email", "parent", "comments", "short_comments"]

    def test_field_options(self):
        props = User.serialize().properties
        assert props["id"] == Field(kind="primitive", type="uuid", description="An ID", required=True)
        assert props["parent"] == Field(kind="ref", ref=Parent)
        assert props["comments"] == Field(kind="list", of=[Field(kind="ref", ref=Comment)])

    def test_serialize_is_cached(self):
        assert User.serialize() is User.serialize()

    def test_data_literal(self):
        assert Comment.serialize().properties["text"] == Field(kind="primitive", type="string")

    def test_partial_merges_properties(self):
        props = UserWithTimestamps.serialize().properties
        assert {"id", "email", "parent", "created_at"} <= set(props)
        assert props["id"].required is True

    def test_partial_rejects_non_object(self):
        broken = Schema("Broken", builder=lambda s: s.partial("string"))
        with pytest.raises(FieldError):
            broken.serialize()

    def test_self_inclusion_is_detected(self):
        loop = Schema("Loop", builder=lambda s: s.partial(loop))
        with pytest.raises(ReferenceResolutionError):
            loop.serialize()

    def test_needs_a_name(self):
        with pytest.raises(FieldError):
            Schema("")

    def test_repr(self):
        assert repr(User) == "<Schema 'User'>"


class TestHeaders:
    def test_builder(self):
        fields = PaginationHeaders.serialize()
        assert list(fields) == ["total", "per-page"]
        assert fields["per-page"].required is True
        assert fields["total"].description == "Total entries"

    def test_data_literal(self):
        assert RateLimitHeaders.serialize() == {"X-Rate-Limited": Field(kind="primitive", type="boolean")}


class TestResponse:
    def test_builder(self):
        body = UserResponse.serialize()
        assert isinstance(body, ContentBody)
        assert body.description == "A single user"
        assert body.headers == [Field(kind="ref", ref=RateLimitHeaders)]
        assert body.content == {
            "application/json": MediaType(shape=Field(kind="ref", ref=User), examples={"response": {"id": "1"}}),
        }

    def test_list_content(self):
        shape = PaginatedUsersResponse.serialize().content["application/json"].shape
        assert shape.kind == "list"
        assert shape.of == [Field(kind="ref", ref=User)]

    def test_inline_content_fields(self):
        def build(r):
            with r.content("application/json") as c:
                c.field("id", "uuid")
                c.field("names", ["string"])

        shape = Response("Inline", builder=build).serialize().content["application/json"].shape
        assert shape.kind == "object"
        assert shape.properties["names"].kind == "list"

    def test_content_without_shape(self):
        body = Response("Empty", builder=lambda r: r.content("text/plain")).serialize()
        assert body.content["text/plain"].shape.is_empty

    def test_data_literal(self):
        body = Response(
            "Literal",
            description="A literal response",
            headers=[{"X-Trace": "string"}, RateLimitHeaders],
            content={
                "application/json": {"schema": User, "examples": {"one": {"id": "1"}}},
                "text/plain": "string",
            },
        ).serialize()
        assert body.description == "A literal response"
        assert body.headers[0] == Field(kind="object", properties={"X-Trace": Field(kind="primitive", type="string")})
        assert body.headers[1].ref is RateLimitHeaders
        assert body.content["application/json"].examples == {"one": {"id": "1"}}
        assert body.content["text/plain"].shape == Field(kind="primitive", type="string")


class TestRequestBody:
    def test_kind(self):
        body = RequestBody("Body", content={"application/json": User})
        assert body.kind == "request_body"
        assert body.serialize().content["application/json"].shape.ref is User


class TestHeaderSet:
    def test_headers_definition_is_a_ref(self):
        assert header_set(PaginationHeaders) == Field(kind="ref", ref=PaginationHeaders)

    def test_mapping_is_inline(self):
        assert header_set({"X-Id": "uuid"}).kind == "object"

    def test_rejects_other_input(self):
        with pytest.raises(FieldError):
            header_set("X-Id")

    def test_headers_without_name(self):
        with pytest.raises(FieldError):
            Headers("")


class TestDefinition:
    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            Definition("Bare")
