import pytest

from api_docgen.errors import FieldError
from api_docgen.field import Field, get_refs, normalize, normalize_map
from mocks import Comment, Parent, User


class TestNormalizePrimitives:
    def test_bare_type_tag(self):
        assert normalize("string") == Field(kind="primitive", type="string")

    def test_python_type(self):
        assert normalize(int) == Field(kind="primitive", type="integer")
        assert normalize({"type": bool}) == Field(kind="primitive", type="boolean")

    def test_keeps_whitelisted_metadata_only(self):
        field = normalize({"type": "integer", "minimum": 1, "maximum": 10, "required": True, "bogus": "x"})
        assert field.kind == "primitive"
        assert field.minimum == 1
        assert field.maximum == 10
        assert field.required is True
        assert not hasattr(field, "bogus")

    def test_desc_is_an_alias_for_description(self):
        assert normalize({"type": "string", "desc": "A name"}).description == "A name"

    def test_enum_and_default(self):
        field = normalize({"type": "string", "enum": ["a", "b"], "default": "a"})
        assert field.enum == ["a", "b"]
        assert field.default == "a"


class TestNormalizeShapes:
    def test_empty_mapping_is_empty_field(self):
        assert normalize({}).is_empty
        assert Field().is_empty

    def test_object_shorthand_matches_explicit_object(self):
        explicit = normalize({"type": "object", "properties": {"id": "uuid", "name": "string"}})
        shorthand = normalize({"id": "uuid", "name": "string"})
        assert explicit == shorthand
        assert explicit.properties["id"] == Field(kind="primitive", type="uuid")

    def test_object_without_properties(self):
        field = normalize({"type": "object", "desc": "Anything"})
        assert field.kind == "object"
        assert field.properties == {}
        assert field.description == "Anything"

    def test_list_shorthand_matches_explicit_list(self):
        assert normalize(["uuid", User]) == normalize({"type": "list", "of": ["uuid", User]})

    def test_heterogeneous_list(self):
        field = normalize(["uuid", User])
        assert field.kind == "list"
        assert field.of[0] == Field(kind="primitive", type="uuid")
        assert field.of[1] == Field(kind="ref", ref=User)

    def test_one_of(self):
        field = normalize({"type": "one_of", "of": [User, Comment]})
        assert field.kind == "one_of"
        assert [member.ref for member in field.of] == [User, Comment]

    def test_definition_becomes_ref(self):
        field = normalize(User)
        assert field.kind == "ref"
        assert field.ref is User
        assert field.properties == {}

    def test_definition_as_type_keeps_required(self):
        field = normalize({"type": User, "required": True})
        assert field.kind == "ref"
        assert field.required is True

    def test_nested_object(self):
        field = normalize({"user": {"id": "uuid", "tags": ["string"]}})
        assert field.properties["user"].properties["tags"].kind == "list"

    def test_idempotent(self):
        raw = {"id": "uuid", "parent": Parent, "tags": ["string", {"type": "one_of", "of": [User, "integer"]}]}
        once = normalize(raw)
        assert normalize(once) is once
        assert normalize(raw) == once


class TestNormalizeErrors:
    def test_unsupported_value(self):
        with pytest.raises(FieldError):
            normalize(42)

    def test_collection_without_of_list(self):
        with pytest.raises(FieldError):
            normalize({"type": "list", "of": "uuid"})

    def test_object_properties_must_be_mapping(self):
        with pytest.raises(FieldError):
            normalize({"type": "object", "properties": ["id"]})


class TestNormalizeMap:
    def test_normalizes_every_value(self):
        fields = normalize_map({"id": "uuid", 1: "integer"})
        assert fields == {"id": Field(kind="primitive", type="uuid"), "1": Field(kind="primitive", type="integer")}


class TestGetRefs:
    def test_finds_refs_in_first_appearance_order(self):
        field = normalize({"a": User, "b": [User, Comment], "c": {"type": "one_of", "of": [Parent]}})
        assert get_refs(field) == [User, Comment, Parent]

    def test_stops_at_ref_boundary(self):
        assert get_refs(normalize(User)) == [User]

    def test_no_refs(self):
        assert get_refs(normalize({"id": "uuid"})) == []
        assert get_refs(Field()) == []
