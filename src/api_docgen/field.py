"""Canonical field representation and the normalizer that produces it.

Every raw type declaration (annotation params, schema fields, content schemas)
is converted into a `Field` tree before any rendering happens. Processors only
ever see `Field` objects.
"""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from api_docgen.errors import FieldError

FieldKind = Literal["primitive", "object", "list", "one_of", "ref"]

PRIMITIVE_METADATA_KEYS = ("description", "default", "enum", "minimum", "maximum", "required", "format")
COLLECTION_TYPES = ("list", "one_of")

PYTHON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}


class Field(BaseModel):
    """A normalized type description. `kind=None` means the field is absent."""

    model_config = ConfigDict(frozen=True)

    kind: FieldKind | None = None
    type: str | None = None  # scalar tag, primitives only
    properties: dict[str, "Field"] = {}
    of: list["Field"] = []
    ref: Any = None  # a Definition, ref fields only
    description: str | None = None
    default: Any = None
    enum: list[Any] | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    required: bool | None = None
    format: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.kind is None


def normalize(value: Any) -> Field:
    """Normalize raw user input into a `Field`.

    - `Field` -> returned as-is
    - named definition -> ref field
    - "string" / str -> primitive field
    - {"type": ..., ...} -> field of that type
    - {"id": "uuid", ...} -> object shorthand
    - ["uuid", Other] -> list shorthand
    - {} -> empty field
    """
    if isinstance(value, Field):
        return value
    if _is_definition(value):
        return Field(kind="ref", ref=value)
    if isinstance(value, str):
        return _create_field({"type": value})
    if isinstance(value, type) and value in PYTHON_TYPES:
        return _create_field({"type": PYTHON_TYPES[value]})
    if isinstance(value, Mapping):
        if not value:
            return Field()
        return _create_field(dict(value))
    if isinstance(value, (list, tuple)):
        return _create_field({"type": "list", "of": list(value)})
    raise FieldError(f"Cannot normalize {value!r} into a field")


def normalize_map(values: Mapping) -> dict[str, Field]:
    """Normalize every value of a name -> raw field mapping."""
    return {str(name): normalize(value) for name, value in values.items()}


def get_refs(field: Field) -> list[Any]:
    """Collect the definitions referenced inside a field tree.

    The walk stops at ref boundaries: a referenced definition's own shape is
    not inspected. Order follows first appearance, duplicates are dropped.
    """
    found: list[Any] = []
    stack = [field]
    while stack:
        current = stack.pop()
        if current.kind == "ref":
            if not any(current.ref is seen for seen in found):
                found.append(current.ref)
        elif current.kind == "object":
            stack.extend(reversed(list(current.properties.values())))
        elif current.kind in COLLECTION_TYPES:
            stack.extend(reversed(current.of))
    return found


def _create_field(data: dict) -> Field:
    if "desc" in data and "description" not in data:
        data["description"] = data.pop("desc")

    field_type = data.get("type")
    if isinstance(field_type, type) and field_type in PYTHON_TYPES:
        field_type = PYTHON_TYPES[field_type]

    if _is_definition(field_type):
        return Field(kind="ref", ref=field_type, **_metadata(data, ("required",)))

    if field_type == "object":
        props = data.get("properties") or {}
        if not isinstance(props, Mapping):
            raise FieldError(f"Object properties must be a mapping, got {props!r}")
        return Field(
            kind="object",
            properties=normalize_map(props),
            **_metadata(data, ("description", "required")),
        )

    if field_type in COLLECTION_TYPES:
        items = data.get("of")
        if not isinstance(items, (list, tuple)):
            raise FieldError(f"'{field_type}' fields need an 'of' list, got {items!r}")
        return Field(
            kind=field_type,
            of=[normalize(item) for item in items],
            **_metadata(data, ("description", "required")),
        )

    if isinstance(field_type, str):
        return Field(kind="primitive", type=field_type, **_metadata(data, PRIMITIVE_METADATA_KEYS))

    # Object shorthand: no reserved `type` key, so the whole mapping is the
    # property map of an implicit object
    return Field(kind="object", properties=normalize_map(data))


def _metadata(data: dict, keys: tuple[str, ...]) -> dict:
    return {key: data[key] for key in keys if key in data}


def _is_definition(value: Any) -> bool:
    # Imported lazily: definitions build their shapes through this module.
    from api_docgen.definitions import Definition

    return isinstance(value, Definition)
