"""Attach documentation metadata to request handlers.

    @doc(
        auth=["JWTAuth", {"OAuth": ["user.read"]}],
        body=UserRequestBody,
        responses={200: UserResponse, 404: ErrorResponse},
        tags=["users"],
    )
    def create_user(request):
        \"\"\"Creates a user.\"\"\"

The handler docstring is the default description. Pass `description=` to
override it, either as a string or as a per-locale mapping.
"""

import inspect
from collections.abc import Callable, Mapping
from typing import Any

ANNOTATION_ATTR = "__api_doc__"

ANNOTATION_KEYS = (
    "id",
    "auth",
    "headers",
    "body",
    "path_params",
    "query_params",
    "responses",
    "metadata",
    "tags",
)


def doc(description: str | Mapping | None = None, **metadata: Any) -> Callable:
    """Decorator storing route annotation metadata on a handler."""

    def decorator(handler: Callable) -> Callable:
        desc = description if description is not None else (inspect.getdoc(handler) or "")
        setattr(handler, ANNOTATION_ATTR, (desc, dict(metadata)))
        return handler

    return decorator


def fetch_doc_annotation(handler: Any) -> tuple[str | Mapping, dict] | None:
    """Return `(description, metadata)` for a handler, or None if it has no annotation."""
    annotation = getattr(handler, ANNOTATION_ATTR, None)
    if annotation is None:
        return None
    description, metadata = annotation
    return description, dict(metadata)
