"""Exceptions raised while generating documentation."""


class DocgenError(Exception):
    """Base class for all api-docgen errors."""


class ConfigError(DocgenError):
    """Required configuration is missing or invalid."""


class FieldError(DocgenError):
    """Raw input could not be normalized into a Field."""


class AnnotationError(DocgenError):
    """A handler annotation is present but structurally invalid."""


class ReferenceResolutionError(DocgenError):
    """A ref points at something that is not a usable named definition."""


class WriterError(DocgenError):
    """A writer failed to open, write, or close its destination."""
