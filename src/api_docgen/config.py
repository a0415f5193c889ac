"""Configuration models and loading.

A config is built once at startup (from YAML via `load_config`, or in code via
`Config.from_dict`) and passed explicitly through the whole pipeline.

    title: My API
    description: My API's description
    version: 1.0.0
    router: myapp.docs:router
    server_urls: [https://api.example.com]
    auth:
      BearerAuth: {type: http, scheme: bearer}
    pipelines:
      api:
        headers: {X-Request-Id: uuid}
    render_groups:
      - writer_opts: {file_name: api-public.json}
        filters: [{path: /internal/health}]
"""

import importlib
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from api_docgen.errors import ConfigError

DEFAULT_CONTENT_TYPE = "application/json"


class PipelineConfig(BaseModel):
    """Shared params applied to every route that goes through a pipeline."""

    model_config = ConfigDict(extra="forbid")

    auth: Any = {}
    body: Any = {}
    headers: Any = {}
    path_params: Any = {}
    query_params: Any = {}
    responses: dict[Any, Any] = {}


class RenderGroupConfig(BaseModel):
    """One output target: route filters, a processor, a writer and its options."""

    model_config = ConfigDict(extra="forbid")

    filters: list[Any] = []
    processor: Any = "openapi"
    writer: Any = "file"
    writer_opts: dict[str, Any] = {"file_name": "api.json"}
    router: Any = None

    @field_validator("router", mode="before")
    @classmethod
    def _resolve_router(cls, value: Any) -> Any:
        return None if value is None else resolve_router(value)


class Config(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    description: str
    version: str
    router: Any
    default_content_type: str = DEFAULT_CONTENT_TYPE
    locale: str = "en"
    server_urls: list[str] = []
    auth: dict[str, Any] = {}
    pipelines: dict[str, PipelineConfig] = {}
    render_groups: list[RenderGroupConfig] = [RenderGroupConfig()]

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        # YAML reads `version: 1.0` as a float
        return str(value) if isinstance(value, (int, float)) else value

    @field_validator("router", mode="before")
    @classmethod
    def _resolve_router(cls, value: Any) -> Any:
        return resolve_router(value)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Build a config, turning validation failures into a `ConfigError`."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(_format_validation_error(e)) from e

    def router_for(self, group: RenderGroupConfig) -> Any:
        return group.router if group.router is not None else self.router

    def with_output_dir(self, output_dir: Path) -> "Config":
        """Return a copy whose render groups write into `output_dir`."""
        groups = [
            group.model_copy(update={"writer_opts": {**group.writer_opts, "output_dir": str(output_dir)}})
            for group in self.render_groups
        ]
        return self.model_copy(update={"render_groups": groups})


def load_config(file_path: Path) -> Config:
    """Load a YAML config file."""
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {file_path}: {e}") from e

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e

    return Config.from_dict(data)


def import_string(target: str) -> Any:
    """Import an object from a `package.module:attr` string."""
    module_name, _, attr_path = target.partition(":")
    if not module_name or not attr_path:
        raise ConfigError(f"Expected 'module:attribute', got {target!r}")

    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import module {module_name!r}: {e}") from e

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ConfigError(f"Module {module_name!r} has no attribute {attr_path!r}") from e
    return obj


def resolve_router(value: Any) -> Any:
    router = import_string(value) if isinstance(value, str) else value
    if not hasattr(router, "route_infos"):
        raise ConfigError(f"{value!r} is not a router: it has no route_infos()")
    return router


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        problems.append(f"{location}: {err['msg']}")
    return "Invalid configuration: " + "; ".join(problems)
