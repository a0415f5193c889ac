"""Documentation pipeline: routes -> refs -> processor -> writer.

`run(config)` renders every render group. Configuration problems, malformed
annotations and broken refs stop the run before anything is written. Writer
failures only fail their own group; the other groups still render.
"""

from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from api_docgen.config import Config, RenderGroupConfig, import_string
from api_docgen.errors import ConfigError, WriterError
from api_docgen.processors.base import Processor
from api_docgen.processors.openapi import OpenAPIProcessor
from api_docgen.refs import collect_refs
from api_docgen.route import Route, build_routes, filter_routes
from api_docgen.writers.base import Writer
from api_docgen.writers.file import FileWriter, StdoutWriter

logger = structlog.get_logger()

PROCESSORS: dict[str, type[Processor]] = {"openapi": OpenAPIProcessor}
WRITERS: dict[str, type[Writer]] = {"file": FileWriter, "stdout": StdoutWriter}


class RenderResult(BaseModel):
    """Outcome of one render group."""

    group: int
    destination: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RenderTarget(BaseModel):
    """A render group with its processor and writer resolved."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    group: RenderGroupConfig
    processor: Processor
    writer: Writer


def run(config: Config) -> list[RenderResult]:
    """Render and write every render group; return one result per group."""
    targets = prepare_targets(config)
    # Every group renders before any group writes
    contents = [generate_documentation(config, target.group, target.processor) for target in targets]

    results = []
    for index, (target, content) in enumerate(zip(targets, contents)):
        destination = _describe_destination(target)
        try:
            write(content, target.writer, target.group.writer_opts)
        except (WriterError, OSError) as e:
            logger.error("Render group failed", group=index, destination=destination, error=str(e))
            results.append(RenderResult(group=index, destination=destination, error=str(e)))
        else:
            logger.info("Render group written", group=index, destination=destination)
            results.append(RenderResult(group=index, destination=destination))
    return results


def failures(results: list[RenderResult]) -> list[RenderResult]:
    return [result for result in results if not result.ok]


def prepare_targets(config: Config) -> list[RenderTarget]:
    """Resolve processors and writers for every group, failing fast on bad config."""
    targets = []
    for group in config.render_groups:
        processor = _resolve(group.processor, PROCESSORS, Processor, "processor")
        writer = _resolve(group.writer, WRITERS, Writer, "writer")
        writer.check_options(group.writer_opts)
        targets.append(RenderTarget(group=group, processor=processor, writer=writer))
    return targets


def generate_routes(config: Config, group: RenderGroupConfig) -> list[Route]:
    """Build the routes of a render group, minus the filtered ones."""
    routes = build_routes(config.router_for(group), config)
    kept = filter_routes(routes, group.filters)
    logger.debug("Filtered routes", total=len(routes), kept=len(kept))
    return kept


def generate_documentation(config: Config, group: RenderGroupConfig, processor: Processor) -> str:
    routes = generate_routes(config, group)
    refs = collect_refs(routes)
    return processor.process(config, routes, refs)


def write(content: str, writer: Writer, options: dict) -> None:
    """Run init -> write -> close; the device is closed on the error path too."""
    device = writer.init(options)
    try:
        writer.write(device, content)
    except (WriterError, OSError):
        try:
            writer.close(device)
        except (WriterError, OSError) as close_error:
            logger.warning("Close after failed write also failed", error=str(close_error))
        raise
    writer.close(device)


def _resolve(value: Any, registry: dict[str, type], base: type, label: str) -> Any:
    if isinstance(value, base):
        return value
    if isinstance(value, str):
        if value in registry:
            return registry[value]()
        if ":" not in value:
            raise ConfigError(f"Unknown {label} {value!r}; expected one of {', '.join(sorted(registry))} or 'module:Class'")
        value = import_string(value)
    if isinstance(value, type) and issubclass(value, base):
        return value()
    raise ConfigError(f"{value!r} is not a {base.__name__}")


def _describe_destination(target: RenderTarget) -> str:
    opts = target.group.writer_opts
    if isinstance(target.writer, FileWriter):
        output_dir = opts.get("output_dir")
        file_name = opts.get("file_name", "")
        return f"{output_dir}/{file_name}" if output_dir else file_name
    return type(target.writer).__name__
