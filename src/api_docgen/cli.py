"""CLI entry point for api-docgen."""

import logging
import sys
from pathlib import Path

import click
import structlog

from api_docgen.config import Config, load_config
from api_docgen.errors import DocgenError
from api_docgen.refs import collect_refs
from api_docgen.runner import failures, generate_routes, prepare_targets, run


def configure_logging(verbose: bool) -> None:
    # Logs go to stderr so the stdout writer's document stays clean
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )


def _load(config_path: Path, output: Path | None = None) -> Config:
    config = load_config(config_path)
    if output is not None:
        config = config.with_output_dir(output)
    return config


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """api-docgen: generate OpenAPI documentation from an annotated route table."""
    configure_logging(verbose)


@main.command()
@click.option("-c", "--config", "config_path", required=True, type=click.Path(exists=True, path_type=Path), help="YAML config file.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Directory to write file outputs into.")
def generate(config_path: Path, output: Path | None):
    """Render every render group and write the results."""
    try:
        config = _load(config_path, output)
        click.echo(f"Generating documentation for {config.title} ({len(config.render_groups)} render groups)...")
        results = run(config)
    except DocgenError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for result in results:
        if result.ok:
            click.echo(f"  [ok] group {result.group} -> {result.destination}")
        else:
            click.echo(f"  [failed] group {result.group} -> {result.destination}: {result.error}")

    failed = failures(results)
    if failed:
        click.echo(f"{len(failed)} of {len(results)} render groups failed.", err=True)
        sys.exit(1)
    click.echo("Done!")


@main.command()
@click.option("-c", "--config", "config_path", required=True, type=click.Path(exists=True, path_type=Path), help="YAML config file.")
def validate(config_path: Path):
    """Check the config and every route annotation without writing anything."""
    try:
        config = _load(config_path)
        prepare_targets(config)
        for index, group in enumerate(config.render_groups):
            routes = generate_routes(config, group)
            refs = collect_refs(routes)
            click.echo(f"  group {index}: {len(routes)} routes, {len(refs)} definitions")
    except DocgenError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo("Configuration is valid.")
