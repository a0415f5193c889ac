"""Writers for files and standard output."""

from pathlib import Path
from typing import Any, TextIO

import click

from api_docgen.errors import ConfigError, WriterError
from api_docgen.writers.base import Writer


class FileWriter(Writer):
    """Writes to `<output_dir>/<file_name>`; `output_dir` defaults to the cwd."""

    @classmethod
    def check_options(cls, options: dict) -> None:
        if not options.get("file_name"):
            raise ConfigError("FileWriter needs a 'file_name' in writer_opts")

    def init(self, options: dict) -> TextIO:
        file_name = options.get("file_name")
        if not file_name:
            raise WriterError("file_name missing")

        file_path = Path(options.get("output_dir") or ".") / file_name
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            return file_path.open("w", encoding="utf-8")
        except OSError as e:
            raise WriterError(f"Cannot open {file_path}: {e}") from e

    def write(self, device: TextIO, content: str) -> None:
        try:
            device.write(content)
        except OSError as e:
            raise WriterError(f"Cannot write {device.name}: {e}") from e

    def close(self, device: TextIO) -> None:
        try:
            device.close()
        except OSError as e:
            raise WriterError(f"Cannot close {device.name}: {e}") from e


class StdoutWriter(Writer):
    """Echoes the document to standard output."""

    def init(self, options: dict) -> Any:
        return None

    def write(self, device: Any, content: str) -> None:
        click.echo(content)

    def close(self, device: Any) -> None:
        return None
