"""Writer interface: init -> write -> close."""

from abc import ABC, abstractmethod
from typing import Any


class Writer(ABC):
    """Writes a rendered document to some destination."""

    @classmethod
    def check_options(cls, options: dict) -> None:
        """Raise `ConfigError` if the options cannot work. Called before rendering."""

    @abstractmethod
    def init(self, options: dict) -> Any:
        """Open the destination and return a device to write to."""

    @abstractmethod
    def write(self, device: Any, content: str) -> None:
        ...

    @abstractmethod
    def close(self, device: Any) -> None:
        ...
