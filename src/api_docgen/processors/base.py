"""Processor interface: turns config, routes and refs into a document string."""

from abc import ABC, abstractmethod

from api_docgen.config import Config
from api_docgen.refs import ReferenceMap
from api_docgen.route import Route


class Processor(ABC):
    """Serializes documentation into one output format."""

    @abstractmethod
    def process(self, config: Config, routes: list[Route], refs: ReferenceMap) -> str:
        """Return the serialized document."""

    def process_headers(self, config: Config) -> dict:
        """Top-level metadata for the document."""
        return {}

    def process_routes(self, routes: list[Route], config: Config) -> dict:
        return {}

    def process_refs(self, refs: ReferenceMap, config: Config) -> dict:
        return {}
